import os
from typing import List

import yaml
from pydantic import BaseModel, Field

DEFAULT_CORPUS = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "data", "credentials.yaml")


class Credential(BaseModel):
    email: str
    password: str


class CredentialCorpus(BaseModel):
    invalid_emails: List[str] = Field(..., description="Addresses the popup must reject with the format error")
    valid_emails: List[str] = Field(default_factory=list, description="Addresses the popup must accept")
    invalid_user: Credential = Field(..., description="Well-formed credential pair that matches no account")


def load_corpus(path: str = DEFAULT_CORPUS) -> CredentialCorpus:
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    return CredentialCorpus(**data)
