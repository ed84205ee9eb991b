import logging
import os
import sys

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError

load_dotenv()

LOGGER = logging.getLogger("popup_harness.config")

BASE_URL = os.getenv("BASE_URL", "").rstrip("/")
SCREENSHOT_DIR = os.getenv("SCREENSHOT_DIR", os.path.join("test-results", "screenshots"))
HEADLESS = os.getenv("HEADLESS", "false").lower() in ("true", "1", "yes")
TEST_PASSWORD = os.getenv("TEST_PASSWORD", "aircloset")
ACCOUNT_API_URL = os.getenv("ACCOUNT_API_URL")
HARNESS_CONFIG = os.getenv("HARNESS_CONFIG", "harness_config.yaml")


class Timeouts(BaseModel):
    """Every fixed wait used by the harness, in milliseconds."""
    element: float = Field(60000, description="Visibility wait before click/fill/read")
    select: float = Field(10000, description="Visibility wait before selecting an option")
    click_settle: float = Field(500, description="Pause after a click for transition animations")
    animation: float = Field(300, description="Popup open/close animation")
    validation: float = Field(500, description="Client-side validation message delay")
    popup: float = Field(10000, description="Popup appear/disappear wait")
    login_settle: float = Field(5000, description="Pause after submitting valid credentials")
    navigation: float = Field(30000, description="Network idle wait after navigation")
    close_probe: float = Field(500, description="Probe for the close control before closing")


def load_timeouts(config_path: str = HARNESS_CONFIG) -> Timeouts:
    """
    Reads the optional `timeouts:` section of the harness YAML config.
    Missing file or section means defaults.
    """
    if not os.path.exists(config_path):
        return Timeouts()

    with open(config_path, "r", encoding="utf-8") as f:
        config = yaml.safe_load(f) or {}

    try:
        return Timeouts(**(config.get("timeouts") or {}))
    except ValidationError as e:
        LOGGER.error("Invalid timeouts in %s: %s", config_path, e)
        raise


def check_base_url(base_url: str = BASE_URL):
    if not base_url:
        print("Error: BASE_URL environment variable is not set.")
        print("Please export BASE_URL='https://...' or create a .env file.")
        sys.exit(1)
