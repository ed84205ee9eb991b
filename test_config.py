import pytest
from pydantic import ValidationError

from popup_harness.config import Timeouts, check_base_url, load_timeouts
from popup_harness.models.credentials import CredentialCorpus, load_corpus


def test_default_timeouts():
    timeouts = Timeouts()

    assert timeouts.element == 60000
    assert timeouts.select == 10000
    assert timeouts.click_settle == 500
    assert timeouts.animation == 300
    assert timeouts.validation == 500
    assert timeouts.popup == 10000
    assert timeouts.login_settle == 5000


def test_missing_config_file_means_defaults(tmp_path):
    assert load_timeouts(str(tmp_path / "absent.yaml")) == Timeouts()


def test_config_overrides_selected_timeouts(tmp_path):
    config = tmp_path / "harness_config.yaml"
    config.write_text("timeouts:\n  element: 15000\n  animation: 0\n", encoding="utf-8")

    timeouts = load_timeouts(str(config))

    assert timeouts.element == 15000
    assert timeouts.animation == 0
    assert timeouts.popup == 10000


def test_config_without_timeouts_section(tmp_path):
    config = tmp_path / "harness_config.yaml"
    config.write_text("# nothing here\n", encoding="utf-8")

    assert load_timeouts(str(config)) == Timeouts()


def test_invalid_timeout_value_is_rejected(tmp_path):
    config = tmp_path / "harness_config.yaml"
    config.write_text("timeouts:\n  element: soon\n", encoding="utf-8")

    with pytest.raises(ValidationError):
        load_timeouts(str(config))


def test_check_base_url_exits_when_unset(capsys):
    with pytest.raises(SystemExit) as excinfo:
        check_base_url("")

    assert excinfo.value.code == 1
    assert "BASE_URL" in capsys.readouterr().out


def test_bundled_corpus():
    corpus = load_corpus()

    assert corpus.invalid_emails[0] == "userexample.com"
    assert len(corpus.invalid_emails) == 8
    assert "user+name@example.com" in corpus.valid_emails
    assert corpus.invalid_user.email == "abcfgh@air-closet.com"
    assert corpus.invalid_user.password == "Ab1234567"


def test_custom_corpus_file(tmp_path):
    path = tmp_path / "corpus.yaml"
    path.write_text(
        "invalid_emails: [bad]\n"
        "invalid_user: {email: nobody@example.com, password: x}\n",
        encoding="utf-8",
    )

    corpus = load_corpus(str(path))

    assert isinstance(corpus, CredentialCorpus)
    assert corpus.invalid_emails == ["bad"]
    assert corpus.valid_emails == []


def test_corpus_requires_known_bad_credential(tmp_path):
    path = tmp_path / "corpus.yaml"
    path.write_text("invalid_emails: [bad]\n", encoding="utf-8")

    with pytest.raises(ValidationError):
        load_corpus(str(path))
