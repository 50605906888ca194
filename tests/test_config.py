"""
Tests for Settings loading and derived paths.
"""

from pathlib import Path

import pytest
from pydantic import ValidationError as PydanticValidationError

from bosh_cloudfoundry.core.config import Settings
from bosh_cloudfoundry.core.exceptions import ValidationError


def test_defaults():
    settings = Settings()

    assert settings.director_url is None
    assert not settings.has_credentials
    assert not settings.non_interactive
    assert settings.release_name == "cf-release"
    assert settings.default_name == "demo"
    assert settings.log_level == "INFO"


def test_reads_environment(monkeypatch):
    monkeypatch.setenv("BOSH_CF_DIRECTOR_URL", "https://10.0.0.6:25555/")
    monkeypatch.setenv("BOSH_CF_DIRECTOR_USERNAME", "admin")
    monkeypatch.setenv("BOSH_CF_DIRECTOR_PASSWORD", "secret")
    monkeypatch.setenv("BOSH_CF_NON_INTERACTIVE", "true")
    monkeypatch.setenv("BOSH_CF_RELEASE_VERSION", "140")

    settings = Settings()

    assert settings.director_url == "https://10.0.0.6:25555"
    assert settings.has_credentials
    assert settings.non_interactive
    assert settings.release_version == 140


def test_reads_dotenv_file(tmp_path: Path):
    (tmp_path / ".env").write_text("BOSH_CF_DEFAULT_NAME=prod\n")

    assert Settings().default_name == "prod"


def test_deployment_path(tmp_path: Path):
    settings = Settings(deployments_dir=tmp_path)

    assert settings.deployment_path("prod") == tmp_path / "cf" / "prod.yml"
    assert settings.deployment_path() == tmp_path / "cf" / "demo.yml"


def test_release_location(tmp_path: Path):
    settings = Settings(release_dir=tmp_path)

    assert settings.release_location() == str(tmp_path / "cf-release-133.tgz")
    assert settings.release_location(132) == str(tmp_path / "cf-release-132.tgz")

    settings = Settings(release_url="https://example.com/cf.tgz")
    assert settings.release_location(132) == "https://example.com/cf.tgz"


def test_stemcell_url():
    assert Settings().stemcell_url("aws").endswith("/aws/latest-bosh-stemcell-aws.tgz")


def test_log_level_normalized():
    assert Settings(log_level="debug").log_level == "DEBUG"


@pytest.mark.parametrize("overrides", [{"log_level": "chatty"}, {"log_format": "xml"}])
def test_invalid_logging_options(overrides):
    with pytest.raises(PydanticValidationError):
        Settings(**overrides)


@pytest.mark.parametrize("name", ["../../x", "prod/other", ".hidden"])
def test_deployment_path_rejects_unsafe_names(tmp_path: Path, name):
    settings = Settings(deployments_dir=tmp_path)

    with pytest.raises(ValidationError) as exc_info:
        settings.deployment_path(name)

    assert exc_info.value.field == "name"
