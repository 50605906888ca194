"""
Pytest configuration and fixtures for the Cloud Foundry plugin tests.
"""

import os
from pathlib import Path
from unittest.mock import Mock

import pytest
import yaml

from bosh_cloudfoundry.core.config import Settings


EXISTING_DEPLOYMENT = {
    "releases": [
        {"name": "cf-release", "version": 132},
    ],
    "properties": {
        "cf": {
            # immutable attributes
            "name": "demo",
            "deployment_size": "medium",
            "dns": "mycloud.com",
            "common_password": "qwerty",
            # mutable attributes
            "ip_addresses": ["1.2.3.4"],
            "persistent_disk": 4096,
            "security_group": "cf",
        }
    },
}


@pytest.fixture(autouse=True)
def isolated_environment(tmp_path, monkeypatch):
    """
    Run every test from an empty directory with no BOSH_CF_* variables set,
    so a developer's .env or shell cannot leak into Settings.
    """
    for key in list(os.environ):
        if key.startswith("BOSH_CF_"):
            monkeypatch.delenv(key)
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(
        director_url="https://192.168.50.4:25555",
        director_username="admin",
        director_password="admin",
        deployments_dir=tmp_path / "deployments",
        release_dir=tmp_path / "releases",
        non_interactive=True,
    )


@pytest.fixture
def deployment_file(settings: Settings) -> Path:
    """Write the demo deployment manifest and return its path."""
    path = settings.deployment_path("demo")
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(yaml.safe_dump(EXISTING_DEPLOYMENT))
    return path


@pytest.fixture
def director() -> Mock:
    """Director double that already has the release and stemcell."""
    director = Mock()
    director.get_status.return_value = {"uuid": "UUID", "cpi": "aws"}
    director.has_release.return_value = True
    director.has_stemcell.return_value = True
    director.list_properties.return_value = {}
    return director


@pytest.fixture
def release_cmd() -> Mock:
    return Mock()


@pytest.fixture
def stemcell_cmd() -> Mock:
    return Mock()
