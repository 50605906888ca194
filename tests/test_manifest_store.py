"""
Tests for ManifestStore reads and atomic writes.
"""

import os
from pathlib import Path
from unittest.mock import patch

import pytest

from bosh_cloudfoundry.core.exceptions import NotFoundError, ParseError
from bosh_cloudfoundry.manifest.document import ManifestDocument
from bosh_cloudfoundry.manifest.store import ManifestStore


def _document() -> ManifestDocument:
    document = ManifestDocument(releases=[{"name": "cf-release", "version": 133}])
    document.set_mutable("name", "demo")
    document.set_mutable("ip_addresses", ["1.2.3.4"])
    return document


def test_exists(tmp_path: Path):
    store = ManifestStore()
    path = tmp_path / "demo.yml"

    assert not store.exists(path)
    path.write_text("releases: []\n")
    assert store.exists(path)


def test_exists_false_for_directory(tmp_path: Path):
    assert not ManifestStore().exists(tmp_path)


def test_read_missing_raises_not_found(tmp_path: Path):
    with pytest.raises(NotFoundError):
        ManifestStore().read(tmp_path / "missing.yml")


def test_read_malformed_raises_parse_error(tmp_path: Path):
    path = tmp_path / "demo.yml"
    path.write_text("releases: [unclosed")

    with pytest.raises(ParseError):
        ManifestStore().read(path)


def test_write_then_read(tmp_path: Path):
    store = ManifestStore()
    path = tmp_path / "deployments" / "cf" / "demo.yml"
    document = _document()

    store.write(path, document)

    assert store.read(path) == document
    assert path.read_bytes() == document.serialize()


def test_write_replaces_existing_file(tmp_path: Path):
    store = ManifestStore()
    path = tmp_path / "demo.yml"
    store.write(path, _document())

    updated = _document()
    updated.set_mutable("persistent_disk", 8192)
    store.write(path, updated)

    assert store.read(path).get("persistent_disk") == 8192


def test_write_leaves_no_temp_files(tmp_path: Path):
    path = tmp_path / "demo.yml"
    ManifestStore().write(path, _document())

    assert sorted(p.name for p in tmp_path.iterdir()) == ["demo.yml"]


def test_failed_replace_keeps_original_and_cleans_up(tmp_path: Path):
    store = ManifestStore()
    path = tmp_path / "demo.yml"
    original = _document()
    store.write(path, original)
    before = path.read_bytes()

    updated = _document()
    updated.set_mutable("persistent_disk", 8192)
    with patch("bosh_cloudfoundry.manifest.store.os.replace", side_effect=OSError("disk full")):
        with pytest.raises(OSError):
            store.write(path, updated)

    assert path.read_bytes() == before
    assert sorted(p.name for p in tmp_path.iterdir()) == ["demo.yml"]
