"""
Tests for ManifestDocument parsing, serialization and property access.
"""

import pytest
import yaml

from bosh_cloudfoundry.core.exceptions import ImmutableAttributeError, ParseError
from bosh_cloudfoundry.manifest.document import ManifestDocument

from conftest import EXISTING_DEPLOYMENT


@pytest.fixture
def document() -> ManifestDocument:
    return ManifestDocument.load(yaml.safe_dump(EXISTING_DEPLOYMENT).encode())


def test_load_reads_release_and_properties(document):
    assert document.release.name == "cf-release"
    assert document.release.version == 132
    assert document.get("cf.dns") == "mycloud.com"
    assert document.get("ip_addresses") == ["1.2.3.4"]
    assert document.name == "demo"


def test_get_missing_key_returns_none(document):
    assert document.get("cf.nothing") is None
    assert document.get("other.namespace.key") is None


def test_serialize_round_trip(document):
    assert ManifestDocument.load(document.serialize()) == document


def test_serialize_is_deterministic(document):
    reloaded = ManifestDocument.load(document.serialize())
    assert reloaded.serialize() == document.serialize()


def test_serialize_keeps_key_layout(document):
    raw = yaml.safe_load(document.serialize())
    assert raw["releases"] == [{"name": "cf-release", "version": 132}]
    assert raw["properties"]["cf"]["persistent_disk"] == 4096


@pytest.mark.parametrize(
    "data",
    [
        b"releases: [unclosed",
        b"- just\n- a list\n",
        b"properties: {}\n",
        b"releases: not-a-list\n",
        b"releases:\n- name: cf-release\n  version: latest\n",
        b"releases: []\nproperties: [1, 2]\n",
        b"releases: []\nproperties:\n  cf: plain-string\n",
    ],
)
def test_load_malformed_raises_parse_error(data):
    with pytest.raises(ParseError):
        ManifestDocument.load(data)


def test_set_mutable_updates_mutable_property(document):
    document.set_mutable("persistent_disk", 8192)

    assert document.get("persistent_disk") == 8192
    assert document.get("cf.persistent_disk") == 8192


def test_set_mutable_rejects_existing_immutable_property(document):
    with pytest.raises(ImmutableAttributeError) as exc_info:
        document.set_mutable("dns", "other.com")

    assert exc_info.value.field == "dns"
    assert document.get("dns") == "mycloud.com"


def test_set_mutable_allows_first_assignment_of_immutable_property():
    document = ManifestDocument(releases=[{"name": "cf-release", "version": 133}])

    document.set_mutable("name", "demo")

    assert document.get("name") == "demo"


def test_release_requires_exactly_one_entry():
    document = ManifestDocument(releases=[])

    with pytest.raises(ParseError):
        document.release


def test_copy_document_is_independent(document):
    copy = document.copy_document()
    copy.set_mutable("ip_addresses", ["5.6.7.8"])

    assert document.get("ip_addresses") == ["1.2.3.4"]
    assert copy != document


def test_unmanaged_sections_survive_round_trip():
    manifest = {
        "name": "demo",
        "director_uuid": "UUID",
        "jobs": [{"name": "router", "instances": 1}],
        "releases": [{"name": "cf-release", "version": 132, "url": "https://example.com/cf-release-132.tgz"}],
        "properties": EXISTING_DEPLOYMENT["properties"],
    }

    document = ManifestDocument.load(yaml.safe_dump(manifest).encode())

    assert document.release.version == 132
    assert document.name == "demo"
    assert yaml.safe_load(document.serialize()) == manifest
