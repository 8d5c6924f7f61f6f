from __future__ import annotations

import copy
from datetime import datetime, timezone

import pytest

from rpcdoc.api.validators import check_fragment, validate_document
from rpcdoc.openrpc.document import DocumentDiscoverer
from rpcdoc.tests.fixtures.sample_api import build_server


@pytest.fixture(scope="module")
def sample_payload():
    discoverer = DocumentDiscoverer(
        build_server(), clock=lambda: datetime(2024, 1, 2, tzinfo=timezone.utc)
    )
    return discoverer.payload()


def test_discovered_document_is_valid(sample_payload) -> None:
    valid, errors = validate_document(sample_payload)
    assert valid, errors
    assert errors == []


def test_missing_sections_are_reported(sample_payload) -> None:
    payload = copy.deepcopy(sample_payload)
    del payload["info"]
    valid, errors = validate_document(payload)
    assert not valid
    assert any("'info' is a required property" in error for error in errors)


def test_descriptor_errors_carry_their_location(sample_payload) -> None:
    payload = copy.deepcopy(sample_payload)
    payload["methods"][0]["params"] = [{"name": "", "schema": {}}]
    valid, errors = validate_document(payload)
    assert not valid
    assert any(error.startswith("methods/0/params/0/name") for error in errors)


def test_duplicate_and_unsorted_names_are_reported(sample_payload) -> None:
    payload = copy.deepcopy(sample_payload)
    payload["methods"].append(copy.deepcopy(payload["methods"][0]))
    valid, errors = validate_document(payload)
    assert not valid
    assert "methods: duplicate method names" in errors
    assert "methods: not sorted by name" in errors


def test_check_fragment() -> None:
    assert check_fragment({"type": "string", "pattern": "^0x"}) == (True, [])
    valid, errors = check_fragment({"type": 5})
    assert not valid
    assert errors
