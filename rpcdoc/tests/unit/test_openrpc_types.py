from __future__ import annotations

import json

from rpcdoc.openrpc.types import (
    ContentDescriptor,
    Document,
    Method,
    Schema,
    new_document,
)


def test_schema_round_trips_unknown_keywords() -> None:
    payload = {
        "title": "thing",
        "type": ["string", "null"],
        "minLength": 2,
        "additionalProperties": False,
        "not": {"enum": ["x"]},
        "items": [{"type": "integer"}, {"type": "string"}],
    }
    schema = Schema.from_dict(payload)
    assert schema.extra == {"minLength": 2}
    assert schema.to_dict() == payload


def test_single_type_serializes_as_string() -> None:
    assert Schema(type=["object"]).to_dict() == {"type": "object"}


def test_schema_children_cover_nested_keywords() -> None:
    schema = Schema.from_dict(
        {
            "properties": {"a": {"title": "a"}},
            "additionalProperties": {"title": "extra"},
            "items": {"title": "item"},
            "oneOf": [{"title": "one"}],
            "definitions": {"D": {"title": "def"}},
        }
    )
    assert [child.title for child in schema.children()] == ["a", "extra", "item", "one", "def"]


def test_replace_with_and_copy() -> None:
    target = Schema(title="before", properties={"a": Schema(title="a")})
    replacement = Schema(title="after", type=["string"])
    target.replace_with(replacement)
    assert target.to_dict() == {"title": "after", "type": "string"}

    clone = replacement.copy()
    clone.title = "changed"
    assert replacement.title == "after"


def test_content_descriptor_omits_empty_fields() -> None:
    descriptor = ContentDescriptor(name="value", schema=Schema(type=["string"]))
    assert descriptor.to_dict() == {"name": "value", "schema": {"type": "string"}}


def test_new_document_has_every_section() -> None:
    payload = new_document().to_dict()
    assert payload["openrpc"] == "1.2.4"
    assert set(payload) == {"openrpc", "info", "servers", "methods", "components", "externalDocs"}
    assert set(payload["components"]) == {
        "contentDescriptors",
        "schemas",
        "examples",
        "links",
        "errors",
        "examplePairingObjects",
        "tags",
    }
    assert payload["info"]["termsOfService"] == ""


def test_document_json_round_trip() -> None:
    document = new_document()
    document.info.title = "API"
    document.methods.append(
        Method(
            name="foo",
            params=[ContentDescriptor(name="a", required=True, schema=Schema(type=["string"]))],
            result=ContentDescriptor(name="fooResult0", schema=Schema(type=["boolean"])),
            deprecated=True,
        )
    )
    text = document.to_json()
    restored = Document.from_dict(json.loads(text))
    assert restored.to_dict() == document.to_dict()
    assert restored.find_method("foo").params[0].required is True
    assert restored.find_method("missing") is None
