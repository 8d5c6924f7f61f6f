from __future__ import annotations

from typing import Any, Dict, List, Optional

from rpcdoc.openrpc.descriptors import make_content_descriptor, schema_for, type_signature
from rpcdoc.openrpc.symbols import Field
from rpcdoc.rpc.types import Address, Hash, HexBig
from rpcdoc.tests.fixtures.sample_api import NodeInfo


def test_type_signature_names_module_and_qualname() -> None:
    assert type_signature(int) == "builtins:int"
    assert type_signature(NodeInfo) == "rpcdoc.tests.fixtures.sample_api:NodeInfo"


def test_type_signature_marks_optionals() -> None:
    assert type_signature(Optional[HexBig]) == "*rpcdoc.rpc.types:HexBig"
    assert type_signature(Hash | None) == "*rpcdoc.rpc.types:Hash"


def test_anonymous_types_have_no_signature() -> None:
    assert type_signature(List[int]) == ""
    assert type_signature(Dict[str, Any]) == ""
    assert type_signature(Any) == ""


def test_descriptor_uses_declared_name_and_comment() -> None:
    descriptor = make_content_descriptor(
        Address, Field(names=("to",), comment="Recipient."), "sendParameter0", required=True
    )
    assert descriptor.name == "to"
    assert descriptor.summary == "Recipient."
    assert descriptor.description == "rpcdoc.rpc.types:Address"
    payload = descriptor.to_dict()
    assert payload["required"] is True
    # The address literal has no description, so the signature fills it in.
    assert payload["schema"]["description"] == "rpcdoc.rpc.types:Address"
    assert payload["schema"]["title"] == "address"


def test_descriptor_keeps_an_existing_schema_description() -> None:
    descriptor = make_content_descriptor(int, Field(names=("n",)), "fallback")
    assert descriptor.schema.description == "Hex representation of the integer"
    assert descriptor.description == "builtins:int"
    assert "required" not in descriptor.to_dict()


def test_descriptor_falls_back_for_missing_and_blank_names() -> None:
    assert make_content_descriptor(str, Field(), "fooResult0").name == "fooResult0"
    assert make_content_descriptor(str, Field(names=("_",)), "fooParameter1").name == "fooParameter1"
    field = Field(names=("a", "b"))
    assert make_content_descriptor(str, field, "x", name_index=1).name == "b"
    assert make_content_descriptor(str, field, "x", name_index=2).name == "x"


def test_schema_for_reflects_structures() -> None:
    schema = schema_for(NodeInfo)
    assert schema.type == ["object"]
    assert sorted(schema.properties) == ["enode", "name", "port"]
    assert schema.properties["port"].pattern == "^0x[a-fA-F0-9]+$"
    assert schema.required == ["name", "port"]
