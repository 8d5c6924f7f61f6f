from __future__ import annotations

import inspect

import pytest

from rpcdoc.openrpc.symbols import (
    Declaration,
    Field,
    ManifestDocProvider,
    SourceDocProvider,
    full_name,
    parse_docstring,
    receiver_lineage,
    runtime_name,
)
from rpcdoc.tests.fixtures import sample_api
from rpcdoc.tests.fixtures.sample_api import (
    BaseStore,
    OverlayStore,
    PrivateAdminAPI,
    PublicAdminAPI,
    PublicChainAPI,
    foo_bar,
)
from rpcdoc.utils.errors import SourceReadError, SymbolNotFoundError


def test_full_and_runtime_names() -> None:
    assert full_name(foo_bar) == "rpcdoc.tests.fixtures.sample_api.foo_bar"
    assert runtime_name(PublicChainAPI.get_balance) == "get_balance"
    assert full_name(PublicChainAPI().block_number).endswith("PublicChainAPI.block_number")


def test_receiver_lineage_lists_the_mro() -> None:
    printed = receiver_lineage(PublicAdminAPI())
    assert printed.split() == [
        "rpcdoc.tests.fixtures.sample_api.PublicAdminAPI",
        "builtins.object",
    ]
    assert receiver_lineage(PublicAdminAPI) == printed


def test_parse_docstring_sections() -> None:
    params, returns = parse_docstring(inspect.getdoc(PublicChainAPI.get_balance) or "")
    assert params == {
        "address": "Account to inspect.",
        "block": "Block height or hash to read the state at.",
    }
    assert returns == "The balance in wei, or null when the state is unavailable."


def test_parse_docstring_without_sections() -> None:
    assert parse_docstring("Just a summary.") == ({}, "")


def test_receiver_disambiguates_same_named_methods() -> None:
    provider = SourceDocProvider()
    public = provider.lookup(PublicAdminAPI.node_info, PublicAdminAPI())
    private = provider.lookup(PrivateAdminAPI.node_info, PrivateAdminAPI())
    assert public.receiver == "PublicAdminAPI"
    assert public.doc == "Returns public node information."
    assert private.receiver == "PrivateAdminAPI"
    assert private.doc == "Returns private node information."


def test_overriding_method_uses_its_own_declaration() -> None:
    provider = SourceDocProvider()
    overlay = provider.lookup(OverlayStore.read, OverlayStore())
    assert overlay.receiver == "OverlayStore"
    assert overlay.doc.startswith("Reads a key through the overlay.")
    assert [item.names for item in overlay.params] == [("ctx",), ("name",), ("default",)]

    base = provider.lookup(BaseStore.read, BaseStore())
    assert base.receiver == "BaseStore"
    assert base.doc == "Reads a key from the base store."


def test_inherited_method_resolves_to_the_defining_class() -> None:
    declaration = SourceDocProvider().lookup(OverlayStore.keys, OverlayStore())
    assert declaration.receiver == "BaseStore"
    assert declaration.doc == "Lists the stored keys."


def test_lookup_without_receiver_uses_the_qualified_name() -> None:
    provider = SourceDocProvider()
    declaration = provider.lookup(PublicAdminAPI.node_info)
    assert declaration.receiver == "PublicAdminAPI"


def test_declaration_fields_and_location() -> None:
    declaration = SourceDocProvider().lookup(PublicChainAPI.get_balance, PublicChainAPI())
    assert [item.names for item in declaration.params] == [("ctx",), ("address",), ("block",)]
    assert declaration.params[1] == Field(
        names=("address",), annotation="Address", comment="Account to inspect."
    )
    assert declaration.results == [
        Field(
            annotation="Optional[HexBig]",
            comment="The balance in wei, or null when the state is unavailable.",
        )
    ]
    assert declaration.filename == sample_api.__file__
    assert declaration.variadic is False


def test_module_function_location_and_body() -> None:
    declaration = SourceDocProvider().lookup(foo_bar)
    assert declaration.receiver is None
    assert declaration.lineno == foo_bar.__code__.co_firstlineno
    body = declaration.body_source()
    assert body.startswith("def foo_bar(value: int) -> str:")
    assert body.rstrip().endswith("return str(value)")


def test_static_and_class_methods_keep_their_parameters() -> None:
    provider = SourceDocProvider()
    static = provider.lookup(PublicChainAPI.protocol_version)
    assert static.params == []
    classmethod_decl = provider.lookup(PublicChainAPI.chain_name, PublicChainAPI)
    assert classmethod_decl.params == []


def test_variadic_declarations_are_flagged() -> None:
    assert SourceDocProvider().lookup(sample_api.variadic).variadic is True


def test_unannotated_and_none_returns_have_no_results() -> None:
    provider = SourceDocProvider()
    assert provider.lookup(sample_api.notify).results == []
    assert provider.lookup(PublicChainAPI.get_tree, PublicChainAPI()).results[0].annotation == "TreeNode"


def test_mismatched_receiver_fails() -> None:
    with pytest.raises(SymbolNotFoundError) as excinfo:
        SourceDocProvider().lookup(PublicChainAPI.block_number, PrivateAdminAPI())
    assert "block_number" in str(excinfo.value)


def test_builtin_callables_have_no_source() -> None:
    with pytest.raises(SourceReadError):
        SourceDocProvider().lookup(len)


def test_parsed_files_are_cached_per_provider() -> None:
    provider = SourceDocProvider()
    provider.lookup(foo_bar)
    provider.lookup(sample_api.notify)
    assert list(provider._trees) == [sample_api.__file__]


def test_manifest_provider_resolves_by_full_name() -> None:
    provider = ManifestDocProvider(
        {
            full_name(foo_bar): {
                "doc": "From the manifest.",
                "params": [{"name": "value", "comment": "Number to echo."}],
                "results": ["text"],
                "filename": "manifest.json",
                "lineno": 3,
            }
        }
    )
    declaration = provider.lookup(foo_bar)
    assert declaration.doc == "From the manifest."
    assert declaration.params == [Field(names=("value",), comment="Number to echo.")]
    assert declaration.results == [Field(names=("text",))]
    assert declaration.body_source() == ""

    with pytest.raises(SymbolNotFoundError):
        provider.lookup(sample_api.notify)


def test_manifest_provider_accepts_declarations() -> None:
    declaration = Declaration(name="foo_bar", doc="prebuilt")
    provider = ManifestDocProvider({full_name(foo_bar): declaration})
    assert provider.lookup(foo_bar) is declaration
