#!/usr/bin/env python3
"""Generate a Markdown method reference from an OpenRPC document."""
from __future__ import annotations

import json
import sys
from collections.abc import Mapping
from typing import Any
from urllib.parse import urlparse

import httpx


def load_document(
    source: str, *, transport: httpx.BaseTransport | None = None
) -> Mapping[str, Any]:
    """Load an OpenRPC document from a JSON-RPC endpoint or a filesystem path.

    HTTP(S) sources are asked for the document with an ``rpc_discover`` call.
    """
    parsed = urlparse(source)
    if parsed.scheme in {"http", "https"}:
        request = {"jsonrpc": "2.0", "id": 1, "method": "rpc_discover", "params": []}
        with httpx.Client(transport=transport, timeout=30.0) as client:
            response = client.post(source, json=request)
            response.raise_for_status()
            payload = response.json()
        if "error" in payload:
            error = payload["error"]
            raise ValueError(f"rpc_discover failed: {error.get('message')} ({error.get('code')})")
        return payload["result"]
    if parsed.scheme and parsed.scheme != "file":
        raise ValueError(f"Unsupported URL scheme: {parsed.scheme}")
    path = parsed.path if parsed.scheme else source
    with open(path, "r", encoding="utf-8") as fh:
        return json.load(fh)


def normalize_schema_type(type_value: Any) -> str | None:
    """Return the first non-null schema type as a string."""
    if isinstance(type_value, list):
        filtered = [value for value in type_value if value != "null"]
        if filtered:
            type_value = filtered[0]
        elif type_value:
            # Only explicit null entries remain.
            type_value = type_value[0]
        else:
            return None
    if isinstance(type_value, str):
        return type_value
    return None


def example_from_schema(schema: Mapping[str, Any] | None, depth: int = 0) -> Any:
    """Derive a minimal example for the provided JSON schema."""
    if schema is None or depth > 5:
        return "…"

    for key in ("oneOf", "anyOf"):
        if key in schema and isinstance(schema[key], list) and schema[key]:
            return example_from_schema(schema[key][0], depth + 1)
    if "allOf" in schema and isinstance(schema["allOf"], list):
        merged: dict[str, Any] = {}
        for part in schema["allOf"]:
            if isinstance(part, Mapping) and "properties" in part:
                merged.setdefault("type", "object")
                merged.setdefault("properties", {}).update(part["properties"])
        if merged:
            return example_from_schema(merged, depth + 1)

    schema_type = normalize_schema_type(schema.get("type"))

    if "examples" in schema and schema["examples"]:
        return schema["examples"][0]
    if "enum" in schema and schema["enum"]:
        return schema["enum"][0]
    if schema_type == "null":
        return None
    if schema_type in {"integer", "number"}:
        return schema.get("default", 0)
    if schema_type == "string":
        if schema.get("pattern", "").startswith("^0x"):
            return "0x0"
        return schema.get("default", "string")
    if schema_type == "boolean":
        return schema.get("default", False)
    if schema_type == "array":
        items = schema.get("items")
        if isinstance(items, list) and items:
            item_schema = items[0] if isinstance(items[0], Mapping) else {}
        elif isinstance(items, Mapping):
            item_schema = items
        else:
            item_schema = {}
        return [example_from_schema(item_schema, depth + 1)]
    if schema_type == "object" or "properties" in schema:
        props = schema.get("properties", {})
        example_obj: dict[str, Any] = {}
        for key in sorted(props):
            example_obj[key] = example_from_schema(props[key], depth + 1)
        additional = schema.get("additionalProperties")
        if isinstance(additional, Mapping):
            example_obj.setdefault("key", example_from_schema(additional, depth + 1))
        return example_obj
    if "$ref" in schema:
        return {"$ref": schema["$ref"]}
    return schema.get("default", "…")


def describe_type(schema: Mapping[str, Any]) -> str:
    """Short human label for a schema: its title or type."""
    schema_type = normalize_schema_type(schema.get("type"))
    if schema_type == "array":
        items = schema.get("items")
        if isinstance(items, Mapping):
            return f"array<{describe_type(items)}>"
        return "array"
    title = schema.get("title")
    if schema_type == "string" and title:
        return f"{title} (string)"
    if schema_type:
        return schema_type
    if "oneOf" in schema or "anyOf" in schema:
        return title or "oneOf"
    return title or "object"


def render_table(rows: list[tuple[str, str, str, str]]) -> str:
    if not rows:
        return ""
    header = "| Name | Type | Required | Notes |\n| --- | --- | --- | --- |"
    body_lines = [
        f"| `{name}` | {typ} | {req} | {notes} |" for name, typ, req, notes in rows
    ]
    return "\n".join([header, *body_lines])


def param_rows(params: list[Mapping[str, Any]]) -> list[tuple[str, str, str, str]]:
    rows: list[tuple[str, str, str, str]] = []
    for param in params:
        schema = param.get("schema") or {}
        notes_parts = []
        if param.get("summary"):
            notes_parts.append(param["summary"])
        if "pattern" in schema:
            notes_parts.append(f"pattern=`{schema['pattern']}`")
        if "enum" in schema:
            notes_parts.append(f"enum={schema['enum']}")
        rows.append(
            (
                param.get("name", ""),
                describe_type(schema),
                "Yes" if param.get("required") else "No",
                ", ".join(notes_parts),
            )
        )
    return rows


def render_method(method: Mapping[str, Any]) -> list[str]:
    lines: list[str] = [f"### `{method['name']}`"]
    if method.get("deprecated"):
        lines.append("")
        lines.append("> **Deprecated.**")
    summary = method.get("summary")
    if summary:
        lines.append("")
        lines.append(summary)
    docs = method.get("externalDocs") or {}
    if docs.get("url"):
        lines.append("")
        lines.append(f"_Declared by `{docs.get('description', '')}` at {docs['url']}_")

    params = method.get("params", [])
    lines.append("")
    lines.append("#### Parameters")
    lines.append("")
    table = render_table(param_rows(params))
    lines.append(table if table else "None.")

    result = method.get("result") or {}
    result_schema = result.get("schema") or {}
    lines.append("")
    lines.append("#### Result")
    lines.append("")
    lines.append(f"`{result.get('name', 'null')}`: {describe_type(result_schema)}")

    request = {
        "jsonrpc": "2.0",
        "id": 1,
        "method": method["name"],
        "params": [example_from_schema(param.get("schema")) for param in params],
    }
    lines.append("")
    lines.append("```json")
    lines.extend(json.dumps(request, indent=2).splitlines())
    lines.append("```")
    return lines


def render_document(doc: Mapping[str, Any], source: str) -> str:
    parts: list[str] = []
    info = doc.get("info", {})
    title = info.get("title", "OpenRPC document")
    version = info.get("version", "")
    parts.append(f"# {title} method reference")
    parts.append("")
    parts.append(f"_Source: {source}, OpenRPC {doc.get('openrpc', '')}, version {version}_")
    if info.get("description"):
        parts.append("")
        parts.append(info["description"])
    parts.append("")
    methods = sorted(doc.get("methods", []), key=lambda item: item.get("name", ""))
    parts.append("## Methods")
    parts.append("")
    for method in methods:
        parts.append(f"- [`{method['name']}`](#{method['name'].lower()})")
    parts.append("")
    for method in methods:
        parts.extend(render_method(method))
        parts.append("")
    return "\n".join(parts)


def main(argv: list[str]) -> int:
    if len(argv) != 2:
        print("Usage: gen_rpc_md.py <openrpc-url-or-path>", file=sys.stderr)
        return 1
    source = argv[1]
    doc = load_document(source)
    markdown = render_document(doc, source)
    sys.stdout.write(markdown)
    if not markdown.endswith("\n"):
        sys.stdout.write("\n")
    return 0


if __name__ == "__main__":
    raise SystemExit(main(sys.argv))
