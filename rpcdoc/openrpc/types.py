"""OpenRPC document model.

The classes here mirror the OpenRPC 1.2.x object shapes closely enough to
round-trip through JSON. ``Schema`` is the mutable schema node that the
mutation pipeline walks; it keeps unknown JSON-Schema keywords in ``extra`` so
nothing is lost when a document is loaded and written back.
"""
from __future__ import annotations

import json
from dataclasses import dataclass, field, fields
from typing import Any, Dict, Iterator, List, Mapping, Optional, Union

OPENRPC_VERSION = "1.2.4"
PARAM_STRUCTURE_BY_POSITION = "by-position"


SchemaOrBool = Union["Schema", bool]

_SCHEMA_MAP_KEYS = {
    "properties": "properties",
    "patternProperties": "pattern_properties",
    "definitions": "definitions",
}
_SCHEMA_LIST_KEYS = {
    "allOf": "all_of",
    "anyOf": "any_of",
    "oneOf": "one_of",
    "prefixItems": "prefix_items",
}
_SCHEMA_SCALAR_KEYS = {
    "$ref": "ref",
    "title": "title",
    "description": "description",
    "format": "format",
    "pattern": "pattern",
}


@dataclass(eq=False)
class Schema:
    """A JSON-Schema node."""

    type: List[str] = field(default_factory=list)
    title: str = ""
    description: str = ""
    format: str = ""
    pattern: str = ""
    ref: str = ""
    enum: Optional[List[Any]] = None
    required: List[str] = field(default_factory=list)
    properties: Dict[str, "Schema"] = field(default_factory=dict)
    pattern_properties: Dict[str, "Schema"] = field(default_factory=dict)
    additional_properties: Optional[SchemaOrBool] = None
    items: Optional[Union["Schema", List["Schema"]]] = None
    prefix_items: List["Schema"] = field(default_factory=list)
    all_of: List["Schema"] = field(default_factory=list)
    any_of: List["Schema"] = field(default_factory=list)
    one_of: List["Schema"] = field(default_factory=list)
    not_: Optional["Schema"] = None
    definitions: Dict[str, "Schema"] = field(default_factory=dict)
    extra: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Schema":
        schema = cls()
        for key, value in data.items():
            if key == "type":
                schema.type = [value] if isinstance(value, str) else list(value)
            elif key in _SCHEMA_SCALAR_KEYS:
                setattr(schema, _SCHEMA_SCALAR_KEYS[key], value)
            elif key in _SCHEMA_MAP_KEYS:
                setattr(
                    schema,
                    _SCHEMA_MAP_KEYS[key],
                    {name: cls.from_dict(sub) for name, sub in value.items()},
                )
            elif key in _SCHEMA_LIST_KEYS:
                setattr(schema, _SCHEMA_LIST_KEYS[key], [cls.from_dict(sub) for sub in value])
            elif key == "enum":
                schema.enum = list(value)
            elif key == "required" and isinstance(value, list):
                schema.required = list(value)
            elif key == "additionalProperties":
                schema.additional_properties = (
                    value if isinstance(value, bool) else cls.from_dict(value)
                )
            elif key == "items":
                if isinstance(value, list):
                    schema.items = [cls.from_dict(sub) for sub in value]
                else:
                    schema.items = cls.from_dict(value)
            elif key == "not":
                schema.not_ = cls.from_dict(value)
            else:
                schema.extra[key] = value
        return schema

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {}
        if self.ref:
            out["$ref"] = self.ref
        if self.title:
            out["title"] = self.title
        if self.description:
            out["description"] = self.description
        if self.type:
            out["type"] = self.type[0] if len(self.type) == 1 else list(self.type)
        if self.format:
            out["format"] = self.format
        if self.pattern:
            out["pattern"] = self.pattern
        if self.enum is not None:
            out["enum"] = list(self.enum)
        for key, attr in _SCHEMA_MAP_KEYS.items():
            mapping = getattr(self, attr)
            if mapping:
                out[key] = {name: sub.to_dict() for name, sub in mapping.items()}
        if self.required:
            out["required"] = list(self.required)
        if self.additional_properties is not None:
            additional = self.additional_properties
            out["additionalProperties"] = (
                additional if isinstance(additional, bool) else additional.to_dict()
            )
        if self.items is not None:
            if isinstance(self.items, list):
                out["items"] = [sub.to_dict() for sub in self.items]
            else:
                out["items"] = self.items.to_dict()
        for key, attr in _SCHEMA_LIST_KEYS.items():
            entries = getattr(self, attr)
            if entries:
                out[key] = [sub.to_dict() for sub in entries]
        if self.not_ is not None:
            out["not"] = self.not_.to_dict()
        for key, value in self.extra.items():
            out.setdefault(key, value)
        return out

    def children(self) -> Iterator["Schema"]:
        """Yield every directly nested schema node."""

        yield from self.properties.values()
        yield from self.pattern_properties.values()
        if isinstance(self.additional_properties, Schema):
            yield self.additional_properties
        if isinstance(self.items, list):
            yield from self.items
        elif self.items is not None:
            yield self.items
        yield from self.prefix_items
        yield from self.all_of
        yield from self.any_of
        yield from self.one_of
        if self.not_ is not None:
            yield self.not_
        yield from self.definitions.values()

    def replace_with(self, other: "Schema") -> None:
        """Overwrite this node in place with the contents of *other*."""

        for item in fields(self):
            setattr(self, item.name, getattr(other, item.name))

    def copy(self) -> "Schema":
        return Schema.from_dict(json.loads(json.dumps(self.to_dict())))


@dataclass
class Contact:
    name: str = ""
    url: str = ""
    email: str = ""

    def to_dict(self) -> Dict[str, str]:
        return {"name": self.name, "url": self.url, "email": self.email}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Contact":
        return cls(
            name=data.get("name", ""), url=data.get("url", ""), email=data.get("email", "")
        )


@dataclass
class License:
    name: str = ""
    url: str = ""

    def to_dict(self) -> Dict[str, str]:
        return {"name": self.name, "url": self.url}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "License":
        return cls(name=data.get("name", ""), url=data.get("url", ""))


@dataclass
class Info:
    title: str = ""
    description: str = ""
    terms_of_service: str = ""
    contact: Contact = field(default_factory=Contact)
    license: License = field(default_factory=License)
    version: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "description": self.description,
            "termsOfService": self.terms_of_service,
            "contact": self.contact.to_dict(),
            "license": self.license.to_dict(),
            "version": self.version,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Info":
        return cls(
            title=data.get("title", ""),
            description=data.get("description", ""),
            terms_of_service=data.get("termsOfService", ""),
            contact=Contact.from_dict(data.get("contact") or {}),
            license=License.from_dict(data.get("license") or {}),
            version=data.get("version", ""),
        )


@dataclass
class ExternalDocs:
    description: str = ""
    url: str = ""

    def to_dict(self) -> Dict[str, str]:
        return {"description": self.description, "url": self.url}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ExternalDocs":
        return cls(description=data.get("description", ""), url=data.get("url", ""))


@dataclass
class ContentDescriptor:
    """A named schema used for one parameter or one result."""

    name: str = ""
    summary: str = ""
    description: str = ""
    required: bool = False
    schema: Schema = field(default_factory=Schema)

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"name": self.name}
        if self.summary:
            out["summary"] = self.summary
        if self.description:
            out["description"] = self.description
        if self.required:
            out["required"] = True
        out["schema"] = self.schema.to_dict()
        return out

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ContentDescriptor":
        return cls(
            name=data.get("name", ""),
            summary=data.get("summary", ""),
            description=data.get("description", ""),
            required=bool(data.get("required", False)),
            schema=Schema.from_dict(data.get("schema") or {}),
        )


@dataclass
class Method:
    """One callable RPC endpoint."""

    name: str
    summary: str = ""
    description: str = ""
    external_docs: ExternalDocs = field(default_factory=ExternalDocs)
    params: List[ContentDescriptor] = field(default_factory=list)
    result: ContentDescriptor = field(default_factory=ContentDescriptor)
    deprecated: bool = False
    param_structure: str = PARAM_STRUCTURE_BY_POSITION
    tags: List[Dict[str, Any]] = field(default_factory=list)
    servers: List[Dict[str, Any]] = field(default_factory=list)
    errors: List[Dict[str, Any]] = field(default_factory=list)
    links: List[Dict[str, Any]] = field(default_factory=list)
    examples: List[Dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"name": self.name, "tags": list(self.tags)}
        if self.summary:
            out["summary"] = self.summary
        if self.description:
            out["description"] = self.description
        out.update(
            {
                "externalDocs": self.external_docs.to_dict(),
                "params": [param.to_dict() for param in self.params],
                "result": self.result.to_dict(),
                "deprecated": self.deprecated,
                "servers": list(self.servers),
                "errors": list(self.errors),
                "links": list(self.links),
                "paramStructure": self.param_structure,
                "examples": list(self.examples),
            }
        )
        return out

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Method":
        return cls(
            name=data["name"],
            summary=data.get("summary", ""),
            description=data.get("description", ""),
            external_docs=ExternalDocs.from_dict(data.get("externalDocs") or {}),
            params=[ContentDescriptor.from_dict(item) for item in data.get("params", [])],
            result=ContentDescriptor.from_dict(data.get("result") or {}),
            deprecated=bool(data.get("deprecated", False)),
            param_structure=data.get("paramStructure", PARAM_STRUCTURE_BY_POSITION),
            tags=list(data.get("tags", [])),
            servers=list(data.get("servers", [])),
            errors=list(data.get("errors", [])),
            links=list(data.get("links", [])),
            examples=list(data.get("examples", [])),
        )


@dataclass
class Components:
    content_descriptors: Dict[str, ContentDescriptor] = field(default_factory=dict)
    schemas: Dict[str, Schema] = field(default_factory=dict)
    examples: Dict[str, Any] = field(default_factory=dict)
    links: Dict[str, Any] = field(default_factory=dict)
    errors: Dict[str, Any] = field(default_factory=dict)
    example_pairing_objects: Dict[str, Any] = field(default_factory=dict)
    tags: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "contentDescriptors": {
                key: value.to_dict() for key, value in self.content_descriptors.items()
            },
            "schemas": {key: value.to_dict() for key, value in self.schemas.items()},
            "examples": dict(self.examples),
            "links": dict(self.links),
            "errors": dict(self.errors),
            "examplePairingObjects": dict(self.example_pairing_objects),
            "tags": dict(self.tags),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Components":
        return cls(
            content_descriptors={
                key: ContentDescriptor.from_dict(value)
                for key, value in (data.get("contentDescriptors") or {}).items()
            },
            schemas={
                key: Schema.from_dict(value)
                for key, value in (data.get("schemas") or {}).items()
            },
            examples=dict(data.get("examples") or {}),
            links=dict(data.get("links") or {}),
            errors=dict(data.get("errors") or {}),
            example_pairing_objects=dict(data.get("examplePairingObjects") or {}),
            tags=dict(data.get("tags") or {}),
        )


@dataclass
class Document:
    """Root OpenRPC document."""

    openrpc: str = OPENRPC_VERSION
    info: Info = field(default_factory=Info)
    servers: List[Dict[str, Any]] = field(default_factory=list)
    methods: List[Method] = field(default_factory=list)
    components: Components = field(default_factory=Components)
    external_docs: ExternalDocs = field(default_factory=ExternalDocs)

    def find_method(self, name: str) -> Optional[Method]:
        for method in self.methods:
            if method.name == name:
                return method
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "openrpc": self.openrpc,
            "info": self.info.to_dict(),
            "servers": list(self.servers),
            "methods": [method.to_dict() for method in self.methods],
            "components": self.components.to_dict(),
            "externalDocs": self.external_docs.to_dict(),
        }

    def to_json(self, *, indent: Optional[int] = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Document":
        return cls(
            openrpc=data.get("openrpc", OPENRPC_VERSION),
            info=Info.from_dict(data.get("info") or {}),
            servers=list(data.get("servers") or []),
            methods=[Method.from_dict(item) for item in data.get("methods") or []],
            components=Components.from_dict(data.get("components") or {}),
            external_docs=ExternalDocs.from_dict(data.get("externalDocs") or {}),
        )


def new_document() -> Document:
    """Return an empty document with every component map initialised."""

    return Document()


__all__ = [
    "OPENRPC_VERSION",
    "PARAM_STRUCTURE_BY_POSITION",
    "Components",
    "Contact",
    "ContentDescriptor",
    "Document",
    "ExternalDocs",
    "Info",
    "License",
    "Method",
    "Schema",
    "new_document",
]
