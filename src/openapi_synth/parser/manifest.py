"""Descriptor manifest parser.

Loads a YAML (or JSON) manifest describing named types, source units with
their endpoints, and assembly-wide configuration into the descriptor models.
Declared object types are created before any member is resolved, so members
may reference any declared type, including their own.
"""

import datetime
import json
from pathlib import Path

import yaml
from pydantic import BaseModel, ValidationError

from openapi_synth.errors import ManifestError
from openapi_synth.model.config import AssemblyConfig
from openapi_synth.model.endpoint import (
    DocumentationBlock,
    EndpointDescriptor,
    ExampleSource,
    SourceUnit,
)
from openapi_synth.model.types import MemberDescriptor, TypeDescriptor, TypeKind
from openapi_synth.parser.docs import parse_doc_comment

CONFIG_KEYS = ("info", "examples", "security_schemes", "tags", "tag_groups", "servers", "external_docs")

BUILTIN_KINDS = {
    "string": TypeKind.STRING,
    "str": TypeKind.STRING,
    "bool": TypeKind.BOOLEAN,
    "boolean": TypeKind.BOOLEAN,
    "int": TypeKind.NUMERIC,
    "integer": TypeKind.NUMERIC,
    "int16": TypeKind.NUMERIC,
    "short": TypeKind.NUMERIC,
    "int32": TypeKind.NUMERIC,
    "int64": TypeKind.NUMERIC,
    "long": TypeKind.NUMERIC,
    "byte": TypeKind.NUMERIC,
    "float": TypeKind.NUMERIC,
    "double": TypeKind.NUMERIC,
    "decimal": TypeKind.NUMERIC,
    "datetime": TypeKind.DATETIME,
    "datetimeoffset": TypeKind.DATETIME,
    "date": TypeKind.DATETIME,
    "time": TypeKind.DATETIME,
    "uuid": TypeKind.PRIMITIVE,
    "guid": TypeKind.PRIMITIVE,
    "uri": TypeKind.PRIMITIVE,
    "url": TypeKind.PRIMITIVE,
    "ulid": TypeKind.PRIMITIVE,
    "timespan": TypeKind.PRIMITIVE,
    "char": TypeKind.PRIMITIVE,
}


class Manifest(BaseModel):
    """Everything needed for one document build."""

    config: AssemblyConfig = AssemblyConfig()
    units: list[SourceUnit] = []


def load_manifest(file_path: Path) -> Manifest:
    """Load a manifest file into descriptors and configuration."""
    text = file_path.read_text(encoding="utf-8")
    try:
        doc = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ManifestError(f"{file_path}: {e}") from e
    return parse_manifest(doc or {})


def parse_manifest(doc: dict) -> Manifest:
    if not isinstance(doc, dict):
        raise ManifestError("manifest must be a mapping")

    try:
        config = AssemblyConfig.model_validate({k: doc[k] for k in CONFIG_KEYS if k in doc})
    except ValidationError as e:
        raise ManifestError(f"invalid configuration: {e}") from e

    resolver = TypeResolver(_mapping(doc.get("types"), "types"))
    units = [_parse_unit(unit, resolver) for unit in _entries(doc.get("units"), "units")]
    return Manifest(config=config, units=units)


class TypeResolver:
    """Resolves type references against declared and builtin types."""

    def __init__(self, declarations: dict):
        declarations = _mapping(declarations, "types")
        self.declared: dict[str, TypeDescriptor] = {}
        for name, spec in declarations.items():
            self.declared[name] = self._declare(name, _mapping(spec, f"type {name!r}"))
        for name, spec in declarations.items():
            descriptor = self.declared[name]
            if descriptor.kind == TypeKind.OBJECT:
                members = _entries(_mapping(spec, f"type {name!r}").get("members"), f"type {name!r} members")
                descriptor.members = [self._member(m, name) for m in members]

    def _declare(self, name: str, spec: dict) -> TypeDescriptor:
        kind = spec.get("kind", "object")
        if kind == "object":
            return TypeDescriptor(kind=TypeKind.OBJECT, name=name)
        if kind == "enum":
            return TypeDescriptor(
                kind=TypeKind.ENUM,
                name=name,
                enum_values=[str(v) for v in _entries(spec.get("values"), f"type {name!r} values")],
            )
        raise ManifestError(f"type {name!r}: only object and enum types can be declared, got {kind!r}")

    def _member(self, spec: dict, owner: str) -> MemberDescriptor:
        if not isinstance(spec, dict) or "name" not in spec:
            raise ManifestError(f"type {owner!r}: every member needs a name")
        data = dict(spec)
        data["type"] = self.resolve(data.get("type", "string"))
        if data.get("example") is not None:
            data["example"] = _raw_text(data["example"])
        try:
            return MemberDescriptor.model_validate(data)
        except ValidationError as e:
            raise ManifestError(f"type {owner!r}, member {spec['name']!r}: {e}") from e

    def resolve(self, ref) -> TypeDescriptor | None:
        """Resolve a string or inline-mapping type reference."""
        if ref is None:
            return None
        if isinstance(ref, dict):
            return self._resolve_inline(ref)
        if not isinstance(ref, str):
            raise ManifestError(f"invalid type reference {ref!r}")

        ref = ref.strip()
        if ref.endswith("?"):
            return TypeDescriptor(kind=TypeKind.NULLABLE, inner=self.resolve(ref[:-1]))
        if ref.endswith("[]"):
            return TypeDescriptor(kind=TypeKind.ARRAY, element=self.resolve(ref[:-2]))
        if ref.startswith("async<") and ref.endswith(">"):
            return TypeDescriptor(kind=TypeKind.ASYNC, inner=self.resolve(ref[6:-1]))
        if ref == "async":
            return TypeDescriptor(kind=TypeKind.ASYNC)
        if ref == "result":
            return TypeDescriptor(kind=TypeKind.RESULT, name="result")
        if ref in self.declared:
            return self.declared[ref]
        if ref.lower() in BUILTIN_KINDS:
            return TypeDescriptor(kind=BUILTIN_KINDS[ref.lower()], name=ref.lower())
        raise ManifestError(f"unknown type {ref!r}")

    def _resolve_inline(self, spec: dict) -> TypeDescriptor:
        kind = spec.get("kind")
        if kind == "array":
            return TypeDescriptor(kind=TypeKind.ARRAY, element=self.resolve(spec.get("items")))
        if kind == "nullable":
            return TypeDescriptor(kind=TypeKind.NULLABLE, inner=self.resolve(spec.get("inner")))
        if kind == "async":
            return TypeDescriptor(kind=TypeKind.ASYNC, inner=self.resolve(spec.get("inner")))
        if kind == "result":
            return TypeDescriptor(kind=TypeKind.RESULT, name=spec.get("name", "result"))
        if kind == "enum":
            return TypeDescriptor(
                kind=TypeKind.ENUM,
                name=spec.get("name", ""),
                enum_values=[str(v) for v in _entries(spec.get("values"), "inline enum values")],
            )
        if kind == "object":
            name = spec.get("name")
            if not name:
                raise ManifestError("inline object types need a name")
            descriptor = TypeDescriptor(kind=TypeKind.OBJECT, name=name)
            members = _entries(spec.get("members"), f"type {name!r} members")
            descriptor.members = [self._member(m, name) for m in members]
            return descriptor
        try:
            return TypeDescriptor(kind=TypeKind(kind), name=spec.get("name", ""))
        except ValueError as e:
            raise ManifestError(f"unknown type kind {kind!r}") from e


def _parse_unit(spec: dict, resolver: TypeResolver) -> SourceUnit:
    if not isinstance(spec, dict) or not spec.get("name"):
        raise ManifestError("every unit needs a name")
    endpoints = [
        _parse_endpoint(e, resolver) for e in _entries(spec.get("endpoints"), f"unit {spec['name']!r} endpoints")
    ]
    return SourceUnit(name=spec["name"], endpoints=endpoints)


def _parse_endpoint(spec: dict, resolver: TypeResolver) -> EndpointDescriptor:
    if not isinstance(spec, dict):
        raise ManifestError(f"invalid endpoint entry {spec!r}")
    data = dict(spec)
    label = data.get("method_name") or data.get("route") or "<unnamed>"
    where = f"endpoint {label!r}"

    data["return_type"] = resolver.resolve(data.pop("returns", None))
    data["parameters"] = [
        _with_type(p, resolver, f"{where} parameters")
        for p in _entries(data.get("parameters"), f"{where} parameters")
    ]
    data["response_headers"] = [
        _with_type(h, resolver, f"{where} response_headers", required=False)
        for h in _entries(data.get("response_headers"), f"{where} response_headers")
    ]
    data["response_overrides"] = [
        _with_type(r, resolver, f"{where} responses", required=False)
        for r in _entries(data.pop("responses", None), f"{where} responses")
    ]
    data["examples"] = [
        _example(e, f"{where} examples") for e in _entries(data.get("examples"), f"{where} examples")
    ]

    try:
        data["documentation"] = _documentation(data.pop("doc", None), data.get("documentation"), where)
        return EndpointDescriptor.model_validate(data)
    except ValidationError as e:
        raise ManifestError(f"{where}: {e}") from e


def _mapping(value, where: str) -> dict:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ManifestError(f"{where}: expected a mapping, got {type(value).__name__}")
    return value


def _entries(value, where: str) -> list:
    if value is None:
        return []
    if not isinstance(value, list):
        raise ManifestError(f"{where}: expected a list, got {type(value).__name__}")
    return value


def _with_type(spec: dict, resolver: TypeResolver, where: str, required: bool = True) -> dict:
    if not isinstance(spec, dict):
        raise ManifestError(f"{where}: invalid entry {spec!r}")
    data = dict(spec)
    if "type" in data or required:
        data["type"] = resolver.resolve(data.get("type", "string"))
    return data


def _example(spec: dict, where: str) -> dict:
    if not isinstance(spec, dict):
        raise ManifestError(f"{where}: invalid entry {spec!r}")
    data = dict(spec)
    if "value" in data:
        data["value"] = _raw_text(data["value"])
    return data


def _documentation(xml_text: str | None, structured: dict | None, where: str) -> DocumentationBlock:
    if xml_text is not None and not isinstance(xml_text, str):
        raise ManifestError(f"{where} doc: expected text, got {type(xml_text).__name__}")
    documentation = parse_doc_comment(xml_text)
    if not structured:
        return documentation

    data = dict(_mapping(structured, f"{where} documentation"))
    data["examples"] = [
        {**_example(e, f"{where} documentation examples"), "source": ExampleSource.DOCUMENTATION}
        for e in _entries(data.get("examples"), f"{where} documentation examples")
    ]
    extra = DocumentationBlock.model_validate(data)
    return DocumentationBlock(
        summary=extra.summary or documentation.summary,
        description=extra.description or documentation.description,
        parameter_descriptions={**documentation.parameter_descriptions, **extra.parameter_descriptions},
        examples=[*documentation.examples, *extra.examples],
    )


def _raw_text(value) -> str:
    """Examples are raw JSON text; YAML scalars and mappings are re-encoded.

    YAML reads unquoted dates and timestamps as ``date``/``datetime``; those
    become ISO 8601 text.
    """
    if isinstance(value, str):
        return value
    if isinstance(value, datetime.date):
        return value.isoformat()
    try:
        return json.dumps(value, default=_iso_default)
    except (TypeError, ValueError) as e:
        raise ManifestError(f"example {value!r} cannot be encoded as JSON: {e}") from e


def _iso_default(value):
    if isinstance(value, datetime.date):
        return value.isoformat()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")
