"""Schema synthesizer: converts type descriptors into OpenAPI schema nodes.

Object types are registered once per declared name in a components registry
and referenced with ``$ref``; every other kind is rendered inline.
"""

from openapi_synth.generator.examples import convert_example
from openapi_synth.model.types import MemberDescriptor, TypeDescriptor, TypeKind

REF_PREFIX = "#/components/schemas/"

ULID_PATTERN = "^[0-9A-HJKMNP-TV-Z]{26}$"

SCALAR_SCHEMAS: dict[str, dict] = {
    "int16": {"type": "integer", "format": "int32"},
    "int32": {"type": "integer", "format": "int32"},
    "int64": {"type": "integer", "format": "int64"},
    "byte": {"type": "integer"},
    "float": {"type": "number", "format": "float"},
    "double": {"type": "number", "format": "double"},
    "decimal": {"type": "number", "format": "decimal"},
    "uuid": {"type": "string", "format": "uuid"},
    "uri": {"type": "string", "format": "uri"},
    "ulid": {"type": "string", "format": "ulid", "pattern": ULID_PATTERN},
    "date": {"type": "string", "format": "date"},
    "time": {"type": "string", "format": "time"},
    "datetime": {"type": "string", "format": "date-time"},
    "datetimeoffset": {"type": "string", "format": "date-time"},
    "char": {"type": "string"},
    "timespan": {"type": "string"},
    "string": {"type": "string"},
    "boolean": {"type": "boolean"},
}

# (member attribute, schema keyword)
MEMBER_KEYWORDS = (
    ("description", "description"),
    ("format", "format"),
    ("pattern", "pattern"),
    ("min_length", "minLength"),
    ("max_length", "maxLength"),
    ("minimum", "minimum"),
    ("maximum", "maximum"),
)


def ref_to(name: str) -> dict:
    return {"$ref": REF_PREFIX + name}


def detach_ref(schema: dict) -> dict:
    """Wrap a bare ``$ref`` in ``allOf`` so sibling keywords are legal in OpenAPI 3.0."""
    if "$ref" in schema:
        return {"allOf": [schema]}
    return schema


def empty_object() -> dict:
    return {"type": "object", "properties": {}}


class SchemaSynthesizer:
    """Converts descriptors to schema nodes, collecting object schemas in ``components``."""

    def __init__(self, components: dict[str, dict] | None = None):
        self.components: dict[str, dict] = components if components is not None else {}

    def synthesize(self, descriptor: TypeDescriptor | None, visiting: set[int] | None = None) -> dict:
        """Return the schema node for ``descriptor``. Never raises for unknown kinds."""
        if visiting is None:
            visiting = set()
        if descriptor is None:
            return empty_object()

        kind = descriptor.kind
        if kind in (TypeKind.PRIMITIVE, TypeKind.STRING, TypeKind.BOOLEAN,
                    TypeKind.NUMERIC, TypeKind.DATETIME):
            return self._scalar(descriptor)
        if kind == TypeKind.ENUM:
            return {"type": "string", "enum": list(descriptor.enum_values)}
        if kind == TypeKind.ARRAY:
            return {"type": "array", "items": self.synthesize(descriptor.element, visiting)}
        if kind == TypeKind.NULLABLE:
            return self._nullable(descriptor, visiting)
        if kind == TypeKind.OBJECT and descriptor.name:
            return self._object(descriptor, visiting)
        return empty_object()

    def _scalar(self, descriptor: TypeDescriptor) -> dict:
        name = descriptor.canonical_name()
        if name in SCALAR_SCHEMAS:
            return dict(SCALAR_SCHEMAS[name])
        # fall back on the kind when the sub-type name is unknown or missing
        if descriptor.kind == TypeKind.BOOLEAN:
            return {"type": "boolean"}
        if descriptor.kind == TypeKind.NUMERIC:
            return {"type": "number"}
        if descriptor.kind == TypeKind.DATETIME:
            return {"type": "string", "format": "date-time"}
        return {"type": "string"}

    def _nullable(self, descriptor: TypeDescriptor, visiting: set[int]) -> dict:
        inner = self.synthesize(descriptor.inner, visiting)
        if "$ref" in inner:
            return {"allOf": [inner], "nullable": True}
        inner["nullable"] = True
        return inner

    def _object(self, descriptor: TypeDescriptor, visiting: set[int]) -> dict:
        ref = ref_to(descriptor.name)
        if id(descriptor) in visiting or descriptor.name in self.components:
            return ref

        # placeholder first so self-references resolve to the in-progress entry
        schema = empty_object()
        self.components[descriptor.name] = schema
        visiting.add(id(descriptor))
        try:
            for member in descriptor.members:
                if not member.included:
                    continue
                schema["properties"][member.serialized_name] = self._member(member, visiting)
        finally:
            visiting.discard(id(descriptor))
        return ref

    def _member(self, member: MemberDescriptor, visiting: set[int]) -> dict:
        schema = self.synthesize(member.type, visiting)
        metadata = {
            keyword: getattr(member, attr)
            for attr, keyword in MEMBER_KEYWORDS
            if getattr(member, attr) is not None
        }
        if member.example:
            metadata["example"] = convert_example(member.example, member.type)
        if not metadata:
            return schema
        schema = detach_ref(schema)
        schema.update(metadata)
        return schema
