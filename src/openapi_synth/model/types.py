"""Type descriptors consumed by the schema synthesizer and example composer.

A descriptor graph may be cyclic (an ``Order`` holding a nullable ``Order``),
so descriptors are mutable and identified by ``id()``, never compared
structurally.
"""

from enum import Enum

from pydantic import BaseModel


class TypeKind(str, Enum):
    PRIMITIVE = "primitive"
    STRING = "string"
    BOOLEAN = "boolean"
    NUMERIC = "numeric"
    DATETIME = "datetime"
    ENUM = "enum"
    ARRAY = "array"
    OBJECT = "object"
    NULLABLE = "nullable"
    ASYNC = "async"
    RESULT = "result"  # opaque handler result, payload unknown


NAME_ALIASES = {
    "int": "int32",
    "integer": "int32",
    "long": "int64",
    "short": "int16",
    "single": "float",
    "guid": "uuid",
    "url": "uri",
    "bool": "boolean",
    "str": "string",
    "date-time": "datetime",
}

INTEGER_NAMES = {"int16", "int32", "int64", "byte"}
FLOAT_NAMES = {"float", "double", "decimal"}


class TypeDescriptor(BaseModel):
    """Abstract representation of one source type."""

    kind: TypeKind
    name: str = ""  # declared name (object/enum) or scalar sub-type (int64, uuid, ...)
    members: list["MemberDescriptor"] = []
    element: "TypeDescriptor | None" = None  # array
    inner: "TypeDescriptor | None" = None  # nullable / async
    enum_values: list[str] = []

    def canonical_name(self) -> str:
        """Lower-cased scalar name with aliases resolved."""
        name = self.name.lower()
        return NAME_ALIASES.get(name, name)

    def is_integer(self) -> bool:
        return self.kind == TypeKind.NUMERIC and self.canonical_name() in INTEGER_NAMES | {""}

    def is_float(self) -> bool:
        return self.kind == TypeKind.NUMERIC and self.canonical_name() in FLOAT_NAMES

    def strip_nullable(self) -> "TypeDescriptor":
        """Return the innermost non-nullable descriptor."""
        current = self
        while current.kind == TypeKind.NULLABLE and current.inner is not None:
            current = current.inner
        return current

    def __repr__(self) -> str:
        # members may point back at this descriptor
        return f"TypeDescriptor(kind={self.kind.value!r}, name={self.name!r})"


class MemberDescriptor(BaseModel):
    """A named member of an object type, with optional schema metadata."""

    name: str
    type: TypeDescriptor
    json_name: str | None = None
    ignored: bool = False
    synthetic: bool = False  # compiler-generated, never serialized
    description: str | None = None
    format: str | None = None
    pattern: str | None = None
    min_length: int | None = None
    max_length: int | None = None
    minimum: float | None = None
    maximum: float | None = None
    example: str | None = None

    @property
    def serialized_name(self) -> str:
        return self.json_name or self.name

    @property
    def included(self) -> bool:
        return not (self.ignored or self.synthetic)

    def __repr__(self) -> str:
        return f"MemberDescriptor(name={self.name!r}, type={self.type!r})"


TypeDescriptor.model_rebuild()


# Convenience constructors used by the manifest parser and tests.

def string() -> TypeDescriptor:
    return TypeDescriptor(kind=TypeKind.STRING, name="string")


def boolean() -> TypeDescriptor:
    return TypeDescriptor(kind=TypeKind.BOOLEAN, name="boolean")


def numeric(name: str = "int32") -> TypeDescriptor:
    return TypeDescriptor(kind=TypeKind.NUMERIC, name=name)


def primitive(name: str) -> TypeDescriptor:
    return TypeDescriptor(kind=TypeKind.PRIMITIVE, name=name)


def datetime_(name: str = "datetime") -> TypeDescriptor:
    return TypeDescriptor(kind=TypeKind.DATETIME, name=name)


def enum(name: str, values: list[str]) -> TypeDescriptor:
    return TypeDescriptor(kind=TypeKind.ENUM, name=name, enum_values=values)


def array_of(element: TypeDescriptor) -> TypeDescriptor:
    return TypeDescriptor(kind=TypeKind.ARRAY, element=element)


def nullable(inner: TypeDescriptor) -> TypeDescriptor:
    return TypeDescriptor(kind=TypeKind.NULLABLE, inner=inner)


def async_of(inner: TypeDescriptor | None = None) -> TypeDescriptor:
    return TypeDescriptor(kind=TypeKind.ASYNC, inner=inner)


def object_(name: str, members: list[MemberDescriptor] | None = None) -> TypeDescriptor:
    return TypeDescriptor(kind=TypeKind.OBJECT, name=name, members=members or [])
