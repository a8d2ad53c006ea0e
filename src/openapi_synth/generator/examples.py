"""Example composer: builds example values for request and response bodies.

Leaf values come from, in order: an explicit example on the member, a
generated default (only when ``generate_defaults`` is on), or nothing.
Objects and arrays are composed from their members. ``None`` means "no
example"; such properties are left out.
"""

import json
import math
from typing import Any

from openapi_synth.model.config import ExampleConfig
from openapi_synth.model.types import MemberDescriptor, TypeDescriptor, TypeKind

EXAMPLE_UUID = "550e8400-e29b-41d4-a716-446655440000"
EXAMPLE_DATETIME = "2024-01-15T10:30:00Z"
EXAMPLE_URI = "https://example.com"

FORMAT_EXAMPLES = {
    "email": "user@example.com",
    "uuid": EXAMPLE_UUID,
    "date-time": EXAMPLE_DATETIME,
    "date": "2024-01-15",
    "uri": EXAMPLE_URI,
    "url": EXAMPLE_URI,
    "hostname": "example.com",
    "ipv4": "192.168.1.1",
    "ipv6": "2001:0db8:85a3:0000:0000:8a2e:0370:7334",
    "time": "10:30:00",
    "password": "********",
    "byte": "U3dhZ2dlciByb2Nrcw==",
    "binary": "<binary>",
}

DATETIME_PLACEHOLDERS = {
    "datetimeoffset": "2024-01-15T10:30:00+00:00",
    "date": "2024-01-15",
    "time": "10:30:00",
}

PRIMITIVE_PLACEHOLDERS = {
    "uuid": EXAMPLE_UUID,
    "uri": EXAMPLE_URI,
    "timespan": "01:30:00",
    "ulid": "01ARZ3NDEKTSV4RRFFQ69G5FAV",
    "char": "a",
    "string": "string",
}

FILLER_BASE = "string"
FILLER_PAD = "x"
MAX_UNBOUNDED_LENGTH = 50


def convert_example(raw: str, descriptor: TypeDescriptor | None) -> Any:
    """Convert explicit example text to the descriptor's native JSON type.

    Falls back to the raw string whenever conversion fails.
    """
    if descriptor is None:
        return raw
    target = descriptor.strip_nullable()

    if target.is_integer():
        try:
            return int(raw.strip())
        except ValueError:
            return raw
    if target.is_float() or target.kind == TypeKind.NUMERIC:
        try:
            value = float(raw.strip())
        except ValueError:
            return raw
        return value if math.isfinite(value) else raw
    if target.kind == TypeKind.BOOLEAN:
        lowered = raw.strip().lower()
        if lowered in ("true", "false"):
            return lowered == "true"
        return raw
    if target.kind in (TypeKind.OBJECT, TypeKind.ARRAY):
        try:
            return json.loads(raw)
        except ValueError:
            return raw
    return raw


def parse_json_example(raw: str) -> Any:
    """Parse raw example JSON; unparseable text is kept as a string."""
    try:
        return json.loads(raw)
    except ValueError:
        return raw


def default_example(descriptor: TypeDescriptor, member: MemberDescriptor | None = None) -> Any:
    """Generate a default value from format, then constraints, then type."""
    target = descriptor.strip_nullable()

    if target.kind == TypeKind.STRING and member is not None and member.format:
        literal = FORMAT_EXAMPLES.get(member.format.lower())
        if literal is not None:
            return literal

    if (target.kind == TypeKind.NUMERIC and member is not None
            and (member.minimum is not None or member.maximum is not None)):
        return _numeric_default(target, member.minimum, member.maximum)

    if (target.kind == TypeKind.STRING and member is not None
            and (member.min_length is not None or member.max_length is not None)):
        return _string_default(member.min_length, member.max_length)

    return placeholder(target)


def placeholder(descriptor: TypeDescriptor) -> Any:
    """Fixed type-appropriate value, or None for types without one."""
    name = descriptor.canonical_name()
    kind = descriptor.kind
    if kind == TypeKind.STRING:
        return "string"
    if kind == TypeKind.NUMERIC:
        return 0 if descriptor.is_integer() else 0.0
    if kind == TypeKind.BOOLEAN:
        return False
    if kind == TypeKind.DATETIME:
        return DATETIME_PLACEHOLDERS.get(name, EXAMPLE_DATETIME)
    if kind == TypeKind.PRIMITIVE:
        return PRIMITIVE_PLACEHOLDERS.get(name)
    if kind == TypeKind.ENUM and descriptor.enum_values:
        return descriptor.enum_values[0]
    return None


def _numeric_default(descriptor: TypeDescriptor, minimum: float | None, maximum: float | None):
    if minimum is not None and maximum is not None:
        value = (minimum + maximum) / 2.0
    elif minimum is not None:
        value = minimum
    else:
        value = maximum

    name = descriptor.canonical_name()
    if name == "byte":
        return round(max(0.0, min(255.0, value)))
    if descriptor.is_integer():
        return round(value)
    return float(value)


def _string_default(min_length: int | None, max_length: int | None) -> str:
    if min_length is not None and max_length is not None:
        target = (min_length + max_length) // 2
    elif min_length is not None:
        target = min_length
    else:
        target = min(max_length, MAX_UNBOUNDED_LENGTH)

    target = max(1, target)
    if target <= len(FILLER_BASE):
        return FILLER_BASE[:target]
    return FILLER_BASE + FILLER_PAD * (target - len(FILLER_BASE))


class ExampleComposer:
    """Composes body examples according to an ``ExampleConfig``."""

    def __init__(self, config: ExampleConfig | None = None):
        self.config = config or ExampleConfig()

    def compose(self, descriptor: TypeDescriptor | None, visiting: set[int] | None = None) -> Any:
        """Example for a whole body of type ``descriptor``, or None."""
        if descriptor is None or not self.config.compose_from_properties:
            return None
        return self._value(descriptor, None, visiting if visiting is not None else set())

    def _value(self, descriptor: TypeDescriptor | None, member: MemberDescriptor | None,
               visiting: set[int]) -> Any:
        if member is not None and member.example:
            return convert_example(member.example, descriptor)
        if descriptor is None:
            return None

        target = descriptor.strip_nullable()
        if target.kind == TypeKind.OBJECT:
            return self._object(target, visiting)
        if target.kind == TypeKind.ARRAY:
            # simple elements follow the leaf rules: no placeholder unless generate_defaults
            element = self._value(target.element, None, visiting)
            return [element] if element is not None else None
        if self.config.generate_defaults:
            return default_example(target, member)
        return None

    def _object(self, descriptor: TypeDescriptor, visiting: set[int]) -> dict | None:
        if id(descriptor) in visiting:
            return None

        visiting.add(id(descriptor))
        try:
            composed = {}
            for member in descriptor.members:
                if not member.included:
                    continue
                value = self._value(member.type, member, visiting)
                if value is not None:
                    composed[member.serialized_name] = value
        finally:
            visiting.discard(id(descriptor))
        return composed or None
