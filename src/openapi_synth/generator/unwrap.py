"""Async return-type unwrapping."""

from openapi_synth.model.types import TypeDescriptor, TypeKind


class _NoContent:
    """Sentinel: the handler completes without producing a payload."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "NoContent"

    def __bool__(self) -> bool:
        return False


NoContent = _NoContent()


def unwrap_async(descriptor: TypeDescriptor | None) -> "TypeDescriptor | _NoContent | None":
    """Resolve an async wrapper to its payload type.

    ``async<T>`` and ``async<async<T>>`` both yield ``T``; a bare ``async``
    yields ``NoContent``. Anything else, including ``None``, is returned as is.
    """
    current = descriptor
    while current is not None and current.kind == TypeKind.ASYNC:
        if current.inner is None:
            return NoContent
        current = current.inner
    return current
