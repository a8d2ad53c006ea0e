"""Operation-ID registry: keeps operationIds unique within one document build."""

import logging

logger = logging.getLogger(__name__)

PLACEHOLDER_ID = "operation"


class OperationIdRegistry:
    """Case-insensitive set of issued operation ids, scoped to one build.

    Call ``reset()`` before each top-level build; never share an instance
    between concurrent builds.
    """

    def __init__(self):
        self._issued: set[str] = set()

    def ensure_unique(self, candidate: str | None) -> str:
        """Return ``candidate``, suffixed ``_2``, ``_3``, ... if already issued."""
        base = candidate or PLACEHOLDER_ID
        operation_id = base
        suffix = 2
        while operation_id.casefold() in self._issued:
            operation_id = f"{base}_{suffix}"
            suffix += 1

        if operation_id != base:
            logger.debug("operationId %r already issued, using %r", base, operation_id)
        self._issued.add(operation_id.casefold())
        return operation_id

    def reset(self) -> None:
        self._issued.clear()

    def __contains__(self, operation_id: str) -> bool:
        return operation_id.casefold() in self._issued

    def __len__(self) -> int:
        return len(self._issued)
