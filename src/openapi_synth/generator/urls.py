"""Lenient URL handling for optional configuration fields."""

import logging

from pydantic import AnyUrl, TypeAdapter, ValidationError

logger = logging.getLogger(__name__)

_url_adapter = TypeAdapter(AnyUrl)


def absolute_url(value: str | None, field: str = "url") -> str | None:
    """Return ``value`` if it is an absolute URL, else None.

    Malformed values only drop the field they belong to.
    """
    if not value:
        return None
    try:
        _url_adapter.validate_python(value)
    except ValidationError:
        logger.warning("Ignoring malformed %s: %r", field, value)
        return None
    return value


def external_docs(url: str | None, description: str | None) -> dict | None:
    """Render an externalDocs object, or None when the URL is unusable."""
    checked = absolute_url(url, "externalDocs url")
    if checked is None:
        return None
    docs = {"url": checked}
    if description:
        docs["description"] = description
    return docs
