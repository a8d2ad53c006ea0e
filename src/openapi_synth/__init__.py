"""Build-time OpenAPI 3.0 document synthesis from endpoint descriptors."""

__version__ = "0.1.0"
