"""Assembly-wide configuration applied once to the merged document."""

from enum import Enum

from pydantic import BaseModel, field_validator

from .endpoint import ExternalDocLink


class ExampleConfig(BaseModel):
    """Toggles for automatic example generation."""

    compose_from_properties: bool = True
    generate_defaults: bool = False


class ContactConfig(BaseModel):
    name: str | None = None
    email: str | None = None
    url: str | None = None


class LicenseConfig(BaseModel):
    name: str | None = None
    url: str | None = None


class InfoConfig(BaseModel):
    title: str = "API Documentation"
    version: str = "1.0.0"
    description: str | None = None
    terms_of_service: str | None = None
    contact: ContactConfig | None = None
    license: LicenseConfig | None = None


class SecuritySchemeType(str, Enum):
    API_KEY = "apiKey"
    HTTP = "http"
    OAUTH2 = "oauth2"
    OPEN_ID_CONNECT = "openIdConnect"


class ApiKeyLocation(str, Enum):
    HEADER = "header"
    QUERY = "query"
    COOKIE = "cookie"


def parse_scopes(value: str | None) -> dict[str, str]:
    """Parse ``"read:Read access, write"`` into ``{"read": "Read access", "write": "write"}``."""
    scopes: dict[str, str] = {}
    if not value:
        return scopes
    for pair in value.split(","):
        name, sep, description = pair.partition(":")
        name = name.strip()
        if not name:
            continue
        scopes[name] = description.strip() if sep else name
    return scopes


class SecuritySchemeConfig(BaseModel):
    """A named security scheme definition."""

    id: str
    type: SecuritySchemeType = SecuritySchemeType.API_KEY
    description: str | None = None
    api_key_name: str | None = None
    api_key_location: ApiKeyLocation = ApiKeyLocation.HEADER
    http_scheme: str | None = None
    bearer_format: str | None = None
    authorization_url: str | None = None
    token_url: str | None = None
    scopes: dict[str, str] = {}
    open_id_connect_url: str | None = None

    @field_validator("scopes", mode="before")
    @classmethod
    def _scopes_from_string(cls, value):
        if value is None:
            return {}
        if isinstance(value, str):
            return parse_scopes(value)
        if isinstance(value, list):
            return {str(v): str(v) for v in value}
        return value


class TagDefinition(BaseModel):
    name: str
    description: str | None = None
    external_docs: ExternalDocLink | None = None


class TagGroup(BaseModel):
    """A named group of tags, emitted in the ``x-tagGroups`` extension."""

    name: str
    tags: list[str] = []


class ServerConfig(BaseModel):
    url: str
    description: str | None = None


class AssemblyConfig(BaseModel):
    """Everything the document assembler layers onto the merged document."""

    info: InfoConfig = InfoConfig()
    examples: ExampleConfig = ExampleConfig()
    security_schemes: list[SecuritySchemeConfig] = []
    tags: list[TagDefinition] = []
    tag_groups: list[TagGroup] = []
    servers: list[ServerConfig] = []
    external_docs: ExternalDocLink | None = None
