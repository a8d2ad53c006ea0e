"""Endpoint descriptors: one record per annotated handler function."""

from enum import Enum

from pydantic import BaseModel, field_validator, model_validator

from .types import TypeDescriptor

DEFAULT_TAG = "Default"


class ParameterSource(str, Enum):
    PATH = "path"
    QUERY = "query"
    HEADER = "header"
    BODY = "body"


class ExampleSource(str, Enum):
    EXPLICIT = "explicit-attribute"
    DOCUMENTATION = "documentation-derived"


class ApiType(str, Enum):
    HTTP = "http"
    REST = "rest"


class ParameterDescriptor(BaseModel):
    """A single handler parameter and where its value comes from."""

    name: str
    type: TypeDescriptor
    source: ParameterSource = ParameterSource.QUERY
    required: bool = False
    default: str | int | float | bool | None = None
    description: str | None = None

    @model_validator(mode="after")
    def _path_is_required(self):
        if self.source == ParameterSource.PATH:
            self.required = True
        return self


class ExampleSpec(BaseModel):
    """A named raw-JSON example for a request body or a response status."""

    name: str = "Example"
    value: str
    status_code: int = 200
    is_request: bool = False
    source: ExampleSource = ExampleSource.EXPLICIT


class ResponseHeaderSpec(BaseModel):
    name: str
    status_code: int = 200
    description: str | None = None
    type: TypeDescriptor | None = None  # None renders as string
    required: bool = False


class ResponseOverride(BaseModel):
    """Explicit response type for one status code; suppresses return-type inference."""

    status_code: int = 200
    type: TypeDescriptor | None = None
    description: str | None = None


class ExternalDocLink(BaseModel):
    url: str
    description: str | None = None


class DocumentationBlock(BaseModel):
    """Documentation extracted from a handler's doc comment."""

    summary: str | None = None
    description: str | None = None
    parameter_descriptions: dict[str, str] = {}
    examples: list[ExampleSpec] = []


class EndpointDescriptor(BaseModel):
    """A single API operation with all its metadata."""

    method_name: str
    http_method: str  # validated by the operation builder, unknown verbs are skipped
    route: str
    parameters: list[ParameterDescriptor] = []
    return_type: TypeDescriptor | None = None
    documentation: DocumentationBlock = DocumentationBlock()
    summary: str | None = None
    description: str | None = None
    tags: list[str] = [DEFAULT_TAG]
    deprecated: bool = False
    deprecation_message: str | None = None
    external_docs: ExternalDocLink | None = None
    response_headers: list[ResponseHeaderSpec] = []
    examples: list[ExampleSpec] = []
    response_overrides: list[ResponseOverride] = []
    operation_id: str | None = None
    requires_authorization: bool = False
    requires_api_key: bool = False
    security_schemes: list[str] = []
    required_scopes: list[str] = []
    api_type: ApiType = ApiType.HTTP

    @field_validator("tags")
    @classmethod
    def _default_tag(cls, tags: list[str]) -> list[str]:
        tags = [t for t in tags if t]
        return tags or [DEFAULT_TAG]

    @property
    def label(self) -> str:
        return f"{self.http_method.upper()} {self.route} ({self.method_name})"

    def all_examples(self) -> list[ExampleSpec]:
        """Explicit examples followed by documentation-derived ones."""
        return [*self.examples, *self.documentation.examples]


class SourceUnit(BaseModel):
    """A group of endpoints that yields one partial document (e.g. one handler class)."""

    name: str
    endpoints: list[EndpointDescriptor] = []
