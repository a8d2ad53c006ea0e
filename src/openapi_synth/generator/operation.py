"""Operation builder: turns one endpoint descriptor into an OpenAPI operation."""

import logging

from pydantic import BaseModel

from openapi_synth.errors import EndpointBuildError
from openapi_synth.generator.examples import ExampleComposer, parse_json_example
from openapi_synth.generator.operation_id import OperationIdRegistry
from openapi_synth.generator.schema import SchemaSynthesizer, detach_ref
from openapi_synth.generator.security import security_requirements
from openapi_synth.generator.unwrap import NoContent, unwrap_async
from openapi_synth.generator.urls import external_docs
from openapi_synth.model.endpoint import (
    ApiType,
    EndpointDescriptor,
    ExampleSource,
    ExampleSpec,
    ParameterSource,
)
from openapi_synth.model.types import TypeKind

logger = logging.getLogger(__name__)

JSON_MEDIA_TYPE = "application/json"

SUPPORTED_METHODS = ("GET", "POST", "PUT", "DELETE", "PATCH", "HEAD", "OPTIONS")
BODY_METHODS = ("POST", "PUT")
DEFAULT_ERROR_CODES = (400, 401, 403, 500)

RESPONSE_DESCRIPTIONS = {
    200: "Success",
    201: "Created",
    204: "No Content",
    400: "Bad Request",
    401: "Unauthorized",
    403: "Forbidden",
    404: "Not Found",
    500: "Internal Server Error",
}

GATEWAY_EXTENSION = "x-amazon-apigateway-integration"


def describe_status(status_code: int) -> str:
    """Default response description for a status code; unlisted codes are "Unknown"."""
    return RESPONSE_DESCRIPTIONS.get(status_code, "Unknown")


def gateway_integration(api_type: ApiType) -> dict:
    return {
        "type": "aws_proxy",
        "httpMethod": "POST",
        "uri": "${LambdaFunctionArn}",
        "payloadFormatVersion": "2.0" if api_type == ApiType.HTTP else "1.0",
    }


def select_examples(examples: list[ExampleSpec]) -> dict[tuple, ExampleSpec]:
    """Pick one example per slot; explicit attributes outrank documentation.

    Slots are ``("request",)`` and ``("response", status_code)``. Within the
    same provenance the first declared example wins.
    """
    chosen: dict[tuple, ExampleSpec] = {}
    for example in examples:
        slot = ("request",) if example.is_request else ("response", example.status_code)
        current = chosen.get(slot)
        if current is None or (
            current.source == ExampleSource.DOCUMENTATION and example.source == ExampleSource.EXPLICIT
        ):
            chosen[slot] = example
    return chosen


class BuildResult(BaseModel):
    """Outcome of building one endpoint: an operation, or the reason it was dropped."""

    endpoint: str
    method: str = ""
    route: str = ""
    operation: dict | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.operation is not None


class OperationBuilder:
    """Builds operations for the endpoints of one source unit."""

    def __init__(
        self,
        synthesizer: SchemaSynthesizer,
        composer: ExampleComposer,
        registry: OperationIdRegistry,
    ):
        self.synthesizer = synthesizer
        self.composer = composer
        self.registry = registry

    def try_build(self, endpoint: EndpointDescriptor) -> BuildResult:
        """Build an operation without letting any failure escape.

        Schemas registered while building an endpoint that is then dropped are
        removed again, so ``components`` only holds schemas of kept operations.
        """
        registered = set(self.synthesizer.components)
        try:
            operation = self.build(endpoint)
        except EndpointBuildError as exc:
            error = exc
        except Exception as exc:
            error = EndpointBuildError(endpoint.label, str(exc) or type(exc).__name__)
        else:
            return BuildResult(
                endpoint=endpoint.label,
                method=endpoint.http_method.lower(),
                route=endpoint.route,
                operation=operation,
            )

        self._discard_schemas(registered)
        logger.warning("Dropping endpoint %s: %s", endpoint.label, error.reason)
        return BuildResult(
            endpoint=endpoint.label,
            method=endpoint.http_method.lower(),
            route=endpoint.route,
            error=error.reason,
        )

    def _discard_schemas(self, keep: set[str]) -> None:
        components = self.synthesizer.components
        for name in [n for n in components if n not in keep]:
            del components[name]

    def build(self, endpoint: EndpointDescriptor) -> dict:
        """Build the operation for ``endpoint``; raises on malformed input."""
        method = endpoint.http_method.upper()
        if method not in SUPPORTED_METHODS:
            raise EndpointBuildError(endpoint.label, f"unsupported HTTP method {endpoint.http_method!r}")

        chosen = select_examples(endpoint.all_examples())
        operation = self._header(endpoint, method)

        parameters = self._parameters(endpoint)
        if parameters:
            operation["parameters"] = parameters

        if method in BODY_METHODS:
            request_body = self._request_body(endpoint, chosen.get(("request",)))
            if request_body is not None:
                operation["requestBody"] = request_body

        responses = self._responses(endpoint)
        self._attach_headers(endpoint, responses)
        self._attach_examples(chosen, responses)
        operation["responses"] = responses

        security = security_requirements(endpoint)
        if security:
            operation["security"] = security

        self._apply_deprecation(endpoint, operation)

        if endpoint.external_docs is not None:
            docs = external_docs(endpoint.external_docs.url, endpoint.external_docs.description)
            if docs is not None:
                operation["externalDocs"] = docs

        operation[GATEWAY_EXTENSION] = gateway_integration(endpoint.api_type)

        # registered last so dropped endpoints never consume an id
        operation["operationId"] = self.registry.ensure_unique(operation["operationId"])
        return operation

    def _header(self, endpoint: EndpointDescriptor, method: str) -> dict:
        documentation = endpoint.documentation
        operation = {
            "tags": list(endpoint.tags),
            "summary": endpoint.summary or documentation.summary or f"{method} {endpoint.method_name}",
        }
        description = endpoint.description or documentation.description
        if description:
            operation["description"] = description
        operation["operationId"] = endpoint.operation_id or endpoint.method_name
        return operation

    def _parameters(self, endpoint: EndpointDescriptor) -> list[dict]:
        descriptions = endpoint.documentation.parameter_descriptions
        result = []
        for param in endpoint.parameters:
            if param.source == ParameterSource.BODY:
                continue

            schema = self.synthesizer.synthesize(param.type)
            if param.default is not None:
                schema = detach_ref(schema)
                schema["default"] = _render_default(param.default)

            parameter = {
                "name": param.name,
                "in": param.source.value,
                "required": param.source == ParameterSource.PATH or param.required,
            }
            description = param.description or descriptions.get(param.name)
            if description:
                parameter["description"] = description
            parameter["schema"] = schema
            result.append(parameter)
        return result

    def _request_body(self, endpoint: EndpointDescriptor, example: ExampleSpec | None) -> dict | None:
        body = next((p for p in endpoint.parameters if p.source == ParameterSource.BODY), None)
        if body is None:
            return None

        media = {"schema": self.synthesizer.synthesize(body.type)}
        if example is not None:
            media["example"] = parse_json_example(example.value)
        else:
            composed = self.composer.compose(body.type)
            if composed is not None:
                media["example"] = composed

        request_body = {"required": True, "content": {JSON_MEDIA_TYPE: media}}
        description = body.description or endpoint.documentation.parameter_descriptions.get(body.name)
        if description:
            request_body["description"] = description
        return request_body

    def _responses(self, endpoint: EndpointDescriptor) -> dict:
        responses: dict[str, dict] = {}

        if endpoint.response_overrides:
            for override in endpoint.response_overrides:
                response = {"description": override.description or describe_status(override.status_code)}
                if override.type is not None:
                    response["content"] = {
                        JSON_MEDIA_TYPE: {"schema": self.synthesizer.synthesize(override.type)}
                    }
                responses[str(override.status_code)] = response
        else:
            payload = unwrap_async(endpoint.return_type)
            if payload is None or payload is NoContent:
                responses["204"] = {"description": describe_status(204)}
            elif payload.kind == TypeKind.RESULT:
                # opaque result wrapper, the body shape is unknown
                responses["200"] = {"description": describe_status(200)}
            else:
                media = {"schema": self.synthesizer.synthesize(payload)}
                composed = self.composer.compose(payload)
                if composed is not None:
                    media["example"] = composed
                responses["200"] = {
                    "description": describe_status(200),
                    "content": {JSON_MEDIA_TYPE: media},
                }

        for status_code in DEFAULT_ERROR_CODES:
            responses.setdefault(str(status_code), {"description": describe_status(status_code)})
        return responses

    def _attach_headers(self, endpoint: EndpointDescriptor, responses: dict) -> None:
        for spec in endpoint.response_headers:
            response = responses.setdefault(
                str(spec.status_code), {"description": describe_status(spec.status_code)}
            )
            header: dict = {}
            if spec.description:
                header["description"] = spec.description
            header["required"] = spec.required
            header["schema"] = (
                self.synthesizer.synthesize(spec.type) if spec.type is not None else {"type": "string"}
            )
            response.setdefault("headers", {})[spec.name] = header

    def _attach_examples(self, chosen: dict[tuple, ExampleSpec], responses: dict) -> None:
        for slot, example in chosen.items():
            if slot[0] != "response":
                continue
            status_code = slot[1]
            response = responses.setdefault(
                str(status_code), {"description": describe_status(status_code)}
            )
            media = response.setdefault("content", {}).setdefault(JSON_MEDIA_TYPE, {})
            media["example"] = parse_json_example(example.value)

    def _apply_deprecation(self, endpoint: EndpointDescriptor, operation: dict) -> None:
        if not endpoint.deprecated:
            return
        operation["deprecated"] = True
        if endpoint.deprecation_message:
            note = f"**Deprecated:** {endpoint.deprecation_message}"
            existing = operation.get("description")
            operation["description"] = f"{existing}\n\n{note}" if existing else note


def _render_default(value) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)
