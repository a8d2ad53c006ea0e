"""Security scheme definitions and per-operation security requirements."""

from openapi_synth.generator.urls import absolute_url
from openapi_synth.model.config import SecuritySchemeConfig, SecuritySchemeType
from openapi_synth.model.endpoint import EndpointDescriptor

OAUTH2_SCHEME = "oauth2"
API_KEY_SCHEME = "apiKey"
DEFAULT_SCOPES = ["read"]


def render_security_schemes(schemes: list[SecuritySchemeConfig]) -> dict[str, dict]:
    """Render scheme definitions keyed by id; later duplicates replace earlier ones."""
    rendered = {}
    for scheme in schemes:
        if not scheme.id:
            continue
        rendered[scheme.id] = render_security_scheme(scheme)
    return rendered


def render_security_scheme(scheme: SecuritySchemeConfig) -> dict:
    result: dict = {"type": scheme.type.value}
    if scheme.description:
        result["description"] = scheme.description

    if scheme.type == SecuritySchemeType.API_KEY:
        if scheme.api_key_name:
            result["name"] = scheme.api_key_name
        result["in"] = scheme.api_key_location.value
    elif scheme.type == SecuritySchemeType.HTTP:
        if scheme.http_scheme:
            result["scheme"] = scheme.http_scheme
        if scheme.bearer_format:
            result["bearerFormat"] = scheme.bearer_format
    elif scheme.type == SecuritySchemeType.OAUTH2:
        result["flows"] = _oauth2_flows(scheme)
    elif scheme.type == SecuritySchemeType.OPEN_ID_CONNECT:
        url = absolute_url(scheme.open_id_connect_url, "openIdConnectUrl")
        if url:
            result["openIdConnectUrl"] = url
    return result


def _oauth2_flows(scheme: SecuritySchemeConfig) -> dict:
    scopes = dict(scheme.scopes)
    if scheme.authorization_url and scheme.token_url:
        flow_name = "authorizationCode"
    elif scheme.token_url:
        flow_name = "clientCredentials"
    elif scheme.authorization_url:
        flow_name = "implicit"
    else:
        return {}

    flow: dict = {}
    if flow_name in ("authorizationCode", "implicit"):
        url = absolute_url(scheme.authorization_url, "authorizationUrl")
        if url:
            flow["authorizationUrl"] = url
    if flow_name in ("authorizationCode", "clientCredentials"):
        url = absolute_url(scheme.token_url, "tokenUrl")
        if url:
            flow["tokenUrl"] = url
    flow["scopes"] = scopes
    return {flow_name: flow}


def security_requirements(endpoint: EndpointDescriptor) -> list[dict]:
    """OAuth2 and/or API-key requirement objects for an endpoint."""
    requirements = []
    if endpoint.requires_authorization and endpoint.security_schemes:
        scopes = [s.strip() for s in endpoint.required_scopes if s and s.strip()]
        requirements.append({OAUTH2_SCHEME: scopes or list(DEFAULT_SCOPES)})
    if endpoint.requires_api_key:
        requirements.append({API_KEY_SCHEME: []})
    return requirements
