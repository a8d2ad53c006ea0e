"""Document assembler: merges partial documents and applies global configuration.

One partial document is built per source unit. Partials are merged in the
order given: new routes are inserted whole, colliding verbs and component
schema names are overwritten by the later partial without a warning.
Assembly-level configuration is applied exactly once, to the merged result.
"""

import logging

from pydantic import BaseModel

from openapi_synth.generator.examples import ExampleComposer
from openapi_synth.generator.operation import BuildResult, OperationBuilder
from openapi_synth.generator.operation_id import OperationIdRegistry
from openapi_synth.generator.schema import SchemaSynthesizer
from openapi_synth.generator.security import render_security_schemes
from openapi_synth.generator.urls import absolute_url, external_docs
from openapi_synth.model.config import AssemblyConfig, ExampleConfig, InfoConfig
from openapi_synth.model.endpoint import SourceUnit

logger = logging.getLogger(__name__)

OPENAPI_VERSION = "3.0.1"


class PartialDocument(BaseModel):
    """Paths and component schemas generated for one source unit."""

    source: str
    paths: dict[str, dict[str, dict]] = {}
    schemas: dict[str, dict] = {}
    skipped: list[BuildResult] = []


def build_partial(
    unit: SourceUnit,
    registry: OperationIdRegistry,
    examples: ExampleConfig | None = None,
) -> PartialDocument:
    """Build the partial document for one source unit."""
    synthesizer = SchemaSynthesizer()
    builder = OperationBuilder(synthesizer, ExampleComposer(examples), registry)
    partial = PartialDocument(source=unit.name)

    for endpoint in unit.endpoints:
        result = builder.try_build(endpoint)
        if not result.ok:
            partial.skipped.append(result)
            continue
        partial.paths.setdefault(result.route, {})[result.method] = result.operation

    partial.schemas = synthesizer.components
    return partial


def render_info(info: InfoConfig) -> dict:
    result = {"title": info.title, "version": info.version}
    if info.description:
        result["description"] = info.description
    terms = absolute_url(info.terms_of_service, "termsOfService")
    if terms:
        result["termsOfService"] = terms

    if info.contact is not None:
        contact = {}
        if info.contact.name:
            contact["name"] = info.contact.name
        if info.contact.email:
            contact["email"] = info.contact.email
        url = absolute_url(info.contact.url, "contact url")
        if url:
            contact["url"] = url
        if contact:
            result["contact"] = contact

    if info.license is not None:
        license_ = {}
        if info.license.name:
            license_["name"] = info.license.name
        url = absolute_url(info.license.url, "license url")
        if url:
            license_["url"] = url
        if license_:
            result["license"] = license_
    return result


def render_tags(config: AssemblyConfig) -> list[dict]:
    tags = []
    for definition in config.tags:
        if not definition.name:
            continue
        tag = {"name": definition.name}
        if definition.description:
            tag["description"] = definition.description
        if definition.external_docs is not None:
            docs = external_docs(definition.external_docs.url, definition.external_docs.description)
            if docs is not None:
                tag["externalDocs"] = docs
        tags.append(tag)
    return tags


def render_tag_groups(config: AssemblyConfig) -> list[dict]:
    return [
        {"name": group.name, "tags": [t for t in group.tags if t]}
        for group in config.tag_groups
        if group.name
    ]


def render_servers(config: AssemblyConfig) -> list[dict]:
    servers = []
    for server in config.servers:
        if not server.url:
            continue
        entry = {"url": server.url}
        if server.description:
            entry["description"] = server.description
        servers.append(entry)
    return servers


class DocumentAssembler:
    """Merges partial documents into one document."""

    def __init__(self, config: AssemblyConfig | None = None):
        self.config = config or AssemblyConfig()

    def assemble(self, partials: list[PartialDocument]) -> dict:
        paths: dict[str, dict] = {}
        schemas: dict[str, dict] = {}

        for partial in partials:
            for route, path_item in partial.paths.items():
                if route not in paths:
                    paths[route] = dict(path_item)
                    continue
                merged = paths[route]
                for verb, operation in path_item.items():
                    if verb in merged:
                        logger.debug("%s %s replaced by %s", verb.upper(), route, partial.source)
                    merged[verb] = operation
            schemas.update(partial.schemas)

        return self._document(paths, schemas)

    def _document(self, paths: dict, schemas: dict) -> dict:
        config = self.config
        document: dict = {"openapi": OPENAPI_VERSION, "info": render_info(config.info)}

        servers = render_servers(config)
        if servers:
            document["servers"] = servers

        document["paths"] = paths

        components = {}
        if schemas:
            components["schemas"] = schemas
        security_schemes = render_security_schemes(config.security_schemes)
        if security_schemes:
            components["securitySchemes"] = security_schemes
        if components:
            document["components"] = components

        tags = render_tags(config)
        if tags:
            document["tags"] = tags

        if config.external_docs is not None:
            docs = external_docs(config.external_docs.url, config.external_docs.description)
            if docs is not None:
                document["externalDocs"] = docs

        tag_groups = render_tag_groups(config)
        if tag_groups:
            document["x-tagGroups"] = tag_groups
        return document


class DocumentGenerator:
    """Top-level entry point: one call to ``generate`` builds one document.

    The generator owns its operation-id registry and clears it at the start
    of every build.
    """

    def __init__(self, config: AssemblyConfig | None = None):
        self.config = config or AssemblyConfig()
        self.registry = OperationIdRegistry()
        self.skipped: list[BuildResult] = []

    def generate(self, units: list[SourceUnit]) -> dict:
        self.registry.reset()
        partials = [build_partial(unit, self.registry, self.config.examples) for unit in units]
        self.skipped = [result for partial in partials for result in partial.skipped]
        if self.skipped:
            logger.warning("%d endpoint(s) were dropped from the document", len(self.skipped))
        return DocumentAssembler(self.config).assemble(partials)


def generate_document(units: list[SourceUnit], config: AssemblyConfig | None = None) -> dict:
    """Build a complete OpenAPI document from source units and configuration."""
    return DocumentGenerator(config).generate(units)
