"""CLI entry point for openapi-synth."""

import json
import logging
from pathlib import Path

import click
import yaml

from openapi_synth.errors import ManifestError
from openapi_synth.generator.document import DocumentGenerator
from openapi_synth.model.config import AssemblyConfig
from openapi_synth.parser.manifest import Manifest, load_manifest
from openapi_synth.settings import Settings

FORMATS = ["json", "yaml"]


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format="%(levelname)s %(name)s: %(message)s",
    )


def _load(manifest_path: Path) -> Manifest:
    try:
        return load_manifest(manifest_path)
    except ManifestError as e:
        raise click.ClickException(str(e)) from e


def _resolve_config(
    config: AssemblyConfig,
    settings: Settings,
    compose: bool | None,
    generate_defaults: bool | None,
) -> AssemblyConfig:
    """Apply example toggles: CLI flag > environment > manifest."""
    examples = config.examples.model_copy()
    for field, flag in (("compose_from_properties", compose), ("generate_defaults", generate_defaults)):
        value = flag if flag is not None else getattr(settings, field)
        if value is not None:
            setattr(examples, field, value)
    return config.model_copy(update={"examples": examples})


def _detect_format(output: Path, fmt: str | None, settings: Settings) -> str:
    if fmt:
        return fmt
    if output.suffix.lower() in (".yaml", ".yml"):
        return "yaml"
    return settings.output_format if settings.output_format in FORMATS else "json"


def serialize(document: dict, fmt: str = "json") -> str:
    """Serialize a document to JSON or YAML, keeping key order."""
    if fmt == "yaml":
        return yaml.safe_dump(document, sort_keys=False, allow_unicode=True)
    return json.dumps(document, indent=2, ensure_ascii=False) + "\n"


def _count_operations(document: dict) -> int:
    return sum(len(item) for item in document.get("paths", {}).values())


@click.group()
def main():
    """Build OpenAPI documents from endpoint descriptors."""
    pass


@main.command()
@click.argument("manifest_path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("-o", "--output", required=True, type=click.Path(path_type=Path), help="Output file for the OpenAPI document.")
@click.option("--format", "fmt", default=None, type=click.Choice(FORMATS), help="Output format (default: from file suffix).")
@click.option("--compose/--no-compose", default=None, help="Compose body examples from member examples.")
@click.option("--generate-defaults/--no-generate-defaults", default=None, help="Generate default values for members without examples.")
@click.option("--log-level", default=None, help="Logging level (default: WARNING).")
def build(manifest_path: Path, output: Path, fmt: str | None, compose: bool | None,
          generate_defaults: bool | None, log_level: str | None):
    """Synthesize an OpenAPI document from a descriptor manifest."""
    settings = Settings()
    _configure_logging(log_level or settings.log_level)

    click.echo(f"Reading {manifest_path}...")
    manifest = _load(manifest_path)
    config = _resolve_config(manifest.config, settings, compose, generate_defaults)
    click.echo(f"Found {sum(len(u.endpoints) for u in manifest.units)} endpoints in {len(manifest.units)} units.")

    generator = DocumentGenerator(config)
    document = generator.generate(manifest.units)
    for result in generator.skipped:
        click.echo(f"  Skipped {result.endpoint}: {result.error}")

    fmt = _detect_format(output, fmt, settings)
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(serialize(document, fmt), encoding="utf-8")
    click.echo(f"Wrote {_count_operations(document)} operations to {output}")


@main.command()
@click.argument("manifest_path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
def endpoints(manifest_path: Path):
    """List every operation with its resolved operationId."""
    manifest = _load(manifest_path)
    generator = DocumentGenerator(manifest.config)
    document = generator.generate(manifest.units)

    for route, path_item in document["paths"].items():
        for verb, operation in path_item.items():
            click.echo(f"{verb.upper():<7} {route} -> {operation['operationId']}")
    for result in generator.skipped:
        click.echo(f"SKIPPED {result.endpoint}: {result.error}")
