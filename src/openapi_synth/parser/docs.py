"""Documentation-comment parser.

Reads XML documentation comments (``<summary>``, ``<remarks>``, ``<param>``,
``<example>``) into a DocumentationBlock. ``<example>`` blocks become
documentation-derived examples.
"""

import logging
import xml.etree.ElementTree as ET

from openapi_synth.model.endpoint import DocumentationBlock, ExampleSource, ExampleSpec

logger = logging.getLogger(__name__)


def parse_doc_comment(xml_text: str | None) -> DocumentationBlock:
    """Parse a documentation comment; malformed markup yields an empty block."""
    if not xml_text or not xml_text.strip():
        return DocumentationBlock()

    try:
        root = ET.fromstring(f"<doc>{xml_text}</doc>")
    except ET.ParseError as exc:
        logger.warning("Ignoring malformed documentation comment: %s", exc)
        return DocumentationBlock()

    # compiler-emitted files wrap everything in <member>
    member = root.find("member")
    if member is not None:
        root = member

    parameter_descriptions = {}
    for param in root.findall("param"):
        name = param.get("name")
        if name:
            parameter_descriptions[name] = _text(param)

    examples = []
    for element in root.findall("example"):
        example = _parse_example(element)
        if example is not None:
            examples.append(example)

    return DocumentationBlock(
        summary=_text(root.find("summary")) or None,
        description=_text(root.find("remarks")) or None,
        parameter_descriptions=parameter_descriptions,
        examples=examples,
    )


def _parse_example(element: ET.Element) -> ExampleSpec | None:
    code = element.find("code")
    value = _text(code if code is not None else element)
    if not value:
        return None

    request = (element.get("request") or "").strip().lower()
    status_code = 200
    status = element.get("statusCode")
    if status:
        try:
            status_code = int(status)
        except ValueError:
            logger.warning("Ignoring non-numeric example statusCode %r", status)

    return ExampleSpec(
        name=element.get("name") or "Example",
        value=value,
        status_code=status_code,
        is_request=request in ("true", "1"),
        source=ExampleSource.DOCUMENTATION,
    )


def _text(element: ET.Element | None) -> str:
    if element is None:
        return ""
    return "".join(element.itertext()).strip()
