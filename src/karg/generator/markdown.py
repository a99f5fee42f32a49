"""Markdown writer: renders APIDocumentation records as Markdown reference pages."""

import json
import logging
import re
from typing import Any

import yaml

from karg.parser.base import APIDocumentation, FieldDocumentation

from .mdast import (
    FootnoteDefinition,
    Node,
    Root,
    Table,
    TableCell,
    TableRow,
    bullet_list,
    code_block,
    complex_bullet_list,
    footnote_reference,
    heading,
    inline_code,
    link,
    paragraph,
    strong,
    text,
)
from .mdparse import parse_markdown
from .serializer import serialize
from .table import QuickReferenceOptions, QuickReferenceTable, get_quick_reference_table

logger = logging.getLogger(__name__)

QUICK_REFERENCE_DEPTH = 2
QUICK_REFERENCE_HEADERS = ("Field path", "Type", "Required", "Description")
DESCRIPTION_MAX_LENGTH = 60
REQUIRED_MARK = "✓"
IMMUTABLE_FOOTNOTE_TEXT = (
    "This field is immutable. Once set, it cannot be modified as enforced by the CEL validation rule: "
)

NUMERIC_CONSTRAINTS = (
    ("min_length", "Min length:"),
    ("max_length", "Max length:"),
    ("minimum", "Minimum:"),
    ("maximum", "Maximum:"),
    ("min_items", "Min items:"),
    ("max_items", "Max items:"),
)


def render_api_documentation(api_doc: APIDocumentation, quick_reference_depth: int = QUICK_REFERENCE_DEPTH) -> str:
    """Render a standalone Markdown page for one API."""
    footnotes: dict[str, str] = {}
    root = build_document_ast(api_doc, 1, footnotes, quick_reference_depth)
    root.children.extend(_footnote_definitions(footnotes))
    return serialize(root)


def render_combined_documentation(
    api_docs: list[APIDocumentation], quick_reference_depth: int = QUICK_REFERENCE_DEPTH
) -> str:
    """Render all APIs into one page, sorted by kind, with a shared table of contents and footnotes."""
    footnotes: dict[str, str] = {}
    children: list[Node] = [heading(1, "API Documentation")]

    sorted_docs = sorted(api_docs, key=lambda doc: doc.kind)
    if sorted_docs:
        children.append(bullet_list([[link(f"#{anchor(doc.kind)}", [text(doc.kind)])] for doc in sorted_docs]))

    for api_doc in sorted_docs:
        children.extend(build_document_ast(api_doc, 2, footnotes, quick_reference_depth).children)

    children.extend(_footnote_definitions(footnotes))
    return serialize(Root(children=children))


def anchor(kind: str) -> str:
    """Heading anchor of a kind: lowercased, whitespace runs replaced by ``-``."""
    return re.sub(r"\s+", "-", kind.lower())


def build_document_ast(
    api_doc: APIDocumentation,
    base_heading_level: int,
    footnotes: dict[str, str],
    quick_reference_depth: int = QUICK_REFERENCE_DEPTH,
) -> Root:
    """Build the AST of one API without footnote definitions.

    Immutability footnotes referenced by the fields are registered in
    *footnotes*; the caller appends their definitions once at the very end.
    """
    logger.debug("Rendering %s (%s/%s)", api_doc.kind, api_doc.group, api_doc.version)
    children: list[Node] = [heading(base_heading_level, api_doc.title)]

    # Author Markdown goes right below the title, not in a section of its own.
    if api_doc.description:
        children.extend(parse_markdown(api_doc.description))

    _add_overview(children, api_doc)
    _add_quick_reference(children, api_doc, base_heading_level, quick_reference_depth)
    _add_fields_section(children, api_doc.spec_fields, "Spec", base_heading_level, footnotes)
    _add_fields_section(children, api_doc.status_fields, "Status", base_heading_level, footnotes)
    return Root(children=children)


def _add_overview(children: list[Node], api_doc: APIDocumentation) -> None:
    items: list[list[Node]] = [
        [strong([text("API version:")]), text(" "), inline_code(f"{api_doc.group}/{api_doc.version}")],
        [strong([text("Scope:")]), text(f" {api_doc.scope}")],
    ]

    metadata = api_doc.metadata
    if metadata and metadata.plural:
        items.append([strong([text("Plural:")]), text(" "), inline_code(metadata.plural)])
    if metadata and metadata.singular:
        items.append([strong([text("Singular:")]), text(" "), inline_code(metadata.singular)])
    if metadata and metadata.short_names:
        short_names: list[Node] = [strong([text("Short names:")]), text(" ")]
        for index, name in enumerate(metadata.short_names):
            if index > 0:
                short_names.append(text(", "))
            short_names.append(inline_code(name))
        items.append(short_names)

    children.append(bullet_list(items))


def _add_quick_reference(
    children: list[Node], api_doc: APIDocumentation, base_heading_level: int, max_depth: int
) -> None:
    table = get_quick_reference_table(api_doc, QuickReferenceOptions(max_depth=max_depth))
    if not table.fields:
        return

    children.append(heading(base_heading_level + 1, "Quick Reference"))
    children.append(_quick_reference_table(table))
    if table.has_omitted_fields_due_to_depth:
        children.append(
            paragraph(
                [
                    text(
                        f"Note: This table shows fields up to {max_depth} levels deep. "
                        "Deeper nested fields are documented in the sections below."
                    )
                ]
            )
        )


def _quick_reference_table(table: QuickReferenceTable) -> Table:
    rows = [TableRow(children=[TableCell(children=[text(header)]) for header in QUICK_REFERENCE_HEADERS])]
    for field in table.fields:
        cells = [
            [inline_code(field.path)],
            [inline_code(field.type)],
            [text(REQUIRED_MARK if field.required else "")],
            [text(truncate_description(field.description, DESCRIPTION_MAX_LENGTH))],
        ]
        rows.append(TableRow(children=[TableCell(children=cell) for cell in cells]))
    return Table(children=rows)


def truncate_description(description: str, max_length: int) -> str:
    """Cut *description* to *max_length* characters, the trailing ``...`` included."""
    if len(description) <= max_length:
        return description
    return f"{description[:max_length - 3]}..."


def _add_fields_section(
    children: list[Node],
    fields: list[FieldDocumentation],
    section_name: str,
    base_heading_level: int,
    footnotes: dict[str, str],
) -> None:
    children.append(heading(base_heading_level + 1, section_name))
    if not fields:
        children.append(paragraph([text(f"No {section_name.lower()} fields defined for this resource.")]))
        return
    for field in fields:
        _add_field_section(children, field, base_heading_level + 2, footnotes)


def _add_field_section(
    children: list[Node], field: FieldDocumentation, heading_level: int, footnotes: dict[str, str]
) -> None:
    children.append(heading(heading_level, [inline_code(field.field_path)]))
    if field.description:
        children.extend(parse_markdown(field.description))

    items: list[list[Node]] = []
    _add_basic_info(items, field)
    _add_constraints(items, field, footnotes)
    if field.has_default:
        items.append(_value_item(field.default, "Default value"))
    for example in field.examples:
        items.append(_value_item(example, "Example"))

    children.append(complex_bullet_list(items))


def _add_basic_info(items: list[list[Node]], field: FieldDocumentation) -> None:
    type_item: list[Node] = [strong([text("Type:")]), text(" "), inline_code(field.type)]
    if field.format:
        type_item.extend([text(" ("), inline_code(field.format), text(")")])
    items.append(type_item)
    items.append([strong([text("Required" if field.required else "Optional")])])


def _add_constraints(items: list[list[Node]], field: FieldDocumentation, footnotes: dict[str, str]) -> None:
    constraints: list[list[Node]] = []

    if field.immutable:
        identifier = footnote_identifier(field.immutable)
        footnotes.setdefault(identifier, field.immutable)
        constraints.append([strong([text("Immutable")]), text(" "), footnote_reference(identifier)])

    for attribute, label in NUMERIC_CONSTRAINTS:
        value = getattr(field, attribute)
        if value is not None:
            constraints.append([strong([text(label)]), text(" "), inline_code(str(value))])

    if field.unique_items:
        constraints.append([strong([text("Unique items:")]), text(" Yes")])

    if field.pattern:
        constraints.append([strong([text("Pattern:")]), code_block(field.pattern, "regex")])

    if field.enum:
        allowed: list[Node] = [strong([text("Allowed values:")]), text(" ")]
        for index, value in enumerate(field.enum):
            if index > 0:
                allowed.append(text(", "))
            allowed.append(inline_code(_to_json(value)))
        constraints.append(allowed)

    for rule in field.validation_rules:
        validation: list[Node] = [strong([text("Validation:")])]
        if rule.message:
            validation.append(text(f" {rule.message}"))
        validation.append(code_block(rule.rule, "cel"))
        constraints.append(validation)

    if constraints:
        items.append([strong([text("Constraints")]), complex_bullet_list(constraints)])


def footnote_identifier(rule: str) -> str:
    """Footnote key of an immutability rule; identical rules share one footnote.

    Surrounding whitespace is dropped and inner whitespace runs become ``_``,
    so a block scalar rule keys the same footnote as its one-line form.
    """
    return "immutable_by_CEL_" + re.sub(r"\s+", "_", rule.strip())


def _footnote_definitions(footnotes: dict[str, str]) -> list[FootnoteDefinition]:
    return [
        FootnoteDefinition(
            identifier=identifier,
            children=[paragraph([text(IMMUTABLE_FOOTNOTE_TEXT), inline_code(rule)])],
        )
        for identifier, rule in footnotes.items()
    ]


def _value_item(value: Any, label: str) -> list[Node]:
    """Render *value* inline when its YAML form fits on one line, as a yaml block otherwise."""
    dumped = to_yaml(value)
    if "\n" not in dumped:
        return [strong([text(f"{label}:")]), text(" "), inline_code(dumped)]
    return [strong([text(label)]), code_block(dumped, "yaml")]


def to_yaml(value: Any) -> str:
    """Dump *value* as block-style YAML without the document end marker."""
    dumped = yaml.safe_dump(
        value,
        default_flow_style=False,
        sort_keys=False,
        allow_unicode=True,
        width=float("inf"),
    )
    if dumped.endswith("\n...\n"):
        dumped = dumped[: -len("...\n")]
    return dumped.strip()


def _to_json(value: Any) -> str:
    return json.dumps(value, ensure_ascii=False, separators=(",", ":"), default=str)
