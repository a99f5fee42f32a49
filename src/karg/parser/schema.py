"""Schema walker.

Flattens the nested OpenAPI schema of a CRD into an ordered list of
``FieldInfo`` rows addressed by dotted path.
"""

from .base import FieldInfo
from .crd import OpenAPISchema

# Attributes copied from a schema node onto its FieldInfo when defined.
COPIED_ATTRIBUTES = (
    "description",
    "enum",
    "format",
    "pattern",
    "minimum",
    "maximum",
    "min_length",
    "max_length",
    "min_items",
    "max_items",
    "unique_items",
    "nullable",
)


def flatten_schema(schema: OpenAPISchema, base_path: str = "") -> list[FieldInfo]:
    """Flatten *schema* into FieldInfo rows in pre-order.

    Each property yields its own row followed by the rows of its nested
    properties. ``required`` comes from the immediate parent's required list.
    """
    fields: list[FieldInfo] = []
    if not schema.properties:
        return fields

    required = set(schema.required)
    for name, field_schema in schema.properties.items():
        field_path = f"{base_path}.{name}" if base_path else name
        fields.append(_create_field_info(field_path, field_schema, name in required))
        fields.extend(_extract_nested_fields(field_schema, field_path))

    return fields


def resolve_type(schema: OpenAPISchema) -> str:
    """Return the display type of *schema*, e.g. ``string[]`` or ``string | integer``.

    ``type`` wins, then ``oneOf``, ``anyOf`` and ``allOf``. An empty combinator
    list counts as absent and falls through to the next rule, ending at ``any``.
    """
    if schema.type:
        if schema.type == "array" and schema.items is not None:
            return f"{resolve_type(schema.items)}[]"
        return schema.type

    if schema.one_of:
        return " | ".join(resolve_type(s) for s in schema.one_of)

    if schema.any_of:
        return " | ".join(resolve_type(s) for s in schema.any_of)

    if schema.all_of:
        return " & ".join(resolve_type(s) for s in schema.all_of)

    return "any"


def _extract_nested_fields(field_schema: OpenAPISchema, field_path: str) -> list[FieldInfo]:
    if field_schema.type == "object" and field_schema.properties:
        return flatten_schema(field_schema, field_path)

    # Item fields of an array of objects share the array's path prefix.
    items = field_schema.items
    if field_schema.type == "array" and items is not None and items.type == "object" and items.properties:
        return flatten_schema(items, field_path)

    return []


def _create_field_info(field_path: str, field_schema: OpenAPISchema, required: bool) -> FieldInfo:
    attributes = {}
    for name in COPIED_ATTRIBUTES:
        value = getattr(field_schema, name)
        if value is not None:
            attributes[name] = value

    if field_schema.x_kubernetes_validations:
        attributes["validation"] = field_schema.x_kubernetes_validations
    for name in ("default", "example"):
        if name in field_schema.model_fields_set:
            attributes[name] = getattr(field_schema, name)

    return FieldInfo(
        path=field_path,
        type=resolve_type(field_schema),
        required=required,
        **attributes,
    )
