"""Quick reference tables: filtered, depth-limited summaries of a resource's fields."""

from pydantic import BaseModel

from karg.parser.base import APIDocumentation, FieldDocumentation


class QuickReferenceOptions(BaseModel):
    include_status_fields: bool = True
    only_required: bool = False
    max_depth: int | None = 2  # 2 keeps spec.field but drops spec.field.subfield; 0/None disables


class QuickReferenceField(BaseModel):
    path: str
    type: str
    required: bool
    description: str = ""


class QuickReferenceTable(BaseModel):
    fields: list[QuickReferenceField]
    has_omitted_fields_due_to_depth: bool = False


def get_quick_reference_table(
    api_doc: APIDocumentation, options: QuickReferenceOptions | None = None
) -> QuickReferenceTable:
    """Summarize the fields of *api_doc*, spec fields first, then status fields."""
    options = options or QuickReferenceOptions()
    fields: list[QuickReferenceField] = []
    omitted = False

    field_docs: list[FieldDocumentation] = list(api_doc.spec_fields)
    if options.include_status_fields:
        field_docs.extend(api_doc.status_fields)

    for field in field_docs:
        if options.only_required and not field.required:
            continue

        depth = len(field.field_path.split("."))
        if options.max_depth and depth > options.max_depth:
            omitted = True
            continue

        fields.append(
            QuickReferenceField(
                path=field.field_path,
                type=field.type,
                required=field.required,
                description=field.description or "",
            )
        )

    return QuickReferenceTable(fields=fields, has_omitted_fields_due_to_depth=omitted)


def get_required_fields_table(api_doc: APIDocumentation) -> QuickReferenceTable:
    """Required spec fields only."""
    return get_quick_reference_table(
        api_doc, QuickReferenceOptions(only_required=True, include_status_fields=False)
    )


def get_top_level_fields_table(api_doc: APIDocumentation) -> QuickReferenceTable:
    """Fields of depth 1 (``spec``/``status`` level) only."""
    return get_quick_reference_table(api_doc, QuickReferenceOptions(max_depth=1))
