"""CRD to documentation converter.

Normalizes flattened schema fields and assembles one APIDocumentation
record per CRD.
"""

import logging
from datetime import datetime, timezone

from .base import APIDocumentation, APIMetadata, DocumentModel, FieldDocumentation, FieldInfo
from .crd import CustomResourceDefinition, OpenAPISchema, ValidationRule
from .schema import flatten_schema

logger = logging.getLogger(__name__)

IMMUTABLE_RULES = ("self == oldSelf", "oldSelf == self")

OPTIONAL_ATTRIBUTES = (
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
    "default",
    "nullable",
)


class NoStorageVersionError(ValueError):
    """Raised when a CRD has no version flagged ``storage: true``."""

    def __init__(self, crd_name: str):
        super().__init__(f"No storage version found for CRD {crd_name}")
        self.crd_name = crd_name


def convert_crds_to_documents(
    crds: list[CustomResourceDefinition], source_files: list[str]
) -> DocumentModel:
    """Convert *crds* in order; the first failing CRD aborts the batch."""
    api_docs = [build_api_documentation(crd) for crd in crds]
    return DocumentModel(
        api_docs=api_docs,
        generated_at=datetime.now(timezone.utc),
        source_files=source_files,
    )


def build_api_documentation(crd: CustomResourceDefinition) -> APIDocumentation:
    """Build the documentation record of a single CRD from its storage version."""
    storage_version = next((v for v in crd.spec.versions if v.storage), None)
    if storage_version is None:
        raise NoStorageVersionError(crd.metadata.name)

    schema = storage_version.schema_.open_api_v3_schema if storage_version.schema_ else OpenAPISchema()
    properties = schema.properties or {}
    spec_fields = _document_fields(properties.get("spec"), "spec")
    status_fields = _document_fields(properties.get("status"), "status")

    names = crd.spec.names
    metadata = APIMetadata(plural=names.plural, singular=names.singular)
    if names.short_names:
        metadata.short_names = names.short_names

    api_doc = APIDocumentation(
        title=names.kind,
        kind=names.kind,
        group=crd.spec.group,
        version=storage_version.name,
        scope=crd.spec.scope,
        spec_fields=spec_fields,
        status_fields=status_fields,
        metadata=metadata,
    )
    if schema.description:
        api_doc.description = schema.description

    logger.debug(
        "Converted %s (%s/%s): %d spec fields, %d status fields",
        api_doc.kind,
        api_doc.group,
        api_doc.version,
        len(spec_fields),
        len(status_fields),
    )
    return api_doc


def normalize_field(field_info: FieldInfo) -> FieldDocumentation:
    """Map a flattened field onto its documentation record.

    The immutability rule, if any, moves out of the validation rules into
    ``immutable``. Attributes the field does not define stay unset.
    """
    attributes = {
        name: getattr(field_info, name)
        for name in OPTIONAL_ATTRIBUTES
        if name in field_info.model_fields_set
    }
    examples = [field_info.example] if "example" in field_info.model_fields_set else []
    validation_rules = list(field_info.validation or [])

    index = _find_immutable_rule(validation_rules)
    if index is not None:
        attributes["immutable"] = validation_rules.pop(index).rule

    return FieldDocumentation(
        field_path=field_info.path,
        type=field_info.type,
        required=field_info.required,
        validation_rules=validation_rules,
        examples=examples,
        **attributes,
    )


def _document_fields(schema: OpenAPISchema | None, base_path: str) -> list[FieldDocumentation]:
    if schema is None:
        return []
    return [normalize_field(info) for info in flatten_schema(schema, base_path)]


def _find_immutable_rule(rules: list[ValidationRule]) -> int | None:
    for index, rule in enumerate(rules):
        if rule.rule.strip() in IMMUTABLE_RULES:
            return index
    return None
