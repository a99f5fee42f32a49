"""Unified data models for generated API documentation.

The schema walker produces ``FieldInfo`` rows, the converter normalizes them
into ``FieldDocumentation`` records and assembles one ``APIDocumentation``
per CRD. The Markdown writer only ever reads these models.
"""

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel

from .crd import ValidationRule


class FieldInfo(BaseModel):
    """A single schema field found while flattening, addressed by dotted path.

    Optional attributes are only set when the schema node defines them, so
    ``model_fields_set`` tells which ones were present.
    """

    path: str  # spec.storage.size
    type: str  # string / integer[] / string | integer / any
    required: bool
    description: str | None = None
    validation: list[ValidationRule] | None = None
    example: Any = None
    enum: list[Any] | None = None
    format: str | None = None
    pattern: str | None = None
    minimum: int | float | None = None
    maximum: int | float | None = None
    min_length: int | None = None
    max_length: int | None = None
    min_items: int | None = None
    max_items: int | None = None
    unique_items: bool | None = None
    default: Any = None
    nullable: bool | None = None


class FieldDocumentation(BaseModel):
    """Documentation record for one field of a resource."""

    field_path: str
    type: str
    required: bool
    validation_rules: list[ValidationRule] = []
    examples: list[Any] = []
    description: str | None = None
    enum: list[Any] | None = None
    format: str | None = None
    pattern: str | None = None
    minimum: int | float | None = None
    maximum: int | float | None = None
    min_length: int | None = None
    max_length: int | None = None
    min_items: int | None = None
    max_items: int | None = None
    unique_items: bool | None = None
    default: Any = None
    nullable: bool | None = None
    immutable: str | None = None  # raw CEL expression, e.g. "self == oldSelf"

    @property
    def has_default(self) -> bool:
        return "default" in self.model_fields_set


class APIMetadata(BaseModel):
    plural: str
    singular: str | None = None
    short_names: list[str] | None = None


class APIDocumentation(BaseModel):
    """Documentation for a single custom resource kind."""

    title: str
    kind: str
    group: str
    version: str  # name of the storage version
    scope: Literal["Namespaced", "Cluster"]
    description: str | None = None  # Markdown authored in the CRD
    spec_fields: list[FieldDocumentation] = []
    status_fields: list[FieldDocumentation] = []
    metadata: APIMetadata | None = None


class DocumentModel(BaseModel):
    """All API documentation produced from one set of input files."""

    api_docs: list[APIDocumentation]
    generated_at: datetime
    source_files: list[str] = []
