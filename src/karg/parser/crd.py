"""Input data models for Kubernetes CustomResourceDefinition documents.

Only the parts of a CRD that feed the documentation pipeline are modelled.
YAML keys are camelCase and map onto snake_case attributes through aliases;
unknown keys are ignored.
"""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class ValidationRule(BaseModel):
    """A CEL rule from ``x-kubernetes-validations``."""

    rule: str
    message: str | None = None


class OpenAPISchema(BaseModel):
    """A node of the OpenAPI v3 schema tree embedded in a CRD version.

    ``default`` and ``example`` may legitimately be ``null``, so their
    presence is read from ``model_fields_set`` rather than from their value.
    """

    model_config = ConfigDict(populate_by_name=True)

    type: str | None = None
    description: str | None = None
    properties: dict[str, "OpenAPISchema"] | None = None
    required: list[str] = []
    items: "OpenAPISchema | None" = None
    enum: list[Any] | None = None
    format: str | None = None
    pattern: str | None = None
    minimum: int | float | None = None
    maximum: int | float | None = None
    min_length: int | None = Field(default=None, alias="minLength")
    max_length: int | None = Field(default=None, alias="maxLength")
    min_items: int | None = Field(default=None, alias="minItems")
    max_items: int | None = Field(default=None, alias="maxItems")
    unique_items: bool | None = Field(default=None, alias="uniqueItems")
    default: Any = None
    example: Any = None  # OpenAPI v3.0 only knows a single example
    nullable: bool | None = None
    one_of: list["OpenAPISchema"] | None = Field(default=None, alias="oneOf")
    any_of: list["OpenAPISchema"] | None = Field(default=None, alias="anyOf")
    all_of: list["OpenAPISchema"] | None = Field(default=None, alias="allOf")
    x_kubernetes_validations: list[ValidationRule] | None = Field(
        default=None, alias="x-kubernetes-validations"
    )


class CRDMetadata(BaseModel):
    name: str = ""


class CRDNames(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    kind: str
    plural: str
    singular: str | None = None
    short_names: list[str] | None = Field(default=None, alias="shortNames")


class CRDVersionSchema(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    open_api_v3_schema: OpenAPISchema = Field(alias="openAPIV3Schema")


class CRDVersion(BaseModel):
    """One entry of ``spec.versions``."""

    model_config = ConfigDict(populate_by_name=True)

    name: str
    storage: bool = False
    schema_: CRDVersionSchema | None = Field(default=None, alias="schema")


class CRDSpec(BaseModel):
    group: str
    names: CRDNames
    scope: Literal["Namespaced", "Cluster"]
    versions: list[CRDVersion]


class CustomResourceDefinition(BaseModel):
    """An ``apiextensions.k8s.io/v1`` CustomResourceDefinition."""

    model_config = ConfigDict(populate_by_name=True)

    api_version: str = Field(alias="apiVersion")
    kind: str
    metadata: CRDMetadata = CRDMetadata()
    spec: CRDSpec
