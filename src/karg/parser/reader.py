"""CRD reader.

Splits multi-document YAML and keeps only v1 CustomResourceDefinitions.
"""

import logging
from pathlib import Path

import yaml

from .crd import CustomResourceDefinition

logger = logging.getLogger(__name__)

CRD_API_VERSION = "apiextensions.k8s.io/v1"
CRD_KIND = "CustomResourceDefinition"


def load_crds(file_path: Path) -> list[CustomResourceDefinition]:
    """Read *file_path* and return the CRDs it contains."""
    text = file_path.read_text(encoding="utf-8")
    crds = parse_content(text)
    logger.debug("Parsed %d CRDs from %s", len(crds), file_path)
    return crds


def parse_content(text: str) -> list[CustomResourceDefinition]:
    """Parse every YAML document in *text*, dropping anything that is not a CRD.

    Raises ``yaml.YAMLError`` on malformed YAML and
    ``pydantic.ValidationError`` on a CRD of unexpected shape.
    """
    crds = []
    for doc in yaml.safe_load_all(text):
        if not _is_crd(doc):
            continue
        crds.append(CustomResourceDefinition.model_validate(doc))
    return crds


def _is_crd(doc: object) -> bool:
    return (
        isinstance(doc, dict)
        and doc.get("apiVersion") == CRD_API_VERSION
        and doc.get("kind") == CRD_KIND
    )
