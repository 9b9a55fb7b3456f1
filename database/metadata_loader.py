# database/metadata_loader.py
"""
Loads semantic metadata bundles from YAML or JSON files.

A bundle has four optional top-level lists: tables, relationships,
concepts and metrics, each entry in the registration shape used by
database/northwind_metadata.py.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Union

import yaml

from tools.error_manager import InvalidRequestError, NotFoundError

logger = logging.getLogger(__name__)

METADATA_SECTIONS = ("tables", "relationships", "concepts", "metrics")


def load_metadata_file(path: Union[str, Path]) -> Dict[str, List[Any]]:
    """
    Read a metadata bundle from disk

    Args:
        path: .yaml, .yml or .json file

    Returns:
        Dict with all four sections present (missing ones are empty lists)
    """
    path = Path(path)
    if not path.exists():
        raise NotFoundError("metadata file", str(path))

    suffix = path.suffix.lower()
    with path.open("r", encoding="utf-8") as f:
        if suffix in (".yaml", ".yml"):
            raw = yaml.safe_load(f)
        elif suffix == ".json":
            raw = json.load(f)
        else:
            raise InvalidRequestError(
                f"Unsupported metadata file type '{suffix}' (expected .yaml, .yml or .json)",
                context={"path": str(path)}
            )

    raw = raw or {}
    if not isinstance(raw, dict):
        raise InvalidRequestError(f"Metadata file {path} must contain a mapping at the top level")

    metadata = {section: list(raw.get(section) or []) for section in METADATA_SECTIONS}
    logger.info(
        f"Loaded metadata from {path}: "
        + ", ".join(f"{len(metadata[section])} {section}" for section in METADATA_SECTIONS)
    )
    return metadata
