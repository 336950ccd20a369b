"""Reading form and record documents from JSON or YAML files."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Iterator, Mapping

import yaml

LOGGER = logging.getLogger("carto_sync.documents")

YAML_SUFFIXES = {".yaml", ".yml"}


class DocumentError(Exception):
    """Raised when an input document cannot be read or has the wrong shape."""


def load_document(path: Path) -> Any:
    try:
        with path.open("r", encoding="utf-8") as fh:
            if path.suffix.lower() in YAML_SUFFIXES:
                return yaml.safe_load(fh)
            return json.load(fh)
    except (OSError, ValueError, yaml.YAMLError) as exc:
        raise DocumentError(f"Unable to read {path}: {exc}") from exc


def iter_record_documents(data: Any) -> Iterator[Mapping[str, Any]]:
    """Yield record mappings from a list, a ``{"records": [...]}`` page or a single record."""
    if isinstance(data, Mapping):
        if isinstance(data.get("records"), list):
            data = data["records"]
        elif isinstance(data.get("record"), Mapping) or "id" in data:
            yield data
            return
        else:
            raise DocumentError("Records document has no 'records' list")

    if not isinstance(data, list):
        raise DocumentError(f"Records document has unexpected type {type(data).__name__}")

    for position, entry in enumerate(data):
        if not isinstance(entry, Mapping):
            LOGGER.warning("Skipping record entry %s: not an object", position)
            continue
        yield entry
