"""Persistence for user configuration: the mapping schema and the customer directory.

Each is one JSON file under ``DATA_DIR``, read at startup and rewritten in
full on every save:

* ``mapping_schema.json``: list of ``{id, header, source, value}``
* ``customer_directory.json``: list of ``{customerName, customerCode}``
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import TYPE_CHECKING, Any

from invoice_automator.config import DATA_DIR, setup_logging
from invoice_automator.models import CustomerMasterEntry, MappingField
from invoice_automator.writer.mapping import default_mapping

if TYPE_CHECKING:
    from collections.abc import Iterable

logger = setup_logging(__name__)

MAPPING_FILENAME = "mapping_schema.json"
DIRECTORY_FILENAME = "customer_directory.json"


def _load_list(filepath: Path) -> list[dict[str, Any]] | None:
    """Return the JSON list stored at ``filepath`` or ``None`` when absent or unreadable."""
    if not filepath.exists():
        return None
    try:
        with filepath.open(encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        logger.warning("Could not read %s: %s", filepath, e)
        return None
    if not isinstance(data, list):
        logger.warning("Ignoring %s: expected a JSON list", filepath)
        return None
    return data


def _save_list(filepath: Path, items: list[dict[str, Any]]) -> Path:
    filepath.parent.mkdir(parents=True, exist_ok=True)
    with filepath.open("w", encoding="utf-8") as f:
        json.dump(items, f, indent=2, ensure_ascii=False)
    logger.info("Saved %s entries to %s", len(items), filepath)
    return filepath


def load_mapping_schema(path: Path | None = None) -> list[MappingField]:
    """Load the saved mapping schema, or the default schema when none is saved.

    Parameters
    ----------
    path
        Custom file location; defaults to ``DATA_DIR/mapping_schema.json``.

    Returns
    -------
    list[MappingField]
        Columns in output order.
    """
    filepath = path if path is not None else DATA_DIR / MAPPING_FILENAME
    data = _load_list(filepath)
    if data is None:
        return default_mapping()
    try:
        return [MappingField.from_dict(item) for item in data]
    except (KeyError, TypeError, ValueError) as e:
        logger.warning("Invalid mapping schema in %s, using default: %s", filepath, e)
        return default_mapping()


def save_mapping_schema(schema: Iterable[MappingField], path: Path | None = None) -> Path:
    """Persist ``schema`` and return the file path."""
    filepath = path if path is not None else DATA_DIR / MAPPING_FILENAME
    return _save_list(filepath, [column.to_dict() for column in schema])


def load_customer_directory(path: Path | None = None) -> list[CustomerMasterEntry]:
    """Load the saved customer directory, or an empty one when none is saved."""
    filepath = path if path is not None else DATA_DIR / DIRECTORY_FILENAME
    data = _load_list(filepath)
    if data is None:
        return []
    return [CustomerMasterEntry.from_dict(item) for item in data if isinstance(item, dict)]


def save_customer_directory(directory: Iterable[CustomerMasterEntry], path: Path | None = None) -> Path:
    """Persist ``directory`` and return the file path."""
    filepath = path if path is not None else DATA_DIR / DIRECTORY_FILENAME
    return _save_list(filepath, [entry.to_dict() for entry in directory])
