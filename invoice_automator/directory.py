"""Customer directory: customer-name to customer-code lookup with merge import.

The directory is a plain ordered list of :class:`CustomerMasterEntry`. Names
are matched case-insensitively after trimming, and the directory never holds
two entries for the same name: imports and manual additions update the
existing entry in place.

Import sources
--------------
A customer master is a spreadsheet (first sheet only) or CSV whose header row
contains a name column and a code column. Headers are matched fuzzily:
the first header containing ``"customer name"`` or ``"name"`` is the name
column, the first containing ``"customer code"`` or ``"code"`` is the code
column.
"""

from __future__ import annotations

import io
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any

import pandas as pd

from invoice_automator.config import setup_logging
from invoice_automator.errors import SchemaError
from invoice_automator.models import CustomerMasterEntry

if TYPE_CHECKING:
    from collections.abc import Iterable

logger = setup_logging(__name__)

__all__ = [
    "MergeResult",
    "add_customer",
    "find_customer_code",
    "import_customer_master",
    "merge_import",
    "read_customer_master",
    "remove_customer",
]

NAME_HEADER_KEYS = ("customer name", "name")
CODE_HEADER_KEYS = ("customer code", "code")


@dataclass
class MergeResult:
    """Outcome of merging imported entries into the directory."""

    merged: list[CustomerMasterEntry] = field(default_factory=list)
    added: int = 0
    updated: int = 0


def _normalize_name(name: str) -> str:
    return name.strip().lower()


def find_customer_code(directory: Iterable[CustomerMasterEntry], customer_name: str) -> str | None:
    """Return the directory code for ``customer_name`` or ``None`` when unknown."""
    key = _normalize_name(customer_name)
    if not key:
        return None
    for entry in directory:
        if entry.key == key:
            return entry.customer_code
    return None


def merge_import(
    existing: Iterable[CustomerMasterEntry],
    imported: Iterable[CustomerMasterEntry],
) -> MergeResult:
    """Merge imported name/code pairs into an existing directory.

    Parameters
    ----------
    existing
        Current directory; not mutated.
    imported
        Entries read from an import source, in source order.

    Returns
    -------
    MergeResult
        New directory plus counts. A known name with a different code is
        overwritten in place (``updated``); a known name with the same code is
        left alone; an unknown name is appended (``added``). Untouched entries
        keep their order.
    """
    merged = [CustomerMasterEntry(e.customer_name, e.customer_code) for e in existing]
    index = {}
    for position, entry in enumerate(merged):
        index.setdefault(entry.key, position)

    result = MergeResult(merged=merged)
    for entry in imported:
        position = index.get(entry.key)
        if position is None:
            index[entry.key] = len(merged)
            merged.append(CustomerMasterEntry(entry.customer_name, entry.customer_code))
            result.added += 1
        elif merged[position].customer_code != entry.customer_code:
            merged[position].customer_code = entry.customer_code
            result.updated += 1

    logger.info("Customer import merged: %s added, %s updated", result.added, result.updated)
    return result


def add_customer(
    directory: Iterable[CustomerMasterEntry],
    customer_name: str,
    customer_code: str,
) -> list[CustomerMasterEntry]:
    """Return the directory with one manually entered customer added or updated.

    Raises
    ------
    ValueError
        If the name or the code is blank.
    """
    name = customer_name.strip()
    code = customer_code.strip()
    if not name or not code:
        msg = "Customer name and customer code are both required"
        raise ValueError(msg)
    return merge_import(directory, [CustomerMasterEntry(name, code)]).merged


def remove_customer(directory: Iterable[CustomerMasterEntry], customer_name: str) -> list[CustomerMasterEntry]:
    """Return the directory without the entry matching ``customer_name``."""
    key = _normalize_name(customer_name)
    return [entry for entry in directory if entry.key != key]


def _cell_text(value: Any) -> str:
    if value is None or (not isinstance(value, str) and pd.isna(value)):
        return ""
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return str(value).strip()


def _find_column(headers: list[str], keys: tuple[str, ...]) -> int:
    for idx, header in enumerate(headers):
        if any(key in header for key in keys):
            return idx
    return -1


def _read_table(source: bytes | Path | str, filename: str | None) -> pd.DataFrame:
    name = filename or (str(source) if isinstance(source, Path | str) else "")
    data = io.BytesIO(source) if isinstance(source, bytes) else source
    if name.lower().endswith(".csv"):
        # Rows wider than the header row are skipped like incomplete ones
        return pd.read_csv(
            data,
            header=None,
            dtype=str,
            keep_default_na=False,
            engine="python",
            on_bad_lines="skip",
        )
    return pd.read_excel(data, sheet_name=0, header=None, dtype=object)


def read_customer_master(
    source: bytes | Path | str,
    filename: str | None = None,
) -> list[CustomerMasterEntry]:
    """Read name/code pairs from the first sheet of a customer master file.

    Parameters
    ----------
    source
        Raw file bytes or a path to the file.
    filename
        Original file name; a ``.csv`` suffix selects the CSV reader. Paths
        use their own suffix when omitted.

    Returns
    -------
    list[CustomerMasterEntry]
        Entries in sheet order. Rows with an empty name or code are skipped.

    Raises
    ------
    SchemaError
        If the file cannot be read, has fewer than two rows, or lacks a
        recognisable name or code column.
    """
    try:
        table = _read_table(source, filename)
    except Exception as e:
        msg = f"Could not read customer master file: {e}"
        raise SchemaError(msg) from e

    if len(table.index) < 2:
        msg = "Customer master file appears to be empty or missing headers."
        raise SchemaError(msg)

    headers = [_cell_text(h).lower() for h in table.iloc[0].tolist()]
    name_idx = _find_column(headers, NAME_HEADER_KEYS)
    code_idx = _find_column(headers, CODE_HEADER_KEYS)
    if name_idx == -1 or code_idx == -1:
        msg = "Could not find 'Customer Name' and 'Customer Code' columns in the customer master file."
        raise SchemaError(msg)

    entries: list[CustomerMasterEntry] = []
    for row in table.iloc[1:].itertuples(index=False):
        name = _cell_text(row[name_idx])
        code = _cell_text(row[code_idx])
        if name and code:
            entries.append(CustomerMasterEntry(name, code))

    logger.info("Read %s customers from master file", len(entries))
    return entries


def import_customer_master(
    existing: Iterable[CustomerMasterEntry],
    source: bytes | Path | str,
    filename: str | None = None,
) -> MergeResult:
    """Read a customer master file and merge it into ``existing``.

    A :class:`SchemaError` propagates before any merge happens, so the
    caller's directory is left as it was.
    """
    imported = read_customer_master(source, filename)
    return merge_import(existing, imported)
