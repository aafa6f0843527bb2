"""Mapping schema: user-editable output columns and the row flattener.

A schema is an ordered list of :class:`MappingField`. Each column takes its
cell from the invoice, from the current line item, or from a literal string.
Flattening produces one row per line item, repeating the invoice-level cells.

Default schema
--------------
| Header        | Source  | Value        |
|---------------|---------|--------------|
| Order no      | invoice | referenceNo  |
| Code          | item    | sku          |
| Customer Code | invoice | customerCode |
| Quantity      | static  | 0            |
| Export Price  | static  | 1            |
| Currency code | static  | LKR          |
| Site code     | static  |              |
| Location from | static  |              |
| Location to   | static  |              |
| Doc.ref       | static  |              |
| Lot no.       | item    | batchId      |
| Quantity2     | item    | quantity     |
"""

from __future__ import annotations

import uuid
from dataclasses import replace
from operator import attrgetter
from typing import TYPE_CHECKING, Any

from invoice_automator.models import (
    InvoiceField,
    ItemField,
    MappingField,
    MappingSource,
)

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Sequence

    from invoice_automator.models import InvoiceData, LineItem

__all__ = [
    "DEFAULT_MAPPING",
    "add_column",
    "default_mapping",
    "flatten",
    "move_column",
    "remove_column",
    "resolve",
    "resolve_cell",
    "schema_headers",
    "update_column",
]

DEFAULT_MAPPING: tuple[MappingField, ...] = (
    MappingField("1", "Order no", MappingSource.INVOICE, InvoiceField.REFERENCE_NO),
    MappingField("2", "Code", MappingSource.ITEM, ItemField.SKU),
    MappingField("3", "Customer Code", MappingSource.INVOICE, InvoiceField.CUSTOMER_CODE),
    MappingField("4", "Quantity", MappingSource.STATIC, "0"),
    MappingField("5", "Export Price", MappingSource.STATIC, "1"),
    MappingField("6", "Currency code", MappingSource.STATIC, "LKR"),
    MappingField("7", "Site code", MappingSource.STATIC, ""),
    MappingField("8", "Location from", MappingSource.STATIC, ""),
    MappingField("9", "Location to", MappingSource.STATIC, ""),
    MappingField("10", "Doc.ref", MappingSource.STATIC, ""),
    MappingField("11", "Lot no.", MappingSource.ITEM, ItemField.BATCH_ID),
    MappingField("12", "Quantity2", MappingSource.ITEM, ItemField.QUANTITY),
)

_INVOICE_ACCESSORS: dict[InvoiceField, Callable[[InvoiceData], Any]] = {
    InvoiceField.REFERENCE_NO: attrgetter("reference_no"),
    InvoiceField.CUSTOMER_NAME: attrgetter("customer_name"),
    InvoiceField.CUSTOMER_CODE: attrgetter("customer_code"),
    InvoiceField.DATE: attrgetter("date"),
}

_ITEM_ACCESSORS: dict[ItemField, Callable[[LineItem], Any]] = {
    ItemField.SKU: attrgetter("sku"),
    ItemField.DESCRIPTION: attrgetter("description"),
    ItemField.BATCH_ID: attrgetter("batch_id"),
    ItemField.QUANTITY: attrgetter("quantity"),
    ItemField.UNIT_PRICE: attrgetter("unit_price"),
    ItemField.TOTAL: attrgetter("total"),
}


def default_mapping() -> list[MappingField]:
    """Return a fresh, mutable copy of the default schema."""
    return [replace(f) for f in DEFAULT_MAPPING]


def resolve(
    field: InvoiceField | ItemField | str,
    invoice: InvoiceData,
    item: LineItem | None = None,
) -> Any:
    """Resolve one addressable field to its cell value.

    Parameters
    ----------
    field
        An :class:`InvoiceField`, an :class:`ItemField`, or any other string,
        which is returned as a literal.
    invoice
        Invoice providing invoice-level values.
    item
        Line item providing item-level values; item fields resolve to ``""``
        without one.

    Returns
    -------
    Any
        The field value, ``""`` when it is unset.
    """
    if isinstance(field, InvoiceField):
        value = _INVOICE_ACCESSORS[field](invoice)
    elif isinstance(field, ItemField):
        value = _ITEM_ACCESSORS[field](item) if item is not None else None
    else:
        return field
    return "" if value is None else value


def _lookup_field(source: MappingSource, key: str) -> InvoiceField | ItemField | None:
    enum_type = InvoiceField if source == MappingSource.INVOICE else ItemField
    try:
        return enum_type(key)
    except ValueError:
        return None


def resolve_cell(column: MappingField, invoice: InvoiceData, item: LineItem | None) -> Any:
    """Resolve the cell for ``column``; unknown invoice/item keys give ``""``."""
    if column.source == MappingSource.STATIC:
        return column.value
    field = _lookup_field(column.source, column.value)
    if field is None:
        return ""
    return resolve(field, invoice, item)


def flatten(invoices: Iterable[InvoiceData], schema: Sequence[MappingField]) -> list[dict[str, Any]]:
    """Expand invoices into one row per line item following ``schema``.

    Columns are resolved in schema order; when two columns share a header the
    later one wins. Invoices without line items contribute no rows.
    """
    rows: list[dict[str, Any]] = []
    for invoice in invoices:
        for item in invoice.line_items:
            row: dict[str, Any] = {}
            for column in schema:
                row[column.header] = resolve_cell(column, invoice, item)
            rows.append(row)
    return rows


def schema_headers(schema: Iterable[MappingField]) -> list[str]:
    """Return the distinct headers of ``schema`` in first-appearance order."""
    return list(dict.fromkeys(column.header for column in schema))


# =============================================================================
# Schema editing
# =============================================================================


def _new_field_id() -> str:
    return uuid.uuid4().hex[:9]


def add_column(
    schema: Sequence[MappingField],
    header: str = "New Column",
    source: MappingSource = MappingSource.STATIC,
    value: str = "",
) -> list[MappingField]:
    """Return ``schema`` with a new column appended under a fresh id."""
    return [*schema, MappingField(_new_field_id(), header, MappingSource(source), value)]


def remove_column(schema: Sequence[MappingField], field_id: str) -> list[MappingField]:
    """Return ``schema`` without the column ``field_id``."""
    return [column for column in schema if column.id != field_id]


def update_column(schema: Sequence[MappingField], field_id: str, **changes: Any) -> list[MappingField]:
    """Return ``schema`` with ``changes`` applied to the column ``field_id``.

    Raises
    ------
    KeyError
        If no column has ``field_id``.
    """
    if "source" in changes:
        changes["source"] = MappingSource(changes["source"])
    if not any(column.id == field_id for column in schema):
        raise KeyError(field_id)
    return [replace(column, **changes) if column.id == field_id else column for column in schema]


def move_column(schema: Sequence[MappingField], field_id: str, new_index: int) -> list[MappingField]:
    """Return ``schema`` with the column ``field_id`` moved to ``new_index``.

    Raises
    ------
    KeyError
        If no column has ``field_id``.
    """
    columns = list(schema)
    for position, column in enumerate(columns):
        if column.id == field_id:
            columns.insert(max(0, min(new_index, len(columns) - 1)), columns.pop(position))
            return columns
    raise KeyError(field_id)
