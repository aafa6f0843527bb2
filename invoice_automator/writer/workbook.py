"""Spreadsheet serialization for flattened invoice rows.

Each workbook has one sheet with a single header row (the schema headers in
schema order) followed by the data rows in flatten order.
"""

from __future__ import annotations

import io
from typing import TYPE_CHECKING, Any

import pandas as pd

from invoice_automator.config import get_export_config, setup_logging
from invoice_automator.writer.mapping import flatten, schema_headers

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from invoice_automator.models import InvoiceData, MappingField

logger = setup_logging(__name__)

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
DEFAULT_SHEET_NAME = "Sheet1"


def rows_to_xlsx(
    rows: Sequence[dict[str, Any]],
    headers: Sequence[str],
    sheet_name: str | None = None,
) -> bytes:
    """Serialize rows to an ``.xlsx`` byte stream.

    Parameters
    ----------
    rows
        Mappings from header to cell value.
    headers
        Column order; written even when ``rows`` is empty.
    sheet_name
        Worksheet title; defaults to the configured export sheet name.

    Returns
    -------
    bytes
        Workbook content.
    """
    name = sheet_name or get_export_config().get("sheet_name", DEFAULT_SHEET_NAME)
    # Limit sheet name to 31 characters
    display_name = name[:31]

    df = pd.DataFrame(list(rows), columns=list(headers))

    buffer = io.BytesIO()
    with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
        df.to_excel(writer, sheet_name=display_name, index=False)

    logger.debug("Serialized %s rows x %s columns to sheet %s", len(df), len(df.columns), display_name)
    return buffer.getvalue()


def invoices_to_xlsx(invoices: Iterable[InvoiceData], schema: Sequence[MappingField]) -> bytes:
    """Flatten ``invoices`` through ``schema`` and serialize the rows."""
    return rows_to_xlsx(flatten(invoices, schema), schema_headers(schema))
