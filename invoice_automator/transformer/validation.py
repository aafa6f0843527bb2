"""Batch-id display check for reviewed invoices.

Batch ids are expected to be alphanumeric. A failing id is reported as a
:class:`ValidationWarning` for display next to the line item; it never changes
the invoice and never blocks export.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from invoice_automator.models import InvoiceData

__all__ = [
    "ValidationWarning",
    "check_batch_ids",
    "is_valid_batch_id",
]

_BATCH_ID_RE = re.compile(r"^[a-z0-9]+$", re.IGNORECASE)
MISSING_BATCH_LABEL = "MISSING"


@dataclass(frozen=True)
class ValidationWarning:
    """Non-fatal issue on one line item."""

    line_index: int
    sku: str
    batch_id: str
    message: str

    @property
    def display_value(self) -> str:
        """Batch id as shown in review output, ``MISSING`` when empty."""
        return self.batch_id or MISSING_BATCH_LABEL


def is_valid_batch_id(batch_id: str) -> bool:
    """Return ``True`` when ``batch_id`` is non-empty and strictly alphanumeric."""
    return bool(batch_id) and _BATCH_ID_RE.match(batch_id) is not None


def check_batch_ids(invoice: InvoiceData) -> list[ValidationWarning]:
    """List the line items of ``invoice`` whose batch id is missing or not alphanumeric."""
    warnings: list[ValidationWarning] = []
    for index, item in enumerate(invoice.line_items):
        if is_valid_batch_id(item.batch_id):
            continue
        message = "Batch ID is missing" if not item.batch_id else "Invalid Batch ID: Must be alphanumeric"
        warnings.append(ValidationWarning(index, item.sku, item.batch_id, message))
    return warnings
