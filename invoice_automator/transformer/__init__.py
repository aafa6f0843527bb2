"""Transformer module: cleanup, quantity repair, and normalization of extraction records.

Submodules
----------
sanitizer
    Per-customer SKU/batch cleanup (suffix stripping, ``CODE*LOT`` split).
reconciliation
    Quantity repair when quantity x unit price misses the line total.
normalizer
    Orchestrates sanitizer, reconciliation and the customer directory into
    one :class:`~invoice_automator.models.InvoiceData`.
validation
    Batch-id display check producing non-fatal warnings.
"""

from invoice_automator.transformer.normalizer import normalize, normalize_line_item
from invoice_automator.transformer.reconciliation import (
    QUANTITY_PRECISION,
    RECONCILE_TOLERANCE,
    reconcile,
)
from invoice_automator.transformer.sanitizer import SanitizedFields, sanitize
from invoice_automator.transformer.validation import (
    ValidationWarning,
    check_batch_ids,
    is_valid_batch_id,
)

__all__ = [
    "QUANTITY_PRECISION",
    "RECONCILE_TOLERANCE",
    "SanitizedFields",
    "ValidationWarning",
    "check_batch_ids",
    "is_valid_batch_id",
    "normalize",
    "normalize_line_item",
    "reconcile",
    "sanitize",
]
