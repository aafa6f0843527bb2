"""Exception types raised by the extraction and import boundaries."""

from __future__ import annotations

__all__ = [
    "ExtractionError",
    "InvoiceAutomatorError",
    "SchemaError",
]


class InvoiceAutomatorError(Exception):
    """Base class for invoice-automator failures."""


class ExtractionError(InvoiceAutomatorError):
    """The extraction service failed or returned unusable data for one document."""


class SchemaError(InvoiceAutomatorError):
    """A customer-master import source is unreadable or lacks the name/code columns."""
