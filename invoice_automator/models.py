"""Typed containers for invoices, customer directory entries, and mapping columns.

This module contains pure data structures with no business logic dependencies,
so every other module can import it without circular imports.

Python attributes are snake_case. The keys used in persisted JSON, in mapping
schemas, and in extraction responses are the camelCase names carried by
:class:`InvoiceField` and :class:`ItemField`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

__all__ = [
    "CustomerMasterEntry",
    "CustomerProfile",
    "FileProcessingStatus",
    "InvoiceData",
    "InvoiceField",
    "ItemField",
    "LineItem",
    "MappingField",
    "MappingSource",
    "ProcessStatus",
]


class CustomerProfile(StrEnum):
    """Customer invoice layouts with their own extraction and cleanup rules.

    ``SLIM_HEALTHCARE`` is the default layout. ``CLINIQON_BIOTECH`` transmits
    SKU and lot as one ``CODE*LOT`` value and resolves customer codes through
    the customer directory.
    """

    SLIM_HEALTHCARE = "SLIM_HEALTHCARE"
    CLINIQON_BIOTECH = "CLINIQON_BIOTECH"

    @property
    def label(self) -> str:
        """Human-readable customer name."""
        return self.value.replace("_", " ").title()


DEFAULT_PROFILE = CustomerProfile.SLIM_HEALTHCARE


class MappingSource(StrEnum):
    """Where a mapping column takes its value from."""

    INVOICE = "invoice"
    ITEM = "item"
    STATIC = "static"


class InvoiceField(StrEnum):
    """Invoice-level keys addressable from a mapping column."""

    REFERENCE_NO = "referenceNo"
    CUSTOMER_NAME = "customerName"
    CUSTOMER_CODE = "customerCode"
    DATE = "date"


class ItemField(StrEnum):
    """Line-item keys addressable from a mapping column."""

    SKU = "sku"
    DESCRIPTION = "description"
    BATCH_ID = "batchId"
    QUANTITY = "quantity"
    UNIT_PRICE = "unitPrice"
    TOTAL = "total"


class ProcessStatus(StrEnum):
    """Lifecycle of one submitted document."""

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    ERROR = "error"


@dataclass
class LineItem:
    """One purchasable unit on an invoice."""

    sku: str = ""
    description: str = ""
    batch_id: str = ""
    quantity: float = 0
    unit_price: float = 0
    total: float = 0

    def to_dict(self) -> dict[str, Any]:
        """Serialize with camelCase keys."""
        return {
            "sku": self.sku,
            "description": self.description,
            "batchId": self.batch_id,
            "quantity": self.quantity,
            "unitPrice": self.unit_price,
            "total": self.total,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> LineItem:
        """Rebuild a line item saved by :meth:`to_dict`."""
        return cls(
            sku=str(data.get(ItemField.SKU) or ""),
            description=str(data.get(ItemField.DESCRIPTION) or ""),
            batch_id=str(data.get(ItemField.BATCH_ID) or ""),
            quantity=data.get(ItemField.QUANTITY) or 0,
            unit_price=data.get(ItemField.UNIT_PRICE) or 0,
            total=data.get(ItemField.TOTAL) or 0,
        )


@dataclass
class InvoiceData:
    """One document's extracted and normalized content.

    Attributes
    ----------
    reference_no : str
        Invoice number as printed on the document.
    customer_name : str
        Billed customer as printed on the document.
    customer_code : str or None
        Customer code from the document or from the customer directory.
    date : str
        ISO-like invoice date.
    line_items : list[LineItem]
        Items in document row order.
    """

    reference_no: str = ""
    customer_name: str = ""
    customer_code: str | None = None
    date: str = ""
    line_items: list[LineItem] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Serialize with camelCase keys."""
        return {
            "referenceNo": self.reference_no,
            "customerName": self.customer_name,
            "customerCode": self.customer_code,
            "date": self.date,
            "lineItems": [item.to_dict() for item in self.line_items],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> InvoiceData:
        """Rebuild an invoice saved by :meth:`to_dict` (no sanitization applied)."""
        code = data.get(InvoiceField.CUSTOMER_CODE)
        return cls(
            reference_no=str(data.get(InvoiceField.REFERENCE_NO) or ""),
            customer_name=str(data.get(InvoiceField.CUSTOMER_NAME) or ""),
            customer_code=str(code) if code is not None else None,
            date=str(data.get(InvoiceField.DATE) or ""),
            line_items=[LineItem.from_dict(item) for item in data.get("lineItems") or []],
        )


@dataclass
class CustomerMasterEntry:
    """One customer-name to customer-code mapping."""

    customer_name: str
    customer_code: str

    @property
    def key(self) -> str:
        """Case-insensitive, trimmed lookup key."""
        return self.customer_name.strip().lower()

    def to_dict(self) -> dict[str, str]:
        return {"customerName": self.customer_name, "customerCode": self.customer_code}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CustomerMasterEntry:
        return cls(
            customer_name=str(data.get("customerName") or ""),
            customer_code=str(data.get("customerCode") or ""),
        )


@dataclass
class MappingField:
    """One output-column definition.

    ``value`` names an :class:`InvoiceField` or :class:`ItemField` key when
    ``source`` is ``invoice`` or ``item``; for ``static`` it is the literal
    cell text.
    """

    id: str
    header: str
    source: MappingSource
    value: str

    def to_dict(self) -> dict[str, str]:
        return {
            "id": self.id,
            "header": self.header,
            "source": str(self.source),
            "value": str(self.value),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> MappingField:
        """Rebuild a column definition; an unknown source raises ``ValueError``."""
        return cls(
            id=str(data["id"]),
            header=str(data.get("header", "")),
            source=MappingSource(data.get("source", MappingSource.STATIC)),
            value=str(data.get("value", "")),
        )


@dataclass
class FileProcessingStatus:
    """Outcome of one submitted document."""

    id: str
    name: str
    status: ProcessStatus = ProcessStatus.PENDING
    message: str | None = None
    result: InvoiceData | None = None
