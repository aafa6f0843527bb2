"""Pytest configuration for invoice_automator tests.

This module provides:
- Sample raw extraction records for both customer profiles
- Normalized invoice and customer directory fixtures
- Invoice factory and workbook/zip readers used by export tests
"""

from __future__ import annotations

import io
import zipfile
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pandas as pd
import pytest
from dotenv import load_dotenv

from invoice_automator.models import CustomerMasterEntry, InvoiceData, LineItem

# Load environment variables from project .env so API-key dependent tests can run
PROJECT_ROOT = Path(__file__).parent.parent
load_dotenv(PROJECT_ROOT / ".env")


@pytest.fixture
def raw_slim_record() -> dict[str, Any]:
    """Extraction record in the Slim Healthcare layout."""
    return {
        "referenceNo": "INV-1001",
        "customerName": "Acme Pharmacy",
        "customerCode": "C-77",
        "date": "2024-05-02",
        "lineItems": [
            {"sku": "A1-X", "description": "Syringe 5ml", "batchId": "b 1", "quantity": 3, "unitPrice": 10, "total": 30},
            {"sku": "THC010 - SPECIAL", "description": "Gauze", "batchId": "LOT22", "quantity": 5, "unitPrice": 10, "total": 1000},
        ],
    }


@pytest.fixture
def raw_cliniqon_record() -> dict[str, Any]:
    """Extraction record in the Cliniqon Biotech layout with combined STOCK codes."""
    return {
        "referenceNo": "CB/2024/18",
        "customerName": "  ACME pharmacy ",
        "customerCode": "FROM-DOC",
        "date": "2024-06-11",
        "lineItems": [
            {"sku": "ABC123*LOT9", "description": "Reagent", "batchId": "", "quantity": "2", "unitPrice": "1,250.00", "total": "2,500.00"},
        ],
    }


@pytest.fixture
def directory() -> list[CustomerMasterEntry]:
    """Customer directory with two entries."""
    return [
        CustomerMasterEntry("Acme Pharmacy", "C1"),
        CustomerMasterEntry("Beta Clinic", "B9"),
    ]


def _make_invoice(reference_no: str = "INV-1", items: int = 1, customer_code: str | None = "C1") -> InvoiceData:
    return InvoiceData(
        reference_no=reference_no,
        customer_name="Acme Pharmacy",
        customer_code=customer_code,
        date="2024-05-02",
        line_items=[
            LineItem(
                sku=f"SKU{n}",
                description=f"Item {n}",
                batch_id=f"LOT{n}",
                quantity=n,
                unit_price=10,
                total=10 * n,
            )
            for n in range(1, items + 1)
        ],
    )


@pytest.fixture
def make_invoice() -> Callable[..., InvoiceData]:
    """Factory for normalized invoices with ``items`` numbered line items."""
    return _make_invoice


@pytest.fixture
def invoice() -> InvoiceData:
    """Single invoice with two line items."""
    return _make_invoice("INV-1", items=2)


@pytest.fixture
def read_xlsx() -> Callable[[bytes], pd.DataFrame]:
    """Reader for the first sheet of a workbook, cells kept as text."""

    def _read(content: bytes) -> pd.DataFrame:
        return pd.read_excel(io.BytesIO(content), sheet_name=0, dtype=str, keep_default_na=False)

    return _read


@pytest.fixture
def read_zip_names() -> Callable[[bytes], list[str]]:
    """Reader for the entry names of a zip archive."""

    def _read(content: bytes) -> list[str]:
        with zipfile.ZipFile(io.BytesIO(content)) as zf:
            return zf.namelist()

    return _read
