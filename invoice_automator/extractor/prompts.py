"""Extraction instructions and response shape for the vision model.

Instructions differ per customer layout and per document kind (image or PDF).
Cliniqon Biotech invoices carry SKU and batch in one ``STOCK`` column as
``CODE*BATCH``; the model is told to return that value whole so the sanitizer
can split it.
"""

from __future__ import annotations

import json
from typing import Any

from invoice_automator.models import CustomerProfile

PDF_MEDIA_TYPE = "application/pdf"

INVOICE_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "referenceNo": {"type": "string"},
        "customerCode": {"type": "string"},
        "customerName": {"type": "string"},
        "date": {"type": "string"},
        "lineItems": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "sku": {"type": "string"},
                    "description": {"type": "string"},
                    "batchId": {"type": "string"},
                    "quantity": {"type": "number"},
                    "unitPrice": {"type": "number"},
                    "total": {"type": "number"},
                },
            },
        },
    },
}

_HEADER_FIELDS = """1. Invoice Number (map to referenceNo)
2. Customer Name (map to customerName)
3. Customer No / Customer Code (map to customerCode){code_hint}
4. Invoice Date (map to date, format as YYYY-MM-DD)"""

_STANDARD_ITEMS = """5. Line Items Table.{table_hint} For each row extract:
   - Item No / SKU (map to sku)
   - Description (map to description)
   - Batch Number (map to batchId)
   - Quantity (map to quantity, ensure it is a number. Double check that Quantity * Unit Price equals Total)
   - Unit Price (map to unitPrice, ensure it is a number)
   - Total (map to total)

If a field is missing, return an empty string or 0 for numbers."""

_COMBINED_CODE_ITEMS = """5. Line Items Table.{table_hint} For each row extract:
   - Item No / SKU (map to sku). IMPORTANT: Look at the 'STOCK' column. If it contains data like "CODE*BATCH", extract the ENTIRE string including the asterisk.
   - Description (map to description)
   - Batch Number (map to batchId). If the batch is mixed in the STOCK column with *, you may extract it here too, or leave it for post-processing.
   - Quantity (map to quantity, number)
   - Unit Price (map to unitPrice, number)
   - Total (map to total)

If a field is missing, return empty string/0."""


def is_pdf(media_type: str) -> bool:
    return media_type.lower() == PDF_MEDIA_TYPE


def build_prompt(profile: CustomerProfile, media_type: str) -> str:
    """Return the extraction instruction for a customer layout and document kind.

    Parameters
    ----------
    profile
        Customer layout of the document.
    media_type
        MIME type of the document; ``application/pdf`` selects the PDF wording.

    Returns
    -------
    str
        Instruction text ending with the JSON response schema.
    """
    document = "PDF" if is_pdf(media_type) else "image"
    table_hint = " Parse the table structure carefully." if is_pdf(media_type) else ""

    if profile == CustomerProfile.CLINIQON_BIOTECH:
        intro = f"Analyze the provided invoice {document} (Cliniqon Biotech format). Extract:"
        header = _HEADER_FIELDS.format(code_hint=". If not visible, leave empty.")
        items = _COMBINED_CODE_ITEMS.format(table_hint=table_hint)
    else:
        if is_pdf(media_type):
            intro = (
                "Analyze the provided invoice PDF document. This is a structured document.\n"
                "Extract the following information:"
            )
        else:
            intro = "Analyze the provided invoice image. Extract the following information:"
        header = _HEADER_FIELDS.format(code_hint="")
        items = _STANDARD_ITEMS.format(table_hint=table_hint)

    schema = json.dumps(INVOICE_SCHEMA, indent=2)
    return (
        f"{intro}\n{header}\n{items}\n\n"
        f"Respond with a single JSON object matching this schema and nothing else:\n{schema}"
    )
