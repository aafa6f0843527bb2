"""Shared utility functions for invoice_automator package."""

from invoice_automator.utils.parsing import (
    clean_text,
    coerce_number,
    is_number,
    parse_amount,
)

__all__ = [
    "clean_text",
    "coerce_number",
    "is_number",
    "parse_amount",
]
