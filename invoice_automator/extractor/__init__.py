"""Extractor module: vision-model calls producing raw invoice records.

Submodules
----------
prompts
    Per-customer, per-document-kind instructions and the JSON response shape.
vision
    Mistral and OpenRouter chat calls; PDF page rendering via pdfplumber.
extraction
    Provider dispatch, reply parsing, and extract-then-normalize.
"""

from invoice_automator.extractor.extraction import (
    MEDIA_TYPES,
    extract_invoice_record,
    guess_media_type,
    parse_extraction_response,
    process_document,
)
from invoice_automator.extractor.prompts import INVOICE_SCHEMA, build_prompt
from invoice_automator.extractor.vision import render_pdf_pages

__all__ = [
    "INVOICE_SCHEMA",
    "MEDIA_TYPES",
    "build_prompt",
    "extract_invoice_record",
    "guess_media_type",
    "parse_extraction_response",
    "process_document",
    "render_pdf_pages",
]
