"""Extraction collaborator: document bytes in, raw invoice record out.

The vision model is a black box. Its reply is parsed as JSON and handed to
the normalizer unchanged; any failure along the way (missing API key, provider
error, empty reply, unparseable reply) surfaces as :class:`ExtractionError`
for that one document. Nothing is retried.
"""

from __future__ import annotations

import json
import re
from pathlib import Path
from typing import TYPE_CHECKING, Any

from invoice_automator.config import get_extraction_config, setup_logging
from invoice_automator.errors import ExtractionError
from invoice_automator.extractor.prompts import build_prompt
from invoice_automator.extractor.vision import PROVIDERS
from invoice_automator.models import DEFAULT_PROFILE, CustomerProfile
from invoice_automator.transformer.normalizer import normalize

if TYPE_CHECKING:
    from collections.abc import Iterable

    from invoice_automator.models import CustomerMasterEntry, InvoiceData

logger = setup_logging(__name__)

MEDIA_TYPES = {
    ".pdf": "application/pdf",
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".gif": "image/gif",
    ".webp": "image/webp",
}

_FENCE_RE = re.compile(r"^```(?:json)?\s*(.*?)\s*```$", re.DOTALL)


def guess_media_type(filename: str | Path) -> str:
    """Return the MIME type for a supported invoice file.

    Raises
    ------
    ValueError
        If the extension is not a PDF or a supported image type.
    """
    suffix = Path(filename).suffix.lower()
    media_type = MEDIA_TYPES.get(suffix)
    if media_type is None:
        msg = f"Unsupported document type: {Path(filename).name}"
        raise ValueError(msg)
    return media_type


def parse_extraction_response(text: str) -> dict[str, Any]:
    """Parse the model reply into a record, tolerating a fenced ```json block.

    Raises
    ------
    ExtractionError
        If the reply is not a JSON object.
    """
    cleaned = text.strip()
    fenced = _FENCE_RE.match(cleaned)
    if fenced:
        cleaned = fenced.group(1)

    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as e:
        msg = f"Extraction response is not valid JSON: {e}"
        raise ExtractionError(msg) from e

    if not isinstance(data, dict):
        msg = f"Extraction response must be a JSON object, got {type(data).__name__}"
        raise ExtractionError(msg)
    return data


def extract_invoice_record(
    document: bytes,
    media_type: str,
    profile: CustomerProfile = DEFAULT_PROFILE,
    provider: str | None = None,
    model: str | None = None,
) -> dict[str, Any]:
    """Ask the vision model for the raw invoice record of one document.

    Parameters
    ----------
    document
        File content (PDF or image).
    media_type
        MIME type of ``document``.
    profile
        Customer layout selecting the instruction text.
    provider
        ``"mistral"`` or ``"openrouter"``; defaults to ``extraction.provider``.
    model
        Model override; defaults to the provider's configured model.

    Returns
    -------
    dict[str, Any]
        Best-effort record shaped like ``INVOICE_SCHEMA``; any field may be
        missing or mistyped.

    Raises
    ------
    ExtractionError
        If the provider is unknown, the call fails, nothing is returned, or
        the reply cannot be parsed.
    """
    provider_name = provider or get_extraction_config().get("provider", "openrouter")
    call = PROVIDERS.get(provider_name)
    if call is None:
        msg = f"Unknown extraction provider: {provider_name}"
        raise ExtractionError(msg)

    prompt = build_prompt(profile, media_type)

    try:
        text = call(document, media_type, prompt, model)
    except Exception as e:
        logger.exception("Extraction call failed with %s: %s", provider_name, e)
        msg = f"Failed to extract data from the invoice: {e}"
        raise ExtractionError(msg) from e

    if not text:
        msg = f"No data returned from {provider_name}"
        raise ExtractionError(msg)

    return parse_extraction_response(text)


def process_document(
    document: bytes,
    media_type: str,
    profile: CustomerProfile = DEFAULT_PROFILE,
    directory: Iterable[CustomerMasterEntry] = (),
    provider: str | None = None,
    model: str | None = None,
) -> InvoiceData:
    """Extract one document and normalize the result.

    ``directory`` is the customer-directory snapshot taken when the document
    was submitted.
    """
    raw = extract_invoice_record(document, media_type, profile, provider=provider, model=model)
    return normalize(raw, profile, directory)
