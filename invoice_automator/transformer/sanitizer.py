"""Per-customer cleanup of extracted SKU and batch strings.

Extraction models copy codes the way they are printed, including variant
suffixes (``THC010-X``, ``THC010 - SPECIAL``) and, for Cliniqon Biotech, the
lot number glued onto the SKU (``CODE*LOT``). :func:`sanitize` turns those into
the canonical SKU and batch id used by the inventory import.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any

from invoice_automator.models import CustomerProfile
from invoice_automator.utils.parsing import clean_text

__all__ = [
    "SUFFIX_CLEANUP_PROFILES",
    "SanitizedFields",
    "sanitize",
    "sanitize_batch_id",
    "sanitize_sku",
]

COMBINED_CODE_DELIMITER = "*"

# Hyphen followed by a single trailing letter: "A1-X", "A1 - S", "A1 -s"
_LETTER_SUFFIX_RE = re.compile(r"\s*-\s*[a-zA-Z]$")
# Spaced hyphen and anything after it: "THC010 - SPECIAL"
_SPACED_SUFFIX_RE = re.compile(r"\s+-\s+.*$")
_X_SUFFIX_RE = re.compile(r"\s*-\s*X$", re.IGNORECASE)
_WHITESPACE_RE = re.compile(r"\s+")

SUFFIX_CLEANUP_PROFILES = frozenset({CustomerProfile.SLIM_HEALTHCARE, CustomerProfile.CLINIQON_BIOTECH})


@dataclass(frozen=True)
class SanitizedFields:
    """Canonical SKU and batch id for one line item."""

    sku: str
    batch_id: str


def _split_combined_code(sku: str, batch_id: str) -> tuple[str, str]:
    """Split ``CODE*LOT`` into SKU and batch; the lot overrides any extracted batch."""
    if COMBINED_CODE_DELIMITER not in sku:
        return sku, batch_id
    parts = sku.split(COMBINED_CODE_DELIMITER)
    return parts[0].strip(), parts[1].strip()


def _strip_suffixes_once(sku: str, profile: CustomerProfile) -> str:
    if profile in SUFFIX_CLEANUP_PROFILES:
        sku = _LETTER_SUFFIX_RE.sub("", sku)
        sku = _SPACED_SUFFIX_RE.sub("", sku)
    sku = _X_SUFFIX_RE.sub("", sku)
    return _WHITESPACE_RE.sub("", sku)


def sanitize_sku(sku: str, profile: CustomerProfile) -> str:
    """Strip variant suffixes and whitespace from an already split SKU.

    The suffix rules run until the SKU stops changing, so a value such as
    ``"AB -C -D"`` ends up as ``"AB"`` in one call and sanitizing a sanitized
    SKU is a no-op.
    """
    while True:
        cleaned = _strip_suffixes_once(sku, profile)
        if cleaned == sku:
            return cleaned
        sku = cleaned


def sanitize_batch_id(batch_id: str) -> str:
    """Remove all whitespace from a batch id."""
    return _WHITESPACE_RE.sub("", batch_id)


def sanitize(
    raw_sku: Any,
    raw_batch: Any,
    profile: CustomerProfile = CustomerProfile.SLIM_HEALTHCARE,
) -> SanitizedFields:
    """Clean an extracted SKU/batch pair according to the customer profile.

    Parameters
    ----------
    raw_sku
        SKU as returned by the extraction service (may be ``None``).
    raw_batch
        Batch/lot number as returned by the extraction service (may be ``None``).
    profile
        Customer layout that decides which cleanup rules apply.

    Returns
    -------
    SanitizedFields
        Canonical SKU and batch id, possibly empty strings.

    Examples
    --------
    >>> sanitize("THC010-X", "", CustomerProfile.SLIM_HEALTHCARE)
    SanitizedFields(sku='THC010', batch_id='')
    >>> sanitize("ABC123*LOT9", "", CustomerProfile.CLINIQON_BIOTECH)
    SanitizedFields(sku='ABC123', batch_id='LOT9')
    """
    sku = clean_text(raw_sku)
    batch_id = clean_text(raw_batch)

    if profile == CustomerProfile.CLINIQON_BIOTECH:
        sku, batch_id = _split_combined_code(sku, batch_id)

    return SanitizedFields(sku=sanitize_sku(sku, profile), batch_id=sanitize_batch_id(batch_id))
