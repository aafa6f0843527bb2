"""Turn a raw extraction record into a validated :class:`InvoiceData`."""

from __future__ import annotations

import json
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from invoice_automator.config import setup_logging
from invoice_automator.directory import find_customer_code
from invoice_automator.errors import ExtractionError
from invoice_automator.models import (
    CustomerProfile,
    InvoiceData,
    InvoiceField,
    ItemField,
    LineItem,
)
from invoice_automator.transformer.reconciliation import reconcile
from invoice_automator.transformer.sanitizer import sanitize
from invoice_automator.utils.parsing import clean_text, coerce_number

if TYPE_CHECKING:
    from collections.abc import Iterable

    from invoice_automator.models import CustomerMasterEntry

logger = setup_logging(__name__)

# Profiles whose customer code comes from the directory rather than the document
DIRECTORY_LOOKUP_PROFILES = frozenset({CustomerProfile.CLINIQON_BIOTECH})


def normalize_line_item(raw: Mapping[str, Any], profile: CustomerProfile) -> LineItem:
    """Sanitize codes and reconcile quantity for one raw line item.

    Parameters
    ----------
    raw
        Line item mapping from the extraction response.
    profile
        Customer layout used for SKU/batch cleanup.

    Returns
    -------
    LineItem
        Item with canonical SKU/batch, reconciled quantity, and description,
        unit price and total passed through. Missing strings become ``""`` and
        missing numbers ``0``.
    """
    fields = sanitize(raw.get(ItemField.SKU), raw.get(ItemField.BATCH_ID), profile)

    quantity = coerce_number(raw.get(ItemField.QUANTITY))
    unit_price = coerce_number(raw.get(ItemField.UNIT_PRICE))
    total = coerce_number(raw.get(ItemField.TOTAL))

    return LineItem(
        sku=fields.sku,
        description=clean_text(raw.get(ItemField.DESCRIPTION)),
        batch_id=fields.batch_id,
        quantity=reconcile(quantity, unit_price, total),
        unit_price=unit_price,
        total=total,
    )


def _resolve_customer_code(
    raw: Mapping[str, Any],
    customer_name: str,
    profile: CustomerProfile,
    directory: Iterable[CustomerMasterEntry],
) -> str | None:
    extracted = raw.get(InvoiceField.CUSTOMER_CODE)
    code = clean_text(extracted) if extracted is not None else None

    if profile in DIRECTORY_LOOKUP_PROFILES and customer_name:
        match = find_customer_code(directory, customer_name)
        if match is not None:
            if code and code != match:
                logger.debug("Directory code %s replaces extracted code %s for %s", match, code, customer_name)
            return match
        logger.debug("Customer %r not found in directory", customer_name)

    return code


def normalize(
    raw: Mapping[str, Any] | str,
    profile: CustomerProfile = CustomerProfile.SLIM_HEALTHCARE,
    directory: Iterable[CustomerMasterEntry] = (),
) -> InvoiceData:
    """Build a normalized invoice from one raw extraction record.

    Parameters
    ----------
    raw
        Extraction record as a mapping or as its JSON text.
    profile
        Customer layout selecting sanitizer rules and code resolution.
    directory
        Customer directory consulted for profiles that resolve codes by name.

    Returns
    -------
    InvoiceData
        Fully populated invoice, line items in document order.

    Raises
    ------
    ExtractionError
        If the record is not parseable JSON, is not an object, or its
        ``lineItems`` is not a list of objects.
    """
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except json.JSONDecodeError as e:
            msg = f"Extraction record is not valid JSON: {e}"
            raise ExtractionError(msg) from e

    if not isinstance(raw, Mapping):
        msg = f"Extraction record must be an object, got {type(raw).__name__}"
        raise ExtractionError(msg)

    raw_items = raw.get("lineItems")
    if raw_items is None:
        raw_items = []
    if not isinstance(raw_items, list):
        msg = f"lineItems must be a list, got {type(raw_items).__name__}"
        raise ExtractionError(msg)

    line_items: list[LineItem] = []
    for position, raw_item in enumerate(raw_items):
        if not isinstance(raw_item, Mapping):
            msg = f"Line item {position + 1} is not an object"
            raise ExtractionError(msg)
        line_items.append(normalize_line_item(raw_item, profile))

    customer_name = clean_text(raw.get(InvoiceField.CUSTOMER_NAME))
    invoice = InvoiceData(
        reference_no=clean_text(raw.get(InvoiceField.REFERENCE_NO)),
        customer_name=customer_name,
        customer_code=_resolve_customer_code(raw, customer_name, profile, list(directory)),
        date=clean_text(raw.get(InvoiceField.DATE)),
        line_items=line_items,
    )

    logger.info(
        "Normalized invoice %s (%s, %s line items)",
        invoice.reference_no or "<no reference>",
        profile.label,
        len(line_items),
    )
    return invoice
