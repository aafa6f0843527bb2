"""Quantity repair for line items whose quantity, unit price and total disagree.

Unit price and total are usually the most legible figures on an invoice, so
when ``quantity * unit_price`` misses ``total`` the quantity is the value that
gets recomputed.
"""

from __future__ import annotations

import logging
from typing import Any

from invoice_automator.utils.parsing import is_number

logger = logging.getLogger(__name__)

__all__ = [
    "QUANTITY_PRECISION",
    "RECONCILE_TOLERANCE",
    "reconcile",
]

RECONCILE_TOLERANCE = 0.1
QUANTITY_PRECISION = 4


def reconcile(quantity: Any, unit_price: Any, total: Any) -> Any:
    """Return a quantity consistent with ``unit_price`` and ``total``.

    Parameters
    ----------
    quantity
        Extracted quantity.
    unit_price
        Extracted unit price; trusted.
    total
        Extracted line total; trusted.

    Returns
    -------
    Any
        ``round(total / unit_price, 4)`` when ``|quantity * unit_price - total|``
        exceeds 0.1, otherwise ``quantity`` unchanged. Non-numeric inputs or a
        zero unit price also return ``quantity`` unchanged.

    Examples
    --------
    >>> reconcile(5, 10, 1000)
    100.0
    >>> reconcile(3, 10, 30)
    3
    """
    if not (is_number(quantity) and is_number(unit_price) and is_number(total)) or unit_price == 0:
        return quantity

    difference = abs(quantity * unit_price - total)
    if difference > RECONCILE_TOLERANCE:
        repaired = round(total / unit_price, QUANTITY_PRECISION)
        logger.debug(
            "Quantity %s x %s misses total %s by %s; using %s",
            quantity,
            unit_price,
            total,
            difference,
            repaired,
        )
        return repaired

    return quantity
