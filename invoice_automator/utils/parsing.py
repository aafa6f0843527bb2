"""Shared parsing utilities for loosely-typed extraction values.

Extraction responses are best-effort: numbers may arrive as numbers, as
formatted strings (``"1,250.00"``, ``"LKR 300"``, ``"(45.10)"``) or not at
all. These helpers turn them into plain Python values without raising.
"""

from __future__ import annotations

import logging
import math
import re
from decimal import Decimal, InvalidOperation
from typing import Any

logger = logging.getLogger(__name__)


def is_number(value: Any) -> bool:
    """Return ``True`` for real ``int``/``float`` values (``bool`` excluded)."""
    return isinstance(value, int | float) and not isinstance(value, bool)


def parse_amount(value: Any) -> float | None:
    """Parse a value as a number, handling common invoice formats.

    Handles:
    - Thousands separators (``1,234.50`` and ``1.234,50``)
    - Parentheses for negative numbers
    - Currency symbols and codes

    Parameters
    ----------
    value
        Raw value from an extraction response.

    Returns
    -------
    float | None
        Parsed float or ``None`` when the input cannot be interpreted as a
        number.

    Examples
    --------
    - ``"1,250.00"`` -> 1250.0
    - ``"1.250,5"`` -> 1250.5
    - ``"(45.10)"`` -> -45.1
    - ``"LKR 300"`` -> 300.0
    """
    if value is None or isinstance(value, bool):
        return None
    if is_number(value):
        return None if math.isnan(value) else float(value)

    text = str(value).strip()
    if not text or text == "-":
        return None

    # Check for negative (parentheses notation)
    is_negative = False
    if text.startswith("(") and text.endswith(")"):
        is_negative = True
        text = text[1:-1]
    if text.startswith("-"):
        is_negative = not is_negative
        text = text[1:]

    # Drop currency symbols, codes and whitespace
    text = re.sub(r"[^\d.,]", "", text)
    if not text:
        return None

    dots = text.count(".")
    commas = text.count(",")

    try:
        if dots > 1 or (dots == 1 and commas == 1 and text.index(".") < text.index(",")):
            # Continental format: 1.234.567,89
            text = text.replace(".", "").replace(",", ".")
        elif commas > 1 or (commas == 1 and dots == 1 and text.index(",") < text.index(".")):
            # US format: 1,234,567.89
            text = text.replace(",", "")
        elif commas == 1 and dots == 0:
            # "1,250" is a thousands group, "12,5" a decimal comma
            head, tail = text.split(",")
            text = head + tail if len(tail) == 3 else f"{head}.{tail}"

        result = float(Decimal(text))
        return -result if is_negative else result

    except (InvalidOperation, ValueError):
        logger.debug("Could not parse number: %s", value)
        return None


def coerce_number(value: Any, default: float = 0) -> float:
    """Return ``value`` as a number, or ``default`` when it is missing or unparseable.

    Numbers pass through unchanged; integral strings such as ``"3"`` become
    ``int`` so quantities do not turn into ``3.0``.
    """
    if is_number(value):
        return default if math.isnan(value) else value
    parsed = parse_amount(value)
    if parsed is None:
        return default
    return int(parsed) if parsed.is_integer() else parsed


def clean_text(value: Any) -> str:
    """Return ``value`` as a trimmed string; ``None`` becomes ``""``."""
    if value is None:
        return ""
    return str(value).strip()
