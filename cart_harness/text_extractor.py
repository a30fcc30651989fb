"""Text extractor: pulls integers out of rendered price and stock text."""

from __future__ import annotations

import logging
import re

from cart_harness.errors import ParseError

logger = logging.getLogger(__name__)

# Largest integer a JS number holds exactly; storefront values are rendered from JS.
MAX_SAFE_INTEGER = 2**53 - 1

# Digit groups may be separated by a non-breaking or narrow no-break space ("1 200 р.").
_INTEGER_RE = re.compile(r"(?<![\d.])([-+]?\d+(?:[\u00a0\u202f]\d{3})*)")
_GROUP_SEPARATORS = str.maketrans("", "", "\u00a0\u202f")


def parse_integer(text: str | None, context: str = "value") -> int:
    """Return the first integer found in ``text``.

    Surrounding text is ignored (``"123 р."`` -> 123). Raises ParseError when
    there is no integer, when the only digits are fractional (``".5"``), or
    when the value is not safely representable.
    """
    if text is None:
        raise ParseError(context, text)
    match = _INTEGER_RE.search(text)
    if match is None:
        raise ParseError(context, text)
    value = int(match.group(1).translate(_GROUP_SEPARATORS))
    if abs(value) > MAX_SAFE_INTEGER:
        raise ParseError(context, text)
    logger.debug("Parsed %s=%d from %r", context, value, text)
    return value


def format_line_price(amount: int, currency_suffix: str = "р.") -> str:
    """Price as rendered in a cart panel row, e.g. ``- 450 р.``."""
    return f"- {amount} {currency_suffix}"


def format_amount(amount: int) -> str:
    """Grand total as rendered in the cart panel."""
    return str(amount)
