"""Phone numbers as customers type them, and the canonical digit form used as identity."""

import re

from storefront.shared.errors import BadRequestError

COUNTRY_CODE = "55"

_NON_DIGITS = re.compile(r"\D")


def normalize_phone(raw):
    """Strip formatting and make sure the number carries the country code.

    ``"+55 (11) 99999-8888"``, ``"11 99999 8888"`` and ``"5511999998888"`` all
    normalize to ``"5511999998888"``. A bare local number (area code plus 8 or
    9 digits) gets the country code prepended.
    """
    digits = _NON_DIGITS.sub("", raw or "")

    if len(digits) in (10, 11):
        digits = COUNTRY_CODE + digits

    if len(digits) not in (12, 13):
        raise BadRequestError(
            "Phone must be a valid number: area code followed by 8 or 9 digits.",
            field="phone",
        )

    return digits


def format_phone(digits):
    """Render a normalized number for display, e.g. ``(11) 99999-8888``."""
    local = digits[len(COUNTRY_CODE) :] if digits.startswith(COUNTRY_CODE) else digits
    if len(local) == 11:
        return f"({local[:2]}) {local[2:7]}-{local[7:]}"
    if len(local) == 10:
        return f"({local[:2]}) {local[2:6]}-{local[6:]}"
    return digits
