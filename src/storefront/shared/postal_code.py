"""Postal codes (CEP): 8 zero-padded digits, so string order equals numeric order."""

import re

from storefront.shared.errors import UnprocessableError

POSTAL_CODE_LENGTH = 8

_NON_DIGITS = re.compile(r"\D")


def normalize_postal_code(raw, field="postal_code", error=UnprocessableError):
    """Return the 8-digit form of ``raw`` (``"01310-000"`` -> ``"01310000"``).

    ``error`` is the StorefrontError raised for anything else. Order placement
    passes BadRequestError, since a customer's malformed postal code is a
    malformed request; merchant settings keep the default.
    """
    digits = _NON_DIGITS.sub("", raw or "")
    if len(digits) != POSTAL_CODE_LENGTH:
        raise error(
            f"Invalid postal code {raw!r}: expected {POSTAL_CODE_LENGTH} digits.",
            field=field,
        )
    return digits
