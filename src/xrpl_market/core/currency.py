"""
Currency code and credential-type codec.

Ledger currency codes come in two shapes:

- a short code ("USD", "XRP") that is passed through unchanged, or
- 40 hex digits: up to 20 raw bytes, right-padded with zero bytes.

Decoding never guesses: anything that does not decode cleanly to printable
ASCII comes back exactly as it went in. Encoding never truncates: an empty
or oversize input raises InvalidLength.
"""

from __future__ import annotations

import binascii
import re

from .constants import (
    CURRENCY_CODE_BYTES,
    HEX_CURRENCY_CODE_LENGTH,
    LP_TOKEN_PREFIX,
    MAX_CREDENTIAL_TYPE_LENGTH,
    NATIVE_CODE,
    STANDARD_CURRENCY_CODE_LENGTH,
)
from .exc import InvalidLength

_HEX_RE = re.compile(r"^[0-9A-Fa-f]*$")
_PRINTABLE_LO = 0x20
_PRINTABLE_HI = 0x7E


def _is_hex(s: str) -> bool:
    return bool(_HEX_RE.match(s))


def _is_printable(raw: bytes) -> bool:
    return all(_PRINTABLE_LO <= b <= _PRINTABLE_HI for b in raw)


def is_hex_currency(code: str) -> bool:
    """True iff `code` is exactly 40 hex digits."""
    return len(code) == HEX_CURRENCY_CODE_LENGTH and _is_hex(code)


# ---------------------------------------------------------------------------
# Currency codes
# ---------------------------------------------------------------------------

def decode_currency(raw_code: str) -> str:
    """Decode a ledger currency code to its human form.

    Non-40-hex input passes through. Otherwise trailing zero bytes (hex pairs)
    are stripped and the remainder is interpreted as ASCII; an empty remainder
    or any non-printable byte falls back to the original string.
    """
    if not is_hex_currency(raw_code):
        return raw_code
    stripped = raw_code
    while stripped.endswith("00"):
        stripped = stripped[:-2]
    if not stripped:
        return raw_code
    raw = bytes.fromhex(stripped)
    if not _is_printable(raw):
        return raw_code
    return raw.decode("ascii")


def encode_currency(human_code: str) -> str:
    """Encode a human currency code into the 40-hex, zero-padded field.

    Raises InvalidLength when the UTF-8 form is empty or exceeds 20 bytes.
    """
    raw = human_code.encode("utf-8")
    if len(raw) == 0 or len(raw) > CURRENCY_CODE_BYTES:
        raise InvalidLength("currency code", len(raw), CURRENCY_CODE_BYTES)
    return raw.hex().upper().ljust(HEX_CURRENCY_CODE_LENGTH, "0")


def ledger_currency(code: str) -> str:
    """Return the currency field the ledger expects for `code`.

    The native code and 3-character standard codes are sent as-is, 40-hex codes
    are uppercased, anything else is hex-encoded via `encode_currency`.
    """
    if code == NATIVE_CODE:
        return code
    if is_hex_currency(code):
        return code.upper()
    if len(code) == STANDARD_CURRENCY_CODE_LENGTH and _is_printable(code.encode("utf-8")):
        return code
    return encode_currency(code)


def is_lp_token_currency(code: str) -> bool:
    """LP tokens use a 40-hex code whose first byte is 0x03."""
    return is_hex_currency(code) and code.startswith(LP_TOKEN_PREFIX)


# ---------------------------------------------------------------------------
# Credential types (raw hex, no padding)
# ---------------------------------------------------------------------------

def encode_credential_type(kind: str) -> str:
    """Encode a credential type string to uppercase hex (max 128 bytes)."""
    raw = kind.encode("utf-8")
    if len(raw) == 0 or len(raw) > MAX_CREDENTIAL_TYPE_LENGTH:
        raise InvalidLength("credential type", len(raw), MAX_CREDENTIAL_TYPE_LENGTH)
    return raw.hex().upper()


def decode_credential_type(hex_str: str) -> str:
    """Decode a hex credential type; returns the hex itself unless it is printable ASCII."""
    try:
        raw = binascii.unhexlify(hex_str)
    except (binascii.Error, ValueError):
        return hex_str
    if not raw or not _is_printable(raw):
        return hex_str
    return raw.decode("ascii")


__all__ = [
    "is_hex_currency",
    "decode_currency",
    "encode_currency",
    "ledger_currency",
    "is_lp_token_currency",
    "encode_credential_type",
    "decode_credential_type",
]
