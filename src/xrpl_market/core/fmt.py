"""
Formatting helpers and Decimal parsing at the I/O boundary.

All ledger values enter as strings and leave as strings. Parsing goes through
`to_decimal` so malformed payloads surface as AmountDomainError instead of a
bare decimal.InvalidOperation, and rendering never goes through float.
"""

from decimal import Decimal, DefaultContext, InvalidOperation, ROUND_HALF_UP, getcontext, localcontext
from typing import Any, Optional

from .constants import DECIMAL_PRECISION, DISPLAY_SIG_DIGITS
from .exc import AmountDomainError

# Debug printing control (formatting layer)
DEBUG_FMT = False

def _dbg(msg: str) -> None:
    if DEBUG_FMT:
        print(msg)


# ---------------------------------------------------------------------------
# Global Decimal precision
# ---------------------------------------------------------------------------

#: Ledger amounts carry 16 significant digits and reserves are multiplied
#: together before sqrt/divide; 40 digits leaves ample headroom.
DEFAULT_DECIMAL_PRECISION: int = DECIMAL_PRECISION
getcontext().prec = DEFAULT_DECIMAL_PRECISION
# getcontext() is per thread; worker threads start from DefaultContext.
DefaultContext.prec = DEFAULT_DECIMAL_PRECISION

ZERO = Decimal(0)
ONE = Decimal(1)

# Local helpers for Decimal use
DecimalLike = Decimal | int | str


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------

def to_decimal(x: Any) -> Decimal:
    """Normalise numeric-like input to Decimal; reject floats, bools and junk.

    Floats are refused so that binary rounding never leaks into reserve or
    traded-amount math.
    """
    if isinstance(x, Decimal):
        if not x.is_finite():
            raise AmountDomainError(f"non-finite decimal: {x!r}")
        return x
    if isinstance(x, bool) or isinstance(x, float):
        raise AmountDomainError(f"refusing non-decimal numeric input: {x!r}")
    if isinstance(x, int):
        return Decimal(x)
    if isinstance(x, str):
        try:
            d = Decimal(x.strip())
        except InvalidOperation:
            raise AmountDomainError(f"malformed numeric string: {x!r}") from None
        if not d.is_finite():
            raise AmountDomainError(f"non-finite numeric string: {x!r}")
        return d
    raise AmountDomainError(f"unsupported numeric payload: {x!r}")


def try_decimal(x: Any) -> Optional[Decimal]:
    """Like `to_decimal` but returns None for malformed input."""
    try:
        return to_decimal(x)
    except AmountDomainError as exc:
        _dbg(f"try_decimal: {exc}")
        return None


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------

def fmt_plain(x: Decimal) -> str:
    """Render a Decimal as a plain (non-exponent) string without trailing zeros.

      Decimal('10.500') -> '10.5'
      Decimal('1E+3')   -> '1000'
      Decimal('0E-8')   -> '0'
    """
    if x == 0:
        return "0"
    return format(x.normalize(), "f")


def fmt_sig(x: Decimal, digits: int = DISPLAY_SIG_DIGITS) -> str:
    """Render to `digits` significant figures, toPrecision-style.

    Fixed notation while the decimal exponent lies in [-6, digits), scientific
    notation ('1.23457e+7') outside that range. Rounding is half-up.
    """
    if digits < 1:
        raise ValueError("digits must be >= 1")
    if x == 0:
        return format(Decimal(0), f".{digits - 1}f")
    with localcontext() as ctx:
        ctx.prec = digits
        ctx.rounding = ROUND_HALF_UP
        r = +x
    e = r.adjusted()
    if e < -6 or e >= digits:
        mant = format(r.scaleb(-e), f".{digits - 1}f")
        sign = "+" if e >= 0 else "-"
        return f"{mant}e{sign}{abs(e)}"
    return format(r.quantize(Decimal(1).scaleb(e - digits + 1)), "f")


__all__ = [
    "DEFAULT_DECIMAL_PRECISION",
    "ZERO",
    "ONE",
    "DecimalLike",
    "to_decimal",
    "try_decimal",
    "fmt_plain",
    "fmt_sig",
]
