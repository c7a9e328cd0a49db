"""
Asset and amount primitives.

- Asset: currency code (canonical, decoded) plus issuer; the native asset has no issuer.
- Amount: tagged variant, either NativeAmount (XRP, display units) or
  IssuedAmount (asset + value). Values are Decimal, never float.

Ledger wire shapes:
- native amount: bare string of drops, e.g. "1500000" == 1.5 XRP
- issued amount: {"currency": ..., "issuer": ..., "value": ...}
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, Optional, Union

from .constants import DROPS_PER_XRP, NATIVE_CODE
from .currency import decode_currency, ledger_currency
from .exc import AmountDomainError, InvalidAsset
from .fmt import fmt_plain, to_decimal


# ----------------------------
# Asset
# ----------------------------

@dataclass(frozen=True)
class Asset:
    """Currency identity: canonical code + issuer (None iff native).

    The code is stored decoded, so Asset("524C555344000000000000000000000000000000", i)
    and Asset("RLUSD", i) compare equal.
    """
    code: str
    issuer: Optional[str] = None

    def __post_init__(self):
        if not isinstance(self.code, str) or not self.code:
            raise InvalidAsset("asset code must be a non-empty string")
        code = decode_currency(self.code)
        object.__setattr__(self, "code", code)
        if code == NATIVE_CODE:
            if self.issuer:
                raise InvalidAsset(f"native asset {NATIVE_CODE} cannot carry an issuer")
            object.__setattr__(self, "issuer", None)
        elif not self.issuer:
            raise InvalidAsset(f"issuer is required for non-{NATIVE_CODE} currency {code!r}")

    @property
    def is_native(self) -> bool:
        return self.code == NATIVE_CODE

    @classmethod
    def native(cls) -> "Asset":
        return cls(NATIVE_CODE)

    @classmethod
    def from_ledger(cls, spec: Any) -> "Asset":
        """Build from a ledger currency spec ({currency, issuer?}) or a drops string."""
        if isinstance(spec, str):
            return cls(NATIVE_CODE)
        if isinstance(spec, dict):
            return cls(str(spec.get("currency") or ""), spec.get("issuer"))
        raise InvalidAsset(f"unsupported currency spec: {spec!r}")

    def to_ledger(self) -> Dict[str, str]:
        """Currency spec (no value) as used by book_offers / amm_info."""
        if self.is_native:
            return {"currency": NATIVE_CODE}
        return {"currency": ledger_currency(self.code), "issuer": self.issuer}

    def matches(self, currency: str, issuer: Optional[str]) -> bool:
        """True iff a raw (currency, issuer) pair denotes this asset."""
        if decode_currency(currency) != self.code and currency != self.code:
            return False
        if self.is_native:
            return True
        return issuer == self.issuer

    def to_dict(self) -> Dict[str, Optional[str]]:
        return {"currency": self.code, "issuer": self.issuer}

    def __str__(self) -> str:
        return self.code if self.is_native else f"{self.code}.{self.issuer}"


XRP = Asset(NATIVE_CODE)


# ----------------------------
# Amount variants
# ----------------------------

@dataclass(frozen=True)
class NativeAmount:
    """Native asset amount in display units (XRP, not drops)."""
    value: Decimal

    @property
    def asset(self) -> Asset:
        return XRP

    @classmethod
    def from_drops(cls, drops: Any) -> "NativeAmount":
        return cls(xrp_from_drops(drops))

    def to_drops(self) -> int:
        return drops_from_xrp(self.value)


@dataclass(frozen=True)
class IssuedAmount:
    """Issued asset amount."""
    issued: Asset
    value: Decimal

    def __post_init__(self):
        if self.issued.is_native:
            raise InvalidAsset("IssuedAmount cannot hold the native asset; use NativeAmount")

    @property
    def asset(self) -> Asset:
        return self.issued


Amount = Union[NativeAmount, IssuedAmount]


# ----------------------------
# Integer bridge
# ----------------------------

def xrp_from_drops(drops: Any) -> Decimal:
    """Convert a drops string/int to XRP (exact Decimal division)."""
    d = to_decimal(drops)
    if d != d.to_integral_value():
        raise AmountDomainError(f"drops must be integral: {drops!r}")
    return d / DROPS_PER_XRP


def drops_from_xrp(xrp: Any) -> int:
    """Convert XRP to integer drops; refuses sub-drop precision."""
    d = to_decimal(xrp) * DROPS_PER_XRP
    if d != d.to_integral_value():
        raise AmountDomainError(f"XRP amount has sub-drop precision: {xrp!r}")
    return int(d)


# ----------------------------
# Wire decode / encode
# ----------------------------

def amount_from_ledger(raw: Any) -> Amount:
    """Decode a ledger amount (drops string or {currency, issuer, value})."""
    if isinstance(raw, (str, int)) and not isinstance(raw, bool):
        return NativeAmount.from_drops(raw)
    if isinstance(raw, dict):
        currency = raw.get("currency")
        if currency is None or "value" not in raw:
            raise AmountDomainError(f"issued amount needs currency and value: {raw!r}")
        asset = Asset(str(currency), raw.get("issuer"))
        value = to_decimal(raw.get("value"))
        if asset.is_native:
            # Some APIs echo XRP in object form with a display-unit value.
            return NativeAmount(value)
        return IssuedAmount(asset, value)
    raise AmountDomainError(f"unsupported amount payload: {raw!r}")


def amount_to_ledger(amount: Amount) -> Union[str, Dict[str, str]]:
    """Encode an amount back to ledger wire form."""
    if isinstance(amount, NativeAmount):
        return str(amount.to_drops())
    if isinstance(amount, IssuedAmount):
        return {
            "currency": ledger_currency(amount.issued.code),
            "issuer": amount.issued.issuer,
            "value": fmt_plain(amount.value),
        }
    raise AmountDomainError(f"unsupported amount type: {type(amount).__name__}")


def amount_to_dict(amount: Amount) -> Dict[str, Optional[str]]:
    """Human-facing {currency, issuer, value} with a decimal-string value."""
    out = amount.asset.to_dict()
    out["value"] = fmt_plain(amount.value)
    return out


__all__ = [
    "Asset",
    "XRP",
    "NativeAmount",
    "IssuedAmount",
    "Amount",
    "xrp_from_drops",
    "drops_from_xrp",
    "amount_from_ledger",
    "amount_to_ledger",
    "amount_to_dict",
]
