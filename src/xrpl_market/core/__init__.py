"""
XRPL Market Core
================

Unified exports for the leaf primitives: ledger constants, the currency
codec, asset/amount variants, Decimal parsing/formatting and the shared
datatypes. Every other module depends on these; these depend on nothing
outside the standard library.
"""

# NOTE:
#   All arithmetic is Decimal. Values enter as ledger strings through
#   `to_decimal` / `amount_from_ledger` and leave as strings through
#   `fmt_plain` / `fmt_sig`. Floats are rejected at the boundary.

from .constants import (
    NATIVE_CODE,
    DROPS_PER_XRP,
    CURRENCY_CODE_BYTES,
    HEX_CURRENCY_CODE_LENGTH,
    MAX_CREDENTIAL_TYPE_LENGTH,
    AMM_FEE_DIVISOR,
    TRADES_CACHE_LIMIT,
    DISPLAY_SIG_DIGITS,
)

from .fmt import (
    DEFAULT_DECIMAL_PRECISION,
    to_decimal,
    try_decimal,
    fmt_plain,
    fmt_sig,
)

from .currency import (
    decode_currency,
    encode_currency,
    ledger_currency,
    is_lp_token_currency,
    encode_credential_type,
    decode_credential_type,
)

from .amounts import (
    Asset,
    XRP,
    NativeAmount,
    IssuedAmount,
    Amount,
    xrp_from_drops,
    drops_from_xrp,
    amount_from_ledger,
    amount_to_ledger,
    amount_to_dict,
)

from .datatypes import (
    Side,
    BUY,
    SELL,
    Offer,
    Level,
    DepthLevel,
    DepthSummary,
    OrderBook,
    Trade,
    FilledOrder,
)

from .exc import (
    MarketError,
    InvalidAsset,
    InvalidLength,
    AmountDomainError,
    UpstreamUnavailable,
    RpcError,
)

__all__ = [
    # constants
    "NATIVE_CODE",
    "DROPS_PER_XRP",
    "CURRENCY_CODE_BYTES",
    "HEX_CURRENCY_CODE_LENGTH",
    "MAX_CREDENTIAL_TYPE_LENGTH",
    "AMM_FEE_DIVISOR",
    "TRADES_CACHE_LIMIT",
    "DISPLAY_SIG_DIGITS",
    # fmt
    "DEFAULT_DECIMAL_PRECISION",
    "to_decimal",
    "try_decimal",
    "fmt_plain",
    "fmt_sig",
    # codec
    "decode_currency",
    "encode_currency",
    "ledger_currency",
    "is_lp_token_currency",
    "encode_credential_type",
    "decode_credential_type",
    # amounts
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
    # datatypes
    "Side",
    "BUY",
    "SELL",
    "Offer",
    "Level",
    "DepthLevel",
    "DepthSummary",
    "OrderBook",
    "Trade",
    "FilledOrder",
    # exceptions
    "MarketError",
    "InvalidAsset",
    "InvalidLength",
    "AmountDomainError",
    "UpstreamUnavailable",
    "RpcError",
]
