"""
XRPL Market Core Constants
==========================

Ledger-aligned constants shared by the codec, the order book aggregator,
the AMM pricing engine and the trade reconstructor.
"""

# NOTE: Values here mirror rippled / XLS-30 definitions. Anything that is a
# runtime knob (RPC URL, retries, page sizes per call) is a keyword argument
# on the function that uses it, with the constant below as its default.

from decimal import Decimal

# ---------------------------------------------------------------------------
# Native asset and integer bridge
# ---------------------------------------------------------------------------

#: Currency code of the ledger's native asset.
NATIVE_CODE: str = "XRP"

#: Integer bridge: number of drops per 1 XRP.
DROPS_PER_XRP: int = 1_000_000


# ---------------------------------------------------------------------------
# Currency code / credential field widths
# ---------------------------------------------------------------------------

#: Non-standard currency codes occupy 20 raw bytes (40 hex digits).
CURRENCY_CODE_BYTES: int = 20
HEX_CURRENCY_CODE_LENGTH: int = CURRENCY_CODE_BYTES * 2

#: Standard (ISO-like) currency codes are exactly three ASCII characters.
STANDARD_CURRENCY_CODE_LENGTH: int = 3

#: CredentialType blobs are capped at 128 bytes.
MAX_CREDENTIAL_TYPE_LENGTH: int = 128

#: LP token currency codes are 40-hex codes whose first byte is 0x03.
LP_TOKEN_PREFIX: str = "03"


# ---------------------------------------------------------------------------
# AMM
# ---------------------------------------------------------------------------

#: AMM trading fee is stored in units of 1/100,000 (1000 == 1%).
AMM_FEE_DIVISOR: int = 100_000

#: Combined fill estimation never consumes more than 99% of the base reserve.
AMM_RESERVE_CAP: Decimal = Decimal("0.99")

#: Working precision (significant digits) for AMM and trade arithmetic.
DECIMAL_PRECISION: int = 40


# ---------------------------------------------------------------------------
# Order book / trades
# ---------------------------------------------------------------------------

#: Page size requested from book_offers (per side).
MAX_BOOK_OFFERS: int = 400

#: Capacity of one trades cache entry.
TRADES_CACHE_LIMIT: int = 50

#: account_tx window = cache capacity x multiplier (most txs are not trades).
TRADES_FETCH_MULTIPLIER: int = 4

#: Significant figures used when rendering trades for display.
DISPLAY_SIG_DIGITS: int = 6

#: Wallet fills below this amount on either side are fee noise.
MIN_FILL_AMOUNT: Decimal = Decimal("0.001")

#: Canonical "fully applied" transaction result code.
TES_SUCCESS: str = "tesSUCCESS"

OFFER_CREATE: str = "OfferCreate"

#: Offer ledger-entry flag marking a hybrid (open + domain) offer.
LSF_HYBRID: int = 0x00040000

#: OfferCreate transaction flag marking a hybrid (open + domain) offer.
TF_HYBRID: int = 0x00100000

#: Seconds between the Unix epoch and the ripple epoch (2000-01-01T00:00:00Z).
RIPPLE_EPOCH_OFFSET: int = 946_684_800


__all__ = [
    "NATIVE_CODE",
    "DROPS_PER_XRP",
    "CURRENCY_CODE_BYTES",
    "HEX_CURRENCY_CODE_LENGTH",
    "STANDARD_CURRENCY_CODE_LENGTH",
    "MAX_CREDENTIAL_TYPE_LENGTH",
    "LP_TOKEN_PREFIX",
    "AMM_FEE_DIVISOR",
    "AMM_RESERVE_CAP",
    "DECIMAL_PRECISION",
    "MAX_BOOK_OFFERS",
    "TRADES_CACHE_LIMIT",
    "TRADES_FETCH_MULTIPLIER",
    "DISPLAY_SIG_DIGITS",
    "MIN_FILL_AMOUNT",
    "TES_SUCCESS",
    "OFFER_CREATE",
    "LSF_HYBRID",
    "TF_HYBRID",
    "RIPPLE_EPOCH_OFFSET",
]
