"""
Top-level API for xrpl_market.

Reconstructs tradable market state for an XRPL currency pair from raw
ledger primitives and prices it deterministically:

  - book: offers -> bid/ask ladders with cumulative depth
  - amm: constant-product marginal prices, inverses and exact trade integrals
  - trades: executed trades from issuer transaction metadata, bounded cache
  - estimate: fill estimation over CLOB levels and the AMM curve
  - market: concurrent, independently-failing composition of the above

All arithmetic is Decimal; every outward-facing number is a decimal string.
"""

from __future__ import annotations

from .core import (
    Asset,
    XRP,
    NativeAmount,
    IssuedAmount,
    Amount,
    Offer,
    Level,
    DepthLevel,
    DepthSummary,
    OrderBook,
    Trade,
    FilledOrder,
    decode_currency,
    encode_currency,
    InvalidAsset,
    InvalidLength,
    UpstreamUnavailable,
)
from .book import aggregate, parse_offers, mid_price
from .amm import AmmPool, AmmParams, AmmInfo, build_params, parse_amm_info, empty_amm_info
from .estimate import FillEstimate, estimate_fill, estimate_fill_combined
from .trades import TradeCache, TradeCacheKey, reconstruct, merge_into_cache, parse_filled_orders
from .market import MarketData, fetch_market_data
from .rpc import XrplRpcClient

__all__ = [
    # core types
    "Asset",
    "XRP",
    "NativeAmount",
    "IssuedAmount",
    "Amount",
    "Offer",
    "Level",
    "DepthLevel",
    "DepthSummary",
    "OrderBook",
    "Trade",
    "FilledOrder",
    # codec
    "decode_currency",
    "encode_currency",
    # errors
    "InvalidAsset",
    "InvalidLength",
    "UpstreamUnavailable",
    # order book
    "aggregate",
    "parse_offers",
    "mid_price",
    # amm
    "AmmPool",
    "AmmParams",
    "AmmInfo",
    "build_params",
    "parse_amm_info",
    "empty_amm_info",
    # estimation
    "FillEstimate",
    "estimate_fill",
    "estimate_fill_combined",
    # trades
    "TradeCache",
    "TradeCacheKey",
    "reconstruct",
    "merge_into_cache",
    "parse_filled_orders",
    # composition
    "MarketData",
    "fetch_market_data",
    "XrplRpcClient",
]
