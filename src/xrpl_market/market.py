"""Compose a market-data response from independent sub-fetches.

The order book, the AMM snapshot and the trade history are fetched and
computed on a small thread pool. Each piece fails on its own: a failed
piece is None in the response and never cancels the others.

`source` is any object exposing the XrplRpcClient read methods:
``book_offers(taker_gets, taker_pays, *, domain)``, ``amm_info(asset, asset2)``
and ``account_tx(account)``.
"""

from __future__ import annotations

from concurrent.futures import Executor, ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, TypeVar

from .amm import AmmInfo, empty_amm_info, parse_amm_info
from .book import aggregate, parse_offers
from .core.amounts import Asset
from .core.datatypes import OrderBook, Trade
from .trades import TradeCache, TradeCacheKey, issuer_account_for, reconstruct

T = TypeVar("T")

# Debug printing control
DEBUG_MARKET = False

def _dbg(msg: str) -> None:
    if DEBUG_MARKET:
        print(f"[MARKET] {msg}")


# ---------------------------------------------------------------------------
# Single pieces
# ---------------------------------------------------------------------------

def fetch_order_book(
    source: Any,
    base: Asset,
    quote: Asset,
    *,
    limit: Optional[int] = None,
    domain: Optional[str] = None,
) -> OrderBook:
    """Fetch both book directions and aggregate them against base/quote.

    Both raw lists are passed through whole: classification by currency
    happens in `aggregate`, not by which request returned the offer.
    """
    sell_side = source.book_offers(base, quote, domain=domain)
    buy_side = source.book_offers(quote, base, domain=domain)
    offers = parse_offers([*sell_side, *buy_side])
    return aggregate(offers, base, quote, limit, domain=domain)


def fetch_amm_info(source: Any, base: Asset, quote: Asset) -> AmmInfo:
    """AMM snapshot for the pair; a missing pool is the empty shape, not an error."""
    result = source.amm_info(base, quote)
    if result is None:
        return empty_amm_info(base, quote)
    return parse_amm_info(result, base, quote)


def fetch_trades(
    source: Any,
    base: Asset,
    quote: Asset,
    *,
    cache: TradeCache,
    network: str = "",
    domain: Optional[str] = None,
) -> List[Trade]:
    """Scan the issuer's window, reconstruct trades and merge them into `cache`."""
    entries = source.account_tx(issuer_account_for(base, quote))
    fresh = reconstruct(entries, base, quote, domain=domain, limit=cache.capacity)
    return cache.merge(TradeCacheKey.for_pair(network, base, quote, domain), fresh)


# ---------------------------------------------------------------------------
# Composition
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class MarketData:
    base: Asset
    quote: Asset
    order_book: Optional[OrderBook]
    amm: Optional[AmmInfo]
    trades: Optional[List[Trade]]

    def to_dict(self) -> Dict[str, Any]:
        book = self.order_book
        return {
            "base": self.base.to_dict(),
            "quote": self.quote.to_dict(),
            "orderbook": (
                {"buy": [b.to_dict() for b in book.bids], "sell": [a.to_dict() for a in book.asks]}
                if book is not None
                else None
            ),
            "depth": book.to_dict()["depth"] if book is not None else None,
            "amm": self.amm.to_dict() if self.amm is not None else None,
            "trades": [t.to_dict() for t in self.trades] if self.trades is not None else None,
        }


def _isolated(name: str, fn: Callable[[], T]) -> Optional[T]:
    try:
        return fn()
    except Exception as exc:
        # Partial failure: this piece becomes None, the others still return.
        _dbg(f"{name} unavailable: {type(exc).__name__}: {exc}")
        return None


def fetch_market_data(
    source: Any,
    base: Asset,
    quote: Asset,
    *,
    cache: TradeCache,
    network: str = "",
    limit: Optional[int] = None,
    domain: Optional[str] = None,
    include_amm: bool = True,
    executor: Optional[Executor] = None,
) -> MarketData:
    """Fetch order book, AMM and trades concurrently; each piece fails independently.

    AMM pools are not domain-scoped, so a domain query leaves `amm` as None.
    """
    jobs: Dict[str, Callable[[], Any]] = {
        "orderbook": lambda: fetch_order_book(source, base, quote, limit=limit, domain=domain),
        "trades": lambda: fetch_trades(source, base, quote, cache=cache, network=network, domain=domain),
    }
    if include_amm and domain is None:
        jobs["amm"] = lambda: fetch_amm_info(source, base, quote)

    own = executor is None
    ex = executor if executor is not None else ThreadPoolExecutor(max_workers=len(jobs))
    try:
        futures = {name: ex.submit(_isolated, name, fn) for name, fn in jobs.items()}
        results = {name: fut.result() for name, fut in futures.items()}
    finally:
        if own:
            ex.shutdown(wait=True)

    return MarketData(
        base=base,
        quote=quote,
        order_book=results.get("orderbook"),
        amm=results.get("amm"),
        trades=results.get("trades"),
    )


__all__ = [
    "fetch_order_book",
    "fetch_amm_info",
    "fetch_trades",
    "MarketData",
    "fetch_market_data",
]
