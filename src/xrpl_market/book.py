"""Aggregate raw ledger offers into bid/ask ladders with cumulative depth.

book_offers splits offers by the lsfSell flag, not by which side of the pair
is base. Every offer is therefore re-classified against the caller's base/quote:

- ask: creator sells base  (TakerGets is base, TakerPays is quote)
- bid: creator buys base   (TakerPays is base, TakerGets is quote)

Anything else is dropped silently. Prices are always quote per base.
"""

from __future__ import annotations

from decimal import Decimal, localcontext
from typing import Any, Iterable, List, Optional, Tuple

from .core.amounts import Amount, Asset
from .core.constants import DECIMAL_PRECISION, LSF_HYBRID
from .core.datatypes import DepthLevel, DepthSummary, Level, Offer, OrderBook
from .core.exc import AmountDomainError, InvalidAsset
from .core.fmt import ZERO

# Debug printing control
DEBUG_BOOK = False

def _dbg(msg: str) -> None:
    if DEBUG_BOOK:
        print(f"[BOOK] {msg}")


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------

def parse_offers(rows: Iterable[dict[str, Any]]) -> List[Offer]:
    """Parse raw offer rows, skipping (and tracing) malformed ones."""
    out: List[Offer] = []
    for row in rows:
        if not isinstance(row, dict):
            _dbg(f"skip non-object offer row: {row!r}")
            continue
        try:
            out.append(Offer.from_ledger(row))
        except (AmountDomainError, InvalidAsset, TypeError, ValueError) as exc:
            _dbg(f"skip malformed offer {row.get('Account')}:{row.get('Sequence')}: {exc}")
    return out


# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------

def _is(amount: Amount, asset: Asset) -> bool:
    return amount.asset == asset


def _price(counter: Decimal, base_amount: Decimal) -> Decimal:
    # Zero base amount prices at 0 instead of raising.
    if base_amount == 0:
        return ZERO
    return counter / base_amount


def in_domain(offer: Offer, domain: Optional[str]) -> bool:
    """Permissioned-domain scoping.

    Unscoped queries see open offers and hybrid offers; a domain query sees
    that domain's offers and hybrid offers.
    """
    if offer.flags & LSF_HYBRID:
        return True
    if domain is None:
        return not offer.domain_id
    return offer.domain_id == domain


def classify_offer(offer: Offer, base: Asset, quote: Asset) -> Optional[Tuple[str, Level]]:
    """Return ("ask"|"bid", Level) for `offer`, or None when it is not on this pair."""
    gets, pays = offer.gets, offer.pays
    if _is(gets, base) and _is(pays, quote):
        amount, total = gets.value, pays.value
        side = "ask"
    elif _is(pays, base) and _is(gets, quote):
        amount, total = pays.value, gets.value
        side = "bid"
    else:
        return None
    return side, Level(
        price=_price(total, amount),
        amount=amount,
        total=total,
        account=offer.creator,
        sequence=offer.sequence,
    )


def _usable(level: Level) -> bool:
    return level.amount > 0 and level.price > 0


def build_asks(offers: Iterable[Offer], base: Asset, quote: Asset) -> List[Level]:
    """Asks sorted ascending by price (best first); ties keep input order."""
    asks: List[Level] = []
    for o in offers:
        c = classify_offer(o, base, quote)
        if c is not None and c[0] == "ask" and _usable(c[1]):
            asks.append(c[1])
    asks.sort(key=lambda lvl: lvl.price)
    return asks


def build_bids(offers: Iterable[Offer], base: Asset, quote: Asset) -> List[Level]:
    """Bids sorted descending by price (best first); ties keep input order."""
    bids: List[Level] = []
    for o in offers:
        c = classify_offer(o, base, quote)
        if c is not None and c[0] == "bid" and _usable(c[1]):
            bids.append(c[1])
    # list.sort is stable under reverse=True as well
    bids.sort(key=lambda lvl: lvl.price, reverse=True)
    return bids


# ---------------------------------------------------------------------------
# Depth
# ---------------------------------------------------------------------------

def cumulative_depth(levels: Iterable[Level]) -> List[DepthLevel]:
    """Running base size from the best level outward (levels must be best-first)."""
    out: List[DepthLevel] = []
    running = ZERO
    for lvl in levels:
        running += lvl.amount
        out.append(DepthLevel(price=lvl.price, cumulative_size=running))
    return out


def depth_summary(asks: List[Level], bids: List[Level]) -> DepthSummary:
    """Bid volume is quote offered by bidders; ask volume is base offered by askers."""
    return DepthSummary(
        bid_volume=sum((b.total for b in bids), ZERO),
        bid_levels=len(bids),
        ask_volume=sum((a.amount for a in asks), ZERO),
        ask_levels=len(asks),
    )


def mid_price(book: OrderBook) -> Optional[Decimal]:
    """Mean of best bid and best ask; None if either side is empty."""
    if not book.asks or not book.bids:
        return None
    with localcontext() as ctx:
        ctx.prec = DECIMAL_PRECISION
        return (book.asks[0].price + book.bids[0].price) / 2


# ---------------------------------------------------------------------------
# Aggregate
# ---------------------------------------------------------------------------

def aggregate(
    offers: Iterable[Offer],
    base: Asset,
    quote: Asset,
    limit: Optional[int] = None,
    *,
    domain: Optional[str] = None,
) -> OrderBook:
    """Classify, price, sort and accumulate offers for `base`/`quote`.

    Depth and the summary are computed on the full ladders before `limit`
    truncates them, so boundary figures stay correct. `limit=None` keeps all.
    """
    scoped = [o for o in offers if in_domain(o, domain)]
    with localcontext() as ctx:
        ctx.prec = DECIMAL_PRECISION
        asks = build_asks(scoped, base, quote)
        bids = build_bids(scoped, base, quote)
        ask_depth = cumulative_depth(asks)
        bid_depth = cumulative_depth(bids)
        summary = depth_summary(asks, bids)
    _dbg(f"aggregate {base}/{quote}: {len(asks)} asks, {len(bids)} bids (domain={domain})")
    if limit is not None:
        n = max(0, int(limit))
        asks, bids = asks[:n], bids[:n]
        ask_depth, bid_depth = ask_depth[:n], bid_depth[:n]
    return OrderBook(
        base=base,
        quote=quote,
        asks=asks,
        bids=bids,
        ask_depth=ask_depth,
        bid_depth=bid_depth,
        summary=summary,
    )


__all__ = [
    "parse_offers",
    "in_domain",
    "classify_offer",
    "build_asks",
    "build_bids",
    "cumulative_depth",
    "depth_summary",
    "mid_price",
    "aggregate",
]
