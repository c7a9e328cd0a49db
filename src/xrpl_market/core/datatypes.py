"""
Core datatypes for market reconstruction.

These datatypes are immutable (where appropriate) so that aggregation and
cache merging stay deterministic and testable. Every `to_dict` renders
numbers as decimal strings.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, List, Literal, Optional

from .amounts import Amount, Asset, amount_from_ledger
from .fmt import fmt_plain, fmt_sig, try_decimal

Side = Literal["buy", "sell"]
BUY: Side = "buy"
SELL: Side = "sell"


# ---------------------------------------------------------------------------
# Offers
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Offer:
    """Snapshot of one resting ledger offer (never mutated here).

    `taker_gets_funded` / `taker_pays_funded` are the funded remainders the
    book_offers API reports when the owner cannot cover the full offer.
    """

    creator: str
    taker_gets: Amount
    taker_pays: Amount
    sequence: int = 0
    flags: int = 0
    quality: Optional[Decimal] = None
    expiration: Optional[int] = None
    domain_id: Optional[str] = None
    taker_gets_funded: Optional[Amount] = None
    taker_pays_funded: Optional[Amount] = None

    @property
    def gets(self) -> Amount:
        return self.taker_gets_funded if self.taker_gets_funded is not None else self.taker_gets

    @property
    def pays(self) -> Amount:
        return self.taker_pays_funded if self.taker_pays_funded is not None else self.taker_pays

    @classmethod
    def from_ledger(cls, raw: Dict[str, Any]) -> "Offer":
        """Build from a book_offers / account_offers row (PascalCase ledger fields)."""
        gets_funded = raw.get("taker_gets_funded")
        pays_funded = raw.get("taker_pays_funded")
        quality = raw.get("quality")
        expiration = raw.get("Expiration")
        return cls(
            creator=str(raw.get("Account") or ""),
            taker_gets=amount_from_ledger(raw.get("TakerGets")),
            taker_pays=amount_from_ledger(raw.get("TakerPays")),
            sequence=int(raw.get("Sequence") or 0),
            flags=int(raw.get("Flags") or 0),
            quality=try_decimal(quality) if quality is not None else None,
            expiration=int(expiration) if expiration is not None else None,
            domain_id=raw.get("DomainID"),
            taker_gets_funded=amount_from_ledger(gets_funded) if gets_funded is not None else None,
            taker_pays_funded=amount_from_ledger(pays_funded) if pays_funded is not None else None,
        )


# ---------------------------------------------------------------------------
# Order book
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Level:
    """One priced ladder entry: `amount` base at `price` quote/base (`total` quote)."""

    price: Decimal
    amount: Decimal
    total: Decimal
    account: str = ""
    sequence: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "price": fmt_plain(self.price),
            "amount": fmt_plain(self.amount),
            "total": fmt_plain(self.total),
            "account": self.account,
            "sequence": self.sequence,
        }


@dataclass(frozen=True)
class DepthLevel:
    """How much base is available at-or-better-than `price`."""

    price: Decimal
    cumulative_size: Decimal

    def to_dict(self) -> Dict[str, str]:
        return {"price": fmt_plain(self.price), "cumulativeSize": fmt_plain(self.cumulative_size)}


@dataclass(frozen=True)
class DepthSummary:
    """Totals over the full ladders: bid volume in quote, ask volume in base."""

    bid_volume: Decimal = Decimal(0)
    bid_levels: int = 0
    ask_volume: Decimal = Decimal(0)
    ask_levels: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "bidVolume": fmt_plain(self.bid_volume),
            "bidLevels": self.bid_levels,
            "askVolume": fmt_plain(self.ask_volume),
            "askLevels": self.ask_levels,
        }


@dataclass(frozen=True)
class OrderBook:
    """Aggregated order book for a base/quote pair.

    asks: ascending by price (best ask first); bids: descending (best bid first).
    ask_depth / bid_depth run parallel to asks / bids.
    """

    base: Asset
    quote: Asset
    asks: List[Level] = field(default_factory=list)
    bids: List[Level] = field(default_factory=list)
    ask_depth: List[DepthLevel] = field(default_factory=list)
    bid_depth: List[DepthLevel] = field(default_factory=list)
    summary: DepthSummary = field(default_factory=DepthSummary)

    def is_empty(self) -> bool:
        return not self.asks and not self.bids

    def to_dict(self) -> Dict[str, Any]:
        return {
            "base": self.base.to_dict(),
            "quote": self.quote.to_dict(),
            "buy": [lvl.to_dict() for lvl in self.bids],
            "sell": [lvl.to_dict() for lvl in self.asks],
            "depth": {
                "asks": [d.to_dict() for d in self.ask_depth],
                "bids": [d.to_dict() for d in self.bid_depth],
                **self.summary.to_dict(),
            },
        }


# ---------------------------------------------------------------------------
# Trades
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Trade:
    """An executed trade reconstructed from transaction metadata.

    Amounts are kept exact; the 6-significant-figure rendering happens only in
    `to_dict`. Identity is `hash`.
    """

    side: Side
    price: Decimal
    base_amount: Decimal
    quote_amount: Decimal
    account: str
    time: str
    hash: str

    def to_dict(self) -> Dict[str, str]:
        return {
            "side": self.side,
            "price": fmt_sig(self.price),
            "baseAmount": fmt_sig(self.base_amount),
            "quoteAmount": fmt_sig(self.quote_amount),
            "account": self.account,
            "time": self.time,
            "hash": self.hash,
        }


@dataclass(frozen=True)
class FilledOrder:
    """One of a wallet's own OfferCreate fills."""

    side: Side
    price: Decimal
    base_amount: Decimal
    quote_amount: Decimal
    time: str
    hash: str

    def to_dict(self) -> Dict[str, str]:
        return {
            "side": self.side,
            "price": fmt_sig(self.price),
            "baseAmount": fmt_sig(self.base_amount),
            "quoteAmount": fmt_sig(self.quote_amount),
            "time": self.time,
            "hash": self.hash,
        }


__all__ = [
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
]
