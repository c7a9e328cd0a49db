"""Reconstruct executed trades from an issuer's transaction window.

Every transfer of an issued asset moves a RippleState balance against its
issuer, so the issuer's account_tx window is a superset of all trades in
that asset. For each successful OfferCreate the realised amounts come from
metadata balance changes (not the offer's declared amounts), summing the
positive legs of every non-issuer account.

Reconstructed trades are merged into a bounded, hash-unique, newest-first
cache per (network, pair[, domain]).
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal, localcontext
from typing import Any, Dict, Iterable, List, NamedTuple, Optional, Tuple

from .core.amounts import Asset, xrp_from_drops
from .core.constants import (
    DECIMAL_PRECISION,
    MIN_FILL_AMOUNT,
    NATIVE_CODE,
    OFFER_CREATE,
    RIPPLE_EPOCH_OFFSET,
    TES_SUCCESS,
    TF_HYBRID,
    TRADES_CACHE_LIMIT,
)
from .core.datatypes import BUY, SELL, FilledOrder, Trade
from .core.exc import AmountDomainError, InvalidAsset
from .core.fmt import ZERO, to_decimal

# Debug printing control
DEBUG_TRADES = False

def _dbg(msg: str) -> None:
    if DEBUG_TRADES:
        print(f"[TRADES] {msg}")


_ENTRY_ERRORS = (AmountDomainError, InvalidAsset, AttributeError, KeyError, TypeError, ValueError)


# -------------------------
# Meta parsing: balance changes
# -------------------------

@dataclass(frozen=True)
class BalanceChange:
    """Signed balance movement of one account in one currency (issuer None for XRP)."""

    account: str
    currency: str
    issuer: Optional[str]
    value: Decimal


def iter_affected_nodes(meta: Dict[str, Any]) -> List[Tuple[str, Dict[str, Any]]]:
    nodes = meta.get("AffectedNodes")
    if not isinstance(nodes, list):
        return []
    out: List[Tuple[str, Dict[str, Any]]] = []
    for n in nodes:
        if not isinstance(n, dict) or not n:
            continue
        kind, body = next(iter(n.items()), (None, None))
        if kind in ("ModifiedNode", "DeletedNode", "CreatedNode") and isinstance(body, dict):
            out.append((kind, body))
    return out


def _fields(body: Dict[str, Any]) -> Tuple[Dict[str, Any], Dict[str, Any]]:
    prev = body.get("PreviousFields") if isinstance(body.get("PreviousFields"), dict) else {}
    final = body.get("FinalFields") if isinstance(body.get("FinalFields"), dict) else {}
    newf = body.get("NewFields") if isinstance(body.get("NewFields"), dict) else {}
    return prev, final or newf


def _account_root_change(kind: str, body: Dict[str, Any]) -> List[BalanceChange]:
    prev, final = _fields(body)
    account = final.get("Account")
    if not account:
        return []
    if kind == "CreatedNode":
        if final.get("Balance") is None:
            return []
        delta = xrp_from_drops(final["Balance"])
    else:
        if prev.get("Balance") is None or final.get("Balance") is None:
            return []
        delta = xrp_from_drops(final["Balance"]) - xrp_from_drops(prev["Balance"])
    if delta == 0:
        return []
    return [BalanceChange(str(account), NATIVE_CODE, None, delta)]


def _ripple_state_change(kind: str, body: Dict[str, Any]) -> List[BalanceChange]:
    prev, final = _fields(body)
    balance = final.get("Balance")
    low = (final.get("LowLimit") or {}).get("issuer")
    high = (final.get("HighLimit") or {}).get("issuer")
    if not isinstance(balance, dict) or not low or not high:
        return []
    if kind == "CreatedNode":
        delta = to_decimal(balance.get("value"))
    else:
        prev_balance = prev.get("Balance")
        if not isinstance(prev_balance, dict):
            return []
        delta = to_decimal(balance.get("value")) - to_decimal(prev_balance.get("value"))
    if delta == 0:
        return []
    currency = str(balance.get("currency"))
    # Balance is held from the low account's side; the high account sees the mirror.
    return [
        BalanceChange(str(low), currency, str(high), delta),
        BalanceChange(str(high), currency, str(low), -delta),
    ]


def balance_changes(meta: Dict[str, Any]) -> List[BalanceChange]:
    """Per-account balance movements recorded in transaction metadata."""
    out: List[BalanceChange] = []
    for kind, body in iter_affected_nodes(meta):
        entry_type = body.get("LedgerEntryType")
        if entry_type == "AccountRoot":
            out.extend(_account_root_change(kind, body))
        elif entry_type == "RippleState":
            out.extend(_ripple_state_change(kind, body))
    return out


# -------------------------
# Entry helpers
# -------------------------

def _tx_of(entry: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    tx = entry.get("tx_json") or entry.get("tx")
    return tx if isinstance(tx, dict) else None


def tx_time(entry: Dict[str, Any]) -> str:
    """close_time_iso if present, else ripple-epoch `date` as ISO-8601 UTC."""
    for k in ("close_time_iso", "time"):
        v = entry.get(k)
        if v:
            return str(v)
    tx = _tx_of(entry) or {}
    date = entry.get("date", tx.get("date"))
    if date is None or date == "":
        return ""
    if isinstance(date, int) and not isinstance(date, bool):
        ts = datetime.fromtimestamp(date + RIPPLE_EPOCH_OFFSET, tz=timezone.utc)
        return ts.strftime("%Y-%m-%dT%H:%M:%SZ")
    return str(date)


def tx_hash(entry: Dict[str, Any]) -> str:
    tx = _tx_of(entry) or {}
    return str(entry.get("hash") or tx.get("hash") or "")


def issuer_account_for(base: Asset, quote: Asset) -> str:
    """Issuer whose history covers the pair: base issuer unless base is native."""
    if not base.is_native:
        return base.issuer
    if not quote.is_native:
        return quote.issuer
    raise InvalidAsset("pair has no issued side; no issuer history to scan")


def _tx_in_domain(tx: Dict[str, Any], domain: Optional[str]) -> bool:
    if int(tx.get("Flags") or 0) & TF_HYBRID:
        return True
    tx_domain = tx.get("DomainID")
    if domain is None:
        return not tx_domain
    return tx_domain == domain


# -------------------------
# Reconstruction
# -------------------------

def _trade_from_entry(
    entry: Dict[str, Any],
    base: Asset,
    quote: Asset,
    issuer_account: str,
    domain: Optional[str],
) -> Optional[Trade]:
    tx = _tx_of(entry)
    meta = entry.get("meta") or entry.get("metaData")
    if tx is None or not isinstance(meta, dict):
        return None
    if tx.get("TransactionType") != OFFER_CREATE:
        return None
    if meta.get("TransactionResult") != TES_SUCCESS:
        return None
    if not _tx_in_domain(tx, domain):
        return None

    submitter = tx.get("Account")
    fee = xrp_from_drops(tx.get("Fee") or "0")

    base_total = ZERO
    quote_total = ZERO
    for ch in balance_changes(meta):
        # The issuer's legs mirror every holder's trust-line movement.
        if ch.account == issuer_account:
            continue
        if ch.value <= 0:
            continue
        if base.matches(ch.currency, ch.issuer):
            val = ch.value - fee if base.is_native and ch.account == submitter else ch.value
            base_total += val
        elif quote.matches(ch.currency, ch.issuer):
            val = ch.value - fee if quote.is_native and ch.account == submitter else ch.value
            quote_total += val

    # Offer rested without executing.
    if base_total <= 0 or quote_total <= 0:
        return None

    pays = tx.get("TakerPays")
    is_buy = pays is not None and Asset.from_ledger(pays) == base

    return Trade(
        side=BUY if is_buy else SELL,
        price=quote_total / base_total,
        base_amount=base_total,
        quote_amount=quote_total,
        account=str(submitter or ""),
        time=tx_time(entry),
        hash=tx_hash(entry),
    )


def reconstruct(
    entries: Iterable[Dict[str, Any]],
    base: Asset,
    quote: Asset,
    *,
    domain: Optional[str] = None,
    limit: int = TRADES_CACHE_LIMIT,
) -> List[Trade]:
    """Derive executed trades from an account_tx window (newest scan first).

    Stops once `limit` trades were found. Malformed entries are skipped.
    """
    issuer_account = issuer_account_for(base, quote)
    out: List[Trade] = []
    with localcontext() as ctx:
        ctx.prec = DECIMAL_PRECISION
        for entry in entries:
            if len(out) >= limit:
                break
            if not isinstance(entry, dict):
                _dbg(f"skip non-object transaction entry: {entry!r}")
                continue
            try:
                trade = _trade_from_entry(entry, base, quote, issuer_account, domain)
            except _ENTRY_ERRORS as exc:
                _dbg(f"skip unparsable transaction {entry.get('hash', 'unknown')}: {exc}")
                continue
            if trade is not None:
                out.append(trade)
    _dbg(f"reconstruct {base}/{quote}: {len(out)} trades")
    return out


# -------------------------
# Wallet fills
# -------------------------

def _fill_from_entry(entry: Dict[str, Any], wallet: str, base: Asset, quote: Asset) -> Optional[FilledOrder]:
    tx = _tx_of(entry)
    meta = entry.get("meta") or entry.get("metaData")
    if tx is None or not isinstance(meta, dict):
        return None
    if tx.get("TransactionType") != OFFER_CREATE:
        return None
    if meta.get("TransactionResult") != TES_SUCCESS:
        return None
    if tx.get("Account") != wallet:
        return None

    base_delta = ZERO
    quote_delta = ZERO
    for ch in balance_changes(meta):
        if ch.account != wallet:
            continue
        if base.matches(ch.currency, ch.issuer):
            base_delta += ch.value
        elif quote.matches(ch.currency, ch.issuer):
            quote_delta += ch.value

    base_amount = abs(base_delta)
    quote_amount = abs(quote_delta)
    if base_amount < MIN_FILL_AMOUNT or quote_amount < MIN_FILL_AMOUNT:
        return None
    return FilledOrder(
        side=BUY if base_delta > 0 else SELL,
        price=quote_amount / base_amount,
        base_amount=base_amount,
        quote_amount=quote_amount,
        time=tx_time(entry),
        hash=tx_hash(entry),
    )


def parse_filled_orders(
    entries: Iterable[Dict[str, Any]],
    wallet: str,
    base: Asset,
    quote: Asset,
) -> List[FilledOrder]:
    """A wallet's own OfferCreate fills on this pair, from its own account_tx.

    Side follows the sign of the wallet's base delta. Changes below 0.001 on
    either side (e.g. fee-only XRP movements) are not fills.
    """
    out: List[FilledOrder] = []
    with localcontext() as ctx:
        ctx.prec = DECIMAL_PRECISION
        for entry in entries:
            if not isinstance(entry, dict):
                _dbg(f"skip non-object transaction entry: {entry!r}")
                continue
            try:
                fill = _fill_from_entry(entry, wallet, base, quote)
            except _ENTRY_ERRORS as exc:
                _dbg(f"skip unparsable fill {entry.get('hash', 'unknown')}: {exc}")
                continue
            if fill is not None:
                out.append(fill)
    return out


# -------------------------
# Cache
# -------------------------

class TradeCacheKey(NamedTuple):
    network: str
    base_code: str
    base_issuer: Optional[str]
    quote_code: str
    quote_issuer: Optional[str]
    domain: Optional[str] = None

    @classmethod
    def for_pair(cls, network: str, base: Asset, quote: Asset, domain: Optional[str] = None) -> "TradeCacheKey":
        return cls(network or "", base.code, base.issuer, quote.code, quote.issuer, domain)

    def __str__(self) -> str:
        parts = [self.network, self.base_code, self.base_issuer or "", self.quote_code, self.quote_issuer or ""]
        if self.domain:
            parts.append(self.domain)
        return ":".join(parts)


def merge_trades(new_trades: Iterable[Trade], cached: Iterable[Trade], capacity: int = TRADES_CACHE_LIMIT) -> List[Trade]:
    """New trades ahead of cached, first hash wins, newest first, capped.

    ISO-8601 UTC times sort lexicographically; the sort is stable so equal
    times keep the fresh-before-cached order.
    """
    seen = set()
    merged: List[Trade] = []
    for t in [*new_trades, *cached]:
        if t.hash in seen:
            continue
        seen.add(t.hash)
        merged.append(t)
    merged.sort(key=lambda t: t.time, reverse=True)
    return merged[:capacity]


class TradeCache:
    """Process-lifetime trade cache with per-key locking.

    Each entry is an immutable tuple swapped in under that key's lock, so
    readers never see a half-merged list and concurrent merges on one pair
    cannot lose each other's trades.
    """

    def __init__(self, capacity: int = TRADES_CACHE_LIMIT) -> None:
        if capacity <= 0:
            raise ValueError("capacity must be > 0")
        self.capacity = capacity
        self._entries: Dict[TradeCacheKey, Tuple[Trade, ...]] = {}
        self._locks: Dict[TradeCacheKey, threading.Lock] = {}
        self._guard = threading.Lock()

    def _lock_for(self, key: TradeCacheKey) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = self._locks[key] = threading.Lock()
            return lock

    def get(self, key: TradeCacheKey) -> List[Trade]:
        return list(self._entries.get(key, ()))

    def merge(self, key: TradeCacheKey, new_trades: Iterable[Trade]) -> List[Trade]:
        fresh = list(new_trades)
        with self._lock_for(key):
            merged = merge_trades(fresh, self._entries.get(key, ()), self.capacity)
            self._entries[key] = tuple(merged)
        _dbg(f"cache {key}: +{len(fresh)} -> {len(merged)}")
        return list(merged)

    def keys(self) -> List[TradeCacheKey]:
        return list(self._entries.keys())

    def clear(self) -> None:
        with self._guard:
            self._entries.clear()
            self._locks.clear()

    def __len__(self) -> int:
        return len(self._entries)


def merge_into_cache(cache: TradeCache, key: TradeCacheKey, new_trades: Iterable[Trade]) -> List[Trade]:
    return cache.merge(key, new_trades)


__all__ = [
    "BalanceChange",
    "iter_affected_nodes",
    "balance_changes",
    "tx_time",
    "tx_hash",
    "issuer_account_for",
    "reconstruct",
    "parse_filled_orders",
    "TradeCacheKey",
    "merge_trades",
    "TradeCache",
    "merge_into_cache",
]
