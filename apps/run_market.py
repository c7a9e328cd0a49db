#!/usr/bin/env python3
"""Fetch and print market data (order book, AMM, trades) for one XRPL pair."""

from __future__ import annotations

import argparse
import json
import sys
from typing import Any, Dict, List, Optional

from xrpl_market import amm, book, estimate, market, networks, rpc, trades
from xrpl_market.core import Asset, MarketError, fmt
from xrpl_market.networks import NETWORKS, resolve_network, rpc_url_for
from xrpl_market.trades import TradeCache, issuer_account_for

WHAT = ("market", "orderbook", "amm", "trades")


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Reconstruct market state for an XRPL currency pair.")
    p.add_argument("--network", default=None, help=f"One of {sorted(NETWORKS)} (default: testnet)")
    p.add_argument("--rpc", default=None, help="JSON-RPC endpoint override")
    p.add_argument("--base", required=True, help="Base currency code (XRP for native)")
    p.add_argument("--base-issuer", default=None, help="Base issuer account (issued assets only)")
    p.add_argument("--quote", required=True, help="Quote currency code (XRP for native)")
    p.add_argument("--quote-issuer", default=None, help="Quote issuer account (issued assets only)")
    p.add_argument("--domain", default=None, help="Permissioned domain id (omit for the open market)")
    p.add_argument("--limit", type=int, default=None, help="Ladder depth per side (default: all)")
    p.add_argument("--what", choices=WHAT, default="market", help="Which piece to fetch")
    p.add_argument("--retries", type=int, default=4, help="Retries for transport / rate-limit errors")
    p.add_argument("--timeout", type=float, default=30.0, help="Per-request timeout in seconds")
    p.add_argument("--debug", action="store_true", help="Print debug traces from the library")
    p.add_argument("--dry-run", action="store_true", help="Print planned JSON-RPC requests and exit")
    return p.parse_args(argv)


def planned_requests(base: Asset, quote: Asset, what: str, domain: Optional[str]) -> List[Dict[str, Any]]:
    reqs: List[Dict[str, Any]] = []
    if what in ("market", "orderbook"):
        for gets, pays in ((base, quote), (quote, base)):
            params: Dict[str, Any] = {"taker_gets": gets.to_ledger(), "taker_pays": pays.to_ledger()}
            if domain:
                params["domain"] = domain
            reqs.append(rpc.XrplRpcClient.payload("book_offers", params))
    if what == "amm" or (what == "market" and domain is None):
        reqs.append(rpc.XrplRpcClient.payload("amm_info", {"asset": base.to_ledger(), "asset2": quote.to_ledger()}))
    if what in ("market", "trades"):
        reqs.append(rpc.XrplRpcClient.payload("account_tx", {"account": issuer_account_for(base, quote)}))
    return reqs


def _set_debug(on: bool) -> None:
    for mod in (fmt, amm, book, estimate, market, networks, rpc, trades):
        for name in dir(mod):
            if name.startswith("DEBUG_"):
                setattr(mod, name, on)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    try:
        base = Asset(args.base, args.base_issuer)
        quote = Asset(args.quote, args.quote_issuer)
    except MarketError as exc:
        print(f"invalid pair: {exc}", file=sys.stderr)
        return 2
    network = resolve_network(args.network)
    url = args.rpc or rpc_url_for(network)

    if args.dry_run:
        print(f"[dry-run] {network} via {url}")
        for req in planned_requests(base, quote, args.what, args.domain):
            print(json.dumps(req))
        return 0

    _set_debug(args.debug)
    client = rpc.XrplRpcClient(url, retries=args.retries, timeout=args.timeout)
    try:
        if args.what == "orderbook":
            out: Any = market.fetch_order_book(client, base, quote, limit=args.limit, domain=args.domain).to_dict()
        elif args.what == "amm":
            out = market.fetch_amm_info(client, base, quote).to_dict()
        elif args.what == "trades":
            ts = market.fetch_trades(client, base, quote, cache=TradeCache(), network=network, domain=args.domain)
            out = {"base": base.to_dict(), "quote": quote.to_dict(), "trades": [t.to_dict() for t in ts]}
        else:
            out = market.fetch_market_data(
                client, base, quote,
                cache=TradeCache(), network=network, limit=args.limit, domain=args.domain,
            ).to_dict()
    except MarketError as exc:
        print(f"fetch failed: {exc}", file=sys.stderr)
        return 1
    print(json.dumps(out, indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
