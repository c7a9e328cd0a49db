"""Thin XRPL JSON-RPC client used to fetch the raw inputs of the pricing core.

Only three read-only methods are needed: book_offers, amm_info and account_tx.
Transport failures and rate limits are retried with exponential backoff and
jitter; ledger error results are not retried and surface as RpcError.
"""

from __future__ import annotations

import json
import random
import time
from typing import Any, Callable, Dict, List, Optional

import requests

from .core.amounts import Asset
from .core.constants import MAX_BOOK_OFFERS, TRADES_CACHE_LIMIT, TRADES_FETCH_MULTIPLIER
from .core.exc import RpcError, UpstreamUnavailable

# Debug printing control
DEBUG_RPC = False

def _dbg(msg: str) -> None:
    if DEBUG_RPC:
        print(f"[RPC] {msg}")


#: Ledger error tokens that mean "no such account / pool".
NOT_FOUND_CODES = frozenset({"actNotFound", "ammNotFound", "objectNotFound", "entryNotFound"})

#: Ledger error tokens worth retrying.
RETRYABLE_CODES = frozenset({"slowDown", "tooBusy", "noCurrent", "noNetwork"})


class _Retryable(Exception):
    pass


def _looks_rate_limited(msg: str) -> bool:
    m = msg.lower()
    return "rate" in m or "limit" in m or "too many" in m


class XrplRpcClient:
    """JSON-RPC client over a requests.Session.

    `sleep` is injectable so tests do not wait through backoff.
    """

    def __init__(
        self,
        url: str,
        *,
        session: Optional[requests.Session] = None,
        retries: int = 4,
        backoff_base: float = 0.25,
        backoff_max: float = 10.0,
        timeout: float = 30.0,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.url = url
        self.session = session if session is not None else requests.Session()
        self.retries = retries
        self.backoff_base = backoff_base
        self.backoff_max = backoff_max
        self.timeout = timeout
        self._sleep = sleep

    # --- transport ---

    @staticmethod
    def payload(method: str, params: Dict[str, Any]) -> Dict[str, Any]:
        return {"jsonrpc": "2.0", "id": 1, "method": method, "params": [params]}

    def _post_once(self, method: str, params: Dict[str, Any]) -> Dict[str, Any]:
        try:
            r = self.session.post(self.url, json=self.payload(method, params), timeout=self.timeout)
        except requests.RequestException as exc:
            raise _Retryable(f"transport: {exc}") from exc

        # Hard rate limit / server trouble
        if r.status_code == 429 or r.status_code >= 500:
            raise _Retryable(f"HTTP {r.status_code}")
        try:
            r.raise_for_status()
            out = r.json()
        except (requests.RequestException, ValueError) as exc:
            raise UpstreamUnavailable(f"{method}: bad HTTP response: {exc}", method=method) from exc

        # Some providers return JSON-RPC errors with HTTP 200
        if out.get("error") is not None:
            msg = str(out["error"].get("message", "")) if isinstance(out["error"], dict) else str(out["error"])
            if _looks_rate_limited(msg):
                raise _Retryable(f"JSON-RPC rate limit: {msg}")
            raise UpstreamUnavailable(f"{method}: {json.dumps(out)}", method=method)

        res = out.get("result") or {}
        if res.get("status") != "success":
            code = str(res.get("error") or "unknown")
            msg = str(res.get("error_message") or "")
            if code in RETRYABLE_CODES or _looks_rate_limited(msg):
                raise _Retryable(f"result {code}: {msg}")
            raise RpcError(code, msg, method=method)
        return res

    def request(self, method: str, params: Dict[str, Any]) -> Dict[str, Any]:
        """POST one JSON-RPC call and return its `result` object."""
        last: Optional[Exception] = None
        for attempt in range(self.retries + 1):
            try:
                return self._post_once(method, params)
            except _Retryable as exc:
                last = exc
                if attempt >= self.retries:
                    break
                # Exponential backoff with jitter
                sleep_s = min(self.backoff_max, self.backoff_base * (2 ** attempt))
                sleep_s = sleep_s * (0.5 + random.random())
                _dbg(f"{method} attempt {attempt + 1} failed ({exc}); sleeping {sleep_s:.2f}s")
                self._sleep(sleep_s)
        raise UpstreamUnavailable(f"{method} failed after {self.retries + 1} attempts: {last}", method=method)

    # --- ledger methods ---

    def book_offers(
        self,
        taker_gets: Asset,
        taker_pays: Asset,
        *,
        limit: int = MAX_BOOK_OFFERS,
        domain: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        params: Dict[str, Any] = {
            "taker_gets": taker_gets.to_ledger(),
            "taker_pays": taker_pays.to_ledger(),
            "limit": limit,
            "ledger_index": "validated",
        }
        if domain:
            params["domain"] = domain
        res = self.request("book_offers", params)
        return list(res.get("offers") or [])

    def amm_info(self, asset: Asset, asset2: Asset) -> Optional[Dict[str, Any]]:
        """amm_info result, or None when no pool exists for the pair."""
        try:
            return self.request("amm_info", {
                "asset": asset.to_ledger(),
                "asset2": asset2.to_ledger(),
                "ledger_index": "validated",
            })
        except RpcError as exc:
            if exc.code in NOT_FOUND_CODES:
                _dbg(f"amm_info {asset}/{asset2}: {exc.code}")
                return None
            raise

    def account_tx(self, account: str, *, limit: int = TRADES_CACHE_LIMIT * TRADES_FETCH_MULTIPLIER) -> List[Dict[str, Any]]:
        res = self.request("account_tx", {
            "account": account,
            "limit": limit,
            "ledger_index_min": -1,
            "ledger_index_max": -1,
            "forward": False,
        })
        return list(res.get("transactions") or [])


__all__ = ["XrplRpcClient", "NOT_FOUND_CODES", "RETRYABLE_CODES"]
