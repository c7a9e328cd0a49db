from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict, List, Optional

import pytest

from xrpl_market.amm import AmmParams
from xrpl_market.core import Asset, UpstreamUnavailable


ISSUER = "rIssuerUSDxxxxxxxxxxxxxxxxxxxxxx"
ISSUER_2 = "rIssuerEURxxxxxxxxxxxxxxxxxxxxxx"


# -----------------------------
# Fakes
# -----------------------------

class FakeSource:
    """Minimal stand-in for XrplRpcClient.

    - books: {(gets_code, pays_code): [offer rows]}
    - amm: amm_info result dict, or None for "no pool"
    - txs: account_tx entries
    - fail: names of methods that raise UpstreamUnavailable
    """

    def __init__(
        self,
        books: Optional[Dict[tuple, List[Dict[str, Any]]]] = None,
        amm: Optional[Dict[str, Any]] = None,
        txs: Optional[List[Dict[str, Any]]] = None,
        fail: tuple = (),
    ) -> None:
        self.books = books or {}
        self.amm = amm
        self.txs = txs or []
        self.fail = set(fail)
        self.calls: List[tuple] = []

    def _maybe_fail(self, name: str) -> None:
        self.calls.append((name,))
        if name in self.fail:
            raise UpstreamUnavailable(f"{name} down", method=name)

    def book_offers(self, taker_gets: Asset, taker_pays: Asset, *, domain=None):
        self._maybe_fail("book_offers")
        return list(self.books.get((taker_gets.code, taker_pays.code), []))

    def amm_info(self, asset: Asset, asset2: Asset):
        self._maybe_fail("amm_info")
        return self.amm

    def account_tx(self, account: str):
        self._maybe_fail("account_tx")
        return list(self.txs)


# -----------------------------
# Pytest fixtures
# -----------------------------

@pytest.fixture()
def usd() -> Asset:
    return Asset("USD", ISSUER)


@pytest.fixture()
def eur() -> Asset:
    return Asset("EUR", ISSUER_2)


@pytest.fixture()
def xrp() -> Asset:
    return Asset("XRP")


@pytest.fixture()
def pool_params() -> AmmParams:
    # B=1000 base, Q=10000 quote, 1% fee
    return AmmParams(Decimal("1000"), Decimal("10000"), Decimal("0.01"))


@pytest.fixture()
def fake_source():
    """Factory: fake_source(books=..., amm=..., txs=..., fail=...)."""
    return FakeSource
