import threading
from concurrent.futures import ThreadPoolExecutor
from decimal import Decimal, getcontext, localcontext

from xrpl_market.core import Asset
from xrpl_market.market import fetch_amm_info, fetch_market_data, fetch_order_book, fetch_trades
from xrpl_market.trades import TradeCache, TradeCacheKey, reconstruct

ISS = "rIssuerUSDxxxxxxxxxxxxxxxxxxxxxx"
TAKER = "rTakerxxxxxxxxxxxxxxxxxxxxxxxxxx"
MAKER = "rMakerxxxxxxxxxxxxxxxxxxxxxxxxxx"
USD = Asset("USD", ISS)
XRP = Asset("XRP")


# -----------------------------
# Raw ledger fixtures
# -----------------------------

def _usd(value):
    return {"currency": "USD", "issuer": ISS, "value": value}


ASK_ROW = {"Account": "rA", "TakerGets": _usd("50"), "TakerPays": "500000000", "Sequence": 1, "Flags": 0}
BID_ROW = {"Account": "rB", "TakerGets": "600000000", "TakerPays": _usd("60"), "Sequence": 2, "Flags": 0}

AMM_RESULT = {
    "amm": {
        "account": "rAMM",
        "amount": "1000000000",
        "amount2": _usd("100"),
        "lp_token": {"currency": "03" + "00" * 19, "issuer": "rAMM", "value": "316"},
        "trading_fee": 1000,
    },
    "status": "success",
}


def _trade_entry(h, when, base="10", maker_after="600000000"):
    line = lambda low, high, prev, final: {"ModifiedNode": {
        "LedgerEntryType": "RippleState",
        "FinalFields": {
            "Balance": {"currency": "USD", "issuer": "rrrrrrrrrrrrrrrrrrrrBZbvji", "value": final},
            "LowLimit": {"issuer": low},
            "HighLimit": {"issuer": high},
        },
        "PreviousFields": {"Balance": {"currency": "USD", "issuer": "rrrrrrrrrrrrrrrrrrrrBZbvji", "value": prev}},
    }}
    return {
        "tx": {
            "TransactionType": "OfferCreate",
            "Account": TAKER,
            "Fee": "12",
            "TakerPays": _usd(base),
            "TakerGets": "100000000",
        },
        "meta": {"TransactionResult": "tesSUCCESS", "AffectedNodes": [
            line(TAKER, ISS, "0", base),
            {"ModifiedNode": {
                "LedgerEntryType": "AccountRoot",
                "FinalFields": {"Account": MAKER, "Balance": maker_after},
                "PreviousFields": {"Balance": "500000000"},
            }},
        ]},
        "close_time_iso": when,
        "hash": h,
    }


def _source(fake_source, **kw):
    kw.setdefault("books", {("USD", "XRP"): [ASK_ROW], ("XRP", "USD"): [BID_ROW]})
    kw.setdefault("amm", AMM_RESULT)
    kw.setdefault("txs", [_trade_entry("T1", "2026-03-01T12:00:00Z")])
    return fake_source(**kw)


# -----------------------------
# Single pieces
# -----------------------------

def test_fetch_order_book_classifies_by_currency(fake_source):
    # both rows returned by the same request; classification must not care
    src = fake_source(books={("USD", "XRP"): [ASK_ROW, BID_ROW]})
    book = fetch_order_book(src, USD, XRP)
    print("[orderbook]", book.to_dict())
    assert [a.account for a in book.asks] == ["rA"]
    assert [b.account for b in book.bids] == ["rB"]
    assert book.asks[0].price == Decimal(10)


def test_fetch_amm_info_missing_pool_is_empty_shape(fake_source):
    info = fetch_amm_info(fake_source(amm=None), USD, XRP)
    assert not info.exists
    assert info.to_dict()["asset1Value"] == "0"
    present = fetch_amm_info(fake_source(amm=AMM_RESULT), USD, XRP)
    assert present.exists and present.spot_price == Decimal(10)


def test_fetch_trades_merges_into_cache(fake_source):
    cache = TradeCache(capacity=5)
    fetch_trades(_source(fake_source), USD, XRP, cache=cache, network="testnet")
    newer = _source(fake_source, txs=[_trade_entry("T2", "2026-03-01T13:00:00Z")])
    out = fetch_trades(newer, USD, XRP, cache=cache, network="testnet")
    print("[trades]", [t.hash for t in out])
    assert [t.hash for t in out] == ["T2", "T1"]
    assert len(cache.get(TradeCacheKey.for_pair("testnet", USD, XRP))) == 2


# -----------------------------
# Composition
# -----------------------------

def test_fetch_market_data_all_pieces(fake_source):
    data = fetch_market_data(_source(fake_source), USD, XRP, cache=TradeCache(), network="testnet")
    d = data.to_dict()
    print("[market]", d)
    assert d["orderbook"]["sell"][0]["price"] == "10"
    assert d["orderbook"]["buy"][0]["amount"] == "60"
    assert d["depth"]["askVolume"] == "50"
    assert d["amm"]["exists"] is True
    assert d["amm"]["tradingFeeFormatted"] == "1%"
    assert [t["hash"] for t in d["trades"]] == ["T1"]
    assert d["trades"][0]["side"] == "buy"


def test_failed_piece_is_none_and_others_survive(fake_source):
    data = fetch_market_data(_source(fake_source, fail=("amm_info",)), USD, XRP, cache=TradeCache())
    assert data.amm is None
    assert data.order_book is not None and data.trades is not None

    data = fetch_market_data(_source(fake_source, fail=("book_offers", "account_tx")), USD, XRP, cache=TradeCache())
    d = data.to_dict()
    assert d["orderbook"] is None and d["depth"] is None and d["trades"] is None
    assert d["amm"]["exists"] is True


def test_domain_query_skips_amm(fake_source):
    src = _source(fake_source)
    data = fetch_market_data(src, USD, XRP, cache=TradeCache(), domain="D1")
    assert data.amm is None
    assert ("amm_info",) not in src.calls
    # open-market offers are not visible inside a domain
    assert data.order_book.is_empty()


def test_include_amm_false_and_external_executor(fake_source):
    src = _source(fake_source)
    with ThreadPoolExecutor(max_workers=2) as ex:
        data = fetch_market_data(src, USD, XRP, cache=TradeCache(), include_amm=False, executor=ex)
        # executor is still usable: it was not shut down
        assert ex.submit(lambda: 1).result() == 1
    assert data.amm is None
    assert data.order_book is not None


# -----------------------------
# Precision across threads
# -----------------------------

def _third_price_entry():
    # 3 USD for 7 XRP: the price does not terminate
    return _trade_entry("P1", "2026-03-01T12:00:00Z", base="3", maker_after="507000000")


def test_threaded_prices_match_direct_prices(fake_source):
    entry = _third_price_entry()
    direct = reconstruct([entry], USD, XRP)[0].price
    data = fetch_market_data(_source(fake_source, txs=[entry]), USD, XRP, cache=TradeCache())
    threaded = data.trades[0].price
    with localcontext() as ctx:
        ctx.prec = 40
        expected = Decimal(7) / Decimal(3)
    print(f"[precision] direct={direct} threaded={threaded}")
    assert direct == threaded == expected


def test_worker_with_default_context_keeps_full_precision():
    entry = _third_price_entry()
    out = {}

    def worker():
        getcontext().prec = 28
        out["price"] = reconstruct([entry], USD, XRP)[0].price

    th = threading.Thread(target=worker)
    th.start()
    th.join()
    assert out["price"] == reconstruct([entry], USD, XRP)[0].price
    assert len(out["price"].as_tuple().digits) == 40
