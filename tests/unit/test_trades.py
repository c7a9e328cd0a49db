import pytest
from decimal import Decimal

from xrpl_market.core import Asset
from xrpl_market.core.constants import TF_HYBRID
from xrpl_market.core.exc import InvalidAsset
from xrpl_market.trades import (
    balance_changes,
    issuer_account_for,
    parse_filled_orders,
    reconstruct,
    tx_hash,
    tx_time,
)

ISS = "rIssuerUSDxxxxxxxxxxxxxxxxxxxxxx"
TAKER = "rTakerxxxxxxxxxxxxxxxxxxxxxxxxxx"
MAKER = "rMakerxxxxxxxxxxxxxxxxxxxxxxxxxx"
USD = Asset("USD", ISS)
XRP = Asset("XRP")
RLUSD_HEX = "524C555344000000000000000000000000000000"


# -----------------------------
# Metadata builders
# -----------------------------

def _account_root(account, prev_drops, final_drops):
    return {"ModifiedNode": {
        "LedgerEntryType": "AccountRoot",
        "FinalFields": {"Account": account, "Balance": final_drops},
        "PreviousFields": {"Balance": prev_drops},
    }}


def _trust_line(low, high, prev, final, currency="USD"):
    bal = lambda v: {"currency": currency, "issuer": "rrrrrrrrrrrrrrrrrrrrBZbvji", "value": v}
    return {"ModifiedNode": {
        "LedgerEntryType": "RippleState",
        "FinalFields": {
            "Balance": bal(final),
            "LowLimit": {"currency": currency, "issuer": low, "value": "1000"},
            "HighLimit": {"currency": currency, "issuer": high, "value": "0"},
        },
        "PreviousFields": {"Balance": bal(prev)},
    }}


def _entry(nodes, *, tx_hash="H1", result="tesSUCCESS", ttype="OfferCreate", pays=None, gets=None, **tx_extra):
    tx = {
        "TransactionType": ttype,
        "Account": TAKER,
        "Fee": "12",
        "TakerPays": pays if pays is not None else {"currency": "USD", "issuer": ISS, "value": "10"},
        "TakerGets": gets if gets is not None else "100000000",
        "hash": tx_hash,
    }
    tx.update(tx_extra)
    return {
        "tx": tx,
        "meta": {"TransactionResult": result, "AffectedNodes": nodes},
        "close_time_iso": "2026-03-01T12:00:00Z",
        "hash": tx_hash,
    }


def _buy_entry(**kw):
    # Taker buys 10 USD for 100 XRP from the maker.
    nodes = [
        _trust_line(TAKER, ISS, "0", "10"),
        _account_root(TAKER, "1000000000", "899999988"),
        _account_root(MAKER, "500000000", "600000000"),
        _trust_line(ISS, MAKER, "-50", "-40"),
    ]
    return _entry(nodes, **kw)


def _sell_entry(**kw):
    # Taker sells 10 USD and receives 100 XRP (net of the 12-drop fee).
    nodes = [
        _account_root(TAKER, "1000000000", "1099999988"),
        _trust_line(TAKER, ISS, "10", "0"),
        _account_root(MAKER, "600000000", "500000000"),
        _trust_line(MAKER, ISS, "0", "10"),
    ]
    kw.setdefault("pays", "100000000")
    kw.setdefault("gets", {"currency": "USD", "issuer": ISS, "value": "10"})
    return _entry(nodes, **kw)


# -----------------------------
# balance_changes
# -----------------------------

def test_balance_changes_mirror_trust_lines():
    changes = balance_changes(_buy_entry()["meta"])
    for ch in changes:
        print(f"  {ch.account} {ch.currency}/{ch.issuer} {ch.value}")
    by_key = {(c.account, c.currency): c.value for c in changes if c.account != ISS}
    assert by_key[(TAKER, "USD")] == Decimal(10)
    assert by_key[(TAKER, "XRP")] == Decimal("-100.000012")
    assert by_key[(MAKER, "XRP")] == Decimal(100)
    assert by_key[(MAKER, "USD")] == Decimal(-10)
    issuer_legs = sorted(c.value for c in changes if c.account == ISS)
    assert issuer_legs == [Decimal(-10), Decimal(10)]


def test_balance_changes_created_trust_line():
    meta = {"AffectedNodes": [{"CreatedNode": {
        "LedgerEntryType": "RippleState",
        "NewFields": {
            "Balance": {"currency": "USD", "issuer": "rrrrrrrrrrrrrrrrrrrrBZbvji", "value": "-3"},
            "LowLimit": {"issuer": ISS},
            "HighLimit": {"issuer": MAKER},
        },
    }}]}
    changes = balance_changes(meta)
    assert [(c.account, c.value) for c in changes] == [(ISS, Decimal(-3)), (MAKER, Decimal(3))]


def test_balance_changes_ignores_unrelated_nodes():
    meta = {"AffectedNodes": [
        {"DeletedNode": {"LedgerEntryType": "Offer", "FinalFields": {}}},
        {"ModifiedNode": {"LedgerEntryType": "DirectoryNode", "FinalFields": {}}},
        "junk",
    ]}
    assert balance_changes(meta) == []
    assert balance_changes({}) == []


# -----------------------------
# reconstruct
# -----------------------------

def test_reconstruct_buy_excludes_issuer_leg():
    trades = reconstruct([_buy_entry()], USD, XRP)
    assert len(trades) == 1
    t = trades[0]
    print("[buy]", t)
    assert t.side == "buy"
    assert t.base_amount == Decimal(10)
    assert t.quote_amount == Decimal(100)
    assert t.price == Decimal(10)
    assert t.account == TAKER
    assert t.time == "2026-03-01T12:00:00Z"
    assert t.to_dict()["price"] == "10.0000"
    assert t.to_dict()["quoteAmount"] == "100.000"


def test_reconstruct_sell_subtracts_submitter_fee():
    t = reconstruct([_sell_entry(tx_hash="H2")], USD, XRP)[0]
    print("[sell]", t)
    assert t.side == "sell"
    assert t.base_amount == Decimal(10)
    assert t.quote_amount == Decimal("99.999976")
    assert t.hash == "H2"


def test_reconstruct_handles_hex_currency_codes():
    rlusd = Asset("RLUSD", ISS)
    nodes = [
        _trust_line(TAKER, ISS, "0", "10", currency=RLUSD_HEX),
        _account_root(MAKER, "500000000", "600000000"),
    ]
    entry = _entry(nodes, pays={"currency": RLUSD_HEX, "issuer": ISS, "value": "10"})
    t = reconstruct([entry], rlusd, XRP)[0]
    assert t.side == "buy" and t.price == Decimal(10)


def test_reconstruct_skips_non_trades():
    entries = [
        _buy_entry(result="tecKILLED"),
        _buy_entry(ttype="Payment"),
        _entry([_account_root(TAKER, "1000000000", "999999988")]),
        {"meta": {}, "hash": "no-tx"},
        _entry([{"ModifiedNode": {
            "LedgerEntryType": "AccountRoot",
            "FinalFields": {"Account": MAKER, "Balance": "abc"},
            "PreviousFields": {"Balance": "1"},
        }}], tx_hash="BAD"),
    ]
    assert reconstruct(entries, USD, XRP) == []


def test_reconstruct_respects_limit():
    entries = [_buy_entry(tx_hash=f"H{i}") for i in range(5)]
    assert [t.hash for t in reconstruct(entries, USD, XRP, limit=2)] == ["H0", "H1"]


def test_reconstruct_domain_filtering():
    scoped = _buy_entry(tx_hash="D", DomainID="D1")
    hybrid = _buy_entry(tx_hash="HY", DomainID="D1", Flags=TF_HYBRID)
    open_ = _buy_entry(tx_hash="O")
    entries = [scoped, hybrid, open_]
    assert [t.hash for t in reconstruct(entries, USD, XRP)] == ["HY", "O"]
    assert [t.hash for t in reconstruct(entries, USD, XRP, domain="D1")] == ["D", "HY"]


# -----------------------------
# Entry helpers
# -----------------------------

def test_tx_time_sources():
    assert tx_time({"close_time_iso": "2026-01-02T03:04:05Z", "date": 0}) == "2026-01-02T03:04:05Z"
    assert tx_time({"tx": {"date": 0}}) == "2000-01-01T00:00:00Z"
    assert tx_time({"date": 100}) == "2000-01-01T00:01:40Z"
    assert tx_time({"tx": {}}) == ""


def test_tx_hash_sources():
    assert tx_hash({"hash": "A"}) == "A"
    assert tx_hash({"tx_json": {"hash": "B"}}) == "B"
    assert tx_hash({}) == ""


def test_issuer_account_for_pair():
    assert issuer_account_for(USD, XRP) == ISS
    assert issuer_account_for(XRP, USD) == ISS
    with pytest.raises(InvalidAsset):
        issuer_account_for(XRP, XRP)


# -----------------------------
# Wallet fills
# -----------------------------

def test_parse_filled_orders_for_wallet():
    entries = [
        _buy_entry(tx_hash="F1"),
        _entry([_account_root(TAKER, "1000000000", "999999988")], tx_hash="FEE_ONLY"),
        _buy_entry(tx_hash="OTHER", Account=MAKER),
    ]
    fills = parse_filled_orders(entries, TAKER, USD, XRP)
    print("[fills]", fills)
    assert [f.hash for f in fills] == ["F1"]
    f = fills[0]
    assert f.side == "buy"
    assert f.base_amount == Decimal(10)
    assert f.quote_amount == Decimal("100.000012")


def test_non_object_entries_are_skipped():
    entries = ["garbage", None, 42, _buy_entry(tx_hash="OK")]
    assert [t.hash for t in reconstruct(entries, USD, XRP)] == ["OK"]
    assert [f.hash for f in parse_filled_orders(entries, TAKER, USD, XRP)] == ["OK"]


def test_malformed_limit_field_is_skipped():
    bad = _entry([{"ModifiedNode": {
        "LedgerEntryType": "RippleState",
        "FinalFields": {
            "Balance": {"currency": "USD", "issuer": "rrrrrrrrrrrrrrrrrrrrBZbvji", "value": "1"},
            "LowLimit": "not-an-object",
            "HighLimit": {"issuer": ISS},
        },
        "PreviousFields": {"Balance": {"currency": "USD", "issuer": "rrrrrrrrrrrrrrrrrrrrBZbvji", "value": "0"}},
    }}], tx_hash="BAD")
    entries = [bad, _buy_entry(tx_hash="OK")]
    assert [t.hash for t in reconstruct(entries, USD, XRP)] == ["OK"]
    assert [f.hash for f in parse_filled_orders(entries, TAKER, USD, XRP)] == ["OK"]
