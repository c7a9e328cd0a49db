from decimal import Decimal

from xrpl_market.amm import build_params, empty_amm_info, parse_amm_info
from xrpl_market.core import Asset

ISS = "rIssuerUSDxxxxxxxxxxxxxxxxxxxxxx"
USD = Asset("USD", ISS)
XRP = Asset("XRP")
LP_HEX = "03" + "7A" * 19


def _amm_result(**over):
    amm = {
        "account": "rAMMxxxxxxxxxxxxxxxxxxxxxxxxxxxxx",
        "amount": "1000000000",
        "amount2": {"currency": "USD", "issuer": ISS, "value": "500"},
        "lp_token": {"currency": LP_HEX, "issuer": "rAMMxxxxxxxxxxxxxxxxxxxxxxxxxxxxx", "value": "707.1"},
        "trading_fee": 500,
        "auction_slot": {
            "account": "rBidder",
            "discounted_fee": 50,
            "expiration": "2026-01-01T00:00:00+0000",
            "price": {"currency": LP_HEX, "issuer": "rAMMxxxxxxxxxxxxxxxxxxxxxxxxxxxxx", "value": "1.5"},
        },
        "vote_slots": [{"account": "rVoter", "trading_fee": 500, "vote_weight": 100000}],
    }
    amm.update(over)
    return {"amm": amm, "validated": True, "status": "success"}


def test_parse_orients_to_requested_pair():
    print("[amm_info] ledger lists XRP first; caller asked USD/XRP")
    info = parse_amm_info(_amm_result(), USD, XRP)
    assert info.exists
    assert info.base_value == Decimal(500)
    assert info.quote_value == Decimal(1000)
    assert info.spot_price == Decimal(2)
    assert info.trading_fee == 500
    assert info.lp_token_currency == LP_HEX
    assert info.auction_slot.price == Decimal("1.5")
    assert info.vote_slots[0].vote_weight == 100000

    flipped = parse_amm_info(_amm_result(), XRP, USD)
    assert flipped.base_value == Decimal(1000)
    assert flipped.spot_price == Decimal("0.5")


def test_pool_and_params_from_info():
    params = build_params(parse_amm_info(_amm_result(), USD, XRP).pool())
    print("params:", params)
    assert params.base_reserve == Decimal(500)
    assert params.quote_reserve == Decimal(1000)
    assert params.fee_rate == Decimal("0.005")


def test_frozen_flags_follow_orientation():
    info = parse_amm_info(_amm_result(asset_frozen=True), USD, XRP)
    # asset_frozen refers to `amount` (XRP), which is the quote here
    assert info.quote_frozen and not info.base_frozen
    assert build_params(info.pool()) is None


def test_to_dict_shape():
    d = parse_amm_info(_amm_result(), USD, XRP).to_dict()
    assert d["exists"] is True
    assert d["asset1Currency"] == "USD" and d["asset1Issuer"] == ISS
    assert d["asset1Value"] == "500"
    assert d["asset2Currency"] == "XRP" and d["asset2Issuer"] is None
    assert d["asset2Value"] == "1000"
    assert d["spotPrice"] == "2"
    assert d["tradingFeeFormatted"] == "0.5%"
    assert d["auctionSlot"]["discountedFee"] == 50
    assert d["voteSlots"] == [{"account": "rVoter", "tradingFee": 500, "voteWeight": 100000}]


def test_empty_shape_for_missing_pool():
    info = empty_amm_info(USD, XRP)
    d = info.to_dict()
    print("empty:", d)
    assert d["exists"] is False
    assert d["asset1Value"] == "0" and d["asset2Value"] == "0"
    assert d["spotPrice"] == "0" and d["tradingFee"] == 0
    assert "account" not in d
    assert build_params(info.pool()) is None


def test_parse_accepts_bare_amm_object():
    info = parse_amm_info(_amm_result()["amm"], USD, XRP)
    assert info.base_value == Decimal(500)
