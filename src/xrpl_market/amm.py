"""
AMM constant-product pricing (XLS-30): marginal prices, their inverses and
exact trade integrals. Pool math only.

Orientation is always the caller's pair: B = base reserve, Q = quote
reserve, f = trading fee rate, k = B*Q. Prices are quote per base.

- Buying base from the pool pays quote in; the fee is taken on the quote input.
- Selling base to the pool pays base in; the fee is taken on the base input.

Every function is pure and Decimal-only. A pool that does not exist, has an
empty reserve or a frozen side yields no params (`build_params` -> None),
and functions whose denominator would reach zero return None instead of
raising or producing Infinity.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal, ROUND_HALF_UP, localcontext
from typing import Any, Dict, List, Optional

from .core.amounts import Asset, amount_from_ledger
from .core.constants import AMM_FEE_DIVISOR, DECIMAL_PRECISION
from .core.currency import decode_currency
from .core.exc import AmountDomainError
from .core.fmt import ONE, ZERO, DecimalLike, fmt_plain, to_decimal, try_decimal

# --- Debug utilities (toggleable) ---
DEBUG_AMM = False

def _dbg(msg: str) -> None:
    if DEBUG_AMM:
        print(f"[AMM] {msg}")


def _non_negative(x: DecimalLike, name: str) -> Decimal:
    d = to_decimal(x)
    if d < 0:
        raise AmountDomainError(f"{name} must be >= 0, got {d}")
    return d


# ---------------------------------------------------------------------------
# Pool snapshot
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class AmmPool:
    """Reserves and fee of a pool, oriented to the caller's base/quote."""

    exists: bool
    base_reserve: Decimal = ZERO
    quote_reserve: Decimal = ZERO
    fee_rate: Decimal = ZERO
    base_frozen: bool = False
    quote_frozen: bool = False

    @classmethod
    def missing(cls) -> "AmmPool":
        return cls(exists=False)

    @classmethod
    def from_info(cls, info: "AmmInfo") -> "AmmPool":
        return cls(
            exists=info.exists,
            base_reserve=info.base_value,
            quote_reserve=info.quote_value,
            fee_rate=fee_rate_from_trading_fee(info.trading_fee),
            base_frozen=info.base_frozen,
            quote_frozen=info.quote_frozen,
        )


def fee_rate_from_trading_fee(trading_fee: int) -> Decimal:
    """Ledger trading fee (1/100,000 units) to a rate in [0, 1)."""
    return Decimal(int(trading_fee)) / AMM_FEE_DIVISOR


# ---------------------------------------------------------------------------
# Pricing parameters
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class AmmParams:
    """Validated (B, Q, f) for a quotable pool. Build via `build_params`."""

    base_reserve: Decimal
    quote_reserve: Decimal
    fee_rate: Decimal

    def __post_init__(self):
        if self.base_reserve <= 0 or self.quote_reserve <= 0:
            raise ValueError("reserves must be > 0")
        if self.fee_rate < 0 or self.fee_rate >= 1:
            raise ValueError("fee must satisfy 0 ≤ fee < 1")

    @property
    def keep(self) -> Decimal:
        """(1 - f): fraction of the input that reaches the curve."""
        return ONE - self.fee_rate

    @property
    def k(self) -> Decimal:
        return self.base_reserve * self.quote_reserve

    def spot_price(self) -> Decimal:
        """Fee-free reserve ratio Q/B."""
        return self.quote_reserve / self.base_reserve

    # --- Marginal prices ---

    def marginal_buy_price(self, consumed: DecimalLike = ZERO) -> Optional[Decimal]:
        """Quote cost of the next infinitesimal base unit after `consumed` was bought.

        Q*B / ((B - consumed)^2 * (1 - f)); None once the reserve is exhausted.
        """
        c = _non_negative(consumed, "consumed")
        with localcontext() as ctx:
            ctx.prec = DECIMAL_PRECISION
            remaining = self.base_reserve - c
            if remaining <= 0:
                return None
            return self.k / (remaining * remaining * self.keep)

    def marginal_sell_price(self, consumed: DecimalLike = ZERO) -> Decimal:
        """Quote proceeds of the next infinitesimal base unit after `consumed` was sold.

        Q*B*(1 - f) / (B + consumed*(1 - f))^2
        """
        c = _non_negative(consumed, "consumed")
        with localcontext() as ctx:
            ctx.prec = DECIMAL_PRECISION
            effective = self.base_reserve + c * self.keep
            return self.k * self.keep / (effective * effective)

    # --- Inverses ---

    def max_buy_before_price(self, price_limit: DecimalLike) -> Decimal:
        """Largest `consumed` with marginal_buy_price(consumed) <= price_limit.

        B - sqrt(Q*B / (P*(1 - f))), clamped at 0 (limit already below the pool).
        """
        p = to_decimal(price_limit)
        if p <= 0:
            return ZERO
        with localcontext() as ctx:
            ctx.prec = DECIMAL_PRECISION
            inner = self.k / (p * self.keep)
            result = self.base_reserve - inner.sqrt()
        return result if result > 0 else ZERO

    def max_sell_before_price(self, price_limit: DecimalLike) -> Optional[Decimal]:
        """Largest `consumed` with marginal_sell_price(consumed) >= price_limit.

        (sqrt(Q*B*(1 - f) / P) - B) / (1 - f), clamped at 0. None for P <= 0
        (the sell curve never reaches a non-positive price).
        """
        p = to_decimal(price_limit)
        if p <= 0:
            return None
        with localcontext() as ctx:
            ctx.prec = DECIMAL_PRECISION
            inner = self.k * self.keep / p
            result = (inner.sqrt() - self.base_reserve) / self.keep
        return result if result > 0 else ZERO

    # --- Exact integrals ---

    def buy_cost(self, delta: DecimalLike, consumed: DecimalLike = ZERO) -> Optional[Decimal]:
        """Exact quote cost of buying `delta` more base after `consumed` was bought.

        Effective quote = k/after - k/before = k*delta / (before*after); gross = effective / (1 - f).
        None when the purchase would drain the base reserve.
        """
        d = _non_negative(delta, "delta")
        c = _non_negative(consumed, "consumed")
        with localcontext() as ctx:
            ctx.prec = DECIMAL_PRECISION
            before = self.base_reserve - c
            after = before - d
            if before <= 0 or after <= 0:
                return None
            return self.k * d / (before * after * self.keep)

    def sell_proceeds(self, delta: DecimalLike, consumed: DecimalLike = ZERO) -> Decimal:
        """Exact quote received for selling `delta` more base after `consumed` was sold.

        Q*B*delta*(1 - f) / ((B + consumed*(1 - f)) * (B + (consumed + delta)*(1 - f)))
        """
        d = _non_negative(delta, "delta")
        c = _non_negative(consumed, "consumed")
        with localcontext() as ctx:
            ctx.prec = DECIMAL_PRECISION
            before = self.base_reserve + c * self.keep
            after = self.base_reserve + (c + d) * self.keep
            return self.k * d * self.keep / (before * after)


def build_params(pool: Optional[AmmPool]) -> Optional[AmmParams]:
    """Return pricing params, or None when the pool cannot quote.

    No quote for: missing pool, zero reserve on either side, either side
    frozen, or a fee rate outside [0, 1).
    """
    if pool is None or not pool.exists:
        return None
    if pool.base_frozen or pool.quote_frozen:
        _dbg("build_params: pool side frozen")
        return None
    if pool.base_reserve <= 0 or pool.quote_reserve <= 0:
        _dbg("build_params: empty reserve")
        return None
    if pool.fee_rate < 0 or pool.fee_rate >= 1:
        _dbg(f"build_params: fee rate out of range: {pool.fee_rate}")
        return None
    return AmmParams(pool.base_reserve, pool.quote_reserve, pool.fee_rate)


# Free-function aliases over AmmParams (stable call sites for estimate/market code)

def marginal_buy_price(params: AmmParams, consumed: DecimalLike = ZERO) -> Optional[Decimal]:
    return params.marginal_buy_price(consumed)


def marginal_sell_price(params: AmmParams, consumed: DecimalLike = ZERO) -> Decimal:
    return params.marginal_sell_price(consumed)


def max_buy_before_price(params: AmmParams, price_limit: DecimalLike) -> Decimal:
    return params.max_buy_before_price(price_limit)


def max_sell_before_price(params: AmmParams, price_limit: DecimalLike) -> Optional[Decimal]:
    return params.max_sell_before_price(price_limit)


def buy_cost(params: AmmParams, delta: DecimalLike, consumed: DecimalLike = ZERO) -> Optional[Decimal]:
    return params.buy_cost(delta, consumed)


def sell_proceeds(params: AmmParams, delta: DecimalLike, consumed: DecimalLike = ZERO) -> Decimal:
    return params.sell_proceeds(delta, consumed)


# ---------------------------------------------------------------------------
# Trading fee formatting
# ---------------------------------------------------------------------------

def format_amm_fee(trading_fee: int) -> str:
    """1000 -> '1%', 500 -> '0.5%', 0 -> '0%'."""
    pct = Decimal(int(trading_fee)) * 100 / AMM_FEE_DIVISOR
    return f"{fmt_plain(pct.quantize(Decimal('0.001'), rounding=ROUND_HALF_UP))}%"


def parse_amm_fee(percent: Any) -> Optional[int]:
    """'1' -> 1000, '0.5' -> 500; None when the input is not a number."""
    pct = try_decimal(percent)
    if pct is None:
        return None
    units = (pct / 100 * AMM_FEE_DIVISOR).quantize(ONE, rounding=ROUND_HALF_UP)
    return int(units)


# ---------------------------------------------------------------------------
# amm_info response shaping
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class AuctionSlot:
    account: str
    discounted_fee: int
    expiration: Optional[str]
    price: Decimal

    def to_dict(self) -> Dict[str, Any]:
        return {
            "account": self.account,
            "discountedFee": self.discounted_fee,
            "expiration": self.expiration,
            "price": fmt_plain(self.price),
        }


@dataclass(frozen=True)
class VoteSlot:
    account: str
    trading_fee: int
    vote_weight: int

    def to_dict(self) -> Dict[str, Any]:
        return {"account": self.account, "tradingFee": self.trading_fee, "voteWeight": self.vote_weight}


@dataclass(frozen=True)
class AmmInfo:
    """Normalised amm_info for a pair, base/quote ordered as the caller asked.

    A missing pool is `exists=False` with zero reserves, not an error.
    """

    exists: bool
    base: Asset
    quote: Asset
    base_value: Decimal = ZERO
    quote_value: Decimal = ZERO
    lp_token_currency: str = ""
    lp_token_issuer: str = ""
    lp_token_value: Decimal = ZERO
    trading_fee: int = 0
    spot_price: Decimal = ZERO
    account: Optional[str] = None
    auction_slot: Optional[AuctionSlot] = None
    vote_slots: List[VoteSlot] = field(default_factory=list)
    base_frozen: bool = False
    quote_frozen: bool = False

    def pool(self) -> AmmPool:
        return AmmPool.from_info(self)

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "exists": self.exists,
            "asset1Currency": self.base.code,
            "asset1Issuer": self.base.issuer,
            "asset1Value": fmt_plain(self.base_value),
            "asset2Currency": self.quote.code,
            "asset2Issuer": self.quote.issuer,
            "asset2Value": fmt_plain(self.quote_value),
            "lpTokenCurrency": self.lp_token_currency,
            "lpTokenIssuer": self.lp_token_issuer,
            "lpTokenValue": fmt_plain(self.lp_token_value),
            "tradingFee": self.trading_fee,
            "spotPrice": fmt_plain(self.spot_price),
        }
        if not self.exists:
            return out
        out.update({
            "account": self.account,
            "tradingFeeFormatted": format_amm_fee(self.trading_fee),
            "auctionSlot": self.auction_slot.to_dict() if self.auction_slot else None,
            "voteSlots": [v.to_dict() for v in self.vote_slots],
            "asset1Frozen": self.base_frozen,
            "asset2Frozen": self.quote_frozen,
        })
        return out


def empty_amm_info(base: Asset, quote: Asset) -> AmmInfo:
    """The all-zero shape reported when no pool exists for the pair."""
    return AmmInfo(exists=False, base=base, quote=quote)


def _auction_slot(raw: Optional[Dict[str, Any]]) -> Optional[AuctionSlot]:
    if not raw:
        return None
    price = raw.get("price")
    price_value = price.get("value") if isinstance(price, dict) else price
    return AuctionSlot(
        account=str(raw.get("account") or ""),
        discounted_fee=int(raw.get("discounted_fee") or 0),
        expiration=raw.get("expiration"),
        price=try_decimal(price_value) or ZERO,
    )


def parse_amm_info(result: Dict[str, Any], base: Asset, quote: Asset) -> AmmInfo:
    """Orient an amm_info result to `base`/`quote`.

    `result` is either the RPC result (holding "amm") or the "amm" object
    itself. The ledger may list the pool's assets in either order.
    """
    amm = result.get("amm", result)
    amount1 = amount_from_ledger(amm.get("amount"))
    amount2 = amount_from_ledger(amm.get("amount2"))
    first_is_base = amount1.asset == base
    base_amt, quote_amt = (amount1, amount2) if first_is_base else (amount2, amount1)
    base_frozen = bool(amm.get("asset_frozen" if first_is_base else "asset2_frozen", False))
    quote_frozen = bool(amm.get("asset2_frozen" if first_is_base else "asset_frozen", False))

    spot = ZERO if base_amt.value == 0 else quote_amt.value / base_amt.value

    lp = amm.get("lp_token") or {}
    votes = [
        VoteSlot(
            account=str(v.get("account") or ""),
            trading_fee=int(v.get("trading_fee") or 0),
            vote_weight=int(v.get("vote_weight") or 0),
        )
        for v in (amm.get("vote_slots") or [])
    ]
    info = AmmInfo(
        exists=True,
        base=base,
        quote=quote,
        base_value=base_amt.value,
        quote_value=quote_amt.value,
        lp_token_currency=decode_currency(str(lp.get("currency") or "")),
        lp_token_issuer=str(lp.get("issuer") or ""),
        lp_token_value=try_decimal(lp.get("value", "0")) or ZERO,
        trading_fee=int(amm.get("trading_fee") or 0),
        spot_price=spot,
        account=amm.get("account"),
        auction_slot=_auction_slot(amm.get("auction_slot")),
        vote_slots=votes,
        base_frozen=base_frozen,
        quote_frozen=quote_frozen,
    )
    _dbg(f"parse_amm_info {base}/{quote}: B={info.base_value} Q={info.quote_value} fee={info.trading_fee}")
    return info


__all__ = [
    "AmmPool",
    "AmmParams",
    "fee_rate_from_trading_fee",
    "build_params",
    "marginal_buy_price",
    "marginal_sell_price",
    "max_buy_before_price",
    "max_sell_before_price",
    "buy_cost",
    "sell_proceeds",
    "format_amm_fee",
    "parse_amm_fee",
    "AuctionSlot",
    "VoteSlot",
    "AmmInfo",
    "empty_amm_info",
    "parse_amm_info",
]
