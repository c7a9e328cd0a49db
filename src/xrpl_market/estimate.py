"""Fill estimation over CLOB levels, optionally interleaved with an AMM curve.

Levels must be best-price-first: ascending asks for buys, descending bids for
sells. At every step the cheaper source (buy) or richer source (sell) is
consumed; AMM chunks run up to the point where the pool's marginal price
crosses the next CLOB level and are priced with the exact integrals.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, localcontext
from typing import List, Optional

from .amm import AmmParams
from .core.constants import AMM_RESERVE_CAP, DECIMAL_PRECISION
from .core.datatypes import BUY, Level, Side
from .core.fmt import ZERO, DecimalLike, to_decimal

# Debug printing control
DEBUG_ESTIMATE = False

def _dbg(msg: str) -> None:
    if DEBUG_ESTIMATE:
        print(f"[ESTIMATE] {msg}")


@dataclass(frozen=True)
class FillEstimate:
    """Outcome of walking the book for `filled_amount` base.

    total_cost is quote paid (buy) or received (sell); slippage is a percent
    against the mid price, None when no mid price is available.
    """

    avg_price: Decimal
    worst_price: Decimal
    slippage: Optional[Decimal]
    filled_amount: Decimal
    total_cost: Decimal
    full_fill: bool
    clob_filled: Decimal = ZERO
    amm_filled: Decimal = ZERO


def _slippage(avg: Decimal, mid: Optional[Decimal]) -> Optional[Decimal]:
    if mid is None or mid <= 0:
        return None
    return abs(avg - mid) / mid * 100


def _worse(current: Decimal, candidate: Decimal, side: Side) -> Decimal:
    # Buys: worst is highest; sells: worst is lowest.
    if current == 0:
        return candidate
    return max(current, candidate) if side == BUY else min(current, candidate)


def estimate_fill(levels: List[Level], amount: DecimalLike, mid: Optional[Decimal]) -> Optional[FillEstimate]:
    """CLOB-only walk; None for a non-positive amount or an empty book."""
    with localcontext() as ctx:
        ctx.prec = DECIMAL_PRECISION
        want = to_decimal(amount)
        if want <= 0 or not levels:
            return None

        remaining = want
        filled = ZERO
        cost = ZERO
        worst = ZERO
        for lvl in levels:
            if remaining <= 0:
                break
            take = min(remaining, lvl.amount)
            filled += take
            cost += take * lvl.price
            worst = lvl.price
            remaining -= take

        if filled <= 0:
            return None
        avg = cost / filled
        return FillEstimate(
            avg_price=avg,
            worst_price=worst,
            slippage=_slippage(avg, mid),
            filled_amount=filled,
            total_cost=cost,
            full_fill=remaining <= 0,
            clob_filled=filled,
        )


def estimate_fill_combined(
    levels: List[Level],
    amount: DecimalLike,
    mid: Optional[Decimal],
    params: Optional[AmmParams],
    side: Side,
) -> Optional[FillEstimate]:
    """Interleave CLOB levels with the AMM curve; degenerates to CLOB-only without params."""
    with localcontext() as ctx:
        ctx.prec = DECIMAL_PRECISION
        want = to_decimal(amount)
        if want <= 0:
            return None
        if not levels and params is None:
            return None

        is_buy = side == BUY
        max_amm = params.base_reserve * AMM_RESERVE_CAP if params is not None else ZERO

        remaining = want
        clob_filled = ZERO
        amm_filled = ZERO
        cost = ZERO
        worst = ZERO
        idx = 0

        while remaining > 0:
            has_level = idx < len(levels)
            has_amm = params is not None and amm_filled < max_amm
            if not has_level and not has_amm:
                break
            level_price = levels[idx].price if has_level else None

            if has_amm:
                amm_price = params.marginal_buy_price(amm_filled) if is_buy else params.marginal_sell_price(amm_filled)
                if level_price is None:
                    amm_better = True
                elif amm_price is None:
                    amm_better = False
                else:
                    amm_better = amm_price <= level_price if is_buy else amm_price >= level_price

                if amm_better:
                    if level_price is not None:
                        cap = (
                            params.max_buy_before_price(level_price)
                            if is_buy
                            else params.max_sell_before_price(level_price)
                        ) or ZERO
                        # never run past the reserve cap
                        cap = min(cap, max_amm)
                        chunk = max(cap - amm_filled, ZERO)
                    else:
                        chunk = max_amm - amm_filled
                    chunk = min(chunk, remaining)

                    if chunk > 0:
                        if is_buy:
                            paid = params.buy_cost(chunk, amm_filled)
                        else:
                            paid = params.sell_proceeds(chunk, amm_filled)
                        if paid is not None:
                            amm_filled += chunk
                            cost += paid
                            remaining -= chunk
                            end = (
                                params.marginal_buy_price(amm_filled)
                                if is_buy
                                else params.marginal_sell_price(amm_filled)
                            )
                            if end is not None:
                                worst = _worse(worst, end, side)
                            _dbg(f"amm chunk={chunk} cost={paid} filled={amm_filled}")
                            continue
                    elif not has_level:
                        break

            if has_level:
                lvl = levels[idx]
                take = min(remaining, lvl.amount)
                clob_filled += take
                cost += take * lvl.price
                worst = _worse(worst, lvl.price, side)
                remaining -= take
                idx += 1
                _dbg(f"clob level={idx} take={take} price={lvl.price}")
            else:
                break

        filled = clob_filled + amm_filled
        if filled <= 0:
            return None
        avg = cost / filled
        return FillEstimate(
            avg_price=avg,
            worst_price=worst,
            slippage=_slippage(avg, mid),
            filled_amount=filled,
            total_cost=cost,
            full_fill=remaining <= 0,
            clob_filled=clob_filled,
            amm_filled=amm_filled,
        )


__all__ = ["FillEstimate", "estimate_fill", "estimate_fill_combined"]
