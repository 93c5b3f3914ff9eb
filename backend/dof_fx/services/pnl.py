"""Profit and loss of a USD operation measured in MXN."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

from dof_fx.domain import Direction, OperationResult, ResolvedRate

AMOUNT_PLACES = 2
PERCENT_PLACES = 3


def round_half_up(value: Decimal, places: int) -> Decimal:
    return value.quantize(Decimal(1).scaleb(-places), rounding=ROUND_HALF_UP)


def calculate_pnl(
    direction: Direction,
    usd_amount: Decimal,
    base_rate: ResolvedRate,
    comparison_rate: ResolvedRate,
) -> OperationResult:
    """Convert ``usd_amount`` at both rates and sign the difference.

    Receiving USD gains when the comparison rate is higher; paying USD gains
    when it is lower. Each intermediate is rounded before it feeds the next
    step, so the converted amounts are exactly what a ledger would show.
    """

    if usd_amount <= 0:
        raise ValueError("usd_amount must be greater than zero")

    base_amount = round_half_up(usd_amount * base_rate.value, AMOUNT_PLACES)
    comparison_amount = round_half_up(usd_amount * comparison_rate.value, AMOUNT_PLACES)

    if direction is Direction.RECEIVE_USD:
        profit_loss = round_half_up(comparison_amount - base_amount, AMOUNT_PLACES)
    else:
        profit_loss = round_half_up(base_amount - comparison_amount, AMOUNT_PLACES)

    if base_amount:
        percent = round_half_up(profit_loss / base_amount * 100, PERCENT_PLACES)
    else:
        percent = round_half_up(Decimal(0), PERCENT_PLACES)

    return OperationResult(
        direction=direction,
        usd_amount=usd_amount,
        base_rate=base_rate,
        comparison_rate=comparison_rate,
        base_amount_local=base_amount,
        comparison_amount_local=comparison_amount,
        profit_loss_local=profit_loss,
        profit_loss_percent=percent,
    )


__all__ = ["calculate_pnl", "round_half_up"]
