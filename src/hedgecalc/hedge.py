"""Hedge calculator for back bets laid off on a betting exchange.

Turns a back bet, the exchange lay price and the exchange commission into a lay
stake and the profit on each side, for qualifying bets and both kinds of free
bet.
"""

import logging
import os
from decimal import (
    Decimal,
    DivisionByZero,
    InvalidOperation,
    localcontext,
)
from pathlib import Path

import yaml

from hedgecalc.bet_schema import (
    QUALIFIER,
    STAKE_NOT_RETURNED,
    BackLayInput,
    HedgeResult,
)
from hedgecalc.parsing import is_positive

logger = logging.getLogger(__name__)

# Constants
ONE = Decimal("1")
ZERO = Decimal("0")
HUNDRED = Decimal("100")
DEFAULT_COMMISSION = Decimal("0.06")

# Load exchange commission rates from YAML
COMMISSIONS_PATH = Path(
    os.environ.get(
        "HEDGECALC_COMMISSIONS_PATH",
        Path(__file__).parent / "commissions.yaml",
    ),
)
try:
    with COMMISSIONS_PATH.open() as f:
        _COMMISSION_DATA = yaml.safe_load(f) or {}
except (FileNotFoundError, yaml.YAMLError):
    # Fallback to empty commission table
    _COMMISSION_DATA = {}


def commission_for(exchange: str) -> Decimal:
    """Get the commission rate charged by an exchange.

    Args:
        exchange: Exchange name (case-insensitive)

    Returns:
        Commission as a fraction of net winnings, DEFAULT_COMMISSION if the
        exchange is not configured

    """
    # Normalize exchange name
    normalized_exchange = exchange.strip().lower()

    for name, config in _COMMISSION_DATA.items():
        if str(name).lower() == normalized_exchange:
            return Decimal(str(config.get("commission", DEFAULT_COMMISSION)))

    return DEFAULT_COMMISSION


def _lay_stake(bet: BackLayInput, back_win: Decimal) -> Decimal:
    """Lay stake that balances the position for the bet's bonus mode."""
    denominator = bet.lay_odds - bet.commission

    if bet.mode == QUALIFIER:
        # Liability covers the back win, net lay proceeds cover the lost stake
        return (back_win + bet.back_stake) / denominator

    if bet.mode == STAKE_NOT_RETURNED:
        # Only the winnings are paid out on a free bet
        return back_win / denominator

    # Stake returned: the whole free bet value is paid out if it wins
    return (bet.back_odds * bet.back_stake) / denominator


def compute_hedge(bet: BackLayInput) -> HedgeResult:
    """Calculate the lay stake and both-way profit for a back bet.

    Args:
        bet: Back stake, back/lay odds, commission and bonus mode

    Returns:
        Hedge figures, or the all-zero result while back stake, back odds or
        lay odds are unset or not positive. A lay price at or below the
        commission gives an infinite, NaN or negative lay stake instead of an
        error; check HedgeResult.is_feasible before showing it.

    """
    if not (
        is_positive(bet.back_stake)
        and is_positive(bet.back_odds)
        and is_positive(bet.lay_odds)
    ):
        return HedgeResult.zero()

    with localcontext() as ctx:
        # Let degenerate lay prices produce Infinity/NaN rather than raise
        ctx.traps[DivisionByZero] = False
        ctx.traps[InvalidOperation] = False

        back_win = bet.back_stake * (bet.back_odds - ONE)
        lay_stake = _lay_stake(bet, back_win)
        liability = lay_stake * (bet.lay_odds - ONE)
        lay_proceeds = lay_stake * (ONE - bet.commission)

        if bet.mode == QUALIFIER:
            profit_if_back_wins = back_win - liability
            profit_if_lay_wins = lay_proceeds - bet.back_stake
        elif bet.mode == STAKE_NOT_RETURNED:
            profit_if_back_wins = back_win - liability
            # The free stake is never lost
            profit_if_lay_wins = lay_proceeds
        else:
            profit_if_back_wins = bet.back_stake * bet.back_odds - liability
            profit_if_lay_wins = lay_proceeds

        worst = min(profit_if_back_wins, profit_if_lay_wins)
        if worst.is_finite() and worst > ZERO:
            percent_return = HUNDRED * worst / bet.back_stake
        else:
            percent_return = ZERO

    logger.debug(
        "hedge mode=%s back=%s@%s lay=%s comm=%s -> lay_stake=%s",
        bet.mode,
        bet.back_stake,
        bet.back_odds,
        bet.lay_odds,
        bet.commission,
        lay_stake,
    )

    return HedgeResult(
        lay_stake=lay_stake,
        liability=liability,
        profit_if_back_wins=profit_if_back_wins,
        profit_if_lay_wins=profit_if_lay_wins,
        percent_return=percent_return,
    )
