"""Command-line entry point for the matched-betting calculator."""

import logging
from decimal import Decimal
from typing import get_args

import click

from hedgecalc.bet_schema import (
    QUALIFIER,
    BackLayInput,
    BonusMode,
    Book,
    HedgeResult,
    Outcome,
    StakeResolutionRequest,
)
from hedgecalc.dutch import (
    compute_three_way_profit,
    compute_two_way_profit,
    total_stake,
)
from hedgecalc.hedge import DEFAULT_COMMISSION, commission_for, compute_hedge
from hedgecalc.parsing import parse_commission_percent
from hedgecalc.stakes import resolve_stakes

BONUS_MODES = get_args(BonusMode)
FREE_BET_SIDES = ("home", "away")


def format_hedge_message(result: HedgeResult) -> str:
    """Format the hedge figures for display.

    Args:
        result: Output of compute_hedge

    Returns:
        Multi-line summary, or an infeasibility notice

    """
    if not result.is_feasible:
        return "Infeasible hedge: lay odds too close to the commission rate"

    return (
        f"Lay stake: {result.lay_stake:.2f}\n"
        f"Liability: {result.liability:.2f}\n"
        f"Profit if back wins: {result.profit_if_back_wins:.2f}\n"
        f"Profit if lay wins: {result.profit_if_lay_wins:.2f}\n"
        f"Return: {result.percent_return:.2f}%"
    )


def format_book_message(book: Book) -> str:
    """Format stakes and per-outcome profit for a dutching book.

    Args:
        book: Two-way or three-way book

    Returns:
        One line per outcome plus the derived total stake

    """
    profit = compute_three_way_profit if book.is_three_way else compute_two_way_profit

    lines = []
    for label, outcome in zip(book.labels, book.outcomes, strict=True):
        stake = "-" if outcome.stake is None else f"{outcome.stake:.2f}"
        odds = "-" if outcome.odds is None else f"{outcome.odds}"
        free = " (free bet)" if outcome.free_bet else ""
        lines.append(
            f"{label.capitalize()}: stake {stake} @ {odds}{free} | "
            f"profit {profit(label, book):.2f}",
        )

    total = total_stake(book)
    lines.append(f"Total stake: {'-' if total is None else f'{total:.2f}'}")
    return "\n".join(lines)


def _resolve_commission(commission: str | None, exchange: str | None) -> Decimal:
    """Pick the commission rate from an explicit percentage or an exchange name."""
    rate = parse_commission_percent(commission)
    if rate is not None:
        return rate
    if exchange:
        return commission_for(exchange)
    return DEFAULT_COMMISSION


def _optimize(book: Book, total: str | None, *, optimize: bool) -> Book:
    """Resolve stakes, rebalancing the current total when none is given."""
    if not optimize:
        return book
    if total is None:
        total = total_stake(book)
    return resolve_stakes(StakeResolutionRequest(book=book, total_stake=total))


@click.group()
@click.option("--verbose", is_flag=True, help="Log calculation details")
def cli(verbose: bool) -> None:  # noqa: FBT001
    """Matched-betting hedge and dutching calculator."""
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="[%(levelname)s] [%(name)s] %(message)s",
        )


@cli.command()
@click.option("--back-stake", help="Back bet stake")
@click.option("--back-odds", help="Bookmaker (back) decimal odds")
@click.option("--lay-odds", help="Exchange (lay) decimal odds")
@click.option("--commission", help="Exchange commission in percent (e.g. 5)")
@click.option("--exchange", help="Exchange name to look up commission")
@click.option(
    "--mode",
    type=click.Choice(BONUS_MODES, case_sensitive=False),
    default=QUALIFIER,
    show_default=True,
    help="qualifier, snr (stake not returned) or sr (stake returned)",
)
def hedge(  # noqa: PLR0913
    back_stake: str | None,
    back_odds: str | None,
    lay_odds: str | None,
    commission: str | None,
    exchange: str | None,
    mode: str,
) -> None:
    """Calculate the lay stake that hedges a back bet."""
    bet = BackLayInput(
        back_stake=back_stake,
        back_odds=back_odds,
        lay_odds=lay_odds,
        commission=_resolve_commission(commission, exchange),
        mode=mode.lower(),
    )
    click.echo(format_hedge_message(compute_hedge(bet)))


@cli.command()
@click.option("--home-odds", help="Home decimal odds")
@click.option("--away-odds", help="Away decimal odds")
@click.option("--home-stake", help="Home stake")
@click.option("--away-stake", help="Away stake")
@click.option(
    "--total",
    help="Total stake to distribute when optimizing (default: current total)",
)
@click.option(
    "--free",
    type=click.Choice(FREE_BET_SIDES),
    help="Side placed with a stake-not-returned free bet",
)
@click.option("--optimize", is_flag=True, help="Fill in stakes before reporting")
def dutch(  # noqa: PLR0913
    home_odds: str | None,
    away_odds: str | None,
    home_stake: str | None,
    away_stake: str | None,
    total: str | None,
    free: str | None,
    optimize: bool,  # noqa: FBT001
) -> None:
    """Dutch a Home/Away market."""
    book = Book.two_way(
        Outcome(odds=home_odds, stake=home_stake),
        Outcome(odds=away_odds, stake=away_stake),
    )
    if free:
        book = book.with_free_bet(free)

    book = _optimize(book, total, optimize=optimize)
    click.echo(format_book_message(book))


@cli.command(name="three-way")
@click.option("--home-odds", help="Home decimal odds")
@click.option("--draw-odds", help="Draw decimal odds")
@click.option("--away-odds", help="Away decimal odds")
@click.option("--home-stake", help="Home stake")
@click.option("--draw-stake", help="Draw stake")
@click.option("--away-stake", help="Away stake")
@click.option(
    "--total",
    help="Total stake to distribute when optimizing (default: current total)",
)
@click.option("--optimize", is_flag=True, help="Fill in stakes before reporting")
def three_way(  # noqa: PLR0913
    home_odds: str | None,
    draw_odds: str | None,
    away_odds: str | None,
    home_stake: str | None,
    draw_stake: str | None,
    away_stake: str | None,
    total: str | None,
    optimize: bool,  # noqa: FBT001
) -> None:
    """Dutch a Home/Draw/Away market."""
    book = Book.three_way(
        Outcome(odds=home_odds, stake=home_stake),
        Outcome(odds=draw_odds, stake=draw_stake),
        Outcome(odds=away_odds, stake=away_stake),
    )

    book = _optimize(book, total, optimize=optimize)
    click.echo(format_book_message(book))


def main() -> None:
    """Run the CLI."""
    cli()


if __name__ == "__main__":
    main()
