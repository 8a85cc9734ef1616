"""Profit per outcome for 2-way and 3-way dutching books."""

from decimal import Decimal

from hedgecalc.bet_schema import Book, Money

ONE = Decimal("1")
ZERO = Decimal("0")

# Error messages
ERR_NOT_TWO_WAY = "Two-way profit needs a home/away book"
ERR_NOT_THREE_WAY = "Three-way profit needs a home/draw/away book"


def _stake(value: Money) -> Decimal:
    # Empty stake fields count as nothing staked
    return ZERO if value is None else value


def total_stake(book: Book) -> Money:
    """Sum the stakes of a book.

    The total is derived from the per-outcome stakes and is never written back
    into them.

    Returns:
        Sum of all stakes, or None when nothing positive has been staked

    """
    total = sum((_stake(s) for s in book.stakes), ZERO)
    return total if total > ZERO else None


def compute_two_way_profit(outcome: str, book: Book) -> Decimal:
    """Calculate the profit if one side of a Home/Away book wins.

    A free-bet (stake not returned) leg pays winnings only when it wins, and
    costs nothing when it loses.

    Args:
        outcome: "home" or "away"
        book: Two-way book

    Returns:
        Profit for that result, 0 while either side's odds are unset

    Raises:
        ValueError: If the book is not a 2-way book
        KeyError: If the outcome label is unknown

    """
    if book.is_three_way:
        raise ValueError(ERR_NOT_TWO_WAY)

    index = book.index_of(outcome)
    if any(odds is None for odds in book.odds):
        return ZERO

    leg = book.outcomes[index]
    other = book.outcomes[1 - index]
    stake = _stake(leg.stake)
    other_stake = _stake(other.stake)

    if leg.free_bet:
        return stake * (leg.odds - ONE) - other_stake
    if other.free_bet:
        return stake * leg.odds - stake
    return stake * leg.odds - stake - other_stake


def compute_three_way_profit(outcome: str, book: Book) -> Decimal:
    """Calculate the profit if one result of a Home/Draw/Away book wins.

    Args:
        outcome: "home", "draw" or "away"
        book: Three-way book

    Returns:
        Winning leg's return minus the total staked, 0 while any odds are unset

    Raises:
        ValueError: If the book is not a 3-way book
        KeyError: If the outcome label is unknown

    """
    if not book.is_three_way:
        raise ValueError(ERR_NOT_THREE_WAY)

    leg = book.outcome(outcome)
    if any(odds is None for odds in book.odds):
        return ZERO

    total = sum((_stake(s) for s in book.stakes), ZERO)
    return _stake(leg.stake) * leg.odds - total
