"""Stake resolution for dutching books.

Two ways of filling in stakes are supported:

* proportional fill, when exactly one leg has been given a stake, which sizes
  the other legs to return the same amount as the known leg;
* allocation from a total budget, which splits the total by implied
  probability so every leg returns the same amount.

``resolve_stakes`` picks between them with a fixed precedence rule.
"""

import logging
from collections.abc import Sequence
from decimal import (
    ROUND_HALF_UP,
    Decimal,
    InvalidOperation,
    Overflow,
    localcontext,
)

from hedgecalc.bet_schema import Book, Money, Odds, StakeResolutionRequest
from hedgecalc.parsing import is_empty, is_positive

logger = logging.getLogger(__name__)

ONE = Decimal("1")
CENT = Decimal("0.01")

# Error messages
ERR_ODDS_REQUIRED = "All odds must be set and positive to allocate stakes"
ERR_TOTAL_REQUIRED = "Total stake must be positive to allocate stakes"


def _to_cents(amount: Decimal) -> Decimal:
    if not amount.is_finite():
        return amount
    with localcontext() as ctx:
        # Keep every integer digit plus the two cent digits
        ctx.prec = max(ctx.prec, amount.adjusted() + 3)
        return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def _all_finite(stakes: Sequence[Money]) -> bool:
    return all(s is None or s.is_finite() for s in stakes)


def _odds_complete(odds: Sequence[Odds]) -> bool:
    return all(is_positive(o) for o in odds)


def _single_known_index(stakes: Sequence[Money]) -> int | None:
    """Return the index of the only positive stake when every other is empty."""
    known = [i for i, stake in enumerate(stakes) if is_positive(stake)]
    if len(known) != 1:
        return None

    index = known[0]
    others_empty = all(is_empty(s) for i, s in enumerate(stakes) if i != index)
    return index if others_empty else None


def fill_from_known(book: Book) -> Book:
    """Size the empty legs of a book from its single known stake.

    Every unknown leg gets ``required_return / odds`` so that it returns what
    the known leg returns. If the known leg is a free bet only its winnings are
    matched, since its stake is never at risk.

    Args:
        book: Book with exactly one positive stake and the rest unset or zero

    Returns:
        Book with the unknown stakes filled in, rounded to cents. The book is
        returned unchanged if it has no single known stake, its odds are
        incomplete, or a filled stake would overflow.

    """
    index = _single_known_index(book.stakes)
    if index is None or not _odds_complete(book.odds):
        return book

    known = book.outcomes[index]
    with localcontext() as ctx:
        # Out-of-range amounts become Infinity instead of raising
        ctx.traps[Overflow] = False
        ctx.traps[InvalidOperation] = False

        if known.free_bet:
            required_return = known.stake * (known.odds - ONE)
        else:
            required_return = known.stake * known.odds

        stakes = [
            known.stake if i == index else _to_cents(required_return / outcome.odds)
            for i, outcome in enumerate(book.outcomes)
        ]

    if not _all_finite(stakes):
        logger.debug("fill from %s overflowed, leaving stakes", book.labels[index])
        return book

    logger.debug(
        "fill from %s=%s@%s (free=%s): required_return=%s stakes=%s",
        book.labels[index],
        known.stake,
        known.odds,
        known.free_bet,
        required_return,
        stakes,
    )

    return book.with_stakes(stakes)


def allocate_from_total(odds: Sequence[Odds], total_stake: Decimal) -> list[Decimal]:
    """Split a total stake across outcomes by implied probability.

    Formula: stake_i = total * (1/odds_i) / sum(1/odds_j)

    Each stake is rounded to cents and the rounding residue is put on the
    largest stake, so the stakes always add up to the total exactly.

    Args:
        odds: Decimal odds for each outcome
        total_stake: Budget to distribute

    Returns:
        Stake per outcome, in the order of ``odds``

    Raises:
        ValueError: If any odds are unset or not positive, or the total is not
            positive

    """
    if not _odds_complete(odds):
        raise ValueError(ERR_ODDS_REQUIRED)
    if not is_positive(total_stake):
        raise ValueError(ERR_TOTAL_REQUIRED)

    with localcontext() as ctx:
        # Enough digits for the total in cents, so the residue sums exactly
        ctx.prec = max(ctx.prec, total_stake.adjusted() + 3)
        ctx.traps[Overflow] = False
        ctx.traps[InvalidOperation] = False

        weights = [ONE / o for o in odds]
        weight_sum = sum(weights)

        stakes = [_to_cents(total_stake * w / weight_sum) for w in weights]

        # Correct rounding so the stakes add up to the total
        diff = total_stake - sum(stakes)
        if diff:
            max_idx = max(range(len(stakes)), key=lambda i: stakes[i])
            stakes[max_idx] += diff

    logger.debug(
        "allocate total=%s over odds=%s: book=%.2f%% stakes=%s",
        total_stake,
        list(odds),
        weight_sum * 100,
        stakes,
    )

    return stakes


def resolve_stakes(request: StakeResolutionRequest) -> Book:
    """Fill in a book's stakes using the stake precedence rule.

    1. Any odds unset or not positive: nothing changes.
    2. Exactly one leg staked, the rest empty: proportional fill.
    3. Otherwise, with a positive total stake: allocate the total by implied
       probability and clear any free-bet flags.
    4. Otherwise nothing changes. This includes two legs of a 3-way book
       staked with no total given.

    Args:
        request: Book snapshot plus optional total-stake target

    Returns:
        Book with stakes resolved, or the original book for a no-op

    """
    book = request.book

    if not _odds_complete(book.odds):
        logger.debug("resolve: odds incomplete %s, leaving stakes", book.odds)
        return book

    if _single_known_index(book.stakes) is not None:
        return fill_from_known(book)

    if is_positive(request.total_stake):
        stakes = allocate_from_total(book.odds, request.total_stake)
        if not _all_finite(stakes):
            logger.debug("resolve: allocation overflowed, leaving stakes")
            return book
        return book.with_stakes(stakes).without_free_bets()

    logger.debug("resolve: no single known stake and no total, leaving stakes")
    return book
