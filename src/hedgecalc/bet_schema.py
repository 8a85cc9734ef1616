"""Canonical value types for back/lay hedges and dutching books."""

from collections.abc import Sequence
from dataclasses import dataclass, replace
from decimal import Decimal
from typing import Literal, get_args

from hedgecalc.parsing import parse_amount

Money = Decimal | None  # None means the field is unset
Odds = Decimal | None  # Decimal odds, stake * odds = total return
CommissionRate = Decimal  # Fraction of net lay winnings, in [0, 1)

BonusMode = Literal["qualifier", "snr", "sr"]
QUALIFIER: BonusMode = "qualifier"
STAKE_NOT_RETURNED: BonusMode = "snr"
STAKE_RETURNED: BonusMode = "sr"

TWO_WAY_LABELS = ("home", "away")
THREE_WAY_LABELS = ("home", "draw", "away")

ZERO = Decimal("0")

# Error messages
ERR_BONUS_MODE = "Bonus mode must be one of qualifier, snr, sr"
ERR_BOOK_SIZE = "Book must have 2 (home/away) or 3 (home/draw/away) outcomes"
ERR_TWO_FREE_BETS = "Only one outcome of a 2-way book can be a free bet"
ERR_THREE_WAY_FREE_BET = "Free bets are only supported on 2-way books"
ERR_STAKE_COUNT = "Expected one stake per outcome"
ERR_UNKNOWN_OUTCOME = "Unknown outcome"


@dataclass(frozen=True)
class BackLayInput:
    """A back bet plus the exchange price it is being hedged at."""

    back_stake: Money
    back_odds: Odds
    lay_odds: Odds
    commission: CommissionRate = ZERO
    mode: BonusMode = QUALIFIER

    def __post_init__(self) -> None:
        """Coerce raw numeric-like values and validate the bonus mode."""
        object.__setattr__(self, "back_stake", parse_amount(self.back_stake))
        object.__setattr__(self, "back_odds", parse_amount(self.back_odds))
        object.__setattr__(self, "lay_odds", parse_amount(self.lay_odds))
        # An unset commission means the exchange takes nothing
        commission = parse_amount(self.commission)
        object.__setattr__(
            self,
            "commission",
            ZERO if commission is None else commission,
        )

        if self.mode not in get_args(BonusMode):
            err_msg = f"{ERR_BONUS_MODE}, got {self.mode!r}"
            raise ValueError(err_msg)


@dataclass(frozen=True)
class HedgeResult:
    """Lay stake and profit figures for a hedged back bet."""

    lay_stake: Decimal
    liability: Decimal  # lay_stake * (lay_odds - 1)
    profit_if_back_wins: Decimal
    profit_if_lay_wins: Decimal
    percent_return: Decimal  # worst-case profit as % of back stake, or 0

    @classmethod
    def zero(cls) -> "HedgeResult":
        """Return the result shown while there is not enough input."""
        return cls(ZERO, ZERO, ZERO, ZERO, ZERO)

    @property
    def is_feasible(self) -> bool:
        """Whether the lay stake and liability can be placed as shown."""
        return all(
            value.is_finite() and value >= 0
            for value in (self.lay_stake, self.liability)
        )


@dataclass(frozen=True)
class Outcome:
    """One leg of a dutching book."""

    odds: Odds
    stake: Money = None
    free_bet: bool = False  # stake not returned, 2-way books only

    def __post_init__(self) -> None:
        """Coerce raw numeric-like values."""
        object.__setattr__(self, "odds", parse_amount(self.odds))
        object.__setattr__(self, "stake", parse_amount(self.stake))


@dataclass(frozen=True)
class Book:
    """Home/Away or Home/Draw/Away outcomes sharing one total stake."""

    outcomes: tuple[Outcome, ...]

    def __post_init__(self) -> None:
        """Validate the book shape and the free-bet rules."""
        object.__setattr__(self, "outcomes", tuple(self.outcomes))

        if len(self.outcomes) not in (len(TWO_WAY_LABELS), len(THREE_WAY_LABELS)):
            err_msg = f"{ERR_BOOK_SIZE}, got {len(self.outcomes)}"
            raise ValueError(err_msg)

        free_count = sum(1 for o in self.outcomes if o.free_bet)
        if self.is_three_way and free_count:
            raise ValueError(ERR_THREE_WAY_FREE_BET)
        if free_count > 1:
            raise ValueError(ERR_TWO_FREE_BETS)

    @classmethod
    def two_way(cls, home: Outcome, away: Outcome) -> "Book":
        """Build a Home/Away book."""
        return cls((home, away))

    @classmethod
    def three_way(cls, home: Outcome, draw: Outcome, away: Outcome) -> "Book":
        """Build a Home/Draw/Away book."""
        return cls((home, draw, away))

    @property
    def is_three_way(self) -> bool:
        return len(self.outcomes) == len(THREE_WAY_LABELS)

    @property
    def labels(self) -> tuple[str, ...]:
        return THREE_WAY_LABELS if self.is_three_way else TWO_WAY_LABELS

    @property
    def stakes(self) -> tuple[Money, ...]:
        return tuple(o.stake for o in self.outcomes)

    @property
    def odds(self) -> tuple[Odds, ...]:
        return tuple(o.odds for o in self.outcomes)

    def index_of(self, label: str) -> int:
        """Return the position of an outcome label in this book.

        Raises:
            KeyError: If the label does not belong to this book size

        """
        try:
            return self.labels.index(label)
        except ValueError:
            err_msg = f"{ERR_UNKNOWN_OUTCOME} {label!r} for {self.labels}"
            raise KeyError(err_msg) from None

    def outcome(self, label: str) -> Outcome:
        """Look up an outcome by label ("home", "draw" or "away")."""
        return self.outcomes[self.index_of(label)]

    def with_stakes(self, stakes: Sequence[Money]) -> "Book":
        """Return a copy of the book with every stake replaced."""
        if len(stakes) != len(self.outcomes):
            err_msg = f"{ERR_STAKE_COUNT}, got {len(stakes)}"
            raise ValueError(err_msg)
        return Book(
            tuple(
                replace(o, stake=s) for o, s in zip(self.outcomes, stakes, strict=True)
            ),
        )

    def with_free_bet(self, label: str) -> "Book":
        """Mark one outcome as a free bet, clearing the flag everywhere else."""
        index = self.index_of(label)
        return Book(
            tuple(
                replace(o, free_bet=i == index) for i, o in enumerate(self.outcomes)
            ),
        )

    def without_free_bets(self) -> "Book":
        """Return a copy of the book with all free-bet flags cleared."""
        return Book(tuple(replace(o, free_bet=False) for o in self.outcomes))

    def cleared(self) -> "Book":
        """Return a same-sized book with every field unset."""
        return Book(tuple(Outcome(odds=None) for _ in self.outcomes))


@dataclass(frozen=True)
class StakeResolutionRequest:
    """A book to resolve stakes for, plus an optional total-stake target."""

    book: Book
    total_stake: Money = None

    def __post_init__(self) -> None:
        """Coerce the raw total-stake value."""
        object.__setattr__(self, "total_stake", parse_amount(self.total_stake))
