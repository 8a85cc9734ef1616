"""Tests for the stake resolution module."""

from decimal import Decimal

import pytest

from hedgecalc.bet_schema import Book, Outcome, StakeResolutionRequest
from hedgecalc.dutch import compute_two_way_profit
from hedgecalc.stakes import allocate_from_total, fill_from_known, resolve_stakes

# Test constants
HOME_ODDS = Decimal("2.5")
DRAW_ODDS = Decimal("3.4")
AWAY_ODDS = Decimal("1.8")
STAKE_100 = Decimal("100")
CENT = Decimal("0.01")


def create_two_way(home_stake=None, away_stake=None, home_odds=HOME_ODDS):
    """Create a Home/Away book for testing."""
    return Book.two_way(
        Outcome(odds=home_odds, stake=home_stake),
        Outcome(odds=AWAY_ODDS, stake=away_stake),
    )


def create_three_way(home_stake=None, draw_stake=None, away_stake=None, draw_odds=DRAW_ODDS):
    """Create a Home/Draw/Away book for testing."""
    return Book.three_way(
        Outcome(odds=HOME_ODDS, stake=home_stake),
        Outcome(odds=draw_odds, stake=draw_stake),
        Outcome(odds=AWAY_ODDS, stake=away_stake),
    )


class TestFillFromKnown:
    """Tests for proportional fill from a single known stake."""

    def test_home_known_fills_away(self):
        """Away stake matches the home return: 100 * 2.5 / 1.8."""
        book = fill_from_known(create_two_way(home_stake=STAKE_100))

        assert book.stakes == (STAKE_100, Decimal("138.89"))

        home = compute_two_way_profit("home", book)
        away = compute_two_way_profit("away", book)
        assert home == Decimal("11.11")
        assert abs(home - away) < Decimal("0.01")

    def test_away_known_fills_home(self):
        """Home stake matches the away return: 100 * 1.8 / 2.5."""
        book = fill_from_known(create_two_way(away_stake=STAKE_100))

        assert book.stakes == (Decimal("72.00"), STAKE_100)

    def test_zero_counts_as_empty(self):
        """A zero stake on the other side is filled like an unset one."""
        book = fill_from_known(create_two_way(home_stake=STAKE_100, away_stake="0"))

        assert book.stakes == (STAKE_100, Decimal("138.89"))

    def test_free_home_matches_winnings_only(self):
        """A free home bet only has its winnings to match: 100 * 1.5 / 1.8."""
        book = create_two_way(home_stake=STAKE_100).with_free_bet("home")
        filled = fill_from_known(book)

        assert filled.stakes == (STAKE_100, Decimal("83.33"))
        assert filled.outcome("home").free_bet

    def test_free_away_matches_winnings_only(self):
        """A free away bet only has its winnings to match: 100 * 0.8 / 2.5."""
        book = create_two_way(away_stake=STAKE_100).with_free_bet("away")

        assert fill_from_known(book).stakes == (Decimal("32.00"), STAKE_100)

    def test_free_flag_on_unknown_leg_is_ignored(self):
        """Only the known leg's free-bet flag changes the required return."""
        book = create_two_way(home_stake=STAKE_100).with_free_bet("away")

        assert fill_from_known(book).stakes == (STAKE_100, Decimal("138.89"))

    @pytest.mark.parametrize(
        ("stakes", "expected"),
        [
            # 100 * 2.5 = 250 -> draw 250 / 3.4, away 250 / 1.8
            (("100", None, None), ("100", "73.53", "138.89")),
            # 50 * 3.4 = 170 -> home 170 / 2.5, away 170 / 1.8
            ((None, "50", None), ("68.00", "50", "94.44")),
            # 90 * 1.8 = 162 -> home 162 / 2.5, draw 162 / 3.4
            ((None, None, "90"), ("64.80", "47.65", "90")),
        ],
    )
    def test_three_way_each_single_known_leg(self, stakes, expected):
        """Every single populated leg of a 3-way book drives the other two."""
        book = fill_from_known(create_three_way(*stakes))

        assert book.stakes == tuple(Decimal(s) for s in expected)

    @pytest.mark.parametrize(
        "stakes",
        [
            (None, None, None),
            ("100", "50", None),
            ("100", None, "50"),
            (None, "50", "50"),
            ("100", "50", "50"),
            ("100", "-5", None),
        ],
    )
    def test_three_way_not_single_known_is_noop(self, stakes):
        """Proportional fill only applies with exactly one known leg."""
        book = create_three_way(*stakes)

        assert fill_from_known(book) == book

    def test_incomplete_odds_is_noop(self):
        """Unknown stakes cannot be sized without every price."""
        book = create_three_way("100", draw_odds=None)

        assert fill_from_known(book) == book

    def test_idempotent(self):
        """Filling an already-filled book changes nothing."""
        once = fill_from_known(create_three_way(away_stake="90"))

        assert fill_from_known(once) == once
        assert resolve_stakes(StakeResolutionRequest(book=once)) == once


class TestAllocateFromTotal:
    """Tests for implied-probability allocation."""

    @pytest.mark.parametrize(
        ("odds", "total"),
        [
            (("2.5", "1.8"), "100"),
            (("2.5", "3.4", "1.8"), "100"),
            (("1.01", "51"), "333.33"),
            (("3.1", "3.3", "2.4"), "10"),
        ],
    )
    def test_equal_return_and_exact_total(self, odds, total):
        """Every leg returns the same amount and the stakes sum to the total."""
        odds = [Decimal(o) for o in odds]
        total = Decimal(total)

        stakes = allocate_from_total(odds, total)

        assert sum(stakes) == total
        returns = [s * o for s, o in zip(stakes, odds, strict=True)]
        # Each stake is off by at most a couple of cents once rounded
        assert max(returns) - min(returns) <= 2 * CENT * max(odds)

    def test_two_way_values(self):
        """100 over 2.5/1.8 splits in proportion 0.4 : 0.5556."""
        stakes = allocate_from_total([HOME_ODDS, AWAY_ODDS], STAKE_100)

        assert stakes == [Decimal("41.86"), Decimal("58.14")]

    def test_rounding_residue_goes_to_largest_stake(self):
        """Three even legs of 100 round to 33.33 each; the residue lands on one."""
        even = Decimal("3")
        stakes = allocate_from_total([even, even, even], STAKE_100)

        assert sum(stakes) == STAKE_100
        assert sorted(stakes) == [Decimal("33.33"), Decimal("33.33"), Decimal("33.34")]

    def test_rejects_missing_odds(self):
        """Allocation needs every price."""
        with pytest.raises(ValueError, match="All odds must be set"):
            allocate_from_total([HOME_ODDS, None], STAKE_100)

    def test_rejects_non_positive_total(self):
        """Allocation needs a budget."""
        with pytest.raises(ValueError, match="Total stake must be positive"):
            allocate_from_total([HOME_ODDS, AWAY_ODDS], Decimal("0"))


class TestResolveStakes:
    """Tests for the stake precedence rule."""

    @pytest.mark.parametrize(
        ("home", "away", "expected"),
        [
            ("100", None, ("100", "138.89")),
            (None, "100", ("72.00", "100")),
        ],
    )
    def test_two_way_single_known_uses_fill(self, home, away, expected):
        """One known leg wins over the total-stake target."""
        request = StakeResolutionRequest(
            book=create_two_way(home, away),
            total_stake="500",
        )

        book = resolve_stakes(request)

        assert book.stakes == tuple(Decimal(s) for s in expected)

    def test_fill_keeps_free_bet_flag(self):
        """Proportional fill does not touch free-bet flags."""
        request = StakeResolutionRequest(
            book=create_two_way(home_stake=STAKE_100).with_free_bet("home"),
        )

        book = resolve_stakes(request)

        assert book.stakes == (STAKE_100, Decimal("83.33"))
        assert book.outcome("home").free_bet

    def test_empty_book_allocates_total(self):
        """With nothing staked the total is split by implied probability."""
        request = StakeResolutionRequest(book=create_two_way(), total_stake="100")

        book = resolve_stakes(request)

        assert book.stakes == (Decimal("41.86"), Decimal("58.14"))

    def test_allocation_clears_free_bets(self):
        """Optimizing from the total drops free-bet flags."""
        book = create_two_way("60", "40").with_free_bet("away")
        request = StakeResolutionRequest(book=book, total_stake="100")

        resolved = resolve_stakes(request)

        assert resolved.stakes == (Decimal("41.86"), Decimal("58.14"))
        assert not any(o.free_bet for o in resolved.outcomes)

    @pytest.mark.parametrize(
        ("stakes", "kind"),
        [
            (("100", None, None), "fill"),
            ((None, "50", None), "fill"),
            ((None, None, "90"), "fill"),
            ((None, None, None), "allocate"),
            (("100", "50", None), "allocate"),
            (("100", None, "50"), "allocate"),
            ((None, "50", "50"), "allocate"),
            (("10", "20", "30"), "allocate"),
        ],
    )
    def test_three_way_precedence_with_total(self, stakes, kind):
        """Single known leg fills; every other combination allocates the total."""
        book = create_three_way(*stakes)
        request = StakeResolutionRequest(book=book, total_stake="200")

        resolved = resolve_stakes(request)

        if kind == "fill":
            assert resolved == fill_from_known(book)
        else:
            assert resolved.stakes == tuple(
                allocate_from_total(book.odds, Decimal("200")),
            )
            assert sum(resolved.stakes) == Decimal("200")

    @pytest.mark.parametrize(
        "stakes",
        [(None, None, None), ("100", "50", None), ("10", "20", "30")],
    )
    def test_three_way_without_total_is_noop(self, stakes):
        """Without a single known leg or a total there is nothing to resolve."""
        book = create_three_way(*stakes)

        assert resolve_stakes(StakeResolutionRequest(book=book)) == book

    @pytest.mark.parametrize("total", [None, "", "0", "-10", "abc"])
    def test_unusable_total_is_noop(self, total):
        """A missing or non-positive total does not trigger allocation."""
        book = create_two_way("60", "40")
        request = StakeResolutionRequest(book=book, total_stake=total)

        assert resolve_stakes(request) == book

    @pytest.mark.parametrize("home_odds", [None, "", "0", "-2"])
    def test_incomplete_odds_is_noop(self, home_odds):
        """Missing or non-positive odds leave the book unchanged."""
        book = create_two_way(home_stake=STAKE_100, home_odds=home_odds)
        request = StakeResolutionRequest(book=book, total_stake="100")

        assert resolve_stakes(request) == book


class TestLargeAmounts:
    """Stakes beyond the default Decimal precision still resolve."""

    def test_huge_single_stake_fills_to_cents(self):
        """A 31-digit stake fills the other leg without losing the cents."""
        book = create_two_way(home_stake="1e30")

        resolved = resolve_stakes(StakeResolutionRequest(book=book))

        away = resolved.outcome("away").stake
        assert away == Decimal("1.388888888888888888888888889E+30")
        assert away.as_tuple().exponent == -2

    def test_huge_total_allocates_exactly(self):
        """A 28-digit total is split to cents and still sums exactly."""
        total = Decimal("1e27")
        request = StakeResolutionRequest(book=create_two_way(), total_stake=total)

        resolved = resolve_stakes(request)

        assert sum(resolved.stakes) == total
        assert all(s.as_tuple().exponent == -2 for s in resolved.stakes)

    def test_overflowing_fill_is_noop(self):
        """A stake whose return exceeds the Decimal range leaves the book alone."""
        book = create_two_way(home_stake="9e999999")

        assert resolve_stakes(StakeResolutionRequest(book=book)) == book
