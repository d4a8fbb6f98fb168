"""Tests for single-game ATS classification."""
import math

import pytest

from cfb_ats.analysis.ats_classifier import (
    STANDARD_WIN_PAYOUT_RATIO,
    classify_ats,
    classify_game,
    classify_margin,
    normalize_spread,
    roi_for,
)
from cfb_ats.config.constants import ATSOutcome
from cfb_ats.exceptions import InvalidInputError

from conftest import OHIO_STATE_2024, OHIO_STATE_2024_EXPECTED, TEAM


class TestRegressionVectors:
    def test_heavy_home_favorite_wins_but_fails_to_cover(self):
        # Akron at Ohio State: -48.5, won 52-6
        result = classify_ats(52, 6, -48.5, is_home=True)

        assert result.actual_margin == 46
        assert result.adjusted_spread == -48.5
        assert result.ats_margin == pytest.approx(-2.5)
        assert result.classification is ATSOutcome.LOSS
        assert result.roi_delta == pytest.approx(-100.0)

    def test_road_favorite_covers(self):
        # Ohio State at Michigan State: home spread +23.5, won 38-7
        result = classify_ats(7, 38, 23.5, is_home=False)

        assert result.actual_margin == 31
        assert result.adjusted_spread == -23.5
        assert result.ats_margin == pytest.approx(7.5)
        assert result.classification is ATSOutcome.WIN
        assert result.roi_delta == pytest.approx(90.909, abs=0.001)
        assert result.covered

    @pytest.mark.parametrize(
        "game,expected",
        list(zip(OHIO_STATE_2024, OHIO_STATE_2024_EXPECTED)),
        ids=[f"week{g[0]}" for g in OHIO_STATE_2024],
    )
    def test_ohio_state_2024_season(self, game, expected):
        _, home, _, home_score, away_score, spread = game
        margin, outcome = expected

        result = classify_ats(home_score, away_score, spread, is_home=home == TEAM)

        assert result.ats_margin == pytest.approx(margin)
        assert result.classification.value == outcome


class TestSpreadNormalization:
    def test_home_keeps_sign(self):
        assert normalize_spread(-7.0, is_home=True) == -7.0

    def test_away_flips_sign(self):
        assert normalize_spread(-7.0, is_home=False) == 7.0
        assert normalize_spread(3.5, is_home=False) == -3.5


class TestProperties:
    @pytest.mark.parametrize(
        "home_score,away_score,spread",
        [(52, 6, -48.5), (7, 38, 23.5), (32, 31, 3.5), (24, 24, 0.0), (20, 17, -3.0)],
    )
    def test_home_and_away_results_are_mirror_images(self, home_score, away_score, spread):
        home = classify_ats(home_score, away_score, spread, is_home=True)
        away = classify_ats(home_score, away_score, spread, is_home=False)

        assert home.ats_margin == pytest.approx(-away.ats_margin)
        mirrored = {
            ATSOutcome.WIN: ATSOutcome.LOSS,
            ATSOutcome.LOSS: ATSOutcome.WIN,
            ATSOutcome.PUSH: ATSOutcome.PUSH,
        }
        assert away.classification is mirrored[home.classification]

    def test_repeated_calls_are_identical(self):
        first = classify_ats(35, 7, -17.5, is_home=True)
        second = classify_ats(35, 7, -17.5, is_home=True)
        assert first == second

    def test_margin_equal_to_spread_is_push(self):
        # Favored by 7, won by 7
        result = classify_ats(27, 20, -7.0, is_home=True)
        assert result.classification is ATSOutcome.PUSH
        assert result.roi_delta == 0.0

    def test_underdog_losing_by_spread_is_push(self):
        result = classify_ats(27, 20, -7.0, is_home=False)
        assert result.classification is ATSOutcome.PUSH


class TestPushThreshold:
    def test_margin_inside_threshold_is_push(self):
        assert classify_margin(0.4) is ATSOutcome.PUSH
        assert classify_margin(-0.4) is ATSOutcome.PUSH

    def test_margin_at_threshold_is_decided(self):
        # Favored by 6.5, won by 7
        result = classify_ats(28, 21, -6.5, is_home=True)
        assert result.ats_margin == pytest.approx(0.5)
        assert result.classification is ATSOutcome.WIN

    def test_zero_margin_is_push_even_without_threshold(self):
        assert classify_margin(0.0, push_threshold=0.0) is ATSOutcome.PUSH

    def test_custom_threshold(self):
        result = classify_ats(28, 21, -6.5, is_home=True, push_threshold=1.0)
        assert result.classification is ATSOutcome.PUSH

    def test_negative_threshold_rejected(self):
        with pytest.raises(InvalidInputError):
            classify_ats(28, 21, -6.5, is_home=True, push_threshold=-1.0)


class TestROI:
    def test_standard_payout_ratio(self):
        assert STANDARD_WIN_PAYOUT_RATIO == pytest.approx(100 / 110)

    def test_roi_by_outcome(self):
        assert roi_for(ATSOutcome.WIN) == pytest.approx(90.909, abs=0.001)
        assert roi_for(ATSOutcome.LOSS) == -100.0
        assert roi_for(ATSOutcome.PUSH) == 0.0

    def test_custom_stake(self):
        result = classify_ats(56, 0, -37.5, is_home=True, stake=50.0)
        assert result.roi_delta == pytest.approx(50 * 100 / 110)


class TestInvalidInput:
    @pytest.mark.parametrize(
        "home_score,away_score,spread",
        [
            (None, 6, -48.5),
            (52, None, -48.5),
            (52, 6, None),
            (52, 6, "-48.5"),
            (52, 6, True),
            (52, 6, math.nan),
            (52, 6, math.inf),
        ],
    )
    def test_missing_or_non_numeric_fields_raise(self, home_score, away_score, spread):
        with pytest.raises(InvalidInputError):
            classify_ats(home_score, away_score, spread, is_home=True)

    def test_invalid_input_is_a_value_error(self):
        with pytest.raises(ValueError):
            classify_ats(52, 6, None, is_home=True)


class TestClassifyGame:
    def test_uses_team_perspective(self, make_game, make_line):
        game = make_game(
            home_team="Michigan State",
            away_team="Ohio State",
            home_score=7,
            away_score=38,
            lines=[make_line(spread=23.5)],
        )
        result = classify_game(game, game.lines[0], "ohio state")
        assert result.ats_margin == pytest.approx(7.5)

    def test_team_not_in_game(self, make_game, make_line):
        game = make_game(home_score=10, away_score=3, lines=[make_line(spread=-3.0)])
        with pytest.raises(InvalidInputError) as exc_info:
            classify_game(game, game.lines[0], "Ohio State")
        assert exc_info.value.field == "team"

    def test_partial_score(self, make_game, make_line):
        game = make_game(home_score=10, lines=[make_line(spread=-3.0)])
        with pytest.raises(InvalidInputError):
            classify_game(game, game.lines[0], "Home U")

    def test_unplayed_game(self, make_game, make_line):
        game = make_game(lines=[make_line(spread=-3.0)])
        with pytest.raises(InvalidInputError):
            classify_game(game, game.lines[0], "Home U")

    def test_missing_line(self, make_game):
        game = make_game(home_score=10, away_score=3)
        with pytest.raises(InvalidInputError):
            classify_game(game, None, "Home U")
