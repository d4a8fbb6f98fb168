"""Tests for season aggregation and situational breakdowns."""
import random
from datetime import datetime

import pytest

from cfb_ats.analysis.line_selection import LineSelectionPolicy
from cfb_ats.analysis.season_aggregator import (
    SeasonAggregator,
    SpreadTiers,
    favorite_status,
    head_to_head,
)
from cfb_ats.config.constants import (
    ATSOutcome,
    ExclusionReason,
    FavoriteStatus,
    SeasonType,
    SpreadTier,
)
from cfb_ats.config.settings import ATSSettings, Settings
from cfb_ats.exceptions import InvalidInputError

from conftest import OHIO_STATE_2024_EXPECTED, TEAM

WIN = 100 / 110 * 100


@pytest.fixture
def aggregator():
    return SeasonAggregator()


@pytest.fixture
def summary(aggregator, ohio_state_2024):
    return aggregator.aggregate(ohio_state_2024, TEAM)


class TestOhioState2024:
    def test_record(self, summary):
        assert (summary.wins, summary.losses, summary.pushes) == (6, 6, 0)
        assert summary.total_games == 12
        assert summary.record_str == "6-6-0"
        assert summary.win_percentage == pytest.approx(50.0)

    def test_profit_and_roi(self, summary):
        assert summary.total_profit == pytest.approx(6 * WIN - 600)
        assert summary.total_profit == pytest.approx(-54.545, abs=0.001)
        assert summary.roi_percentage == pytest.approx(-4.545, abs=0.001)

    def test_game_results_in_week_order(self, summary):
        margins = [(r.ats_margin, r.classification.value) for r in summary.results]
        assert margins == [(pytest.approx(m), o) for m, o in OHIO_STATE_2024_EXPECTED]

    def test_location_breakdown(self, summary):
        home = summary.situational.location["home"]
        away = summary.situational.location["away"]
        assert (home.wins, home.losses, home.pushes) == (4, 4, 0)
        assert (away.wins, away.losses, away.pushes) == (2, 2, 0)

    def test_favorite_breakdown(self, summary):
        assert summary.situational.favorite["favorite"].record_str == "6-6-0"
        assert summary.situational.favorite["underdog"].games == 0
        assert summary.situational.favorite["underdog"].win_percentage == 0.0

    def test_spread_size_breakdown(self, summary):
        sizes = summary.situational.spread_size
        assert sizes["small"].record_str == "1-1-0"
        assert sizes["medium"].record_str == "1-0-0"
        assert sizes["large"].record_str == "4-5-0"

    def test_every_dimension_partitions_all_games(self, summary):
        for buckets in summary.situational.dimensions().values():
            assert sum(b.games for b in buckets.values()) == summary.total_games

    def test_averages(self, summary):
        assert summary.average_spread == pytest.approx(296 / 12)
        assert summary.average_ats_margin == pytest.approx(-1 / 12)

    def test_yearly_breakdown(self, summary):
        assert len(summary.yearly) == 1
        year = summary.yearly[0]
        assert (year.season, year.wins, year.losses, year.pushes) == (2024, 6, 6, 0)
        assert year.profit == pytest.approx(summary.total_profit)

    def test_notable_games(self, summary):
        assert [r.opponent for r in summary.best_covers] == ["Western Michigan"]
        assert [r.opponent for r in summary.worst_beats] == ["Michigan", "Nebraska"]

    def test_data_quality_is_clean(self, summary):
        assert summary.data_quality.is_clean
        assert summary.invalid_games == 0

    def test_segments(self, summary):
        assert summary.season_types == (SeasonType.REGULAR,)
        assert summary.filtered_out == 0


class TestOrderIndependence:
    def test_shuffled_input_gives_identical_summary(self, aggregator, ohio_state_2024, summary):
        games = list(ohio_state_2024)
        random.Random(7).shuffle(games)

        shuffled = aggregator.aggregate(games, TEAM)

        assert shuffled.record_str == summary.record_str
        assert shuffled.total_profit == summary.total_profit
        assert shuffled.to_frame().to_dicts() == summary.to_frame().to_dicts()
        assert shuffled.situational == summary.situational

    def test_team_name_is_case_insensitive(self, aggregator, ohio_state_2024, summary):
        assert aggregator.aggregate(ohio_state_2024, "OHIO STATE").record_str == summary.record_str

    def test_results_sort_by_segment_week_then_kickoff(self, aggregator, make_game, make_line):
        line = [make_line(spread=-7.0)]
        games = [
            make_game(4, TEAM, "Oregon", 41, 21, line, week=1, season_type=SeasonType.POSTSEASON),
            make_game(1, TEAM, "Army", 30, 10, line, week=1),
            make_game(3, TEAM, "Akron", 30, 10, line, week=1, start_date=datetime(2024, 8, 31, 19)),
            make_game(5, TEAM, "Michigan", 30, 10, line, week=12),
            make_game(2, TEAM, "Iowa", 30, 10, line, week=1, start_date=datetime(2024, 8, 31, 12)),
        ]

        summary = aggregator.aggregate(games, TEAM)

        assert [r.game_id for r in summary.results] == [2, 3, 1, 5, 4]


class TestFormulas:
    def test_pushes_excluded_from_win_percentage_but_not_roi(self, aggregator, make_game, make_line):
        games = [
            make_game(1, "A", "B", 30, 10, [make_line(spread=-7.0)], week=1),  # WIN
            make_game(2, "A", "C", 10, 30, [make_line(spread=-7.0)], week=2),  # LOSS
            make_game(3, "A", "D", 17, 10, [make_line(spread=-7.0)], week=3),  # PUSH
        ]
        summary = aggregator.aggregate(games, "A")

        assert summary.record_str == "1-1-1"
        assert summary.win_percentage == pytest.approx(50.0)
        assert summary.roi_percentage == pytest.approx((WIN - 100) / 300 * 100)

    def test_all_pushes(self, aggregator, make_game, make_line):
        games = [make_game(1, "A", "B", 17, 10, [make_line(spread=-7.0)])]
        summary = aggregator.aggregate(games, "A")

        assert summary.win_percentage == 0.0
        assert summary.roi_percentage == 0.0
        assert summary.total_games == 1

    def test_empty_input(self, aggregator):
        summary = aggregator.aggregate([], TEAM)

        assert summary.total_games == 0
        assert summary.win_percentage == 0.0
        assert summary.roi_percentage == 0.0
        assert summary.average_spread == 0.0
        assert summary.yearly == []
        assert summary.to_frame().height == 0

    def test_custom_stake(self, ohio_state_2024):
        summary = SeasonAggregator(stake=10.0).aggregate(ohio_state_2024, TEAM)
        assert summary.total_profit == pytest.approx((6 * WIN - 600) / 10)
        assert summary.roi_percentage == pytest.approx(-4.545, abs=0.001)

    def test_non_positive_stake_rejected(self):
        with pytest.raises(ValueError):
            SeasonAggregator(stake=0)


class TestExclusions:
    def test_unscorable_games_are_reported_not_counted(
        self, aggregator, ohio_state_2024, make_game, make_line
    ):
        extras = [
            make_game(900, TEAM, "Scheduled U", None, None, [make_line(spread=-20.0)], week=13),
            make_game(901, TEAM, "Partial U", 30, None, [make_line(spread=-20.0)], week=13),
            make_game(902, TEAM, "No Lines U", 30, 3, [], week=13),
            make_game(903, TEAM, "Moneyline U", 30, 3, [make_line(spread=None)], week=13),
            make_game(904, "Other A", "Other B", 30, 3, [make_line(spread=-3.0)], week=13),
        ]
        summary = aggregator.aggregate(ohio_state_2024 + extras, TEAM)

        assert summary.record_str == "6-6-0"
        assert summary.invalid_games == 5
        assert summary.data_quality.by_reason == {
            ExclusionReason.NOT_PLAYED: 1,
            ExclusionReason.PARTIAL_SCORE: 1,
            ExclusionReason.NO_LINES: 1,
            ExclusionReason.NO_USABLE_SPREAD: 1,
            ExclusionReason.TEAM_NOT_IN_GAME: 1,
        }
        assert "Excluded Games: 5" in summary.summary()

    def test_unreadable_input_is_reported(self, aggregator, ohio_state_2024):
        summary = aggregator.aggregate(
            ohio_state_2024, TEAM, skipped_records=2, skipped_lines=3
        )

        assert summary.record_str == "6-6-0"
        assert summary.invalid_games == 0
        assert not summary.data_quality.is_clean
        text = summary.summary()
        assert "Unreadable Records: 2" in text
        assert "Invalid Lines Dropped: 3" in text

    def test_score_game_without_usable_line_raises(self, aggregator, make_game, make_line):
        game = make_game(1, "A", "B", 10, 3, [make_line(spread=None)])
        with pytest.raises(InvalidInputError):
            aggregator.score_game(game, "A")


class TestSegments:
    @pytest.fixture
    def with_bowl(self, ohio_state_2024, make_game, make_line):
        bowl = make_game(
            401700001,
            "Ohio State",
            "Tennessee",
            42,
            17,
            [make_line(spread=-7.5)],
            week=1,
            season_type=SeasonType.POSTSEASON,
        )
        return ohio_state_2024 + [bowl]

    def test_filter_to_regular_season(self, aggregator, with_bowl):
        summary = aggregator.aggregate(with_bowl, TEAM, season_type="regular")

        assert summary.total_games == 12
        assert summary.filtered_out == 1
        assert summary.season_type is SeasonType.REGULAR

    def test_filter_to_postseason(self, aggregator, with_bowl):
        summary = aggregator.aggregate(with_bowl, TEAM, season_type=SeasonType.POSTSEASON)
        assert summary.record_str == "1-0-0"

    def test_unfiltered_reports_mixed_segments(self, aggregator, with_bowl):
        summary = aggregator.aggregate(with_bowl, TEAM)

        assert summary.total_games == 13
        assert summary.season_types == (SeasonType.REGULAR, SeasonType.POSTSEASON)
        # Postseason sorts after the regular season of the same year
        assert summary.results[-1].opponent == "Tennessee"
        assert "Segments mixed: regular, postseason" in summary.summary()

    def test_unknown_segment_rejected(self, aggregator, with_bowl):
        with pytest.raises(ValueError):
            aggregator.aggregate(with_bowl, TEAM, season_type="spring")


class TestSituationalRules:
    def test_pickem_counts_as_favorite(self, aggregator, make_game, make_line):
        summary = aggregator.aggregate(
            [make_game(1, "A", "B", 24, 21, [make_line(spread=0.0)])], "A"
        )
        result = summary.results[0]

        assert result.favorite_status is FavoriteStatus.FAVORITE
        assert result.ats_margin == pytest.approx(3.0)
        assert result.classification is ATSOutcome.WIN

    def test_favorite_status(self):
        assert favorite_status(-3.5) is FavoriteStatus.FAVORITE
        assert favorite_status(0.0) is FavoriteStatus.FAVORITE
        assert favorite_status(3.5) is FavoriteStatus.UNDERDOG

    @pytest.mark.parametrize(
        "spread,tier",
        [
            (0.0, SpreadTier.SMALL),
            (-7.0, SpreadTier.SMALL),
            (7.5, SpreadTier.MEDIUM),
            (-14.0, SpreadTier.MEDIUM),
            (14.5, SpreadTier.LARGE),
            (-48.5, SpreadTier.LARGE),
        ],
    )
    def test_spread_tiers(self, spread, tier):
        assert SpreadTiers().tier_for(spread) is tier

    def test_invalid_tiers(self):
        with pytest.raises(ValueError):
            SpreadTiers(small_max=10, medium_max=7)


class TestOutputs:
    def test_to_frame(self, summary):
        frame = summary.to_frame()

        assert frame.height == 12
        assert frame.columns == [
            "season",
            "season_type",
            "week",
            "game_id",
            "opponent",
            "location",
            "team_score",
            "opponent_score",
            "provider",
            "team_spread",
            "ats_margin",
            "result",
            "roi",
        ]
        first = frame.row(0, named=True)
        assert first["opponent"] == "Akron"
        assert first["team_spread"] == -48.5
        assert first["result"] == "LOSS"

    def test_summary_text(self, summary):
        text = summary.summary()

        assert "ATS SUMMARY - OHIO STATE" in text
        assert "ATS Record: 6-6-0 (50.0%)" in text
        assert "location/home: 4-4-0" in text
        assert "2024: 6-6-0" in text


class TestConfiguration:
    def test_from_settings(self, ohio_state_2024):
        settings = Settings(ats=ATSSettings(push_threshold=3.0, stake=50.0))
        aggregator = SeasonAggregator.from_settings(settings)
        summary = aggregator.aggregate(ohio_state_2024, TEAM)

        # Akron (-2.5) falls inside the wider push band; Penn State (+3.5) does not
        assert aggregator.stake == 50.0
        assert summary.pushes == 1
        assert summary.record_str == "6-5-1"

    def test_provider_policy_changes_selected_line(self, make_game, make_line):
        game = make_game(
            1, "A", "B", 24, 17,
            [make_line("ESPN Bet", -7.5), make_line("Bovada", -6.5)],
        )
        default = SeasonAggregator().aggregate([game], "A")
        bovada = SeasonAggregator(policy=LineSelectionPolicy(("Bovada",))).aggregate([game], "A")

        assert default.results[0].classification is ATSOutcome.LOSS
        assert bovada.results[0].classification is ATSOutcome.WIN
        assert bovada.results[0].provider == "Bovada"


def test_head_to_head(ohio_state_2024):
    games = head_to_head(ohio_state_2024, "Ohio State", "michigan")
    assert [g.away_team for g in games] == ["Michigan"]
