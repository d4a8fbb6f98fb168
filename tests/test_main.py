"""Tests for the CLI and terminal report, using local JSON input."""
import io
import json

import polars as pl
import pytest
from rich.console import Console

from cfb_ats.analysis.season_aggregator import SeasonAggregator
from cfb_ats.betting.arbitrage_scanner import ArbitrageDetector
from cfb_ats.config.settings import get_settings
from cfb_ats.dashboard.terminal import ATSReport
from cfb_ats.data.pipeline import load_games_file
from cfb_ats.main import build_parser, main

from conftest import OHIO_STATE_2024, TEAM


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch):
    monkeypatch.delenv("CFBD_API_KEY", raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def games_file(tmp_path):
    records = [
        {
            "id": 401628300 + week,
            "season": 2024,
            "week": week,
            "seasonType": "regular",
            "homeTeam": home,
            "awayTeam": away,
            "homeScore": home_score,
            "awayScore": away_score,
            "lines": [
                {"provider": "ESPN Bet", "spread": spread, "homeMoneyline": 150, "awayMoneyline": -200},
                {"provider": "Bovada", "spread": spread, "homeMoneyline": -200, "awayMoneyline": 150},
            ],
        }
        for week, home, away, home_score, away_score, spread in OHIO_STATE_2024
    ]
    path = tmp_path / "games.json"
    path.write_text(json.dumps(records), encoding="utf-8")
    return path


def recording_report():
    return ATSReport(Console(file=io.StringIO(), width=140, record=True))


class TestParser:
    def test_ats_arguments(self):
        args = build_parser().parse_args(
            ["ats", "Ohio State", "--seasons", "2023", "2024", "--season-type", "postseason",
             "--provider", "Bovada", "consensus"]
        )

        assert args.command == "ats"
        assert args.team == "Ohio State"
        assert args.seasons == [2023, 2024]
        assert args.season_type == "postseason"
        assert args.provider == ["Bovada", "consensus"]
        assert not args.debug

    def test_arbitrage_requires_week(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["arbitrage", "--year", "2024"])


class TestCommands:
    def test_ats_from_file_writes_csv(self, games_file, tmp_path):
        csv_path = tmp_path / "ats.csv"

        with pytest.raises(SystemExit) as exc_info:
            main(["ats", TEAM, "--input", str(games_file), "--csv", str(csv_path)])

        assert exc_info.value.code == 0
        frame = pl.read_csv(csv_path)
        assert frame.height == 12
        assert frame["result"].to_list().count("WIN") == 6

    def test_arbitrage_from_file(self, games_file):
        with pytest.raises(SystemExit) as exc_info:
            main(["arbitrage", "--year", "2024", "--week", "3", "--input", str(games_file)])
        assert exc_info.value.code == 0

    def test_missing_api_key_fails(self):
        with pytest.raises(SystemExit) as exc_info:
            main(["ats", TEAM, "--seasons", "2024"])
        assert exc_info.value.code == 1

    def test_missing_input_file_fails(self, tmp_path):
        with pytest.raises(SystemExit) as exc_info:
            main(["ats", TEAM, "--input", str(tmp_path / "missing.json")])
        assert exc_info.value.code == 1


class TestReport:
    def test_summary_report(self, ohio_state_2024):
        report = recording_report()
        report.render_summary(SeasonAggregator().aggregate(ohio_state_2024, TEAM))

        text = report.console.export_text()
        assert "Ohio State Against the Spread" in text
        assert "6-6-0" in text
        assert "Western Michigan" in text
        assert "All games scored" in text

    def test_invalid_line_is_reported_and_game_still_scored(self, tmp_path):
        records = [
            {"id": 1, "season": 2024, "week": 1, "homeTeam": TEAM, "awayTeam": "Akron",
             "homeScore": 52, "awayScore": 6,
             "lines": [{"provider": "ESPN Bet", "spread": -48.5}]},
            {"id": 2, "season": 2024, "week": 2, "homeTeam": TEAM, "awayTeam": "Western Michigan",
             "homeScore": 56, "awayScore": 0,
             "lines": [{"provider": "ESPN Bet", "spread": -38.0},
                       {"provider": "Bovada", "spread": "N/A"}]},
        ]
        path = tmp_path / "games.json"
        path.write_text(json.dumps(records), encoding="utf-8")

        fetched = load_games_file(path)
        summary = SeasonAggregator().aggregate(
            fetched.games,
            TEAM,
            skipped_records=fetched.skipped_records,
            skipped_lines=fetched.skipped_lines,
        )

        assert summary.total_games + summary.invalid_games == 2
        assert summary.total_games == 2
        report = recording_report()
        report.render_summary(summary)
        text = report.console.export_text()
        assert "Invalid lines dropped: 1" in text
        assert "All games scored" not in text

    def test_arbitrage_report(self, make_game, make_line):
        lines = [
            make_line("DraftKings", home_moneyline=150, away_moneyline=-200),
            make_line("Bovada", home_moneyline=-200, away_moneyline=150),
        ]
        scan = ArbitrageDetector().scan([make_game(1, "Iowa", "Ohio State", lines=lines)])

        report = recording_report()
        report.render_arbitrage(scan, bankroll=200)

        text = report.console.export_text()
        assert "Ohio State @ Iowa" in text
        assert "25.00%" in text
        assert "$100.00 / $100.00" in text

    def test_empty_arbitrage_report(self):
        report = recording_report()
        report.render_arbitrage(ArbitrageDetector().scan([]))
        assert "No arbitrage found" in report.console.export_text()
