"""
Rich-based terminal reports for ATS and arbitrage results.

Renders:
- Season summary panel with record, ROI and averages
- Game-by-game results table
- Situational and season-by-season breakdowns
- Best covers and worst beats
- Data quality notes
- Arbitrage scan results with scaled stakes
"""

import logging
from typing import Iterable, Optional

from rich.console import Console, Group
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from ..analysis.season_aggregator import GameATSResult, SeasonSummary
from ..betting.arbitrage_scanner import WeekArbitrageScan
from ..betting.odds_converter import format_american_odds
from ..config.constants import ATSOutcome

logger = logging.getLogger(__name__)

RESULT_STYLES = {
    ATSOutcome.WIN: "green",
    ATSOutcome.LOSS: "red",
    ATSOutcome.PUSH: "yellow",
}


def _signed_style(value: float) -> str:
    return "green" if value >= 0 else "red"


class ATSReport:
    """
    Console report for season summaries and arbitrage scans.

    Example:
        >>> report = ATSReport()
        >>> report.render_summary(summary)
        >>> report.render_arbitrage(scan, bankroll=500)
    """

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console()

    def _render_header(self, summary: SeasonSummary) -> Panel:
        """Render the headline numbers."""
        roi_style = _signed_style(summary.roi_percentage)
        profit_style = _signed_style(summary.total_profit)

        segment = ", ".join(s.value for s in summary.season_types) or "none"
        lines = [
            f"[bold]ATS Record:[/bold] {summary.record_str} "
            f"([cyan]{summary.win_percentage:.1f}%[/cyan])",
            f"[bold]ROI:[/bold] [{roi_style}]{summary.roi_percentage:+.1f}%[/{roi_style}]",
            f"[bold]Profit/Loss:[/bold] [{profit_style}]${summary.total_profit:+,.2f}"
            f"[/{profit_style}] [dim](${summary.stake:,.0f} per game)[/dim]",
            f"[bold]Average Spread:[/bold] {summary.average_spread:.1f}",
            f"[bold]Average ATS Margin:[/bold] {summary.average_ats_margin:+.1f}",
            f"[bold]Segments:[/bold] {segment}",
        ]
        if len(summary.season_types) > 1:
            lines.append("[yellow]Regular season and postseason games are combined[/yellow]")

        return Panel(
            Text.from_markup("\n".join(lines)),
            title=f"{summary.team} Against the Spread",
            border_style="blue",
        )

    def _render_games_table(self, results: Iterable[GameATSResult]) -> Table:
        """Render the game-by-game table."""
        table = Table(
            title="Game by Game",
            show_header=True,
            header_style="bold cyan",
            border_style="dim",
            expand=True,
        )

        table.add_column("Season", justify="right")
        table.add_column("Wk", justify="right")
        table.add_column("Opponent", style="white", no_wrap=True)
        table.add_column("Score", justify="center")
        table.add_column("Spread", justify="right")
        table.add_column("Book", style="dim")
        table.add_column("ATS Margin", justify="right")
        table.add_column("Result", justify="center")

        results = list(results)
        if not results:
            table.add_row("[dim]No scored games[/dim]", "", "", "", "", "", "", "")
            return table

        for r in results:
            prefix = "vs" if r.location.value == "home" else "@"
            style = RESULT_STYLES[r.classification]
            table.add_row(
                str(r.season),
                str(r.week),
                f"{prefix} {r.opponent}",
                f"{r.team_score}-{r.opponent_score}",
                f"{r.adjusted_spread:+.1f}",
                r.provider,
                f"[{style}]{r.ats_margin:+.1f}[/{style}]",
                f"[{style}]{r.classification.value}[/{style}]",
            )

        return table

    def _render_situational_table(self, summary: SeasonSummary) -> Table:
        """Render the situational breakdown."""
        table = Table(
            title="Situational",
            show_header=True,
            header_style="bold cyan",
            border_style="dim",
        )

        table.add_column("Split", style="white")
        table.add_column("Record", justify="center")
        table.add_column("Win %", justify="right")
        table.add_column("Games", justify="right", style="dim")

        for dimension, buckets in summary.situational.dimensions().items():
            for label, bucket in buckets.items():
                table.add_row(
                    f"{dimension} / {label}",
                    bucket.record_str,
                    f"{bucket.win_percentage:.1f}%" if bucket.games else "-",
                    str(bucket.games),
                )

        return table

    def _render_yearly_table(self, summary: SeasonSummary) -> Table:
        """Render the season-by-season breakdown."""
        table = Table(
            title="Season by Season",
            show_header=True,
            header_style="bold cyan",
            border_style="dim",
        )

        table.add_column("Season", justify="right")
        table.add_column("Record", justify="center")
        table.add_column("Win %", justify="right")
        table.add_column("Profit", justify="right")

        for year in summary.yearly:
            style = _signed_style(year.profit)
            table.add_row(
                str(year.season),
                f"{year.wins}-{year.losses}-{year.pushes}",
                f"{year.win_percentage:.1f}%",
                f"[{style}]${year.profit:+,.2f}[/{style}]",
            )

        return table

    def _render_notable_table(self, title: str, results: list[GameATSResult]) -> Table:
        table = Table(title=title, show_header=True, header_style="bold cyan", border_style="dim")

        table.add_column("Season", justify="right")
        table.add_column("Opponent", style="white")
        table.add_column("Score", justify="center")
        table.add_column("Spread", justify="right")
        table.add_column("ATS Margin", justify="right")

        for r in results:
            style = _signed_style(r.ats_margin)
            table.add_row(
                str(r.season),
                r.opponent,
                f"{r.team_score}-{r.opponent_score}",
                f"{r.adjusted_spread:+.1f}",
                f"[{style}]{r.ats_margin:+.1f}[/{style}]",
            )

        return table

    def _render_data_quality(self, summary: SeasonSummary) -> Panel:
        """Render excluded-game counts."""
        report = summary.data_quality
        if report.is_clean and not summary.filtered_out:
            return Panel("[green]All games scored[/green]", title="Data Quality", border_style="dim")

        lines = [f"[bold]Excluded:[/bold] {report.invalid_games}"]
        for reason, count in sorted(report.by_reason.items(), key=lambda x: x[0].value):
            lines.append(f"  {reason.value}: {count}")
        if report.skipped_records:
            lines.append(f"[bold]Unreadable records:[/bold] {report.skipped_records}")
        if report.skipped_lines:
            lines.append(f"[bold]Invalid lines dropped:[/bold] {report.skipped_lines}")
        if summary.filtered_out:
            lines.append(f"[dim]Outside requested segment: {summary.filtered_out}[/dim]")

        return Panel(
            Text.from_markup("\n".join(lines)),
            title="Data Quality",
            border_style="yellow",
        )

    def build_summary(self, summary: SeasonSummary, show_games: bool = True) -> Group:
        """Assemble all renderables for a season summary."""
        parts = [self._render_header(summary)]
        if show_games:
            parts.append(self._render_games_table(summary.results))
        parts.append(self._render_situational_table(summary))
        if summary.yearly:
            parts.append(self._render_yearly_table(summary))
        if summary.best_covers:
            parts.append(self._render_notable_table("Best Covers", summary.best_covers))
        if summary.worst_beats:
            parts.append(self._render_notable_table("Worst Beats", summary.worst_beats))
        parts.append(self._render_data_quality(summary))
        return Group(*parts)

    def render_summary(self, summary: SeasonSummary, show_games: bool = True) -> None:
        self.console.print(self.build_summary(summary, show_games=show_games))

    def build_arbitrage(self, scan: WeekArbitrageScan, bankroll: float = 100.0) -> Panel:
        """Render an arbitrage scan as a table of opportunities."""
        table = Table(
            show_header=True,
            header_style="bold cyan",
            border_style="dim",
            expand=True,
        )

        table.add_column("Game", style="white", no_wrap=True)
        table.add_column("Home Bet", style="white")
        table.add_column("Away Bet", style="white")
        table.add_column("Implied", justify="right")
        table.add_column("Profit", justify="right", style="green")
        table.add_column("Stakes", justify="right")

        opportunities = scan.opportunities
        if not opportunities:
            table.add_row("[dim]No arbitrage found[/dim]", "", "", "", "", "")
        else:
            for result in opportunities:
                home_stake, away_stake, profit = result.scale_stakes(bankroll)
                table.add_row(
                    result.description,
                    f"{result.home_bet.provider} {format_american_odds(result.home_bet.odds)}",
                    f"{result.away_bet.provider} {format_american_odds(result.away_bet.odds)}",
                    f"{result.total_implied:.1%}",
                    f"{result.profit_percentage:.2f}% (${profit:,.2f})",
                    f"${home_stake:,.2f} / ${away_stake:,.2f}",
                )

        subtitle = (
            f"{scan.scanned_games} games, {scan.scanned_providers} books, "
            f"{scan.skipped_games} skipped | ${bankroll:,.0f} bankroll"
        )
        return Panel(
            table,
            title="Moneyline Arbitrage",
            subtitle=subtitle,
            border_style="green" if opportunities else "dim",
        )

    def render_arbitrage(self, scan: WeekArbitrageScan, bankroll: float = 100.0) -> None:
        logger.debug(f"Rendering {len(scan.results)} arbitrage results")
        self.console.print(self.build_arbitrage(scan, bankroll=bankroll))
