"""
Per-Player Analysis of a Parsed Log

LogAnalysis wraps a ParsedLog and derives everything a front end shows for
it: each player's FPS series and trend line, summary stats, chart domains
and the cross-player running average. Nothing is cached; every call
recomputes from the parsed log, so callers can change the selection or
window size freely.

Usage:
    from fpstrack import parse_log, LogAnalysis

    analysis = LogAnalysis(parse_log(text, "MWG_"))
    for stats in analysis.player_stats():
        print(f"{stats.player}: {stats.average_fps:.1f} FPS")
"""

import logging
from collections.abc import Iterable, Sequence

import pandas as pd

from fpstrack.aggregate import aggregate_players, padded_domain
from fpstrack.core.constants import (
    DEFAULT_SMOOTHING_RADIUS,
    DEFAULT_WINDOW_MS,
    MAX_AGGREGATE_SAMPLES,
    MAX_SAMPLE_STEP_MS,
    REFERENCE_FPS_LEVELS,
    SERIES_TIME_RANGE_FALLBACK_MS,
)
from fpstrack.core.schemas import (
    AggregateResult,
    ChartDomain,
    FpsSample,
    ParsedLog,
    PlayerCountSample,
    PlayerSeries,
    PlayerStats,
    TimeSeriesPoint,
)
from fpstrack.trend import fit_trend

logger = logging.getLogger(__name__)


class LogAnalysis:
    """Derived series and statistics for one parsed log."""

    def __init__(self, parsed: ParsedLog):
        self.parsed = parsed

    @property
    def players(self) -> tuple[str, ...]:
        return self.parsed.players

    def _resolve_players(self, players: Iterable[str] | None) -> list[str]:
        if players is None:
            return list(self.parsed.players)
        return list(dict.fromkeys(players))

    def get_series(self, player: str) -> tuple[TimeSeriesPoint, ...]:
        """FPS samples of one player as (time, value) points. Unknown players give ()."""
        return tuple(
            TimeSeriesPoint(time=event.time, value=event.fps)
            for event in self.parsed.events
            if isinstance(event, FpsSample) and event.player == player
        )

    def get_player_data(self, player: str) -> PlayerSeries:
        """A player's series together with its trend line."""
        data = self.get_series(player)
        return PlayerSeries(player=player, data=data, trend=fit_trend(data))

    def player_count_series(self) -> tuple[PlayerCountSample, ...]:
        return self.parsed.player_count_samples()

    def stats_frame(self, players: Iterable[str] | None = None) -> pd.DataFrame:
        """
        Per-player summary as a DataFrame.

        Args:
            players: Players to include (defaults to all, in first-seen order)

        Returns:
            DataFrame indexed by player with sample_count, average_fps,
            min_fps and max_fps columns; players without samples are omitted
        """
        selected = self._resolve_players(players)
        columns = ["sample_count", "average_fps", "min_fps", "max_fps"]
        wanted = set(selected)

        rows = [
            {"player": e.player, "fps": e.fps}
            for e in self.parsed.events
            if isinstance(e, FpsSample) and e.player in wanted
        ]
        if not rows:
            return pd.DataFrame(columns=columns, index=pd.Index([], name="player"))

        df = pd.DataFrame(rows)
        stats = df.groupby("player", sort=False)["fps"].agg(
            sample_count="count",
            average_fps="mean",
            min_fps="min",
            max_fps="max",
        )
        order = [p for p in selected if p in stats.index]
        return stats.loc[order, columns]

    def player_stats(self, players: Iterable[str] | None = None) -> list[PlayerStats]:
        """Per-player summary as PlayerStats records."""
        frame = self.stats_frame(players)
        return [
            PlayerStats(
                player=str(player),
                sample_count=int(row["sample_count"]),
                average_fps=float(row["average_fps"]),
                min_fps=int(row["min_fps"]),
                max_fps=int(row["max_fps"]),
            )
            for player, row in frame.iterrows()
        ]

    def series_domain(self, players: Iterable[str] | None = None) -> ChartDomain:
        """
        Axis bounds for plotting the selected players' raw series.

        When every sample shares one timestamp the time axis is padded as if
        the data spanned an hour.
        """
        times: list[float] = []
        values: list[float] = []
        for player in self._resolve_players(players):
            for event in self.parsed.events:
                if isinstance(event, FpsSample) and event.player == player:
                    times.append(event.timestamp)
                    values.append(event.fps)

        return padded_domain(times, values, time_range_fallback=SERIES_TIME_RANGE_FALLBACK_MS)

    def aggregate(
        self,
        players: Iterable[str] | None = None,
        window_ms: float = DEFAULT_WINDOW_MS,
        smoothing_radius: int = DEFAULT_SMOOTHING_RADIUS,
        max_samples: int = MAX_AGGREGATE_SAMPLES,
        max_step_ms: float = MAX_SAMPLE_STEP_MS,
    ) -> AggregateResult:
        """
        Running average across players, with player counts alongside.

        Args:
            players: Players to average (defaults to all)
            window_ms: Averaging window in milliseconds
            smoothing_radius: Neighbours on each side for smoothing

        Returns:
            AggregateResult
        """
        selected = self._resolve_players(players)
        return aggregate_players(
            selected,
            self.get_series,
            window_ms=window_ms,
            smoothing_radius=smoothing_radius,
            counter_series=self.player_count_series() or None,
            max_samples=max_samples,
            max_step_ms=max_step_ms,
        )


def reference_lines(
    domain: ChartDomain,
    levels: Sequence[float] = REFERENCE_FPS_LEVELS,
) -> list[float]:
    """FPS guide levels that fall inside the value axis of a domain."""
    low, high = domain.value
    return [level for level in levels if low <= level <= high]
