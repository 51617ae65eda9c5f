"""
fpstrack Data Contracts

Every value that crosses a module boundary is defined here.
If you need a field that doesn't exist here, ADD IT HERE FIRST,
then update the producer and consumer.

Producers: parser.py, trend.py, aggregate.py, analysis.py
Consumers: cli.py, export.py, session.py
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol

import pandas as pd

from fpstrack.core.constants import (
    DEFAULT_TIME_DOMAIN,
    DEFAULT_VALUE_DOMAIN,
    EventKind,
)
from fpstrack.core.utils import parse_timestamp

# ============================================================
# LOG EVENTS
# ============================================================
# Produced by: parser.py classify_line()
# Consumed by: analysis.py, export.py


@dataclass(frozen=True)
class FpsSample:
    """One frame-rate report for one player."""

    time: str  # verbatim log timestamp, e.g. "2025.04.04 23:42:13"
    player: str
    fps: int
    kind: EventKind = field(default=EventKind.FPS, init=False)

    @property
    def timestamp(self) -> float:
        """Epoch milliseconds."""
        return parse_timestamp(self.time)


@dataclass(frozen=True)
class PlayerCountSample:
    """Number of players present in the instance at a point in time."""

    time: str
    count: int
    kind: EventKind = field(default=EventKind.PLAYER_COUNT, init=False)

    @property
    def timestamp(self) -> float:
        """Epoch milliseconds."""
        return parse_timestamp(self.time)


Event = FpsSample | PlayerCountSample


@dataclass(frozen=True)
class ParsedLog:
    """
    Result of parsing one log file.

    events are sorted by timestamp (stable, so equal timestamps keep the
    order the parser merged them in). players holds each FPS player name
    once, in first-seen order.
    """

    events: tuple[Event, ...] = ()
    players: tuple[str, ...] = ()
    has_player_count: bool = False

    @property
    def is_empty(self) -> bool:
        return not self.events

    def fps_samples(self) -> tuple[FpsSample, ...]:
        return tuple(e for e in self.events if isinstance(e, FpsSample))

    def player_count_samples(self) -> tuple[PlayerCountSample, ...]:
        return tuple(e for e in self.events if isinstance(e, PlayerCountSample))

    def to_dataframe(self) -> pd.DataFrame:
        """Flatten events into a DataFrame (one row per event)."""
        rows = []
        for event in self.events:
            if isinstance(event, FpsSample):
                rows.append(
                    {
                        "time": event.time,
                        "timestamp": event.timestamp,
                        "kind": str(event.kind),
                        "player": event.player,
                        "fps": event.fps,
                        "count": None,
                    }
                )
            elif isinstance(event, PlayerCountSample):
                rows.append(
                    {
                        "time": event.time,
                        "timestamp": event.timestamp,
                        "kind": str(event.kind),
                        "player": None,
                        "fps": None,
                        "count": event.count,
                    }
                )
            else:
                raise TypeError(f"Unknown event type: {type(event).__name__}")

        columns = ["time", "timestamp", "kind", "player", "fps", "count"]
        df = pd.DataFrame(rows, columns=columns)
        # Keep integer columns nullable instead of letting them decay to float
        df["fps"] = df["fps"].astype("Int64")
        df["count"] = df["count"].astype("Int64")
        return df


# ============================================================
# SERIES
# ============================================================


class TimedValue(Protocol):
    """Anything with a timestamp string and a numeric value."""

    @property
    def time(self) -> str: ...

    @property
    def value(self) -> float: ...


@dataclass(frozen=True)
class TimeSeriesPoint:
    """Generic (time, value) pair. For FPS series value is the fps."""

    time: str
    value: float


# Two points (start and end of the fitted line) or empty when there is no trend
TrendSegment = tuple[TimeSeriesPoint, ...]


@dataclass(frozen=True)
class PlayerSeries:
    """One player's FPS samples with their fitted trend."""

    player: str
    data: tuple[TimeSeriesPoint, ...]
    trend: TrendSegment = ()

    @property
    def has_trend(self) -> bool:
        return len(self.trend) == 2


@dataclass(frozen=True)
class PlayerStats:
    """Summary numbers for one player."""

    player: str
    sample_count: int
    average_fps: float
    min_fps: int
    max_fps: int


# ============================================================
# AGGREGATION
# ============================================================
# Produced by: aggregate.py aggregate_players()
# Consumed by: cli.py, export.py, session.py


@dataclass(frozen=True)
class AggregatePoint:
    """Running average at one sample center."""

    time_center: float  # epoch ms
    time: str  # ISO 8601 form of time_center
    average_value: float  # smoothed when smoothing is enabled
    raw_average_value: float
    contributing_player_count: int
    contributing_point_count: int
    players: tuple[str, ...] = ()


@dataclass(frozen=True)
class ChartDomain:
    """Inclusive axis bounds. time is epoch ms."""

    time: tuple[float, float] = DEFAULT_TIME_DOMAIN
    value: tuple[float, float] = DEFAULT_VALUE_DOMAIN

    @property
    def is_default(self) -> bool:
        return self.time == DEFAULT_TIME_DOMAIN and self.value == DEFAULT_VALUE_DOMAIN


@dataclass(frozen=True)
class CounterPoint:
    """A secondary counter sample aligned to the aggregate time axis."""

    timestamp: float  # epoch ms
    time: str
    count: int


@dataclass(frozen=True)
class AggregateResult:
    """Everything a chart needs to draw the cross-player average."""

    points: tuple[AggregatePoint, ...] = ()
    trend: TrendSegment = ()
    domain: ChartDomain = field(default_factory=ChartDomain)
    counter_series: tuple[CounterPoint, ...] = ()
    counter_max: int = 0
    pooled_point_count: int = 0

    @classmethod
    def empty(
        cls,
        counter_series: tuple[CounterPoint, ...] = (),
        counter_max: int = 0,
    ) -> AggregateResult:
        return cls(counter_series=counter_series, counter_max=counter_max)

    @property
    def is_empty(self) -> bool:
        return not self.points


# ============================================================
# SESSION VIEW
# ============================================================
# Produced by: session.py AnalysisSession
# Consumed by: front ends (cli.py)


@dataclass(frozen=True)
class AnalysisView:
    """Snapshot of everything derived for the current session parameters."""

    selected_players: tuple[str, ...]
    window_ms: float
    smoothing_radius: int
    series: tuple[PlayerSeries, ...] = ()
    aggregate: AggregateResult = field(default_factory=AggregateResult)
