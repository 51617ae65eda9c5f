"""
fpstrack Core - Foundation modules for log parsing and analysis.

This module contains the fundamental components:
- constants: Log tags, timestamp format and tuning defaults
- config: Application configuration management
- errors: Exception types
- utils: Timestamp conversion and timing helpers
- schemas: Data contracts for module boundaries
"""

from fpstrack.core.constants import (
    DEFAULT_BASE_PREFIX,
    DEFAULT_WINDOW_MS,
    FPS_TAG_SUFFIX,
    MAX_AGGREGATE_SAMPLES,
    PLAYER_COUNT_TAG_SUFFIX,
    EventKind,
)
from fpstrack.core.errors import FpstrackError, LogDecodeError
from fpstrack.core.schemas import (
    AggregatePoint,
    AggregateResult,
    AnalysisView,
    ChartDomain,
    CounterPoint,
    Event,
    FpsSample,
    ParsedLog,
    PlayerCountSample,
    PlayerSeries,
    PlayerStats,
    TimeSeriesPoint,
    TrendSegment,
)
from fpstrack.core.utils import parse_timestamp, to_iso_timestamp

__all__ = [
    # Enums
    "EventKind",
    # Constants
    "DEFAULT_BASE_PREFIX",
    "DEFAULT_WINDOW_MS",
    "FPS_TAG_SUFFIX",
    "MAX_AGGREGATE_SAMPLES",
    "PLAYER_COUNT_TAG_SUFFIX",
    # Errors
    "FpstrackError",
    "LogDecodeError",
    # Schemas
    "AggregatePoint",
    "AggregateResult",
    "AnalysisView",
    "ChartDomain",
    "CounterPoint",
    "Event",
    "FpsSample",
    "ParsedLog",
    "PlayerCountSample",
    "PlayerSeries",
    "PlayerStats",
    "TimeSeriesPoint",
    "TrendSegment",
    # Utils
    "parse_timestamp",
    "to_iso_timestamp",
]
