"""
Export Functionality for fpstrack

Provides export formats for parsed logs and derived series:
- JSON (default): the full report, players, trends and running average
- CSV: one row per event, plus the running average in a second file

Each format has its own advantages:
- JSON: Complete data, programmatic access
- CSV: Simple, opens in any spreadsheet
"""

import json
import logging
from collections.abc import Iterable
from dataclasses import asdict, is_dataclass
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any

import pandas as pd

from fpstrack import __version__
from fpstrack.analysis import LogAnalysis, reference_lines
from fpstrack.core.config import ExportConfig, get_config
from fpstrack.core.constants import DEFAULT_SMOOTHING_RADIUS, DEFAULT_WINDOW_MS
from fpstrack.core.schemas import AggregateResult, ParsedLog
from fpstrack.trend import trend_slope_per_minute

logger = logging.getLogger(__name__)


# ============================================================================
# Data Conversion Utilities
# ============================================================================


def dataclass_to_dict(obj: Any) -> Any:
    """Convert a dataclass (or nested dataclasses) to plain JSON-friendly data."""
    if is_dataclass(obj) and not isinstance(obj, type):
        return {key: dataclass_to_dict(value) for key, value in asdict(obj).items()}
    elif isinstance(obj, dict):
        return {k: dataclass_to_dict(v) for k, v in obj.items()}
    elif isinstance(obj, (list, tuple)):
        return [dataclass_to_dict(item) for item in obj]
    elif isinstance(obj, Enum):
        return obj.value
    elif isinstance(obj, Path):
        return str(obj)
    else:
        return obj


def parsed_log_to_dataframe(parsed: ParsedLog) -> pd.DataFrame:
    """One row per event (see ParsedLog.to_dataframe)."""
    return parsed.to_dataframe()


def aggregate_to_dataframe(result: AggregateResult) -> pd.DataFrame:
    """One row per aggregate point; players are joined with ", "."""
    columns = [
        "time_center",
        "time",
        "average_value",
        "raw_average_value",
        "contributing_player_count",
        "contributing_point_count",
        "players",
    ]
    rows = [
        {
            "time_center": p.time_center,
            "time": p.time,
            "average_value": p.average_value,
            "raw_average_value": p.raw_average_value,
            "contributing_player_count": p.contributing_player_count,
            "contributing_point_count": p.contributing_point_count,
            "players": ", ".join(p.players),
        }
        for p in result.points
    ]
    return pd.DataFrame(rows, columns=columns)


def _sampling_limits(max_samples: int | None, max_step_ms: float | None) -> dict[str, Any]:
    limits = get_config().aggregation
    return {
        "max_samples": limits.max_samples if max_samples is None else max_samples,
        "max_step_ms": limits.max_step_ms if max_step_ms is None else max_step_ms,
    }


def build_report(
    parsed: ParsedLog,
    players: Iterable[str] | None = None,
    window_ms: float = DEFAULT_WINDOW_MS,
    smoothing_radius: int = DEFAULT_SMOOTHING_RADIUS,
    source: str | None = None,
    max_samples: int | None = None,
    max_step_ms: float | None = None,
) -> dict[str, Any]:
    """
    Assemble everything derived from a parsed log into one dictionary.

    Args:
        parsed: Parsed log
        players: Players to report on (defaults to all)
        window_ms: Running average window
        smoothing_radius: Running average smoothing
        source: Optional name of the log file
        max_samples: Center ceiling (defaults to the configured one)
        max_step_ms: Largest center spacing (defaults to the configured one)

    Returns:
        Report dictionary (dataclasses already converted)
    """
    analysis = LogAnalysis(parsed)
    selected = list(parsed.players) if players is None else list(dict.fromkeys(players))

    stats = {s.player: s for s in analysis.player_stats(selected)}
    player_entries = {}
    for player in selected:
        series = analysis.get_player_data(player)
        player_entries[player] = {
            "stats": dataclass_to_dict(stats.get(player)),
            "trend": dataclass_to_dict(series.trend),
            "trend_per_minute": trend_slope_per_minute(series.trend),
            "series": dataclass_to_dict(series.data),
        }

    aggregate = analysis.aggregate(
        selected,
        window_ms=window_ms,
        smoothing_radius=smoothing_radius,
        **_sampling_limits(max_samples, max_step_ms),
    )

    return {
        "log": {
            "source": source,
            "event_count": len(parsed.events),
            "players": list(parsed.players),
            "has_player_count": parsed.has_player_count,
        },
        "players": player_entries,
        "average": {
            "window_ms": window_ms,
            "smoothing_radius": smoothing_radius,
            "reference_lines": reference_lines(aggregate.domain),
            **dataclass_to_dict(aggregate),
        },
    }


# ============================================================================
# JSON Export
# ============================================================================


def export_to_json(
    data: dict[str, Any],
    output_path: Path | None = None,
    indent: int = 2,
    include_metadata: bool = True,
) -> str:
    """
    Export analysis results to JSON format.

    Args:
        data: Analysis results dictionary
        output_path: Optional path to write the file
        indent: JSON indentation level
        include_metadata: Whether to include export metadata

    Returns:
        JSON string
    """
    export_data = dataclass_to_dict(data)

    if include_metadata:
        export_data = {
            "_metadata": {
                "exported_at": datetime.now().isoformat(),
                "format": "fpstrack_json",
                "version": __version__,
            },
            **export_data,
        }

    json_str = json.dumps(export_data, indent=indent, default=str)

    if output_path:
        output_path.write_text(json_str)
        logger.info(f"Exported JSON to: {output_path}")

    return json_str


# ============================================================================
# CSV Export
# ============================================================================


def export_to_csv(
    parsed: ParsedLog,
    output_path: Path | None = None,
    delimiter: str = ",",
) -> str:
    """
    Export parsed events to CSV, one row per event.

    Args:
        parsed: Parsed log
        output_path: Optional path to write the file
        delimiter: CSV delimiter character

    Returns:
        CSV string
    """
    csv_str = parsed_log_to_dataframe(parsed).to_csv(index=False, sep=delimiter)

    if output_path:
        output_path.write_text(csv_str)
        logger.info(f"Exported events CSV to: {output_path}")

    return csv_str


def export_aggregate_to_csv(
    result: AggregateResult,
    output_path: Path | None = None,
    delimiter: str = ",",
    include_raw_values: bool = True,
) -> str:
    """
    Export running average points to CSV.

    Args:
        result: Aggregation result
        output_path: Optional path to write the file
        delimiter: CSV delimiter character
        include_raw_values: Keep the unsmoothed average column

    Returns:
        CSV string
    """
    df = aggregate_to_dataframe(result)
    if not include_raw_values:
        df = df.drop(columns=["raw_average_value"])
    csv_str = df.to_csv(index=False, sep=delimiter)

    if output_path:
        output_path.write_text(csv_str)
        logger.info(f"Exported running average CSV to: {output_path}")

    return csv_str


# ============================================================================
# Unified Export Function
# ============================================================================


def export_analysis(
    parsed: ParsedLog,
    output_path: Path,
    players: Iterable[str] | None = None,
    window_ms: float = DEFAULT_WINDOW_MS,
    smoothing_radius: int = DEFAULT_SMOOTHING_RADIUS,
    format: str | None = None,
    source: str | None = None,
    config: ExportConfig | None = None,
    max_samples: int | None = None,
    max_step_ms: float | None = None,
) -> list[Path]:
    """
    Export analysis results to the specified format.

    Format is detected from file extension if not specified, falling back
    to the configured default for paths without one. CSV export
    writes the events to output_path and the running average next to it
    as <stem>_average.csv.

    Args:
        parsed: Parsed log
        output_path: Path to write the export
        players: Players to include (defaults to all)
        window_ms: Running average window
        smoothing_radius: Running average smoothing
        format: Optional format override (json, csv)
        source: Optional name of the log file, recorded in JSON exports
        config: Export settings (defaults to the global config)
        max_samples: Center ceiling (defaults to the configured one)
        max_step_ms: Largest center spacing (defaults to the configured one)

    Returns:
        Paths written

    Raises:
        ValueError: For unsupported formats
    """
    settings = config or get_config().export
    if format is None:
        format = output_path.suffix.lstrip(".").lower() or settings.default_format

    if format == "json":
        report = build_report(
            parsed,
            players=players,
            window_ms=window_ms,
            smoothing_radius=smoothing_radius,
            source=source,
            max_samples=max_samples,
            max_step_ms=max_step_ms,
        )
        export_to_json(report, output_path, indent=settings.json_indent)
        return [output_path]

    elif format == "csv":
        selected = list(parsed.players) if players is None else list(players)
        aggregate = LogAnalysis(parsed).aggregate(
            selected,
            window_ms=window_ms,
            smoothing_radius=smoothing_radius,
            **_sampling_limits(max_samples, max_step_ms),
        )
        average_path = output_path.with_name(f"{output_path.stem}_average.csv")
        export_to_csv(parsed, output_path, delimiter=settings.csv_delimiter)
        export_aggregate_to_csv(
            aggregate,
            average_path,
            delimiter=settings.csv_delimiter,
            include_raw_values=settings.include_raw_values,
        )
        return [output_path, average_path]

    else:
        raise ValueError(f"Unsupported export format: {format}")
