"""
Cross-Player Running Average

Pools the FPS samples of several players and resamples them onto a regular
time grid. Each grid point (a "center") averages every sample within half a
window on either side. Samples arrive at irregular times and players come
and go, so the average is what makes an instance-wide trend visible.

The grid is deliberately coarse on long logs: centers are spaced at most
2 seconds apart, but never more than 200 of them are produced, spread from
the first sample to the last. Cost stays bounded at
O(centers x samples-in-window) and long sessions lose some resolution.
"""

import logging
import math
from collections.abc import Callable, Iterable, Sequence
from dataclasses import replace

import numpy as np
import pandas as pd

from fpstrack.core.constants import (
    DEFAULT_SMOOTHING_RADIUS,
    DEFAULT_WINDOW_MS,
    MAX_AGGREGATE_SAMPLES,
    MAX_SAMPLE_STEP_MS,
    TIME_PADDING_RATIO,
    VALUE_PADDING_RATIO,
    VALUE_RANGE_FALLBACK,
)
from fpstrack.core.schemas import (
    AggregatePoint,
    AggregateResult,
    ChartDomain,
    CounterPoint,
    PlayerCountSample,
    TimedValue,
    TimeSeriesPoint,
)
from fpstrack.core.utils import parse_timestamp, timed, to_iso_timestamp
from fpstrack.trend import fit_trend

logger = logging.getLogger(__name__)

SeriesGetter = Callable[[str], Sequence[TimedValue]]


# ============================================================================
# Building blocks
# ============================================================================


def pool_samples(players: Iterable[str], get_series: SeriesGetter) -> pd.DataFrame:
    """
    Collect every player's samples into one time-sorted DataFrame.

    Args:
        players: Player names to include (duplicates are ignored)
        get_series: Returns the (time, value) samples of one player

    Returns:
        DataFrame with columns timestamp (epoch ms), value, player
    """
    records = []
    for player in dict.fromkeys(players):
        for point in get_series(player):
            records.append((parse_timestamp(point.time), float(point.value), player))

    pool = pd.DataFrame.from_records(records, columns=["timestamp", "value", "player"])
    invalid = ~np.isfinite(pool["timestamp"].to_numpy(dtype=float))
    if invalid.any():
        logger.debug(f"Ignoring {int(invalid.sum())} samples without a usable timestamp")
        pool = pool[~invalid]

    return pool.sort_values("timestamp", kind="stable", ignore_index=True)


def sample_centers(
    start: float,
    end: float,
    window_ms: float,
    max_samples: int = MAX_AGGREGATE_SAMPLES,
    max_step_ms: float = MAX_SAMPLE_STEP_MS,
) -> np.ndarray:
    """
    Regular grid of window centers from start to end.

    The step is a quarter window, capped at max_step_ms. When that grid
    would need more than max_samples centers, the step is widened to
    span / (max_samples - 1) so exactly max_samples centers run from start
    to end and the last one still sits on the final sample.

    Returns:
        Array of center timestamps (epoch ms)
    """
    span = end - start
    if span <= 0 or max_samples == 1:
        return np.array([start], dtype=float)

    step = min(window_ms / 4, max_step_ms)
    if span / step + 1 > max_samples:
        return np.linspace(start, end, max_samples)

    count = int(span // step) + 1
    return start + step * np.arange(count, dtype=float)


def windowed_averages(
    pool: pd.DataFrame,
    centers: np.ndarray,
    window_ms: float,
) -> list[AggregatePoint]:
    """
    Average the pooled samples around each center.

    The window [center - window/2, center + window/2] is inclusive on both
    ends. Centers with no samples in their window are left out.
    """
    timestamps = pool["timestamp"].to_numpy(dtype=float)
    values = pool["value"].to_numpy(dtype=float)
    names = pool["player"].to_numpy(dtype=object)

    half = window_ms / 2
    lo = np.searchsorted(timestamps, centers - half, side="left")
    hi = np.searchsorted(timestamps, centers + half, side="right")

    points = []
    for center, start, stop in zip(centers, lo, hi):
        if stop <= start:
            continue
        average = float(values[start:stop].mean())
        window_players = tuple(dict.fromkeys(names[start:stop]))
        points.append(
            AggregatePoint(
                time_center=float(center),
                time=to_iso_timestamp(float(center)),
                average_value=average,
                raw_average_value=average,
                contributing_player_count=len(window_players),
                contributing_point_count=int(stop - start),
                players=window_players,
            )
        )

    dropped = len(centers) - len(points)
    if dropped:
        logger.debug(f"{dropped} of {len(centers)} windows were empty")
    return points


def smooth_aggregates(
    points: Sequence[AggregatePoint],
    radius: int,
) -> tuple[AggregatePoint, ...]:
    """
    Distance-weighted rolling mean over neighbouring aggregate points.

    Each point becomes the weighted mean of the raw averages within
    +/- radius positions, weighted 1 / (distance + 1). raw_average_value is
    kept as is, and the pooled samples are not revisited.

    Args:
        points: Unsmoothed aggregate points
        radius: Neighbours on each side; 0 returns the input unchanged

    Returns:
        New tuple of points
    """
    if radius <= 0 or not points:
        return tuple(points)

    raw = np.array([p.raw_average_value for p in points], dtype=float)
    n = len(raw)
    smoothed = []
    for i, point in enumerate(points):
        lo = max(0, i - radius)
        hi = min(n, i + radius + 1)
        weights = 1.0 / (np.abs(np.arange(lo, hi) - i) + 1.0)
        value = float((weights * raw[lo:hi]).sum() / weights.sum())
        smoothed.append(replace(point, average_value=value))

    return tuple(smoothed)


def padded_domain(
    times: Iterable[float],
    values: Iterable[float],
    time_range_fallback: float = 0.0,
) -> ChartDomain:
    """
    Axis bounds with a little breathing room.

    Values get 10% of their range on each side (never below zero, range
    defaults to 10 when flat); times get 2% of their range. Non-finite
    inputs are skipped, and with no finite values the default domain is
    returned.

    Args:
        times: Timestamps in epoch ms
        values: Plotted values
        time_range_fallback: Range to pad with when all times are equal

    Returns:
        ChartDomain
    """
    finite_values = [v for v in values if math.isfinite(v)]
    finite_times = [t for t in times if math.isfinite(t)]
    if not finite_values or not finite_times:
        return ChartDomain()

    min_value, max_value = min(finite_values), max(finite_values)
    value_range = (max_value - min_value) or VALUE_RANGE_FALLBACK

    min_time, max_time = min(finite_times), max(finite_times)
    time_range = (max_time - min_time) or time_range_fallback

    return ChartDomain(
        time=(
            min_time - time_range * TIME_PADDING_RATIO,
            max_time + time_range * TIME_PADDING_RATIO,
        ),
        value=(
            max(0.0, min_value - value_range * VALUE_PADDING_RATIO),
            max_value + value_range * VALUE_PADDING_RATIO,
        ),
    )


def align_counter_series(
    counter_series: Iterable[PlayerCountSample] | None,
) -> tuple[tuple[CounterPoint, ...], int]:
    """
    Put counter samples on the epoch-ms axis used by the aggregate.

    Returns:
        (aligned points, maximum count or 0)
    """
    if not counter_series:
        return (), 0

    aligned = tuple(
        CounterPoint(timestamp=parse_timestamp(sample.time), time=sample.time, count=sample.count)
        for sample in counter_series
    )
    return aligned, max((p.count for p in aligned), default=0)


# ============================================================================
# Public API
# ============================================================================


@timed
def aggregate_players(
    players: Iterable[str],
    get_series: SeriesGetter,
    window_ms: float = DEFAULT_WINDOW_MS,
    smoothing_radius: int = DEFAULT_SMOOTHING_RADIUS,
    counter_series: Iterable[PlayerCountSample] | None = None,
    max_samples: int = MAX_AGGREGATE_SAMPLES,
    max_step_ms: float = MAX_SAMPLE_STEP_MS,
) -> AggregateResult:
    """
    Running average across the selected players.

    Args:
        players: Selected player names
        get_series: Returns the (time, value) samples of one player
        window_ms: Width of the averaging window in milliseconds
        smoothing_radius: Neighbours on each side for the smoothing pass
        counter_series: Optional player-count samples shown alongside
        max_samples: Ceiling on the number of window centers
        max_step_ms: Largest center spacing before the ceiling applies

    Returns:
        AggregateResult; with nothing to average its points and trend are
        empty and the domain is the default one

    Raises:
        ValueError: On non-positive window, negative smoothing radius or
            max_samples below 1
    """
    if not math.isfinite(window_ms) or window_ms <= 0:
        raise ValueError(f"window_ms must be positive, got {window_ms}")
    if smoothing_radius < 0:
        raise ValueError(f"smoothing_radius must be >= 0, got {smoothing_radius}")
    if max_samples < 1:
        raise ValueError(f"max_samples must be >= 1, got {max_samples}")
    if max_step_ms <= 0:
        raise ValueError(f"max_step_ms must be positive, got {max_step_ms}")

    smoothing_radius = int(smoothing_radius)
    counter_points, counter_max = align_counter_series(counter_series)

    pool = pool_samples(players, get_series)
    if pool.empty:
        return AggregateResult.empty(counter_series=counter_points, counter_max=counter_max)

    timestamps = pool["timestamp"].to_numpy(dtype=float)
    centers = sample_centers(
        timestamps[0],
        timestamps[-1],
        window_ms,
        max_samples=max_samples,
        max_step_ms=max_step_ms,
    )
    points = windowed_averages(pool, centers, window_ms)
    points = smooth_aggregates(points, smoothing_radius)

    trend = fit_trend([TimeSeriesPoint(time=p.time, value=p.average_value) for p in points])

    domain = padded_domain(
        times=[p.time_center for p in points] + [c.timestamp for c in counter_points],
        values=[p.average_value for p in points],
    )

    logger.debug(
        f"Aggregated {len(pool)} samples into {len(points)} points "
        f"(window={window_ms:.0f}ms, centers={len(centers)}, smoothing={smoothing_radius})"
    )

    return AggregateResult(
        points=points,
        trend=trend,
        domain=domain,
        counter_series=counter_points,
        counter_max=counter_max,
        pooled_point_count=len(pool),
    )
