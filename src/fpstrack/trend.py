"""
Linear Trend Lines for Time Series

Fits an ordinary least-squares line through (timestamp, value) pairs and
returns it as two points at the first and last sample, so a chart can draw
it as a plain segment over the data.
"""

import logging
from collections.abc import Sequence

import numpy as np

from fpstrack.core.schemas import TimedValue, TimeSeriesPoint, TrendSegment
from fpstrack.core.utils import parse_timestamp

logger = logging.getLogger(__name__)


def least_squares(x: np.ndarray, y: np.ndarray) -> tuple[float, float] | None:
    """
    Slope and intercept of the least-squares line through (x, y).

    Args:
        x: Sample positions
        y: Sample values

    Returns:
        (slope, intercept), or None when every x is identical
    """
    n = len(x)
    sum_x = x.sum()
    sum_y = y.sum()
    sum_xy = (x * y).sum()
    sum_xx = (x * x).sum()

    denominator = n * sum_xx - sum_x * sum_x
    if denominator == 0:
        return None

    slope = (n * sum_xy - sum_x * sum_y) / denominator
    intercept = (sum_y - slope * sum_x) / n
    return float(slope), float(intercept)


def fit_trend(points: Sequence[TimedValue]) -> TrendSegment:
    """
    Fit a straight line through a time series.

    The line is evaluated at the first and last input timestamps and each
    end point carries the original time string of that sample, untouched.
    Timestamps are assumed valid; one that fails to parse turns the result
    into NaN values rather than an error.

    Args:
        points: Ordered (time, value) samples

    Returns:
        Two TimeSeriesPoints, or () with fewer than two points or when all
        samples share one timestamp
    """
    if not points or len(points) < 2:
        return ()

    x = np.array([parse_timestamp(p.time) for p in points], dtype=float)
    y = np.array([p.value for p in points], dtype=float)

    # Epoch milliseconds squared lose precision; fit relative to the first sample
    dx = x - x[0]

    fit = least_squares(dx, y)
    if fit is None:
        logger.debug(f"No trend: all {len(points)} samples share one timestamp")
        return ()

    slope, intercept = fit
    return (
        TimeSeriesPoint(time=points[0].time, value=intercept),
        TimeSeriesPoint(time=points[-1].time, value=float(slope * dx[-1] + intercept)),
    )


def trend_slope_per_minute(trend: TrendSegment) -> float | None:
    """
    Change of the trend line per minute, for display.

    Returns None when there is no trend or it spans no time.
    """
    if len(trend) != 2:
        return None
    start, end = trend
    span_ms = parse_timestamp(end.time) - parse_timestamp(start.time)
    if not span_ms:
        return None
    return (end.value - start.value) / span_ms * 60_000.0
