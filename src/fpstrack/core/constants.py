"""
fpstrack - Constants

Log tag suffixes, timestamp formats and the default tuning values used by
the parsing and aggregation pipeline.
"""

from enum import StrEnum


class EventKind(StrEnum):
    """Discriminator for the two event types found in a client log."""

    FPS = "fps"
    PLAYER_COUNT = "playerCount"


# ============================================================================
# Log tags
# ============================================================================

DEFAULT_BASE_PREFIX = "MWG_"

# Appended to the base prefix to form the bracketed tag, e.g. [MWG_FPS]
FPS_TAG_SUFFIX = "FPS"
PLAYER_COUNT_TAG_SUFFIX = "PlayerCount"

# ============================================================================
# Timestamps
# ============================================================================

# 2025.04.04 23:42:13
LOG_TIMESTAMP_FORMAT = "%Y.%m.%d %H:%M:%S"

# ============================================================================
# Aggregation defaults
# ============================================================================

DEFAULT_WINDOW_MS = 30 * 1000  # 30 seconds
WINDOW_PRESETS_SECONDS = (10, 30, 60, 120)

# Centers are spaced at most this far apart before the ceiling kicks in
MAX_SAMPLE_STEP_MS = 2000.0
MAX_AGGREGATE_SAMPLES = 200

DEFAULT_SMOOTHING_RADIUS = 0

# Chart axis fallbacks
DEFAULT_TIME_DOMAIN = (0.0, 1.0)
DEFAULT_VALUE_DOMAIN = (0.0, 60.0)
VALUE_RANGE_FALLBACK = 10.0
SERIES_TIME_RANGE_FALLBACK_MS = 60 * 60 * 1000  # 1 hour
VALUE_PADDING_RATIO = 0.1
TIME_PADDING_RATIO = 0.02

# Guide levels drawn across FPS charts
REFERENCE_FPS_LEVELS = (45, 30, 15)

# ============================================================================
# Session
# ============================================================================

DEFAULT_DEBOUNCE_SECONDS = 0.2
