"""
Client Log Parser for FPS Tracking

Turns the raw text of a game-client log into typed events. Two kinds of
lines are recognised, both identified by a bracketed tag built from a
configurable base prefix:

    2025.04.04 23:42:13 Debug      -  [MWG_FPS] ModerateWinGuy FPS: 45
    2025.04.04 23:42:15 Debug      -  [MWG_PlayerCount] 12

Anything else in the log is noise and is skipped without complaint.
"""

import logging
import math
import re
from dataclasses import dataclass
from operator import itemgetter
from pathlib import Path

from fpstrack.core.constants import (
    DEFAULT_BASE_PREFIX,
    FPS_TAG_SUFFIX,
    PLAYER_COUNT_TAG_SUFFIX,
)
from fpstrack.core.errors import LogDecodeError
from fpstrack.core.schemas import Event, FpsSample, ParsedLog, PlayerCountSample
from fpstrack.core.utils import PerformanceMonitor, parse_timestamp, strip_brackets

logger = logging.getLogger(__name__)

# Framework noise (level, module name) may sit before and between the
# timestamp and the tag; only the first bracket group after the timestamp
# is taken as the tag.
_TIMESTAMP = r"(\d{4}\.\d{2}\.\d{2}\s\d{2}:\d{2}:\d{2})"
_TAG = r"[^\[\]]*\[([^\]]+)\]"

FPS_LINE_RE = re.compile(_TIMESTAMP + _TAG + r"\s+(\S+)\s+FPS:\s+(\d+)", re.ASCII)
PLAYER_COUNT_LINE_RE = re.compile(_TIMESTAMP + _TAG + r"\s*(\d+)\s*$", re.ASCII)

_LINE_SPLIT_RE = re.compile(r"\r?\n")


def build_tags(base_prefix: str) -> tuple[str, str]:
    """
    Derive the FPS and player-count tags from a base prefix.

    Args:
        base_prefix: e.g. "MWG_" (brackets are ignored)

    Returns:
        (fps_tag, player_count_tag), e.g. ("MWG_FPS", "MWG_PlayerCount")
    """
    prefix = strip_brackets(base_prefix)
    return prefix + FPS_TAG_SUFFIX, prefix + PLAYER_COUNT_TAG_SUFFIX


def _parse_int(text: str) -> int | None:
    try:
        return int(text, 10)
    except ValueError:
        return None


def _classify(line: str, fps_tag: str, player_count_tag: str) -> Event | None:
    match = FPS_LINE_RE.search(line)
    if match:
        timestamp, tag, player, fps_text = match.groups()
        if tag == fps_tag:
            timestamp = timestamp.strip()
            fps = _parse_int(fps_text)
            if fps is None or math.isnan(parse_timestamp(timestamp)):
                logger.debug(f"Dropping FPS line with bad fields: {line!r}")
                return None
            return FpsSample(time=timestamp, player=player.strip(), fps=fps)

    match = PLAYER_COUNT_LINE_RE.search(line)
    if match:
        timestamp, tag, count_text = match.groups()
        if tag == player_count_tag:
            timestamp = timestamp.strip()
            count = _parse_int(count_text)
            if count is None or math.isnan(parse_timestamp(timestamp)):
                logger.debug(f"Dropping player count line with bad fields: {line!r}")
                return None
            return PlayerCountSample(time=timestamp, count=count)

    return None


def classify_line(line: str, base_prefix: str = DEFAULT_BASE_PREFIX) -> Event | None:
    """
    Classify a single log line.

    Args:
        line: One line of log text
        base_prefix: Base prefix the tags are built from

    Returns:
        FpsSample, PlayerCountSample, or None if the line is not ours
    """
    fps_tag, player_count_tag = build_tags(base_prefix)
    return _classify(line, fps_tag, player_count_tag)


@dataclass
class ParseStats:
    """Counters collected during one parse."""

    lines_total: int = 0
    lines_candidate: int = 0
    fps_samples: int = 0
    player_count_samples: int = 0

    @property
    def lines_discarded(self) -> int:
        """Candidate lines that still produced no event."""
        return self.lines_candidate - self.fps_samples - self.player_count_samples


class LogParser:
    """
    Parser for client log text.

    Classifies every line, merges FPS and player-count samples into one
    chronological event list and collects the distinct player names.
    """

    def __init__(self, base_prefix: str = DEFAULT_BASE_PREFIX):
        """
        Initialize the parser.

        Args:
            base_prefix: Base prefix the tags are built from, e.g. "MWG_"
        """
        self.base_prefix = strip_brackets(base_prefix)
        self.fps_tag, self.player_count_tag = build_tags(self.base_prefix)

    def classify(self, line: str) -> Event | None:
        """Classify one line using this parser's tags."""
        return _classify(line, self.fps_tag, self.player_count_tag)

    def _is_candidate(self, line: str) -> bool:
        # Cheap substring check before paying for the regex
        return self.fps_tag in line or self.player_count_tag in line

    def parse_with_stats(self, content: str) -> tuple[ParsedLog, ParseStats]:
        """
        Parse log text and report how many lines were used.

        Args:
            content: Full log file content

        Returns:
            (ParsedLog, ParseStats)
        """
        stats = ParseStats()
        fps_samples: list[FpsSample] = []
        count_samples: list[PlayerCountSample] = []

        with PerformanceMonitor("log parse"):
            for line in _LINE_SPLIT_RE.split(content):
                stats.lines_total += 1
                if not self._is_candidate(line):
                    continue
                stats.lines_candidate += 1

                event = self.classify(line)
                if isinstance(event, FpsSample):
                    fps_samples.append(event)
                elif isinstance(event, PlayerCountSample):
                    count_samples.append(event)

            stats.fps_samples = len(fps_samples)
            stats.player_count_samples = len(count_samples)

            # sorted() is stable: equal timestamps keep merge order
            keyed = [(e.timestamp, e) for e in [*fps_samples, *count_samples]]
            events = tuple(event for _, event in sorted(keyed, key=itemgetter(0)))
            players = tuple(dict.fromkeys(s.player for s in fps_samples))

        parsed = ParsedLog(
            events=events,
            players=players,
            has_player_count=bool(count_samples),
        )

        logger.info(
            f"Parsed {stats.lines_total} lines: {stats.fps_samples} FPS samples, "
            f"{stats.player_count_samples} player count samples, {len(players)} players"
        )
        if stats.lines_discarded:
            logger.debug(f"Discarded {stats.lines_discarded} tagged lines that did not match")

        return parsed, stats

    def parse(self, content: str) -> ParsedLog:
        """
        Parse log text.

        Args:
            content: Full log file content

        Returns:
            ParsedLog (empty when nothing matched)
        """
        parsed, _ = self.parse_with_stats(content)
        return parsed


def parse_log(content: str, base_prefix: str = DEFAULT_BASE_PREFIX) -> ParsedLog:
    """
    Convenience function to parse log text.

    Args:
        content: Full log file content
        base_prefix: Base prefix the tags are built from

    Returns:
        ParsedLog containing all extracted events
    """
    return LogParser(base_prefix).parse(content)


def read_log_file(path: str | Path, encoding: str = "utf-8") -> str:
    """
    Read a log file into a string.

    Args:
        path: Path to the log file
        encoding: Text encoding of the file

    Returns:
        File content as text

    Raises:
        FileNotFoundError: If the file does not exist
        LogDecodeError: If the file is not text in the given encoding
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Log file not found: {path}")

    raw = path.read_bytes()
    try:
        text = raw.decode(encoding)
    except UnicodeDecodeError as e:
        raise LogDecodeError(path, f"not valid {encoding} text ({e.reason})") from e
    except LookupError as e:
        raise LogDecodeError(path, f"unknown encoding {encoding!r}") from e

    if "\x00" in text:
        raise LogDecodeError(path, "file contains binary data")

    # Editors on Windows like to prepend a BOM
    return text.removeprefix("\ufeff")


def parse_log_file(
    path: str | Path,
    base_prefix: str = DEFAULT_BASE_PREFIX,
    encoding: str = "utf-8",
) -> ParsedLog:
    """
    Convenience function to read and parse a log file.

    Args:
        path: Path to the log file
        base_prefix: Base prefix the tags are built from
        encoding: Text encoding of the file

    Returns:
        ParsedLog containing all extracted events
    """
    logger.info(f"Parsing log: {path}")
    return parse_log(read_log_file(path, encoding), base_prefix)
