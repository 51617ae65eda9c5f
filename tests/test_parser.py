"""Comprehensive tests for the parser module."""

import pytest

from fpstrack.core.constants import EventKind
from fpstrack.core.errors import LogDecodeError
from fpstrack.core.schemas import FpsSample, ParsedLog, PlayerCountSample
from fpstrack.parser import (
    LogParser,
    build_tags,
    classify_line,
    parse_log,
    parse_log_file,
    read_log_file,
)


class TestBuildTags:
    """Tests for tag derivation from the base prefix."""

    def test_default_prefix(self):
        """Test tags for the usual prefix."""
        assert build_tags("MWG_") == ("MWG_FPS", "MWG_PlayerCount")

    def test_brackets_are_ignored(self):
        """Test a prefix given with its brackets."""
        assert build_tags("[MWG_]") == ("MWG_FPS", "MWG_PlayerCount")

    def test_empty_prefix(self):
        assert build_tags("") == ("FPS", "PlayerCount")


class TestClassifyLine:
    """Tests for single-line classification."""

    def test_fps_line(self):
        """Test extracting timestamp, player and fps."""
        event = classify_line("2025.04.04 23:42:13 Debug - [MWG_FPS] Alice FPS: 45")

        assert isinstance(event, FpsSample)
        assert event.time == "2025.04.04 23:42:13"
        assert event.player == "Alice"
        assert event.fps == 45
        assert event.kind == EventKind.FPS

    def test_player_count_line(self):
        """Test extracting a player count."""
        event = classify_line("2025.04.04 23:42:15 Debug      -  [MWG_PlayerCount] 12")

        assert isinstance(event, PlayerCountSample)
        assert event.time == "2025.04.04 23:42:15"
        assert event.count == 12
        assert event.kind == EventKind.PLAYER_COUNT

    @pytest.mark.parametrize(
        "noise",
        [
            "",
            "[12:00:01] ",
            "UnityEngine.Debug:Log INFO ",
            "   \t",
            "<<< 42 >>> ",
        ],
    )
    def test_leading_noise_tolerated(self, noise):
        """Test that text before the timestamp does not matter."""
        event = classify_line(f"{noise}2025.04.04 23:42:13 Debug - [MWG_FPS] Alice FPS: 45")

        assert event == FpsSample(time="2025.04.04 23:42:13", player="Alice", fps=45)

    def test_tag_mismatch_discarded(self):
        """Test that a well-formed line with another tag is ignored."""
        assert classify_line("2025.04.04 23:42:13 Debug - [OTHER_FPS] Alice FPS: 45") is None

    def test_tag_must_match_exactly(self):
        """Test that a tag merely containing the expected one is ignored."""
        assert classify_line("2025.04.04 23:42:13 Debug - [XMWG_FPS] Alice FPS: 45") is None
        assert classify_line("2025.04.04 23:42:13 Debug - [MWG_FPS2] Alice FPS: 45") is None

    def test_only_first_bracket_group_is_the_tag(self):
        """Test that a later matching bracket group is not searched for."""
        line = "2025.04.04 23:42:13 Debug - [Core] [MWG_FPS] Alice FPS: 45"
        assert classify_line(line) is None

    def test_custom_prefix(self):
        """Test classification with a non-default prefix."""
        event = classify_line("2025.04.04 23:42:13 - [XYZ_FPS] Bob FPS: 60", base_prefix="XYZ_")
        assert event == FpsSample(time="2025.04.04 23:42:13", player="Bob", fps=60)

        assert classify_line("2025.04.04 23:42:13 - [MWG_FPS] Bob FPS: 60", "XYZ_") is None

    def test_missing_timestamp(self):
        assert classify_line("Debug - [MWG_FPS] Alice FPS: 45") is None

    def test_wrong_timestamp_shape(self):
        """Test that ISO-style timestamps are not accepted in log lines."""
        assert classify_line("2025-04-04 23:42:13 Debug - [MWG_FPS] Alice FPS: 45") is None

    def test_impossible_date_dropped(self):
        """Test a timestamp with the right shape but no real date."""
        assert classify_line("2025.13.45 23:42:13 Debug - [MWG_FPS] Alice FPS: 45") is None

    def test_non_numeric_fps_dropped(self):
        assert classify_line("2025.04.04 23:42:13 Debug - [MWG_FPS] Alice FPS: fast") is None

    def test_negative_fps_dropped(self):
        assert classify_line("2025.04.04 23:42:13 Debug - [MWG_FPS] Alice FPS: -5") is None

    def test_player_name_is_one_token(self):
        """Test that names with spaces do not produce a sample."""
        assert classify_line("2025.04.04 23:42:13 - [MWG_FPS] Alice Smith FPS: 45") is None

    def test_player_count_needs_bare_integer(self):
        """Test that a count followed by text is not a count."""
        assert classify_line("2025.04.04 23:42:13 - [MWG_PlayerCount] 12 players") is None
        assert classify_line("2025.04.04 23:42:13 - [MWG_PlayerCount] 12abc") is None

    def test_player_count_trailing_whitespace(self):
        event = classify_line("2025.04.04 23:42:13 - [MWG_PlayerCount] 7   ")
        assert event == PlayerCountSample(time="2025.04.04 23:42:13", count=7)

    def test_fps_line_under_count_tag(self):
        """Test that an FPS-shaped line under the count tag is not a count."""
        line = "2025.04.04 23:42:13 - [MWG_PlayerCount] Alice FPS: 45"
        assert classify_line(line) is None

    def test_leading_zeros(self):
        event = classify_line("2025.04.04 23:42:13 - [MWG_FPS] Alice FPS: 007")
        assert event.fps == 7

    @pytest.mark.parametrize(
        "line",
        [
            "2025.04.04 23:42:13 - [MWG_FPS]Alice FPS: 45",
            "2025.04.04 23:42:13 - [MWG_FPS] Alice FPS:45",
            "2025.04.04 23:42:13 - [MWG_FPS]Alice FPS:45",
        ],
    )
    def test_tokens_must_be_whitespace_separated(self, line):
        assert classify_line(line) is None

    def test_extra_spaces_between_tokens(self):
        event = classify_line("2025.04.04 23:42:13 -  [MWG_FPS]   Alice   FPS:   45")
        assert event == FpsSample(time="2025.04.04 23:42:13", player="Alice", fps=45)


class TestLogParser:
    """Tests for whole-document parsing."""

    def test_scenario_single_player(self, scenario_a_text):
        """Test two FPS lines for one player."""
        parsed = parse_log(scenario_a_text, "MWG_")

        assert parsed.players == ("Alice",)
        assert len(parsed.events) == 2
        assert [e.fps for e in parsed.events] == [45, 50]
        assert parsed.has_player_count is False

    def test_scenario_other_tag(self, scenario_a_text):
        """Test that nothing is extracted when the tag differs."""
        parsed = parse_log(scenario_a_text.replace("[MWG_FPS]", "[OTHER_FPS]"), "MWG_")

        assert parsed.events == ()
        assert parsed.players == ()
        assert parsed.is_empty

    def test_scenario_mixed_events_sorted(self, mixed_log_text):
        """Test that FPS and player-count events merge chronologically."""
        parsed = parse_log(mixed_log_text)

        assert parsed.has_player_count is True
        timestamps = [e.timestamp for e in parsed.events]
        assert timestamps == sorted(timestamps)
        assert [e.kind for e in parsed.events] == [
            EventKind.PLAYER_COUNT,
            EventKind.FPS,
            EventKind.FPS,
            EventKind.PLAYER_COUNT,
            EventKind.FPS,
        ]

    def test_players_first_seen_order(self, mixed_log_text):
        """Test that players appear once each, in order of first line."""
        parsed = parse_log(mixed_log_text)
        assert parsed.players == ("Bob", "Alice")

    def test_every_fps_player_listed(self, mixed_log_text):
        parsed = parse_log(mixed_log_text)
        for sample in parsed.fps_samples():
            assert sample.player in parsed.players
        assert len(set(parsed.players)) == len(parsed.players)

    def test_equal_timestamps_keep_merge_order(self):
        """Test the tie-break for events with the same timestamp."""
        text = "\n".join(
            [
                "2025.04.04 23:42:13 - [MWG_PlayerCount] 4",
                "2025.04.04 23:42:13 - [MWG_FPS] Bob FPS: 40",
                "2025.04.04 23:42:13 - [MWG_FPS] Alice FPS: 50",
            ]
        )
        parsed = parse_log(text)

        assert [type(e) for e in parsed.events] == [FpsSample, FpsSample, PlayerCountSample]
        assert [e.player for e in parsed.fps_samples()] == ["Bob", "Alice"]

    def test_crlf_line_endings(self, scenario_a_text):
        parsed = parse_log(scenario_a_text.replace("\n", "\r\n"))

        assert len(parsed.events) == 2
        assert parsed.events[1].fps == 50

    def test_empty_input(self):
        """Test that empty input is an empty result, not an error."""
        parsed = parse_log("")

        assert parsed == ParsedLog()
        assert parsed.has_player_count is False

    def test_player_identity_is_exact(self):
        """Test that differently cased names are different players."""
        text = "\n".join(
            [
                "2025.04.04 23:42:13 - [MWG_FPS] alice FPS: 40",
                "2025.04.04 23:42:14 - [MWG_FPS] Alice FPS: 50",
            ]
        )
        assert parse_log(text).players == ("alice", "Alice")

    def test_parse_with_stats(self, mixed_log_text):
        """Test the line counters."""
        parsed, stats = LogParser("MWG_").parse_with_stats(mixed_log_text)

        assert stats.lines_total == 8
        assert stats.lines_candidate == 5
        assert stats.fps_samples == 3
        assert stats.player_count_samples == 2
        assert stats.lines_discarded == 0
        assert len(parsed.events) == 5

    def test_candidate_lines_that_fail(self):
        """Test that tagged but malformed lines are counted as discarded."""
        text = "2025.04.04 23:42:13 - [MWG_FPS] Alice FPS: lots\n[MWG_FPS] no timestamp"
        _, stats = LogParser().parse_with_stats(text)

        assert stats.lines_candidate == 2
        assert stats.lines_discarded == 2

    def test_events_to_dataframe(self, mixed_log_text):
        """Test the tabular view of the events."""
        df = parse_log(mixed_log_text).to_dataframe()

        assert list(df.columns) == ["time", "timestamp", "kind", "player", "fps", "count"]
        assert len(df) == 5
        assert df["kind"].tolist()[0] == "playerCount"
        assert df["fps"].dropna().tolist() == [60, 30, 58]
        assert df["count"].dropna().tolist() == [2, 3]


class TestReadLogFile:
    """Tests for reading log files from disk."""

    def test_reads_text(self, mixed_log_file, mixed_log_text):
        assert read_log_file(mixed_log_file) == mixed_log_text

    def test_strips_bom(self, tmp_path, scenario_a_text):
        path = tmp_path / "bom.txt"
        path.write_bytes(b"\xef\xbb\xbf" + scenario_a_text.encode("utf-8"))

        text = read_log_file(path)

        assert text == scenario_a_text
        assert parse_log(text).players == ("Alice",)

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            read_log_file(tmp_path / "nope.txt")

    def test_undecodable_file(self, tmp_path):
        """Test that bytes that are not UTF-8 are reported."""
        path = tmp_path / "binary.log"
        path.write_bytes(b"\xff\xfe\xfa\x00\x81")

        with pytest.raises(LogDecodeError) as exc_info:
            read_log_file(path)

        assert exc_info.value.path == path
        assert "Could not read" in str(exc_info.value)

    def test_nul_bytes_rejected(self, tmp_path):
        path = tmp_path / "nul.log"
        path.write_bytes(b"2025.04.04 23:42:13\x00\x00\x00")

        with pytest.raises(LogDecodeError, match="binary"):
            read_log_file(path)

    def test_unknown_encoding(self, mixed_log_file):
        with pytest.raises(LogDecodeError, match="unknown encoding"):
            read_log_file(mixed_log_file, encoding="not-a-codec")

    def test_parse_log_file(self, mixed_log_file):
        parsed = parse_log_file(mixed_log_file)

        assert parsed.players == ("Bob", "Alice")
        assert parsed.has_player_count
