"""
fpstrack - Frame-Rate Analytics for Game Client Logs

Extracts per-player FPS samples and player counts from a client log and
derives per-player trend lines and a cross-player running average.

Usage:
    from fpstrack import parse_log, LogAnalysis

    parsed = parse_log(log_text, "MWG_")
    analysis = LogAnalysis(parsed)

    for stats in analysis.player_stats():
        print(f"{stats.player}: {stats.average_fps:.1f} FPS")
"""

__version__ = "0.1.0"
__author__ = "fpstrack Contributors"


def __getattr__(name):
    """Lazy import for heavy dependencies."""
    # Parser
    if name == "LogParser":
        from fpstrack.parser import LogParser
        return LogParser
    elif name == "parse_log":
        from fpstrack.parser import parse_log
        return parse_log
    elif name == "parse_log_file":
        from fpstrack.parser import parse_log_file
        return parse_log_file
    elif name == "ParsedLog":
        from fpstrack.core.schemas import ParsedLog
        return ParsedLog
    # Analysis
    elif name == "fit_trend":
        from fpstrack.trend import fit_trend
        return fit_trend
    elif name == "aggregate_players":
        from fpstrack.aggregate import aggregate_players
        return aggregate_players
    elif name == "LogAnalysis":
        from fpstrack.analysis import LogAnalysis
        return LogAnalysis
    # Session
    elif name == "AnalysisSession":
        from fpstrack.session import AnalysisSession
        return AnalysisSession
    elif name == "Debouncer":
        from fpstrack.session import Debouncer
        return Debouncer
    # Export
    elif name == "export_analysis":
        from fpstrack.export import export_analysis
        return export_analysis
    raise AttributeError(f"module 'fpstrack' has no attribute '{name}'")


__all__ = [
    # Version
    "__version__",
    # Parser
    "LogParser",
    "parse_log",
    "parse_log_file",
    "ParsedLog",
    # Analysis
    "fit_trend",
    "aggregate_players",
    "LogAnalysis",
    # Session
    "AnalysisSession",
    "Debouncer",
    # Export
    "export_analysis",
]
