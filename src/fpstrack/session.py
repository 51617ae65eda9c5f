"""
Interactive Analysis Session

Front ends change their parameters in bursts: a slider drag produces dozens
of window sizes, a multi-select produces one selection per click. The
aggregation is O(samples x centers), so running it on every intermediate
value is wasted work. This module puts an explicit timer gate between input
events and the computation:

- Debouncer: waits for a quiet period, then runs only the last call of a
  burst. A result that has been superseded by a newer call while it was
  computing is dropped.
- AnalysisSession: owns the parsed log and the live parameters, reads log
  files on a background worker (a newer load supersedes an older one) and
  publishes an AnalysisView whenever a computation settles.

Callbacks run on the timer or loader thread that produced the result.

Example usage:
    session = AnalysisSession(on_update=render)
    session.load_file("output_log.txt")
    session.set_window_ms(60_000)   # debounced
    session.set_selected_players(["Alice", "Bob"])
"""

import logging
import threading
from collections.abc import Callable, Iterable
from concurrent.futures import Future, ThreadPoolExecutor
from functools import partial
from pathlib import Path
from typing import Any

from fpstrack.analysis import LogAnalysis
from fpstrack.core.config import FpstrackConfig, get_config
from fpstrack.core.schemas import AnalysisView, ParsedLog
from fpstrack.parser import LogParser, read_log_file

logger = logging.getLogger(__name__)


class Debouncer:
    """
    Coalesce rapid calls into one call after a quiet period.

    Every trigger() restarts the timer. When the timer fires, func runs with
    the arguments of the most recent trigger. Each run carries a generation
    number; if another trigger arrived while func was running, the stale
    result is discarded instead of being passed to on_result.
    """

    def __init__(
        self,
        wait_seconds: float,
        func: Callable[..., Any],
        on_result: Callable[[Any], None] | None = None,
    ):
        """
        Initialize the debouncer.

        Args:
            wait_seconds: Quiet period before a call goes through
            func: Function to run
            on_result: Receives func's return value for current runs
        """
        self.wait_seconds = wait_seconds
        self.func = func
        self.on_result = on_result

        self._lock = threading.Lock()
        self._deliver_lock = threading.RLock()
        self._timer: threading.Timer | None = None
        self._pending: tuple[int, tuple, dict] | None = None
        self._generation = 0
        self.run_count = 0

    def trigger(self, *args, **kwargs) -> None:
        """Schedule func(*args, **kwargs), replacing any pending call."""
        with self._lock:
            self._generation += 1
            generation = self._generation
            if self._timer is not None:
                self._timer.cancel()
            self._pending = (generation, args, kwargs)
            self._timer = threading.Timer(self.wait_seconds, self._fire, args=(generation,))
            self._timer.daemon = True
            self._timer.start()

    def _fire(self, generation: int) -> None:
        with self._lock:
            if self._pending is None or self._pending[0] != generation:
                return
            _, args, kwargs = self._pending
            self._pending = None
            self._timer = None

        self._run(generation, args, kwargs)

    def _run(self, generation: int, args: tuple, kwargs: dict) -> None:
        try:
            result = self._call(args, kwargs)
        except Exception:
            logger.exception("Debounced call failed")
            return

        self._deliver(generation, result)

    def _call(self, args: tuple, kwargs: dict) -> Any:
        with self._lock:
            self.run_count += 1
        return self.func(*args, **kwargs)

    def _deliver(self, generation: int, result: Any) -> bool:
        # check and publish together, or a newer run could publish in between
        with self._deliver_lock:
            with self._lock:
                superseded = generation != self._generation

            if superseded:
                logger.debug(f"Discarding superseded result (generation {generation})")
                return False

            if self.on_result is not None:
                self.on_result(result)
            return True

    def run_now(self, *args, **kwargs) -> Any:
        """
        Run func right away, superseding any pending or running call.

        Exceptions from func propagate to the caller.

        Returns:
            func's return value (delivered to on_result unless a newer call
            superseded it meanwhile)
        """
        with self._lock:
            self._generation += 1
            generation = self._generation
            self._pending = None
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None

        result = self._call(args, kwargs)
        self._deliver(generation, result)
        return result

    def flush(self) -> None:
        """Run the pending call now instead of waiting for the timer."""
        with self._lock:
            pending = self._pending
            self._pending = None
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None

        if pending is not None:
            self._run(*pending)

    def cancel(self) -> None:
        """Drop the pending call and invalidate one that is still running."""
        with self._lock:
            self._generation += 1
            self._pending = None
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None

    @property
    def is_pending(self) -> bool:
        with self._lock:
            return self._pending is not None


class AnalysisSession:
    """
    Parsed log plus live view parameters.

    The parsed log is the single source of truth; every AnalysisView is
    recomputed from it and the current selection, window and smoothing.
    """

    def __init__(
        self,
        config: FpstrackConfig | None = None,
        on_update: Callable[[AnalysisView], None] | None = None,
        on_error: Callable[[Exception], None] | None = None,
    ):
        """
        Initialize the session.

        Args:
            config: Configuration (defaults to the global config)
            on_update: Called with each settled AnalysisView
            on_error: Called when a file load fails
        """
        self.config = config or get_config()
        self.on_update = on_update
        self.on_error = on_error

        self.base_prefix = self.config.parser.base_prefix
        self.window_ms = float(self.config.aggregation.window_ms)
        self.smoothing_radius = int(self.config.aggregation.smoothing_radius)
        self.selected_players: tuple[str, ...] = ()

        self.parsed: ParsedLog | None = None
        self.view: AnalysisView | None = None

        self._lock = threading.RLock()
        self._load_generation = 0
        self._load_future: Future | None = None
        # One worker: at most one read runs, a newer load cancels a queued one
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="fpstrack-load")
        self._debouncer = Debouncer(
            self.config.session.debounce_seconds,
            self._compute,
            on_result=self._publish,
        )

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def load_file(self, path: str | Path) -> Future:
        """
        Read and parse a log file in the background.

        A load started later wins: the result of an earlier load that
        finishes afterwards is ignored.

        Returns:
            Future resolving to the ParsedLog
        """
        with self._lock:
            self._load_generation += 1
            generation = self._load_generation
            if self._load_future is not None:
                self._load_future.cancel()
            future = self._executor.submit(self._read_and_parse, Path(path), self.base_prefix)
            self._load_future = future

        future.add_done_callback(partial(self._on_loaded, generation))
        return future

    def _read_and_parse(self, path: Path, base_prefix: str) -> ParsedLog:
        text = read_log_file(path, self.config.parser.encoding)
        return LogParser(base_prefix).parse(text)

    def _on_loaded(self, generation: int, future: Future) -> None:
        if future.cancelled():
            return

        with self._lock:
            if generation != self._load_generation:
                logger.debug("Ignoring result of a superseded load")
                return

        error = future.exception()
        if error is not None:
            logger.error(f"Failed to load log: {error}")
            if self.on_error is not None:
                self.on_error(error)
            return

        self.load_parsed(future.result())

    def load_text(self, content: str) -> ParsedLog:
        """Parse log text synchronously and make it the current log."""
        parsed = LogParser(self.base_prefix).parse(content)
        self.load_parsed(parsed)
        return parsed

    def load_parsed(self, parsed: ParsedLog) -> None:
        """Install a parsed log and recompute immediately."""
        with self._lock:
            self.parsed = parsed
            if self.config.session.auto_select_first_player and parsed.players:
                self.selected_players = (parsed.players[0],)
            else:
                self.selected_players = ()
        self.refresh_now()

    # ------------------------------------------------------------------
    # Parameters (debounced)
    # ------------------------------------------------------------------

    def set_selected_players(self, players: Iterable[str]) -> None:
        with self._lock:
            self.selected_players = tuple(dict.fromkeys(players))
        self.refresh()

    def set_window_ms(self, window_ms: float) -> None:
        if window_ms <= 0:
            raise ValueError(f"window_ms must be positive, got {window_ms}")
        with self._lock:
            self.window_ms = float(window_ms)
        self.refresh()

    def set_smoothing_radius(self, radius: int) -> None:
        if radius < 0:
            raise ValueError(f"smoothing radius must be >= 0, got {radius}")
        with self._lock:
            self.smoothing_radius = int(radius)
        self.refresh()

    def set_base_prefix(self, base_prefix: str) -> None:
        """Change the prefix used for the next load."""
        self.base_prefix = base_prefix

    # ------------------------------------------------------------------
    # Computation
    # ------------------------------------------------------------------

    def _snapshot(self) -> dict[str, Any]:
        with self._lock:
            return {
                "parsed": self.parsed,
                "players": self.selected_players,
                "window_ms": self.window_ms,
                "smoothing_radius": self.smoothing_radius,
            }

    def refresh(self) -> None:
        """Recompute after the quiet period."""
        self._debouncer.trigger(**self._snapshot())

    def refresh_now(self) -> AnalysisView:
        """Recompute right away, superseding any pending debounced run."""
        return self._debouncer.run_now(**self._snapshot())

    def flush(self) -> None:
        """Run a pending debounced recompute immediately."""
        self._debouncer.flush()

    def _compute(
        self,
        parsed: ParsedLog | None,
        players: tuple[str, ...],
        window_ms: float,
        smoothing_radius: int,
    ) -> AnalysisView:
        analysis = LogAnalysis(parsed or ParsedLog())
        return AnalysisView(
            selected_players=players,
            window_ms=window_ms,
            smoothing_radius=smoothing_radius,
            series=tuple(analysis.get_player_data(p) for p in players),
            aggregate=analysis.aggregate(
                players,
                window_ms=window_ms,
                smoothing_radius=smoothing_radius,
                max_samples=self.config.aggregation.max_samples,
                max_step_ms=self.config.aggregation.max_step_ms,
            ),
        )

    def _publish(self, view: AnalysisView) -> None:
        with self._lock:
            self.view = view
        if self.on_update is not None:
            self.on_update(view)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def close(self) -> None:
        """Stop timers and the load worker."""
        self._debouncer.cancel()
        self._executor.shutdown(wait=False, cancel_futures=True)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
