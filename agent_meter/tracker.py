"""Per-session progress tracking on top of the parser.

A ProgressTracker owns one ParserState for the lifetime of an agent run,
fans events out to listeners, and throttles progress reports so that
consumers only hear about meaningful changes.
"""

from __future__ import annotations

from typing import Callable

from agent_meter.events import (
    DiagnosticEvent,
    Event,
    FileChangeEvent,
    ProgressEvent,
    StatusEvent,
    Summary,
    TestResultEvent,
)
from agent_meter.parser import parse_chunk
from agent_meter.progress import estimate_progress, summarize
from agent_meter.state import config, create_state
from agent_meter.ui import dbg

LISTENER_KINDS = ("parsed", "progress", "file-change", "test-result", "diagnostic", "status", "exit")

_KIND_BY_TYPE = {
    FileChangeEvent: "file-change",
    TestResultEvent: "test-result",
    DiagnosticEvent: "diagnostic",
    StatusEvent: "status",
}


class ProgressTracker:
    def __init__(self, threshold: int | None = None):
        self.state = create_state()
        self.threshold: int = config.progress_threshold if threshold is None else threshold
        self.last_reported: int = 0
        self.status: str = "running"
        self.exit_code: int | None = None
        self.chunk_count: int = 0
        self._listeners: dict[str, list[Callable]] = {kind: [] for kind in LISTENER_KINDS}

    def on(self, kind: str, callback: Callable):
        """Subscribe to one listener kind."""
        if kind not in self._listeners:
            raise ValueError(f"Unknown event kind: {kind!r}")
        self._listeners[kind].append(callback)

    def _emit(self, kind: str, payload):
        for callback in self._listeners[kind]:
            try:
                callback(payload)
            except Exception as e:
                # A broken listener must not stop the output stream
                dbg(f"listener {kind} failed: {type(e).__name__}: {e}")

    def feed(self, chunk: str) -> list[Event]:
        """Parse one chunk of agent output and notify listeners."""
        self.chunk_count += 1
        events = parse_chunk(chunk, self.state)

        for event in events:
            self._emit("parsed", event)
            if isinstance(event, ProgressEvent):
                if abs(event.progress - self.last_reported) >= self.threshold:
                    self.last_reported = event.progress
                    self._emit("progress", event)
            else:
                self._emit(_KIND_BY_TYPE[type(event)], event)

        # No explicit progress yet: fall back to the estimate
        if self.state.last_progress == 0:
            estimated = estimate_progress(self.state)
            if estimated > self.last_reported + self.threshold:
                self.last_reported = estimated
                self._emit("progress", ProgressEvent(progress=estimated, source="estimated"))

        return events

    def summary(self) -> Summary:
        return summarize(self.state)

    def finish(self, exit_code: int | None) -> Summary:
        """Mark the session as ended and return the final summary."""
        self.exit_code = exit_code
        self.status = "completed" if exit_code == 0 else "failed"
        dbg(f"session {self.status} (exit={exit_code}, chunks={self.chunk_count}) {self.state!r}")
        self._emit("exit", exit_code)
        return self.summary()
