"""Agent process execution and output streaming into a tracker."""

from __future__ import annotations

import os
import queue
import signal
import subprocess
import sys
import threading
import time
from typing import IO

from agent_meter.state import config
from agent_meter.tracker import ProgressTracker
from agent_meter.ui import C, dbg, error

EXIT_CANCELLED = 130


def feed_stream(stream: IO[str], tracker: ProgressTracker, echo: bool = False) -> int:
    """Feed an open text stream into the tracker line by line. Returns lines read."""
    count = 0
    for line in stream:
        count += 1
        if echo:
            sys.stdout.write(line)
            sys.stdout.flush()
        tracker.feed(line)
    return count


def run_command(cmd: list[str], tracker: ProgressTracker, echo: bool = False) -> int | None:
    """
    Run an agent command and stream its merged stdout/stderr into the tracker.
    Returns the exit code, EXIT_CANCELLED on Ctrl+C or stall,
    or None if the command could not be started.
    """
    dbg(f"CMD: {' '.join(cmd)[:120]}")

    try:
        process = subprocess.Popen(
            cmd,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            stdin=subprocess.DEVNULL,
            text=True,
            bufsize=1,
            errors="replace",
            start_new_session=True,  # own process group for clean kill
        )
    except FileNotFoundError:
        error(f"command not found: {cmd[0]}")
        return None
    except PermissionError:
        error(f"permission denied: {cmd[0]}")
        return None

    cancelled = threading.Event()

    # ── Helper: kill process group reliably ──
    def _kill_process():
        try:
            os.killpg(os.getpgid(process.pid), signal.SIGTERM)
        except (OSError, ProcessLookupError):
            pass
        try:
            process.wait(timeout=3)
        except subprocess.TimeoutExpired:
            try:
                os.killpg(os.getpgid(process.pid), signal.SIGKILL)
            except (OSError, ProcessLookupError):
                pass
            try:
                process.wait(timeout=3)
            except subprocess.TimeoutExpired:
                pass

    # Watchdog: detect stalls when no output arrives for too long.
    last_data_time = time.monotonic()
    watchdog_stop = threading.Event()

    def _watchdog():
        warned_at = 0
        while not watchdog_stop.wait(1):
            idle = time.monotonic() - last_data_time
            if idle >= config.stall_kill_secs:
                print(f"  {C.DIM}⚠️ no output for {int(idle)}s, cancelling...{C.RESET}", file=sys.stderr, flush=True)
                cancelled.set()
                _kill_process()
                return
            warn_secs = max(1, config.stall_warn_secs)
            if idle >= warn_secs and int(idle) // warn_secs > warned_at:
                warned_at = int(idle) // warn_secs
                print(f"  {C.DIM}⚠️ no output for {int(idle)}s (Ctrl+C to cancel){C.RESET}", file=sys.stderr, flush=True)

    watchdog_thread = threading.Thread(target=_watchdog, daemon=True)
    watchdog_thread.start()

    # ── Read stdout in background thread, drain via queue ──
    line_queue: queue.Queue[str | None] = queue.Queue()

    def _stdout_reader():
        try:
            for line in process.stdout:
                line_queue.put(line)
        except (OSError, ValueError):
            pass
        line_queue.put(None)  # sentinel: EOF

    reader_thread = threading.Thread(target=_stdout_reader, daemon=True)
    reader_thread.start()

    try:
        while True:
            try:
                line = line_queue.get(timeout=0.2)
            except queue.Empty:
                if cancelled.is_set():
                    break
                continue
            if line is None:  # EOF
                break
            last_data_time = time.monotonic()
            if echo:
                sys.stdout.write(line)
                sys.stdout.flush()
            tracker.feed(line)

        if cancelled.is_set():
            print(f"\n  {C.DIM}Task interrupted{C.RESET}", file=sys.stderr)
            return EXIT_CANCELLED

        process.wait()
        dbg(f"exit: {process.returncode}")
        return process.returncode

    except KeyboardInterrupt:
        cancelled.set()
        _kill_process()
        print(f"\n  {C.DIM}Task interrupted{C.RESET}", file=sys.stderr)
        return EXIT_CANCELLED

    finally:
        watchdog_stop.set()
        if process.poll() is None:
            _kill_process()
        if process.stdout:
            process.stdout.close()
