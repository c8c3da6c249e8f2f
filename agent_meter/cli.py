"""CLI entry point: argparse and main()."""

from __future__ import annotations

import argparse
import io
import json
import sys

from agent_meter.executor import EXIT_CANCELLED, feed_stream, run_command
from agent_meter.state import config, init_config, save_user_config
from agent_meter.tracker import ProgressTracker
from agent_meter.ui import dbg, dbg_block, error, render_event, render_summary, success


HELP_EPILOG = """\
Input:
  (none)           Read agent output from stdin
  FILE ...         Read agent output from files ('-' = stdin)
  -x CMD [ARGS]    Run an agent command and watch its output

Examples:
  claude -p "add tests" 2>&1 | agent-meter
  agent-meter session.log
  agent-meter --json session.log > events.ndjson
  agent-meter --echo -x -- claude -p "fix the failing build"
"""


def _print_json(obj: dict):
    print(json.dumps(obj, ensure_ascii=False), flush=True)


def _feed_stdin(tracker: ProgressTracker, echo: bool):
    """Feed stdin, replacing undecodable bytes the way file inputs do."""
    buffer = getattr(sys.stdin, "buffer", None)
    if buffer is None:
        feed_stream(sys.stdin, tracker, echo)
        return
    stream = io.TextIOWrapper(buffer, encoding="utf-8", errors="replace")
    try:
        feed_stream(stream, tracker, echo)
    finally:
        # Leave sys.stdin usable
        stream.detach()


def _read_inputs(paths: list[str], tracker: ProgressTracker, echo: bool) -> int:
    """Feed each input file into the same session. Returns a process exit code."""
    for path in paths or ["-"]:
        if path == "-":
            dbg("reading stdin")
            _feed_stdin(tracker, echo)
            continue
        try:
            with open(path, encoding="utf-8", errors="replace") as f:
                dbg(f"reading {path}")
                feed_stream(f, tracker, echo)
        except OSError as e:
            error(f"cannot read {path}: {e.strerror or e}")
            return 1
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="agent-meter",
        description="agent-meter — progress, file changes and test results from AI agent output",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=HELP_EPILOG,
    )
    parser.add_argument("inputs", nargs="*", help="Input files, or the command with -x")
    parser.add_argument(
        "-x", "--exec", dest="exec_mode", action="store_true",
        help="Treat the arguments as a command to run",
    )
    parser.add_argument("--json", action="store_true", help="Emit events as JSON lines")
    parser.add_argument(
        "--echo", action="store_true", default=None,
        help="Pass the raw agent output through",
    )
    parser.add_argument(
        "--threshold", type=int, default=None,
        help="Minimum progress change (%%) before reporting (default: 5)",
    )
    parser.add_argument("--no-summary", action="store_true", help="Skip the final summary")
    parser.add_argument(
        "--save-defaults", action="store_true",
        help="Save --threshold/--echo to ~/.agent-meter/config.json",
    )
    parser.add_argument("--debug", action="store_true", help="Debug mode")

    args = parser.parse_args(argv)

    init_config()
    config.debug = args.debug
    # CLI flags override saved config
    if args.threshold is not None:
        if args.threshold < 0:
            parser.error("--threshold must be >= 0")
        config.progress_threshold = args.threshold
    if args.echo is not None:
        config.echo = args.echo

    if args.save_defaults:
        save_user_config({"progress_threshold": config.progress_threshold, "echo": config.echo})
        success("Defaults saved")

    if args.exec_mode and not args.inputs:
        parser.error("-x requires a command")

    tracker = ProgressTracker(threshold=config.progress_threshold)
    if args.json:
        tracker.on("parsed", lambda event: _print_json(event.to_dict()))
    else:
        tracker.on("parsed", render_event)

    try:
        if args.exec_mode:
            exit_code = run_command(args.inputs, tracker, echo=config.echo)
            if exit_code is None:
                exit_code = 1
        else:
            exit_code = _read_inputs(args.inputs, tracker, echo=config.echo)
    except KeyboardInterrupt:
        exit_code = EXIT_CANCELLED

    summary = tracker.finish(exit_code)
    dbg_block("SUMMARY", json.dumps(summary.to_dict(), ensure_ascii=False, indent=2))
    if args.json:
        _print_json({**summary.to_dict(), "status": tracker.status, "exit_code": exit_code})
    elif not args.no_summary:
        render_summary(summary, tracker.status)

    return exit_code


if __name__ == "__main__":
    sys.exit(main())
