"""ANSI colors, output helpers, event and summary rendering."""

from __future__ import annotations

import sys

from rich.console import Console
from rich.table import Table
from rich.theme import Theme

from agent_meter.events import (
    DiagnosticEvent,
    Event,
    FileChangeEvent,
    ProgressEvent,
    StatusEvent,
    Summary,
    TestResultEvent,
)
from agent_meter.state import config


# ── Rich console ────────────────────────────────────────────────────────────

_theme = Theme({"summary.title": "bold cyan", "summary.key": "dim"})
console = Console(theme=_theme, highlight=False)


# ── ANSI Colors ─────────────────────────────────────────────────────────────

class C:
    CYAN    = "\033[1;36m"
    DIM     = "\033[2m"
    YELLOW  = "\033[1;33m"
    GREEN   = "\033[1;32m"
    RED     = "\033[1;31m"
    BOLD    = "\033[1m"
    RESET   = "\033[0m"


# ── Output helpers ──────────────────────────────────────────────────────────

def error(msg: str):
    print(f"  {C.RED}[Error] {msg}{C.RESET}", file=sys.stderr, flush=True)


def success(msg: str):
    print(f"  {C.GREEN}{msg}{C.RESET}", flush=True)


def dbg(msg: str):
    if config.debug:
        print(f"{C.YELLOW}[DEBUG] {msg}{C.RESET}", file=sys.stderr, flush=True)


def dbg_block(label: str, content: str):
    if config.debug:
        preview = content[:500] + ("..." if len(content) > 500 else "")
        print(f"{C.YELLOW}── {label} ──{C.RESET}", file=sys.stderr, flush=True)
        print(f"{C.DIM}{preview}{C.RESET}", file=sys.stderr, flush=True)


# ── Event rendering ─────────────────────────────────────────────────────────

FILE_ICONS = {
    "created":  "📝",
    "modified": "✏️ ",
    "deleted":  "🗑 ",
}


def progress_bar(progress: int, width: int = 20) -> str:
    filled = round(width * progress / 100)
    return "█" * filled + "░" * (width - filled)


def format_event(event: Event) -> str:
    """One-line colored rendering of an event."""
    if isinstance(event, ProgressEvent):
        label = "" if event.source == "explicit" else f" {C.DIM}(estimated){C.RESET}"
        return f"  {C.CYAN}📊 {progress_bar(event.progress)} {event.progress:3d}%{C.RESET}{label}"
    if isinstance(event, FileChangeEvent):
        icon = FILE_ICONS.get(event.action, "•")
        return f"  {C.DIM}{icon} {event.action}:{C.RESET} {event.path}"
    if isinstance(event, TestResultEvent):
        color = C.GREEN if event.failed == 0 else C.YELLOW
        return (
            f"  {color}🧪 {event.passed} passed, {event.failed} failed "
            f"({event.total} total){C.RESET}"
        )
    if isinstance(event, DiagnosticEvent):
        if event.severity == "error":
            return f"  {C.RED}✗ {event.message}{C.RESET}"
        return f"  {C.YELLOW}⚠️  {event.message}{C.RESET}"
    if isinstance(event, StatusEvent):
        return f"  {C.DIM}→ {event.message}{C.RESET}"
    return f"  {event!r}"


def render_event(event: Event):
    print(format_event(event), flush=True)


def render_summary(summary: Summary, status: str = ""):
    """Render the end-of-session summary as a rich table."""
    table = Table(
        title="Agent session" + (f" · {status}" if status else ""),
        title_style="summary.title",
        show_header=False,
        box=None,
        padding=(0, 2),
    )
    table.add_column(style="summary.key")
    table.add_column()

    table.add_row("Progress", f"{progress_bar(summary.progress)} {summary.progress}%")
    table.add_row("Files changed", str(summary.files_changed))
    if summary.test_results is not None:
        t = summary.test_results
        table.add_row("Tests", f"{t.passed} passed / {t.failed} failed / {t.total} total")
    else:
        table.add_row("Tests", "-")
    table.add_row("Errors", str(summary.error_count))
    table.add_row("Warnings", str(summary.warning_count))

    console.print()
    console.print(table)
