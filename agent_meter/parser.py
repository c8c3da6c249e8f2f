"""Terminal output parser: raw agent output chunks → structured events.

Each chunk is split into lines and every non-blank line is run through
CATEGORIES in order. Within a category the first matching pattern wins.
A progress match ends processing of its line; every other category is
tried independently, so one line can yield e.g. both a file change and
a status message.

There is no buffering across chunks: a line split between two chunks is
seen as two partial lines.
"""

from __future__ import annotations

import re
from typing import Callable, Optional

from agent_meter import patterns
from agent_meter.events import (
    DiagnosticEvent,
    Event,
    FileChangeEvent,
    ProgressEvent,
    StatusEvent,
    TestResultEvent,
)
from agent_meter.state import ParserState

Handler = Callable[[re.Match, str, ParserState], Optional[Event]]

_LEADING_QUOTES = re.compile(r"^[`'\"]+")
_TRAILING_QUOTES = re.compile(r"[`'\"]+$")


def clean_file_path(path: str) -> str | None:
    """Normalize a captured path, or None if it doesn't look like one."""
    cleaned = _LEADING_QUOTES.sub("", path)
    cleaned = _TRAILING_QUOTES.sub("", cleaned)
    if cleaned.startswith("./"):
        cleaned = cleaned[2:]
    cleaned = cleaned.strip()

    if len(cleaned) < 2:
        return None
    if "..." in cleaned:
        return None
    if cleaned.startswith("http"):
        return None
    # Must have an extension or a directory component
    if "/" not in cleaned and "." not in cleaned:
        return None
    return cleaned


# ── Handlers ────────────────────────────────────────────────────────────────

def _on_progress(match: re.Match, line: str, state: ParserState) -> Event | None:
    progress = min(100, max(0, int(match.group(1))))
    if progress == state.last_progress:
        return None
    state.last_progress = progress
    return ProgressEvent(progress=progress, source="explicit")


def _file_handler(action: str, attr: str) -> Handler:
    def handler(match: re.Match, line: str, state: ParserState) -> Event | None:
        path = clean_file_path(match.group(1))
        seen: set[str] = getattr(state, attr)
        if not path or path in seen:
            return None
        seen.add(path)
        return FileChangeEvent(action=action, path=path)
    return handler


def _on_test_results(match: re.Match, line: str, state: ParserState) -> Event | None:
    passed = int(match.group(1))
    failed = int(match.group(2)) if match.group(2) else 0
    total = passed + failed
    if total == 0:
        return None
    if passed == state.tests_passed and failed == state.tests_failed:
        return None
    state.tests_passed = passed
    state.tests_failed = failed
    state.tests_total = total
    return TestResultEvent(passed=passed, failed=failed, total=total)


def _on_all_passed(match: re.Match, line: str, state: ParserState) -> Event | None:
    passed = int(match.group(1))
    if passed == 0 or passed == state.tests_passed:
        return None
    state.tests_passed = passed
    state.tests_failed = 0
    state.tests_total = passed
    return TestResultEvent(passed=passed, failed=0, total=passed)


def _diagnostic_handler(severity: str, attr: str) -> Handler:
    def handler(match: re.Match, line: str, state: ParserState) -> Event | None:
        message = match.group(1).strip()
        seen: list[str] = getattr(state, attr)
        if not message or message in seen:
            return None
        seen.append(message)
        return DiagnosticEvent(message=message, severity=severity)
    return handler


def _on_status(match: re.Match, line: str, state: ParserState) -> Event | None:
    return StatusEvent(message=match.group(1).strip())


def _status_at_line_start(match: re.Match, line: str) -> bool:
    return line.startswith(match.group(0)[0])


# ── Dispatch table ──────────────────────────────────────────────────────────
# (category, patterns, handler, ends_line, guard)

CATEGORIES: list[tuple[str, list, Handler, bool, Callable | None]] = [
    ("progress",   patterns.PROGRESS,         _on_progress,                              True,  None),
    ("created",    patterns.FILE_CREATED,     _file_handler("created", "files_created"),   False, None),
    ("modified",   patterns.FILE_MODIFIED,    _file_handler("modified", "files_modified"), False, None),
    ("deleted",    patterns.FILE_DELETED,     _file_handler("deleted", "files_deleted"),   False, None),
    ("tests",      patterns.TEST_RESULTS,     _on_test_results,                          False, None),
    ("all_passed", patterns.ALL_TESTS_PASSED, _on_all_passed,                            False, None),
    ("error",      patterns.ERRORS,           _diagnostic_handler("error", "errors"),      False, None),
    ("warning",    patterns.WARNINGS,         _diagnostic_handler("warning", "warnings"),  False, None),
    ("status",     patterns.STATUS,           _on_status,                                False, _status_at_line_start),
]


def _first_match(line: str, regexes: list, guard: Callable | None) -> re.Match | None:
    for regex in regexes:
        match = regex.search(line)
        if not match or not match.group(1):
            continue
        if guard is not None and not guard(match, line):
            continue
        return match
    return None


def parse_line(line: str, state: ParserState) -> list[Event]:
    """Run one trimmed, non-empty line through the category cascade."""
    events: list[Event] = []
    for _name, regexes, handler, ends_line, guard in CATEGORIES:
        match = _first_match(line, regexes, guard)
        if match is None:
            continue
        event = handler(match, line, state)
        if event is not None:
            events.append(event)
        if ends_line:
            break
    return events


def parse_chunk(chunk: str, state: ParserState) -> list[Event]:
    """Parse a chunk of terminal output, updating state in place.

    Returns the newly detected events in line order (possibly empty).
    Never raises on malformed input.
    """
    events: list[Event] = []
    for line in chunk.split("\n"):
        line = line.strip()
        if not line:
            continue
        events.extend(parse_line(line, state))
    return events
