"""Heuristic progress estimation and summary projection."""

from __future__ import annotations

from agent_meter.events import Summary, TestCounts
from agent_meter.state import ParserState

FILE_WEIGHT = 5        # each created/modified file = 5%
FILE_CAP = 50
TEST_WEIGHT = 10       # full pass ratio = 10%
TEST_CAP = 40
ESTIMATE_CAP = 90      # only an explicit signal can claim completion


def estimate_progress(state: ParserState) -> int:
    """Estimate completion from accumulated activity. Does not mutate state."""
    file_count = len(state.files_created) + len(state.files_modified)
    estimated = float(min(FILE_CAP, file_count * FILE_WEIGHT))

    if state.tests_total > 0:
        ratio = state.tests_passed / state.tests_total
        estimated += min(TEST_CAP, ratio * TEST_WEIGHT)

    return max(state.last_progress, min(ESTIMATE_CAP, int(estimated)))


def summarize(state: ParserState) -> Summary:
    test_results = None
    if state.tests_total > 0:
        test_results = TestCounts(
            passed=state.tests_passed,
            failed=state.tests_failed,
            total=state.tests_total,
        )
    return Summary(
        progress=estimate_progress(state),
        files_changed=(
            len(state.files_created) + len(state.files_modified) + len(state.files_deleted)
        ),
        test_results=test_results,
        error_count=len(state.errors),
        warning_count=len(state.warnings),
    )
