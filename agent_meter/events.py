"""Structured events extracted from agent terminal output."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Literal, Union


@dataclass(frozen=True)
class ProgressEvent:
    progress: int                      # 0-100
    source: Literal["explicit", "estimated"] = "explicit"
    type = "progress"

    def to_dict(self) -> dict:
        return {"type": self.type, **asdict(self)}


@dataclass(frozen=True)
class FileChangeEvent:
    action: Literal["created", "modified", "deleted"]
    path: str
    type = "file"

    def to_dict(self) -> dict:
        return {"type": self.type, **asdict(self)}


@dataclass(frozen=True)
class TestResultEvent:
    passed: int
    failed: int
    total: int
    type = "test"
    __test__ = False  # not a pytest test class

    def to_dict(self) -> dict:
        return {"type": self.type, **asdict(self)}


@dataclass(frozen=True)
class DiagnosticEvent:
    message: str
    severity: Literal["error", "warning"]
    type = "diagnostic"

    def to_dict(self) -> dict:
        return {"type": self.type, **asdict(self)}


@dataclass(frozen=True)
class StatusEvent:
    message: str
    type = "status"

    def to_dict(self) -> dict:
        return {"type": self.type, **asdict(self)}


Event = Union[ProgressEvent, FileChangeEvent, TestResultEvent, DiagnosticEvent, StatusEvent]


@dataclass(frozen=True)
class TestCounts:
    passed: int
    failed: int
    total: int
    __test__ = False


@dataclass(frozen=True)
class Summary:
    """Read-only projection of a ParserState for display."""

    progress: int
    files_changed: int
    test_results: TestCounts | None
    error_count: int
    warning_count: int

    def to_dict(self) -> dict:
        return {"type": "summary", **asdict(self)}
