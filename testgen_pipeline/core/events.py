"""
Generation events and the external streaming protocol.

Wire format, one JSON object per line (NDJSON):

    {"type": "progress", "message": str, "progress": int}
    {"type": "complete", "data": {"tests": [...]}, "message": str, "progress": 100}
    {"type": "error", "message": str}

A request produces zero or more progress events followed by exactly one
complete or error event. `EventEmitter` enforces that order.
"""

from __future__ import annotations

import json
from dataclasses import dataclass

from ..constants import PROGRESS_COMPLETE
from .models import GeneratedTest


@dataclass(frozen=True)
class ProgressEvent:
    message: str
    percent: int

    terminal = False

    def to_dict(self) -> dict:
        return {"type": "progress", "message": self.message, "progress": self.percent}


@dataclass(frozen=True)
class CompleteEvent:
    tests: tuple[GeneratedTest, ...]
    message: str

    terminal = True

    def to_dict(self) -> dict:
        return {
            "type": "complete",
            "data": {"tests": [test.to_dict() for test in self.tests]},
            "message": self.message,
            "progress": PROGRESS_COMPLETE,
        }


@dataclass(frozen=True)
class ErrorEvent:
    message: str
    code: str = "generation_error"  # internal only, not serialized

    terminal = True

    def to_dict(self) -> dict:
        return {"type": "error", "message": self.message}


GenerationEvent = ProgressEvent | CompleteEvent | ErrorEvent


def encode_event(event: GenerationEvent) -> str:
    """Serialize one event as an NDJSON line."""
    return json.dumps(event.to_dict(), ensure_ascii=False) + "\n"


class EventSequenceError(RuntimeError):
    """Raised when an event is emitted after the terminal event."""


class EventEmitter:
    """
    Builds the event sequence of one request.

    - progress percents never decrease and stay below 100
    - exactly one terminal event (complete or error)
    - nothing may be emitted after the terminal event
    """

    def __init__(self):
        self._last_percent = 0
        self._terminal: CompleteEvent | ErrorEvent | None = None

    @property
    def terminated(self) -> bool:
        return self._terminal is not None

    @property
    def terminal(self) -> CompleteEvent | ErrorEvent | None:
        return self._terminal

    @property
    def last_percent(self) -> int:
        return self._last_percent

    def _guard(self) -> None:
        if self._terminal is not None:
            raise EventSequenceError(
                f"Event emitted after terminal {type(self._terminal).__name__}"
            )

    def progress(self, message: str, percent: int) -> ProgressEvent:
        self._guard()
        percent = min(max(int(percent), self._last_percent), PROGRESS_COMPLETE - 1)
        self._last_percent = percent
        return ProgressEvent(message=message, percent=percent)

    def complete(self, tests: list[GeneratedTest] | tuple[GeneratedTest, ...], message: str) -> CompleteEvent:
        self._guard()
        if not tests or any(not test.code.strip() for test in tests):
            raise ValueError("A complete event requires at least one non-empty test")
        self._terminal = CompleteEvent(tests=tuple(tests), message=message)
        return self._terminal

    def error(self, message: str, code: str = "generation_error") -> ErrorEvent:
        self._guard()
        self._terminal = ErrorEvent(message=message, code=code)
        return self._terminal

    def emit(self, event: GenerationEvent) -> GenerationEvent:
        """Re-emit an event built elsewhere (e.g. by the orchestrator)."""
        if isinstance(event, ProgressEvent):
            return self.progress(event.message, event.percent)
        if isinstance(event, CompleteEvent):
            return self.complete(event.tests, event.message)
        return self.error(event.message, event.code)
