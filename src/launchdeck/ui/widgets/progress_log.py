"""Ordered progress events with line listeners."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime

from launchdeck.ui.services.security import sanitize_progress_text

ProgressListener = Callable[[str], None]


@dataclass(frozen=True)
class ProgressEvent:
    step: str
    state: str
    message: str
    stamp: str = ""

    def format(self) -> str:
        prefix = f"[{self.stamp}]" if self.stamp else ""
        detail = f": {self.message}" if self.message else ""
        return f"{prefix}[{self.state.upper()}] {self.step}{detail}"


class ProgressLog:
    def __init__(self, *, clock: Callable[[], datetime] = datetime.now) -> None:
        self.events: list[ProgressEvent] = []
        self._listeners: list[ProgressListener] = []
        self._clock = clock

    @property
    def lines(self) -> list[str]:
        return [event.format() for event in self.events]

    def subscribe(self, listener: ProgressListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _record(self, step: str, state: str, message: str) -> ProgressEvent:
        event = ProgressEvent(
            step=step,
            state=state,
            message=sanitize_progress_text(message),
            stamp=self._clock().strftime("%H:%M:%S"),
        )
        self.events.append(event)
        line = event.format()
        for listener in list(self._listeners):
            listener(line)
        return event

    def record_started(self, step: str, message: str = "") -> ProgressEvent:
        return self._record(step, "started", message)

    def record_success(self, step: str, message: str = "") -> ProgressEvent:
        return self._record(step, "success", message)

    def record_warning(self, step: str, message: str) -> ProgressEvent:
        return self._record(step, "warning", message)

    def record_skipped(self, step: str, message: str = "") -> ProgressEvent:
        return self._record(step, "skipped", message)

    def record_error(self, step: str, message: str) -> ProgressEvent:
        return self._record(step, "error", message)
