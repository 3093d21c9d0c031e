from __future__ import annotations

from datetime import datetime

from launchdeck.ui.widgets.progress_log import ProgressEvent, ProgressLog


def _clock() -> datetime:
    return datetime(2024, 5, 1, 9, 30, 15)


def test_progress_log_records_step_events_in_order() -> None:
    log = ProgressLog(clock=_clock)
    log.record_started("runtime-checking", "starting")
    log.record_success("runtime-checking", "done")
    log.record_error("containers-starting", "failed")

    assert [(event.step, event.state) for event in log.events] == [
        ("runtime-checking", "started"),
        ("runtime-checking", "success"),
        ("containers-starting", "error"),
    ]


def test_lines_are_stamped_and_formatted() -> None:
    log = ProgressLog(clock=_clock)
    log.record_warning("port-verifying", "attempt 1/5 not ready")
    log.record_skipped("permissions-granting")

    assert log.lines == [
        "[09:30:15][WARNING] port-verifying: attempt 1/5 not ready",
        "[09:30:15][SKIPPED] permissions-granting",
    ]


def test_listeners_receive_lines_until_unsubscribed() -> None:
    log = ProgressLog(clock=_clock)
    received: list[str] = []
    unsubscribe = log.subscribe(received.append)

    log.record_started("ready")
    unsubscribe()
    log.record_success("ready")

    assert received == ["[09:30:15][STARTED] ready"]
    unsubscribe()


def test_messages_are_sanitized_before_display() -> None:
    log = ProgressLog(clock=_clock)
    log.record_error("containers-starting", "DB_PASSWORD=letmein rejected")

    assert "letmein" not in log.lines[0]


def test_event_without_stamp_omits_prefix() -> None:
    assert ProgressEvent(step="ready", state="success", message="").format() == "[SUCCESS] ready"
