"""Control surface exposed to UI content."""

from __future__ import annotations

import logging as py_logging
from collections.abc import Callable
from typing import Generic, TypeVar

from launchdeck.orchestrator import LaunchOrchestrator, Phase
from launchdeck.runtime.executor import ExecutionResult

logger = py_logging.getLogger(__name__)

T = TypeVar("T")

START_CONTAINERS = "start-containers"
STOP_CONTAINERS = "stop-containers"
LOG_MESSAGE = "log-message"
SHARE_IP_MESSAGE = "share-ip-message"
DOCKER_STATUS = "docker-status"

STATUS_SUCCESS = "success"
STATUS_ERROR = "error"


class MessageStream(Generic[T]):
    """Push-only stream; late subscribers get the last value replayed."""

    def __init__(self, name: str) -> None:
        self.name = name
        self._listeners: list[Callable[[T], None]] = []
        self._last: T | None = None
        self._has_value = False

    @property
    def last(self) -> T | None:
        return self._last

    def subscribe(self, listener: Callable[[T], None], *, replay: bool = False) -> Callable[[], None]:
        self._listeners.append(listener)
        if replay and self._has_value:
            listener(self._last)  # type: ignore[arg-type]

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def publish(self, value: T) -> None:
        self._last = value
        self._has_value = True
        for listener in list(self._listeners):
            try:
                listener(value)
            except Exception:
                logger.exception("Listener failed on stream=%s", self.name)


def success_response() -> dict[str, str]:
    return {"status": STATUS_SUCCESS}


def error_response(message: str) -> dict[str, str]:
    return {"status": STATUS_ERROR, "message": message}


class ControlSurface:
    def __init__(self, orchestrator: LaunchOrchestrator) -> None:
        self.orchestrator = orchestrator
        self.log_messages: MessageStream[str] = MessageStream(LOG_MESSAGE)
        self.share_ip_messages: MessageStream[str] = MessageStream(SHARE_IP_MESSAGE)
        self.docker_status: MessageStream[str] = MessageStream(DOCKER_STATUS)
        orchestrator.progress.subscribe(self.log_messages.publish)

    def _rejection(self) -> str:
        phase = self.orchestrator.state.phase
        if phase in (Phase.CONTAINERS_STOPPING, Phase.STOPPED):
            return "LaunchDeck is shutting down."
        if phase != Phase.READY:
            return f"Startup has not finished (phase={phase.value})."
        return ""

    def _invoke(
        self,
        action: str,
        operation: Callable[[], ExecutionResult],
        status_on_success: str,
    ) -> dict[str, str]:
        rejection = self._rejection()
        if rejection:
            logger.warning("Rejected %s: %s", action, rejection)
            return error_response(rejection)
        gate = self.orchestrator.gate
        if not gate.try_acquire(action):
            message = f"Another operation is in progress ({gate.holder or 'busy'})."
            logger.warning("Rejected %s: %s", action, message)
            return error_response(message)
        try:
            result = operation()
        except Exception as exc:
            logger.exception("Control action failed action=%s", action)
            return error_response(str(exc) or "Unexpected failure.")
        finally:
            gate.release()

        if not result.ok:
            self.log_messages.publish(f"{action} failed: {result.detail}")
            return error_response(result.detail or f"{action} failed.")
        self.docker_status.publish(status_on_success)
        return success_response()

    def start_containers(self) -> dict[str, str]:
        return self._invoke(START_CONTAINERS, self.orchestrator.request_start, "running")

    def stop_containers(self) -> dict[str, str]:
        return self._invoke(STOP_CONTAINERS, self.orchestrator.request_stop, "stopped")

    def publish_share_ip(self, address: str) -> None:
        self.share_ip_messages.publish(address)

    def dispatch(self, action: str) -> dict[str, str]:
        if action == START_CONTAINERS:
            return self.start_containers()
        if action == STOP_CONTAINERS:
            return self.stop_containers()
        return error_response(f"Unknown action: {action}")
