"""Startup/shutdown orchestration for the local container stack."""

from __future__ import annotations

import logging as py_logging
import stat
import threading
from collections.abc import Callable, Iterator
from concurrent.futures import ThreadPoolExecutor
from contextlib import contextmanager
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from launchdeck.constants import DOCKER_INSTALL_URL
from launchdeck.docker.runtime import ContainerRuntime
from launchdeck.errors import FailureKind, LaunchDeckError, failure, user_facing_error
from launchdeck.retry import FatalError, RecoverableError, RetryPolicy, run_with_retry
from launchdeck.runtime.executor import ExecutionResult
from launchdeck.runtime.profile import PlatformProfile
from launchdeck.runtime.scripts import ScriptPaths
from launchdeck.ui.services.security import sanitize_log_text
from launchdeck.ui.widgets.progress_log import ProgressLog

logger = py_logging.getLogger(__name__)

_EXEC_BITS = stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH


class Phase(str, Enum):
    IDLE = "idle"
    PERMISSIONS_GRANTING = "permissions-granting"
    RUNTIME_CHECKING = "runtime-checking"
    CONTAINERS_STARTING = "containers-starting"
    PORT_VERIFYING = "port-verifying"
    READY = "ready"
    CONTAINERS_STOPPING = "containers-stopping"
    STOPPED = "stopped"
    FAILED = "failed"


_STARTUP_ORDER = (
    Phase.IDLE,
    Phase.PERMISSIONS_GRANTING,
    Phase.RUNTIME_CHECKING,
    Phase.CONTAINERS_STARTING,
    Phase.PORT_VERIFYING,
    Phase.READY,
)


@dataclass
class OrchestrationState:
    phase: Phase = Phase.IDLE
    messages: list[str] = field(default_factory=list)
    failure: LaunchDeckError | None = None

    @property
    def ready(self) -> bool:
        return self.phase == Phase.READY

    @property
    def failed(self) -> bool:
        return self.phase == Phase.FAILED

    def failure_message(self) -> str:
        if self.failure is None:
            return ""
        return user_facing_error(self.failure.message, hint=self.failure.hint)


class OperationGate:
    """Single-slot gate shared by the lifecycle sequences and control requests."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._holder = ""

    @property
    def holder(self) -> str:
        return self._holder

    def try_acquire(self, name: str) -> bool:
        if not self._lock.acquire(blocking=False):
            return False
        self._holder = name
        return True

    def release(self) -> None:
        self._holder = ""
        self._lock.release()

    @contextmanager
    def hold(self, name: str) -> Iterator[None]:
        # Lifecycle sequences wait for an in-flight control request to finish.
        self._lock.acquire()
        self._holder = name
        try:
            yield
        finally:
            self.release()


class _ReadinessPending(RecoverableError):
    def __init__(self, result: ExecutionResult) -> None:
        super().__init__(result.detail)
        self.result = result


class _ReadinessUnavailable(FatalError):
    """verify-port could not be launched at all; retrying cannot help."""

    def __init__(self, result: ExecutionResult) -> None:
        super().__init__(result.detail)
        self.result = result


def grant_execute_permission(path: Path) -> None:
    mode = path.stat().st_mode
    path.chmod(mode | _EXEC_BITS)


class LaunchOrchestrator:
    def __init__(
        self,
        *,
        profile: PlatformProfile,
        scripts: ScriptPaths,
        runtime: ContainerRuntime,
        progress: ProgressLog | None = None,
        readiness_policy: RetryPolicy | None = None,
        open_runtime_app: bool = False,
        stop_on_startup_failure: bool = False,
        gate: OperationGate | None = None,
        chmod: Callable[[Path], None] = grant_execute_permission,
        sleep: Callable[[float], None] | None = None,
    ) -> None:
        self.profile = profile
        self.scripts = scripts
        self.runtime = runtime
        self.progress = progress or ProgressLog()
        self.readiness_policy = readiness_policy or RetryPolicy(max_attempts=1)
        self.open_runtime_app = open_runtime_app
        self.stop_on_startup_failure = stop_on_startup_failure
        self.gate = gate or OperationGate()
        self.state = OrchestrationState()
        self._chmod = chmod
        self._sleep = sleep
        self._containers_started = False
        self._stop_result: ExecutionResult | None = None
        self.progress.subscribe(self.state.messages.append)
        self.progress.subscribe(lambda line: logger.info("progress %s", line))

    def _advance(self, phase: Phase) -> None:
        current = _STARTUP_ORDER.index(self.state.phase) if self.state.phase in _STARTUP_ORDER else -1
        if phase in _STARTUP_ORDER and _STARTUP_ORDER.index(phase) != current + 1:
            raise RuntimeError(f"Illegal transition {self.state.phase.value} -> {phase.value}")
        logger.debug("Orchestrator transition %s -> %s", self.state.phase.value, phase.value)
        self.state.phase = phase

    def _fail(self, error: LaunchDeckError) -> None:
        step = self.state.phase.value
        logger.error(
            "Startup failed phase=%s kind=%s message=%s hint=%s",
            step,
            error.kind.value,
            sanitize_log_text(error.message),
            sanitize_log_text(error.hint),
        )
        self.state.failure = error
        self.state.phase = Phase.FAILED
        self.progress.record_error(step, str(error))

    def run_startup(self) -> OrchestrationState:
        """Run the startup sequence; step failures end in the FAILED phase instead of raising."""
        if self.state.phase != Phase.IDLE:
            raise RuntimeError(f"Startup already ran (phase={self.state.phase.value})")
        with self.gate.hold("startup"):
            try:
                self._grant_permissions()
                self._check_runtime()
                self._start_containers()
                self._verify_port()
                self._advance(Phase.READY)
                self.progress.record_success(Phase.READY.value, "Application stack is ready")
            except LaunchDeckError as exc:
                self._fail(exc)
                self._rollback()
            except Exception as exc:
                logger.exception("Unexpected startup failure")
                self._fail(failure(FailureKind.UNEXPECTED, f"Unexpected startup failure: {exc}"))
                self._rollback()
        return self.state

    def _grant_permissions(self) -> None:
        self._advance(Phase.PERMISSIONS_GRANTING)
        step = Phase.PERMISSIONS_GRANTING.value
        if not self.profile.supports_exec_permission:
            self.progress.record_skipped(
                step,
                f"{self.profile.strategy.value} launches scripts without unix execute permission",
            )
            return

        self.progress.record_started(step, "Making helper scripts executable")
        scripts = list(self.scripts.all())

        def grant(item: tuple[str, Path]) -> str:
            name, path = item
            try:
                self._chmod(path)
            except OSError as exc:
                return f"{name}: {exc.strerror or exc}"
            return ""

        with ThreadPoolExecutor(max_workers=len(scripts)) as pool:
            outcomes = list(pool.map(grant, scripts))
        errors = [outcome for outcome in outcomes if outcome]
        if errors:
            raise failure(
                FailureKind.PERMISSION_GRANT_FAILED,
                f"Could not make helper script executable ({errors[0]})",
                hint=f"{len(errors)} of {len(scripts)} scripts failed; check the scripts directory.",
            )
        self.progress.record_success(step, f"{len(scripts)} scripts are executable")

    def _check_runtime(self) -> None:
        self._advance(Phase.RUNTIME_CHECKING)
        step = Phase.RUNTIME_CHECKING.value
        self.progress.record_started(step, "Checking container runtime")
        result = self.runtime.version()
        if not result.ok:
            raise failure(
                FailureKind.RUNTIME_UNAVAILABLE,
                "Docker is not installed or not accessible",
                hint=f"{result.detail}. Install Docker from {DOCKER_INSTALL_URL}",
            )
        self.progress.record_success(step, result.stdout.strip() or "Container runtime available")

        if self.open_runtime_app:
            opened = self.runtime.open_runtime_app()
            if opened.ok:
                self.progress.record_success("open-docker", "Container runtime application running")
            else:
                logger.warning("open-docker failed: %s", sanitize_log_text(opened.detail))
                self.progress.record_warning("open-docker", opened.detail)

    def _start_containers(self) -> None:
        self._advance(Phase.CONTAINERS_STARTING)
        step = Phase.CONTAINERS_STARTING.value
        self.progress.record_started(step, "Starting containers")
        result = self.runtime.up()
        if not result.ok:
            raise failure(
                FailureKind.CONTAINER_START_FAILED,
                "Containers could not be started",
                hint=result.detail,
            )
        self._containers_started = True
        if result.has_warning:
            self.progress.record_warning(step, result.stderr)
        self.progress.record_success(step, "Containers started")

    def _verify_port(self) -> None:
        self._advance(Phase.PORT_VERIFYING)
        step = Phase.PORT_VERIFYING.value
        policy = self.readiness_policy
        self.progress.record_started(step, f"Waiting for service port (attempts={policy.max_attempts})")

        def probe() -> ExecutionResult:
            result = self.runtime.verify_port()
            if not result.launched and not result.timed_out:
                raise _ReadinessUnavailable(result)
            if not result.ok:
                raise _ReadinessPending(result)
            return result

        def on_retry(attempt: int, exc: Exception) -> None:
            self.progress.record_warning(step, f"attempt {attempt}/{policy.max_attempts} not ready: {exc}")

        kwargs: dict[str, object] = {"policy": policy, "on_retry": on_retry}
        if self._sleep is not None:
            kwargs["sleep"] = self._sleep
        try:
            run_with_retry(probe, **kwargs)  # type: ignore[arg-type]
        except (_ReadinessPending, _ReadinessUnavailable) as exc:
            raise failure(
                FailureKind.PORT_NOT_READY,
                "Service port is not ready",
                hint=exc.result.detail or "verify-port failed",
            ) from exc
        self.progress.record_success(step, "Service port is accepting connections")

    def _rollback(self) -> None:
        if not (self.stop_on_startup_failure and self._containers_started):
            return
        self.progress.record_started("rollback", "Stopping containers started before the failure")
        result = self.runtime.stop()
        if result.ok:
            self.progress.record_success("rollback", "Containers stopped")
        else:
            self.progress.record_warning("rollback", result.detail)

    def shutdown(self) -> bool:
        """Stop the stack once; failures are logged and never block exit."""
        with self.gate.hold("shutdown"):
            if self._stop_result is not None:
                logger.debug("Shutdown already ran; skipping second stop")
                return self._stop_result.ok
            self.state.phase = Phase.CONTAINERS_STOPPING
            step = Phase.CONTAINERS_STOPPING.value
            self.progress.record_started(step, "Stopping containers")
            try:
                result = self.runtime.stop()
            except Exception:
                logger.exception("Unexpected failure while stopping containers")
                result = ExecutionResult(command=[], returncode=None, error="unexpected stop failure")
            self._stop_result = result
            if result.ok:
                self.progress.record_success(step, "Containers stopped")
            else:
                logger.warning(
                    "%s: %s",
                    FailureKind.CONTAINER_STOP_FAILED.value,
                    sanitize_log_text(result.detail),
                )
                self.progress.record_warning(step, f"Could not stop containers: {result.detail}")
            self.state.phase = Phase.STOPPED
            self.progress.record_success(Phase.STOPPED.value)
            return result.ok

    def request_start(self) -> ExecutionResult:
        logger.info("Manual container start requested")
        return self.runtime.up()

    def request_stop(self) -> ExecutionResult:
        logger.info("Manual container stop requested")
        return self.runtime.stop()


def readiness_policy_from(max_attempts: int, initial_backoff: float, multiplier: float) -> RetryPolicy:
    return RetryPolicy(
        max_attempts=max(1, max_attempts),
        initial_backoff_seconds=max(0.0, initial_backoff),
        multiplier=max(1.0, multiplier),
    )

