"""Window lifecycle sequencing around the orchestrator."""

from __future__ import annotations

import logging as py_logging
from collections.abc import Callable
from typing import Protocol

from launchdeck.constants import APP_TITLE, APP_URL
from launchdeck.errors import ExitCode, FailureKind, LaunchDeckError, failure, user_facing_error
from launchdeck.orchestrator import LaunchOrchestrator, OrchestrationState
from launchdeck.ui.control import ControlSurface
from launchdeck.ui.services.network import local_network_address
from launchdeck.ui.services.security import sanitize_log_text

logger = py_logging.getLogger(__name__)


class ProgressWindow(Protocol):
    def append_log(self, line: str) -> None: ...

    def close(self) -> None: ...


class ShareWindow(Protocol):
    def show_address(self, address: str) -> None: ...

    def close(self) -> None: ...


class MainWindow(Protocol):
    def close(self) -> None: ...


class WindowFactory(Protocol):
    def create_splash(self) -> ProgressWindow: ...

    def create_closing(self) -> ProgressWindow: ...

    def create_share(self) -> ShareWindow: ...

    def create_main(self, url: str) -> MainWindow: ...

    def show_error(self, title: str, message: str) -> None: ...

    def confirm_exit(self) -> bool: ...


class LifecycleCoordinator:
    def __init__(
        self,
        *,
        orchestrator: LaunchOrchestrator,
        control: ControlSurface,
        windows: WindowFactory,
        exit_app: Callable[[int], None],
        share_window_enabled: bool = True,
        confirm_exit: bool = True,
        address_lookup: Callable[[], str] = local_network_address,
    ) -> None:
        self.orchestrator = orchestrator
        self.control = control
        self.windows = windows
        self.exit_app = exit_app
        self.share_window_enabled = share_window_enabled
        self.confirm_exit = confirm_exit
        self.address_lookup = address_lookup
        self.splash: ProgressWindow | None = None
        self.closing: ProgressWindow | None = None
        self.share: ShareWindow | None = None
        self.main: MainWindow | None = None
        self.exiting = False
        self._unsubscribe: Callable[[], None] | None = None

    def _route_progress(self, window: ProgressWindow) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
        self._unsubscribe = self.control.log_messages.subscribe(window.append_log)

    def open_splash(self) -> ProgressWindow:
        if self.splash is None:
            self.splash = self.windows.create_splash()
            self._route_progress(self.splash)
            logger.debug("Splash window opened")
        return self.splash

    def run_startup(self) -> OrchestrationState:
        """Blocking startup for callers without a worker thread."""
        self.open_splash()
        state = self.orchestrator.run_startup()
        self.finish_startup(state)
        return state

    def finish_startup(self, state: OrchestrationState) -> None:
        if not state.ready:
            self.report_failure(
                state.failure or failure(FailureKind.UNEXPECTED, "Startup did not complete.")
            )
            return

        if self.main is None:
            self.main = self.windows.create_main(APP_URL)
            logger.info("Main window opened url=%s", APP_URL)
        if self.share_window_enabled and self.share is None:
            self.share = self.windows.create_share()
            self.control.share_ip_messages.subscribe(self.share.show_address, replay=True)
            self.control.publish_share_ip(self.address_lookup())
        if self.splash is not None:
            self.splash.close()
            self.splash = None
            logger.debug("Splash window closed")
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def report_failure(self, error: LaunchDeckError) -> None:
        """Fatal kinds end the process with their exit code; the rest only inform the user."""
        message = user_facing_error(error.message, hint=error.hint)
        if not error.fatal:
            logger.warning("%s: %s", error.kind.value, sanitize_log_text(message))
            self.windows.show_error(f"{APP_TITLE} Error", message)
            return
        logger.error("Startup aborted: %s", sanitize_log_text(message))
        self.windows.show_error(f"{APP_TITLE} Startup Error", message)
        self.exit_app(int(error.code))

    def content_load_failed(self, url: str, detail: str = "") -> None:
        self.report_failure(
            failure(
                FailureKind.CONTENT_LOAD_FAILED,
                f"Could not load {url}",
                hint=detail or "Check that the containers are running, then reload.",
            )
        )

    def begin_exit(self, *, from_main_window: bool = True) -> bool:
        """Intercept the first exit request; return False when the exit is declined or already running."""
        if self.exiting:
            return False
        if from_main_window and self.confirm_exit and not self.windows.confirm_exit():
            logger.debug("Exit cancelled by user")
            return False
        self.exiting = True
        self.closing = self.windows.create_closing()
        self._route_progress(self.closing)
        logger.info("Exit requested; stopping containers")
        return True

    def run_shutdown(self) -> bool:
        try:
            return self.orchestrator.shutdown()
        except Exception:
            logger.exception("Shutdown sequence failed")
            return False

    def complete_exit(self, stopped: bool = True) -> None:
        if not stopped:
            logger.warning("Exiting with containers possibly still running")
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        for window in (self.share, self.main, self.closing):
            if window is not None:
                window.close()
        self.share = None
        self.main = None
        self.closing = None
        self.exit_app(int(ExitCode.SUCCESS))

    def request_exit(self, *, from_main_window: bool = True) -> bool:
        if not self.begin_exit(from_main_window=from_main_window):
            return False
        self.complete_exit(self.run_shutdown())
        return True
