"""PySide6 shell: splash, main, share and closing windows."""

from __future__ import annotations

import logging as py_logging
import sys
from pathlib import Path

from launchdeck.config import LauncherConfig, load_config
from launchdeck.constants import (
    APP_TITLE,
    CLOSING_WINDOW_SIZE,
    MAIN_WINDOW_SIZE,
    SHARE_WINDOW_SIZE,
    SPLASH_WINDOW_SIZE,
)
from launchdeck.context import ApplicationContext, build_context
from launchdeck.errors import ExitCode, LaunchDeckError
from launchdeck.ui.control import ControlSurface
from launchdeck.ui.coordinator import LifecycleCoordinator
from launchdeck.ui.services.network import share_url

logger = py_logging.getLogger(__name__)

BRIDGE_OBJECT_NAME = "launchdeck"

# Wraps the QWebChannel object as a promise-based API for page content.
BRIDGE_BOOTSTRAP_JS = """
(function () {
  if (typeof QWebChannel === "undefined" || typeof qt === "undefined") {
    return;
  }
  new QWebChannel(qt.webChannelTransport, function (channel) {
    var bridge = channel.objects.%(name)s;
    var pending = {};
    var counter = 0;
    bridge.controlResult.connect(function (requestId, payload) {
      var resolve = pending[requestId];
      if (resolve) {
        delete pending[requestId];
        resolve(payload);
      }
    });
    function call(action) {
      return new Promise(function (resolve) {
        counter += 1;
        var requestId = String(counter);
        pending[requestId] = resolve;
        bridge.request(requestId, action);
      });
    }
    window.launchDeckAPI = {
      startContainers: function () { return call("start-containers"); },
      stopContainers: function () { return call("stop-containers"); },
      onLogMessage: function (callback) { bridge.logMessage.connect(callback); },
      onShareIpMessage: function (callback) { bridge.shareIpMessage.connect(callback); },
      onDockerStatus: function (callback) { bridge.dockerStatus.connect(callback); }
    };
    window.dispatchEvent(new Event("launchdeck-ready"));
  });
})();
""" % {"name": BRIDGE_OBJECT_NAME}


def apply_overrides(
    config: LauncherConfig,
    *,
    share_window: bool | None = None,
    scripts_dir: str | Path | None = None,
) -> LauncherConfig:
    if share_window is not None:
        config.share_window_enabled = share_window
    if scripts_dir is not None:
        resolved = Path(scripts_dir).expanduser()
        if not resolved.is_dir():
            raise LaunchDeckError(
                f"Scripts directory does not exist: {resolved}",
                code=ExitCode.VALIDATION_ERROR,
                hint="Pass --scripts-dir a directory that holds the launcher scripts.",
            )
        config.scripts_dir = str(resolved)
    return config


def launch_app(
    *,
    config_path: str | Path | None = None,
    share_window: bool | None = None,
    scripts_dir: str | Path | None = None,
) -> int:
    """Resolve the platform, then hand the context to the Qt shell."""
    config = apply_overrides(
        load_config(config_path, required=config_path is not None),
        share_window=share_window,
        scripts_dir=scripts_dir,
    )
    context = build_context(config)
    return run_qt_app(context)


def run_qt_app(context: ApplicationContext) -> int:  # pragma: no cover
    try:
        from PySide6.QtCore import QFile, QIODevice, QObject, Qt, QThread, QTimer, QUrl, Signal, Slot
        from PySide6.QtWebChannel import QWebChannel
        from PySide6.QtWebEngineCore import QWebEngineScript
        from PySide6.QtWebEngineWidgets import QWebEngineView
        from PySide6.QtWidgets import (
            QApplication,
            QLabel,
            QMainWindow,
            QMessageBox,
            QPlainTextEdit,
            QProgressBar,
            QVBoxLayout,
            QWidget,
        )
    except ImportError as exc:
        raise LaunchDeckError(
            "PySide6 is not installed; the launcher window cannot open.",
            code=ExitCode.RUNTIME_ERROR,
            hint="Run `pip install PySide6` and retry.",
        ) from exc

    orchestrator = context.build_orchestrator()
    control = ControlSurface(orchestrator)

    class StartupWorker(QObject):
        finished = Signal(object)  # OrchestrationState

        @Slot()
        def run(self) -> None:
            self.finished.emit(orchestrator.run_startup())

    class ShutdownWorker(QObject):
        finished = Signal(bool)

        @Slot()
        def run(self) -> None:
            self.finished.emit(coordinator.run_shutdown())

    class ControlWorker(QObject):
        finished = Signal(str, object)  # request_id, payload

        def __init__(self, request_id: str, action: str) -> None:
            super().__init__()
            self.request_id = request_id
            self.action = action

        @Slot()
        def run(self) -> None:
            self.finished.emit(self.request_id, control.dispatch(self.action))

    class ProgressWidget(QWidget):
        line_received = Signal(str)

        def __init__(self, title: str, heading: str, size: tuple[int, int]) -> None:
            super().__init__()
            self._allow_close = False
            self.setWindowTitle(title)
            self.resize(*size)
            layout = QVBoxLayout(self)
            label = QLabel(heading)
            label.setStyleSheet("font-size: 15px; font-weight: 600;")
            layout.addWidget(label)
            bar = QProgressBar()
            bar.setRange(0, 0)
            layout.addWidget(bar)
            self.log_view = QPlainTextEdit()
            self.log_view.setReadOnly(True)
            layout.addWidget(self.log_view, 1)
            # Lines arrive from worker threads; the queued signal keeps widget access on the GUI thread.
            self.line_received.connect(self._append)

        def append_log(self, line: str) -> None:
            self.line_received.emit(line)

        @Slot(str)
        def _append(self, line: str) -> None:
            self.log_view.appendPlainText(line)

        def close(self) -> bool:  # type: ignore[override]
            self._allow_close = True
            return super().close()

        def closeEvent(self, event) -> None:  # type: ignore[override]
            if self._allow_close:
                event.accept()
            else:
                event.ignore()

    class ShareWidget(QWidget):
        address_received = Signal(str)

        def __init__(self) -> None:
            super().__init__()
            self.setWindowTitle(f"{APP_TITLE} Share")
            self.resize(*SHARE_WINDOW_SIZE)
            layout = QVBoxLayout(self)
            layout.addWidget(QLabel("Other devices on this network can open:"))
            self.address_label = QLabel("Looking up network address...")
            self.address_label.setTextInteractionFlags(Qt.TextInteractionFlag.TextSelectableByMouse)
            self.address_label.setStyleSheet("font-size: 18px; font-weight: 600;")
            layout.addWidget(self.address_label)
            layout.addStretch(1)
            self.address_received.connect(self._show)

        def show_address(self, address: str) -> None:
            self.address_received.emit(address)

        @Slot(str)
        def _show(self, address: str) -> None:
            self.address_label.setText(share_url(address))

    class Bridge(QObject):
        logMessage = Signal(str)
        shareIpMessage = Signal(str)
        dockerStatus = Signal(str)
        controlResult = Signal(str, "QVariantMap")

        def __init__(self) -> None:
            super().__init__()
            self._threads: dict[str, tuple[QThread, ControlWorker]] = {}

        @Slot(str, str)
        def request(self, request_id: str, action: str) -> None:
            logger.debug("Bridge request id=%s action=%s", request_id, action)
            thread = QThread(self)
            worker = ControlWorker(request_id, action)
            worker.moveToThread(thread)

            thread.started.connect(worker.run)
            worker.finished.connect(self._on_result)
            worker.finished.connect(thread.quit)
            worker.finished.connect(worker.deleteLater)
            thread.finished.connect(thread.deleteLater)
            thread.finished.connect(lambda request_id=request_id: self._threads.pop(request_id, None))

            self._threads[request_id] = (thread, worker)
            thread.start()

        @Slot(str, object)
        def _on_result(self, request_id: str, payload: object) -> None:
            self.controlResult.emit(request_id, dict(payload) if isinstance(payload, dict) else {})

    class MainWindow(QMainWindow):
        def __init__(self, url: str) -> None:
            super().__init__()
            self.setWindowTitle(APP_TITLE)
            self.resize(*MAIN_WINDOW_SIZE)
            self.url = url
            self.view = QWebEngineView(self)
            self.setCentralWidget(self.view)

            self.channel = QWebChannel(self.view.page())
            self.channel.registerObject(BRIDGE_OBJECT_NAME, bridge)
            self.view.page().setWebChannel(self.channel)
            self._install_bridge_script()
            self.view.loadFinished.connect(self._on_load_finished)
            self.view.load(QUrl(url))

        def _install_bridge_script(self) -> None:
            source = QFile(":/qtwebchannel/qwebchannel.js")
            if not source.open(QIODevice.OpenModeFlag.ReadOnly):
                logger.warning("qwebchannel.js resource unavailable; control surface disabled")
                return
            channel_js = bytes(source.readAll()).decode("utf-8")
            source.close()
            script = QWebEngineScript()
            script.setName("launchdeck-bridge")
            script.setSourceCode(channel_js + "\n" + BRIDGE_BOOTSTRAP_JS)
            script.setInjectionPoint(QWebEngineScript.InjectionPoint.DocumentReady)
            script.setWorldId(QWebEngineScript.ScriptWorldId.MainWorld)
            script.setRunsOnSubFrames(False)
            self.view.page().scripts().insert(script)

        @Slot(bool)
        def _on_load_finished(self, ok: bool) -> None:
            if not ok:
                coordinator.content_load_failed(self.url, "The local service did not respond.")

        def closeEvent(self, event) -> None:  # type: ignore[override]
            if coordinator.exiting:
                event.accept()
                return
            event.ignore()
            start_exit(from_main_window=True)

    class QtWindowFactory:
        def create_splash(self) -> ProgressWidget:
            window = ProgressWidget(APP_TITLE, "Starting application stack...", SPLASH_WINDOW_SIZE)
            window.setWindowFlag(Qt.WindowType.WindowStaysOnTopHint, True)
            window.show()
            return window

        def create_closing(self) -> ProgressWidget:
            window = ProgressWidget(f"{APP_TITLE} Closing", "Stopping application stack...", CLOSING_WINDOW_SIZE)
            window.show()
            return window

        def create_share(self) -> ShareWidget:
            window = ShareWidget()
            window.show()
            return window

        def create_main(self, url: str) -> MainWindow:
            window = MainWindow(url)
            window.show()
            return window

        def show_error(self, title: str, message: str) -> None:
            QMessageBox.critical(None, title, message)

        def confirm_exit(self) -> bool:
            answer = QMessageBox.question(
                None,
                f"Quit {APP_TITLE}",
                "Stop the application containers and quit?",
                QMessageBox.StandardButton.Yes | QMessageBox.StandardButton.No,
                QMessageBox.StandardButton.No,
            )
            return answer == QMessageBox.StandardButton.Yes

    app = QApplication.instance() or QApplication(sys.argv)
    app.setApplicationName(APP_TITLE)
    app.setQuitOnLastWindowClosed(False)
    bridge = Bridge()
    control.log_messages.subscribe(bridge.logMessage.emit)
    control.docker_status.subscribe(bridge.dockerStatus.emit)
    control.share_ip_messages.subscribe(bridge.shareIpMessage.emit)

    coordinator = LifecycleCoordinator(
        orchestrator=orchestrator,
        control=control,
        windows=QtWindowFactory(),
        exit_app=app.exit,
        share_window_enabled=context.config.share_window_enabled,
        confirm_exit=context.config.confirm_exit,
    )

    class ShellController(QObject):
        """Owns the lifecycle worker threads; slots run on the GUI thread."""

        def __init__(self) -> None:
            super().__init__()
            self._threads: list[QThread] = []
            self._workers: list[QObject] = []

        def _run(self, worker: QObject, on_finished) -> None:
            thread = QThread(self)
            worker.moveToThread(thread)

            thread.started.connect(worker.run)
            worker.finished.connect(on_finished)
            worker.finished.connect(thread.quit)
            worker.finished.connect(worker.deleteLater)

            self._threads.append(thread)
            self._workers.append(worker)
            thread.start()

        @Slot()
        def start_startup(self) -> None:
            coordinator.open_splash()
            self._run(StartupWorker(), self._on_startup_finished)

        def start_exit(self, *, from_main_window: bool) -> None:
            if not coordinator.begin_exit(from_main_window=from_main_window):
                return
            self._run(ShutdownWorker(), self._on_shutdown_finished)

        @Slot(object)
        def _on_startup_finished(self, state: object) -> None:
            coordinator.finish_startup(state)  # type: ignore[arg-type]

        @Slot(bool)
        def _on_shutdown_finished(self, stopped: bool) -> None:
            coordinator.complete_exit(stopped)

        def wait(self, timeout_ms: int = 2000) -> None:
            for thread in self._threads:
                thread.wait(timeout_ms)

    controller = ShellController()

    def start_exit(*, from_main_window: bool) -> None:
        controller.start_exit(from_main_window=from_main_window)

    app.aboutToQuit.connect(lambda: logger.info("Qt event loop finished"))
    QTimer.singleShot(0, controller.start_startup)
    code = app.exec()
    controller.wait()
    return int(code)
