"""Process-wide launcher context built once at startup."""

from __future__ import annotations

import logging as py_logging
import os
from collections.abc import Callable, MutableMapping
from dataclasses import dataclass
from pathlib import Path

from launchdeck.config import LauncherConfig
from launchdeck.docker.runtime import ContainerRuntime, find_runtime_binary
from launchdeck.orchestrator import LaunchOrchestrator, OperationGate, readiness_policy_from
from launchdeck.runtime.environment import NormalizationResult, normalize_environment
from launchdeck.runtime.executor import ProcessExecutor
from launchdeck.runtime.profile import PlatformProfile, PlatformResolver, resolve_platform_profile
from launchdeck.runtime.scripts import ScriptPaths, default_scripts_dir
from launchdeck.ui.widgets.progress_log import ProgressLog

logger = py_logging.getLogger(__name__)


@dataclass
class ApplicationContext:
    config: LauncherConfig
    profile: PlatformProfile
    scripts: ScriptPaths
    environ: MutableMapping[str, str]
    executor: ProcessExecutor
    runtime: ContainerRuntime
    progress: ProgressLog
    gate: OperationGate
    normalization: NormalizationResult

    def build_orchestrator(self, *, sleep: Callable[[float], None] | None = None) -> LaunchOrchestrator:
        return LaunchOrchestrator(
            profile=self.profile,
            scripts=self.scripts,
            runtime=self.runtime,
            progress=self.progress,
            readiness_policy=readiness_policy_from(
                self.config.readiness_max_attempts,
                self.config.readiness_initial_backoff_seconds,
                self.config.readiness_backoff_multiplier,
            ),
            open_runtime_app=self.config.open_runtime_app,
            stop_on_startup_failure=self.config.stop_on_startup_failure,
            gate=self.gate,
            sleep=sleep,
        )


def build_context(
    config: LauncherConfig,
    *,
    resolver: PlatformResolver | None = None,
    environ: MutableMapping[str, str] | None = None,
    executor: ProcessExecutor | None = None,
    system_name: str | None = None,
) -> ApplicationContext:
    """Resolve the platform once, normalize PATH once, and wire the runtime adapter.

    Raises ``LaunchDeckError`` when no usable interpreter exists; nothing else
    has run at that point.
    """
    platform_resolver = resolver or PlatformResolver(
        lambda: resolve_platform_profile(
            system_name=system_name,
            windows_strategy=config.windows_interpreter,
            wsl_distribution=config.wsl_distribution,
        )
    )
    profile = platform_resolver.resolve()

    target_environ = os.environ if environ is None else environ
    process_executor = executor or ProcessExecutor(timeout_seconds=config.command_timeout_seconds)
    normalization = normalize_environment(
        target_environ,
        system_name=system_name,
        executor=process_executor,
    )

    scripts_dir = Path(config.scripts_dir) if config.scripts_dir else default_scripts_dir()
    scripts = ScriptPaths.from_directory(scripts_dir)
    runtime_binary = find_runtime_binary(
        profile.family,
        configured=config.runtime_binary,
        path=target_environ.get("PATH"),
    )
    logger.info(
        "Launcher context family=%s strategy=%s scripts=%s runtime=%s",
        profile.family.value,
        profile.strategy.value,
        scripts_dir,
        runtime_binary,
    )
    runtime = ContainerRuntime(
        profile,
        scripts,
        process_executor,
        environ=target_environ,
        runtime_binary=runtime_binary,
        probe_timeout_seconds=config.probe_timeout_seconds,
    )
    return ApplicationContext(
        config=config,
        profile=profile,
        scripts=scripts,
        environ=target_environ,
        executor=process_executor,
        runtime=runtime,
        progress=ProgressLog(),
        gate=OperationGate(),
        normalization=normalization,
    )
