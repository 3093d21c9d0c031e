from __future__ import annotations

import pytest

from launchdeck.errors import ExitCode, FailureKind, LaunchDeckError
from launchdeck.runtime.profile import (
    GIT_BASH_LOCATIONS,
    InterpreterStrategy,
    OsFamily,
    PlatformProfile,
    PlatformResolver,
    resolve_platform_profile,
    translate_windows_path,
)


def _nothing_exists(_: str) -> bool:
    return False


def test_macos_uses_system_bash() -> None:
    profile = resolve_platform_profile(
        system_name="Darwin",
        exists=lambda path: path == "/bin/bash",
        which=lambda _: None,
    )

    assert profile.family is OsFamily.MACOS
    assert profile.strategy is InterpreterStrategy.POSIX
    assert profile.interpreter == ("/bin/bash", "-c")
    assert profile.supports_exec_permission
    assert profile.translate_path("/Applications/LaunchDeck/bin/up") == "/Applications/LaunchDeck/bin/up"


def test_linux_falls_back_to_bash_on_path() -> None:
    profile = resolve_platform_profile(
        system_name="Linux",
        exists=_nothing_exists,
        which=lambda name: "/nix/store/bash/bin/bash" if name == "bash" else None,
    )

    assert profile.family is OsFamily.LINUX
    assert profile.interpreter == ("/nix/store/bash/bin/bash", "-c")


def test_posix_without_bash_raises_interpreter_not_found() -> None:
    with pytest.raises(LaunchDeckError) as exc_info:
        resolve_platform_profile(system_name="Darwin", exists=_nothing_exists, which=lambda _: None)

    assert exc_info.value.kind is FailureKind.INTERPRETER_NOT_FOUND


def test_windows_prefers_git_bash() -> None:
    profile = resolve_platform_profile(
        system_name="Windows",
        exists=lambda path: path == GIT_BASH_LOCATIONS[1],
        which=lambda _: None,
    )

    assert profile.strategy is InterpreterStrategy.GIT_BASH
    assert profile.interpreter == (GIT_BASH_LOCATIONS[1], "-c")
    assert not profile.supports_exec_permission
    assert profile.translate_path(r"C:\Program Files\LaunchDeck\bin\up") == "/c/Program Files/LaunchDeck/bin/up"


def test_windows_without_git_bash_raises_with_download_hint() -> None:
    with pytest.raises(LaunchDeckError) as exc_info:
        resolve_platform_profile(system_name="Windows", exists=_nothing_exists, which=lambda _: None)

    err = exc_info.value
    assert err.kind is FailureKind.INTERPRETER_NOT_FOUND
    assert err.code == ExitCode.INTERPRETER_NOT_FOUND
    assert "https://git-scm.com/download/win" in err.hint


def test_windows_wsl_strategy_uses_distribution() -> None:
    profile = resolve_platform_profile(
        system_name="Windows",
        windows_strategy="wsl",
        wsl_distribution="Ubuntu",
        exists=_nothing_exists,
        which=lambda name: r"C:\Windows\System32\wsl.exe" if name == "wsl.exe" else None,
    )

    assert profile.strategy is InterpreterStrategy.WSL
    assert profile.interpreter == (r"C:\Windows\System32\wsl.exe", "-d", "Ubuntu", "--", "bash", "-c")
    assert profile.translate_path(r"D:\stack\bin\stop") == "/mnt/d/stack/bin/stop"


def test_windows_wsl_strategy_without_wsl_raises() -> None:
    with pytest.raises(LaunchDeckError) as exc_info:
        resolve_platform_profile(
            system_name="Windows",
            windows_strategy="wsl",
            exists=_nothing_exists,
            which=lambda _: None,
        )

    assert exc_info.value.kind is FailureKind.INTERPRETER_NOT_FOUND


def test_unknown_system_is_unsupported() -> None:
    with pytest.raises(LaunchDeckError) as exc_info:
        resolve_platform_profile(system_name="SunOS", exists=_nothing_exists, which=lambda _: None)

    assert exc_info.value.kind is FailureKind.UNSUPPORTED_PLATFORM
    assert exc_info.value.code == ExitCode.UNSUPPORTED_PLATFORM


def test_translate_windows_path_variants() -> None:
    assert translate_windows_path("C:\\", "/") == "/c"
    assert translate_windows_path("c:/a//b/", "/mnt/") == "/mnt/c/a/b"
    assert translate_windows_path(r"\\server\share\up", "/") == "//server/share/up"


def test_script_command_quotes_translated_path() -> None:
    profile = PlatformProfile(
        family=OsFamily.WINDOWS,
        strategy=InterpreterStrategy.GIT_BASH,
        interpreter=(GIT_BASH_LOCATIONS[0], "-c"),
        mount_prefix="/",
    )

    assert profile.script_command(r"C:\Program Files\LaunchDeck\bin\up") == [
        GIT_BASH_LOCATIONS[0],
        "-c",
        "'/c/Program Files/LaunchDeck/bin/up'",
    ]


def test_resolver_runs_resolution_once() -> None:
    calls = {"count": 0}
    profile = PlatformProfile(OsFamily.LINUX, InterpreterStrategy.POSIX, ("/bin/bash", "-c"))

    def resolve() -> PlatformProfile:
        calls["count"] += 1
        return profile

    resolver = PlatformResolver(resolve)
    assert not resolver.resolved
    assert resolver.resolve() is profile
    assert resolver.resolve() is profile
    assert resolver.resolved
    assert calls["count"] == 1


def test_resolver_caches_failures() -> None:
    calls = {"count": 0}

    def resolve() -> PlatformProfile:
        calls["count"] += 1
        return resolve_platform_profile(system_name="Windows", exists=_nothing_exists, which=lambda _: None)

    resolver = PlatformResolver(resolve)
    for _ in range(2):
        with pytest.raises(LaunchDeckError):
            resolver.resolve()
    assert calls["count"] == 1
