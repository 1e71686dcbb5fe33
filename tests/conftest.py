"""
Shared fixtures: a recording stand-in for cargo and helpers for building
service descriptors in a temporary service root.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Iterable, Mapping

import pytest

from musl_pack.core import TARGET_TRIPLE, Context, Options
from musl_pack.util import RunResult


class FakeCargoRunner:
    """
    Records every command instead of spawning it.

    On a successful "build" it drops a fake ELF for each name in ``binaries``
    into the profile directory cargo would have used.
    """

    def __init__(
        self,
        *,
        binaries: Iterable[str] = (),
        returncode: int = 0,
        spawn_error: OSError | None = None,
        dry_run: bool = False,
    ) -> None:
        self.binaries = list(binaries)
        self.returncode = returncode
        self.spawn_error = spawn_error
        self.calls: list[dict[str, Any]] = []
        self._dry_run = dry_run

    def run(self, args, *, cwd=None) -> RunResult:
        argv = list(args)
        self.calls.append({"args": argv, "cwd": cwd})
        if self.spawn_error is not None:
            raise self.spawn_error
        if self.returncode == 0 and not self._dry_run and cwd is not None:
            profile_dir = "release" if "--release" in argv else "debug"
            out = Path(cwd) / "target" / TARGET_TRIPLE / profile_dir
            out.mkdir(parents=True, exist_ok=True)
            for name in self.binaries:
                (out / name).write_bytes(b"\x7fELF fake " + name.encode())
        return RunResult(args=argv, returncode=self.returncode)


def make_service(
    functions: Mapping[str, Mapping[str, Any]],
    *,
    provider_runtime: str | None = None,
    provider_name: str = "aws",
    profile: str | None = None,
    cargo_flags: Any = None,
) -> dict[str, Any]:
    provider: dict[str, Any] = {"name": provider_name}
    if provider_runtime is not None:
        provider["runtime"] = provider_runtime
    raw: dict[str, Any] = {
        "service": "demo",
        "provider": provider,
        "functions": {name: dict(fn) for name, fn in functions.items()},
    }
    rust: dict[str, Any] = {}
    if profile is not None:
        rust["profile"] = profile
    if cargo_flags is not None:
        rust["cargoFlags"] = cargo_flags
    if rust:
        raw["custom"] = {"rust": rust}
    return raw


@pytest.fixture
def logger() -> logging.Logger:
    return logging.getLogger("musl-pack.tests")


@pytest.fixture
def make_ctx(tmp_path: Path, logger: logging.Logger):
    def _make(runner, *, dry_run: bool = False, function: str | None = None) -> Context:
        return Context(
            service_root=tmp_path,
            logger=logger,
            runner=runner,
            options=Options(dry_run=dry_run, function=function),
        )

    return _make
