from __future__ import annotations

import os
import shlex
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Sequence


def expand_path(s: str) -> Path:
    # Expand ~ and $VARS
    return Path(os.path.expandvars(os.path.expanduser(s)))


def sh_join(args: Sequence[str]) -> str:
    return shlex.join(list(args))


def split_flags(value: str | Sequence[str] | None) -> list[str]:
    """
    Normalize extra command-line flags from config.

    Accepts a shell-quoted string ("--features foo --locked") or a list of
    already-split arguments.
    """
    if value is None:
        return []
    if isinstance(value, str):
        return shlex.split(value)
    return [str(x) for x in value]


@dataclass(frozen=True)
class RunResult:
    args: list[str]
    returncode: int


class CommandRunner:
    def __init__(self, *, dry_run: bool, logger) -> None:
        self._dry_run = dry_run
        self._logger = logger

    def run(self, args: Iterable[str], *, cwd: Path | None = None) -> RunResult:
        """
        Run ``args`` to completion with stdin closed.

        Output is not captured: the child writes straight to our terminal so
        compiler diagnostics show up live. Failure to spawn raises ``OSError``.
        """
        argv = list(args)

        self._logger.debug("RUN %s", sh_join(argv))
        if self._dry_run:
            return RunResult(args=argv, returncode=0)

        cp = subprocess.run(
            argv,
            stdin=subprocess.DEVNULL,
            check=False,
            cwd=str(cwd) if cwd is not None else None,
        )
        return RunResult(args=argv, returncode=cp.returncode)
