from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from musl_pack.util import CommandRunner

RUST_RUNTIME = "rust"
# AWS custom runtime; downstream tooling only understands this one.
BASE_RUNTIME = "provided"
SUPPORTED_PROVIDER = "aws"
TARGET_TRIPLE = "x86_64-unknown-linux-musl"
# The provided runtime executes a file with exactly this name.
BOOTSTRAP_NAME = "bootstrap"


@dataclass(frozen=True)
class Options:
    dry_run: bool
    function: str | None = None  # build only this function


@dataclass(frozen=True)
class Context:
    service_root: Path
    logger: logging.Logger
    runner: CommandRunner
    options: Options

    def resolve(self, rel: Path) -> Path:
        return rel if rel.is_absolute() else self.service_root / rel


def build_context(
    *,
    service_root: Path,
    options: Options,
    logger: logging.Logger,
) -> Context:
    runner = CommandRunner(dry_run=options.dry_run, logger=logger)
    return Context(
        service_root=service_root.resolve(),
        logger=logger,
        runner=runner,
        options=options,
    )
