from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from musl_pack.core import TARGET_TRIPLE
from musl_pack.errors import ToolchainError
from musl_pack.units import BuildUnit, Profile
from musl_pack.util import CommandRunner, sh_join


@dataclass(frozen=True)
class CargoBackend:
    runner: CommandRunner
    logger: logging.Logger
    extra_flags: tuple[str, ...] = ()

    def command(self, profile: Profile) -> list[str]:
        args = ["cargo", "build"]
        if profile is Profile.RELEASE:
            args.append("--release")
        args.extend(["--target", TARGET_TRIPLE])
        args.extend(self.extra_flags)
        return args

    def build(self, unit: BuildUnit, *, cwd: Path) -> None:
        args = self.command(unit.profile)
        self.logger.info("Running cargo %s build.", unit.profile.value)
        try:
            res = self.runner.run(args, cwd=cwd)
        except OSError as e:
            raise ToolchainError(f"Could not start `{sh_join(args)}` for {unit.handler}: {e}") from e
        if res.returncode != 0:
            raise ToolchainError(
                f"Rust build of {unit.handler} failed with exit status {res.returncode}.",
                returncode=res.returncode,
            )
