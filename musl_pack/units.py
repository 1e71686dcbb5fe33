from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from musl_pack.config_loader import FunctionConfig, ServiceConfig
from musl_pack.core import RUST_RUNTIME, TARGET_TRIPLE
from musl_pack.errors import ConfigurationError


class Profile(str, Enum):
    DEV = "dev"
    RELEASE = "release"

    @classmethod
    def parse(cls, value: str | None) -> "Profile":
        if value is None or value == "release":
            return cls.RELEASE
        if value in {"dev", "debug"}:
            return cls.DEV
        raise ConfigurationError(
            f"Unknown rust profile {value!r} (expected 'dev', 'debug' or 'release')"
        )

    @property
    def output_dir_name(self) -> str:
        return "debug" if self is Profile.DEV else "release"


def split_handler(handler: str) -> tuple[str, str]:
    """
    Split a ``package[.binary]`` handler.

    ``"hello-pkg.hello-bin"`` -> ``("hello-pkg", "hello-bin")``; without a dot
    (or with nothing after it) the binary is named after the package.
    """
    parts = handler.split(".")
    package = parts[0]
    if not package:
        raise ConfigurationError(f"Handler {handler!r} must look like 'package' or 'package.binary'")
    binary = parts[1] if len(parts) > 1 and parts[1] else package
    return package, binary


@dataclass(frozen=True)
class BuildUnit:
    name: str
    handler: str
    package: str
    binary: str
    profile: Profile
    runtime: str | None  # own declaration, None when inherited from provider

    @property
    def output_dir(self) -> Path:
        return Path("target") / TARGET_TRIPLE / self.profile.output_dir_name

    @property
    def binary_path(self) -> Path:
        return self.output_dir / self.binary

    @property
    def archive_path(self) -> Path:
        return self.output_dir / f"{self.binary}.zip"


def _to_unit(fn: FunctionConfig, service: ServiceConfig) -> BuildUnit:
    package, binary = split_handler(fn.handler)
    return BuildUnit(
        name=fn.name,
        handler=fn.handler,
        package=package,
        binary=binary,
        profile=Profile.parse(fn.profile or service.profile),
        runtime=fn.runtime,
    )


def select_units(service: ServiceConfig, *, function: str | None = None) -> list[BuildUnit]:
    if function is not None:
        chosen = service.function(function)
        if chosen is None:
            raise ConfigurationError(f"Function {function!r} is not declared in the service")
        candidates = [chosen]
    else:
        candidates = list(service.functions)

    units = [
        _to_unit(fn, service)
        for fn in candidates
        if (fn.runtime or service.provider_runtime) == RUST_RUNTIME
    ]
    if not units:
        raise ConfigurationError(
            "No Rust functions found. "
            f"Use 'runtime: {RUST_RUNTIME}' in global or function configuration to build with musl-pack."
        )
    return units
