from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Sequence

from musl_pack.config_loader import ServiceConfig
from musl_pack.core import BASE_RUNTIME, RUST_RUNTIME
from musl_pack.manifest import BuiltUnit


@dataclass(frozen=True)
class DescriptorPatch:
    """
    Everything a build changes in the service descriptor.

    Deployment tooling after us must never see the ``rust`` runtime tag, so
    every place it was declared gets rewritten to ``provided``.
    """

    artifacts: Mapping[str, str] = field(default_factory=dict)  # function -> zip path
    runtimes: Mapping[str, str] = field(default_factory=dict)  # function -> new runtime
    provider_runtime: str | None = None  # None: leave provider.runtime alone


def compute_patch(service: ServiceConfig, built: Sequence[BuiltUnit]) -> DescriptorPatch:
    artifacts: dict[str, str] = {}
    runtimes: dict[str, str] = {}
    for unit in built:
        artifacts[unit.name] = unit.archive_path.as_posix()
        fn = service.function(unit.name)
        # Units inheriting the provider runtime are covered by the provider rewrite.
        if fn is not None and fn.runtime == RUST_RUNTIME:
            runtimes[unit.name] = BASE_RUNTIME

    provider_runtime = BASE_RUNTIME if service.provider_runtime == RUST_RUNTIME else None
    return DescriptorPatch(
        artifacts=artifacts,
        runtimes=runtimes,
        provider_runtime=provider_runtime,
    )


def apply_patch(raw: dict[str, Any], patch: DescriptorPatch) -> dict[str, Any]:
    functions = raw.setdefault("functions", {})
    for name, artifact in patch.artifacts.items():
        fn = functions.setdefault(name, {})
        package = fn.get("package")
        if not isinstance(package, dict):
            package = {}
            fn["package"] = package
        package["artifact"] = artifact

    for name, runtime in patch.runtimes.items():
        functions.setdefault(name, {})["runtime"] = runtime

    if patch.provider_runtime is not None:
        raw.setdefault("provider", {})["runtime"] = patch.provider_runtime
    return raw
