"""
Build and clean steps for native Rust functions.

``build`` runs cargo once per selected function, zips each binary as
``bootstrap`` and points the descriptor at the zip. ``clean`` later deletes
exactly the files recorded by a successful ``build``.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Sequence

from musl_pack.backends import CargoBackend, ZipArchiveBackend
from musl_pack.config_loader import LoadedService
from musl_pack.core import SUPPORTED_PROVIDER, Context
from musl_pack.descriptor import DescriptorPatch, apply_patch, compute_patch
from musl_pack.errors import CleanupError
from musl_pack.manifest import BuiltUnit
from musl_pack.units import select_units


@dataclass(frozen=True)
class BuildResult:
    units: tuple[BuiltUnit, ...]
    patch: DescriptorPatch


def build(ctx: Context, loaded: LoadedService) -> BuildResult | None:
    service = loaded.config
    if service.provider_name != SUPPORTED_PROVIDER:
        ctx.logger.warning(
            "Provider %r is not supported (only %r); skipping Rust build.",
            service.provider_name,
            SUPPORTED_PROVIDER,
        )
        return None

    units = select_units(service, function=ctx.options.function)

    cargo = CargoBackend(runner=ctx.runner, logger=ctx.logger, extra_flags=service.cargo_flags)
    archiver = ZipArchiveBackend(logger=ctx.logger)

    built: list[BuiltUnit] = []
    for unit in units:
        ctx.logger.info("Building native Rust %s func...", unit.handler)
        cargo.build(unit, cwd=ctx.service_root)
        if ctx.options.dry_run:
            ctx.logger.info("Would package %s as %s.", unit.binary_path, unit.archive_path)
        else:
            archiver.package(ctx.resolve(unit.binary_path), ctx.resolve(unit.archive_path))
            ctx.logger.info("Packaged %s as %s.", unit.binary_path, unit.archive_path)
        built.append(BuiltUnit.from_unit(unit))

    patch = compute_patch(service, built)
    apply_patch(loaded.raw, patch)
    return BuildResult(units=tuple(built), patch=patch)


def _artifact_paths(built: Sequence[BuiltUnit]) -> list[Path]:
    # Units sharing binary and profile share files; delete each once.
    seen: set[Path] = set()
    out: list[Path] = []
    for unit in built:
        for p in (unit.binary_path, unit.archive_path):
            if p in seen:
                continue
            seen.add(p)
            out.append(p)
    return out


def clean(ctx: Context, built: Sequence[BuiltUnit]) -> list[Path]:
    ctx.logger.info("Deleting package files.")
    removed: list[Path] = []
    for rel in _artifact_paths(built):
        path = ctx.resolve(rel)
        if ctx.options.dry_run:
            ctx.logger.info("Would delete %s.", rel)
            continue
        try:
            path.unlink()
        except OSError as e:
            raise CleanupError(f"Cannot delete {path}: {e}") from e
        ctx.logger.debug("Deleted %s", path)
        removed.append(path)
    return removed
