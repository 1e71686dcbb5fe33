from __future__ import annotations

import argparse
import logging
from pathlib import Path

from musl_pack import pipeline
from musl_pack.config_loader import dump_service, find_service_file, load_service_file
from musl_pack.core import Context, Options, build_context
from musl_pack.errors import ConfigurationError, MuslPackError
from musl_pack.manifest import BuildManifest, default_manifest_path
from musl_pack.util import expand_path

_OUTPUT_SUFFIXES = {".json", ".yaml", ".yml"}


def _setup_logger(verbose: bool) -> logging.Logger:
    logger = logging.getLogger("musl-pack")
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)
    handler = logging.StreamHandler()
    handler.setLevel(logging.DEBUG if verbose else logging.INFO)
    handler.setFormatter(logging.Formatter("[%(levelname)s] %(message)s"))
    logger.handlers[:] = [handler]
    logger.propagate = False
    return logger


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="musl-pack")
    parser.add_argument(
        "--service-dir",
        type=expand_path,
        default=Path("."),
        help="Service root: cargo runs here and artifact paths are relative to it. Default: current directory.",
    )
    parser.add_argument(
        "--service-file",
        type=expand_path,
        default=None,
        help="Service descriptor (*.yml, *.yaml, *.json, *.toml). Default: serverless.* in --service-dir.",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Log actions but do not run cargo or touch files.",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Verbose logs.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    p_build = sub.add_parser("build", help="Build, zip and wire up Rust functions.")
    p_build.add_argument(
        "--function",
        default=None,
        help="Only build this function.",
    )
    p_build.add_argument(
        "--output",
        type=expand_path,
        default=None,
        help="Where to write the patched descriptor (*.json, *.yaml, *.yml). "
        "Default: <service-dir>/.musl-pack/<service-file stem>.json",
    )

    sub.add_parser("clean", help="Delete binaries and archives recorded by earlier builds.")
    return parser


def _cmd_build(ctx: Context, args: argparse.Namespace, manifest: BuildManifest) -> int:
    logger = ctx.logger
    try:
        service_file = args.service_file or find_service_file(ctx.service_root)
        loaded = load_service_file(service_file)
    except ConfigurationError as e:
        logger.error("Failed to load service file: %s", e)
        return 2

    output: Path = args.output or (ctx.service_root / ".musl-pack" / f"{service_file.stem}.json")
    if output.suffix.lower() not in _OUTPUT_SUFFIXES:
        logger.error("Unsupported --output format %r (use .json, .yaml or .yml).", output.suffix)
        return 2

    result = pipeline.build(ctx, loaded)
    if result is None:
        return 0

    # Record first so `clean` can still find the artifacts if writing the descriptor fails.
    if ctx.options.dry_run:
        logger.info("Dry run: build manifest left untouched.")
    else:
        manifest.record(result.units)
    dump_service(loaded.raw, output)
    logger.info("Wrote patched service descriptor to %s", output)
    logger.info("Done. Built %d Rust function(s).", len(result.units))
    return 0


def _cmd_clean(ctx: Context, manifest: BuildManifest) -> int:
    records = manifest.records()
    if not records:
        ctx.logger.warning("Nothing to clean: no build recorded in %s", manifest.path)
        return 0
    removed = pipeline.clean(ctx, records)
    if not ctx.options.dry_run:
        manifest.clear()
    ctx.logger.info("Done. Deleted %d file(s).", len(removed))
    return 0


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    logger = _setup_logger(args.verbose)

    service_dir: Path = args.service_dir
    if not service_dir.is_dir():
        logger.error("Service dir not found: %s", service_dir)
        return 2

    options = Options(
        dry_run=bool(args.dry_run),
        function=getattr(args, "function", None),
    )
    ctx = build_context(service_root=service_dir, options=options, logger=logger)
    manifest = BuildManifest(default_manifest_path(ctx.service_root), logger)

    try:
        if args.command == "build":
            return _cmd_build(ctx, args, manifest)
        return _cmd_clean(ctx, manifest)
    except MuslPackError as e:
        logger.error("%s", e)
        return 1
