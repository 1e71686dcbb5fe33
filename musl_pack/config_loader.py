from __future__ import annotations

import json
import tomllib
from dataclasses import dataclass
from json import JSONDecodeError
from pathlib import Path
from typing import Any

from musl_pack.errors import ConfigurationError, DescriptorWriteError
from musl_pack.util import split_flags

SERVICE_FILE_NAMES = (
    "serverless.yml",
    "serverless.yaml",
    "serverless.json",
    "serverless.toml",
)


@dataclass(frozen=True)
class FunctionConfig:
    name: str
    handler: str
    runtime: str | None
    profile: str | None  # functions.<name>.rust.profile


@dataclass(frozen=True)
class ServiceConfig:
    """Read-only view of the fields this tool consumes from the descriptor."""

    provider_name: str | None
    provider_runtime: str | None
    profile: str | None  # custom.rust.profile
    cargo_flags: tuple[str, ...]
    functions: tuple[FunctionConfig, ...]

    def function(self, name: str) -> FunctionConfig | None:
        for fn in self.functions:
            if fn.name == name:
                return fn
        return None


@dataclass(frozen=True)
class LoadedService:
    path: Path | None
    # Owned by the caller; only the descriptor patch writes into it.
    raw: dict[str, Any]
    config: ServiceConfig


def _require_str(value: Any, *, what: str) -> str:
    if not isinstance(value, str) or not value:
        raise ConfigurationError(f"'{what}' must be a non-empty string")
    return value


def _optional_str(value: Any, *, what: str) -> str | None:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ConfigurationError(f"'{what}' must be a string if present")
    return value


def _optional_table(value: Any, *, what: str) -> dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ConfigurationError(f"'{what}' must be a mapping if present")
    return value


def _parse_cargo_flags(value: Any) -> tuple[str, ...]:
    if value is None or isinstance(value, str):
        return tuple(split_flags(value))
    if isinstance(value, list) and all(isinstance(x, str) for x in value):
        return tuple(split_flags(value))
    raise ConfigurationError("'custom.rust.cargoFlags' must be a string or a list of strings")


def _parse_functions(value: Any) -> tuple[FunctionConfig, ...]:
    functions = _optional_table(value, what="functions")
    out: list[FunctionConfig] = []
    for name, fn in functions.items():
        if not isinstance(fn, dict):
            raise ConfigurationError(f"Function {name!r} must be a mapping")
        rust = _optional_table(fn.get("rust"), what=f"functions.{name}.rust")
        out.append(
            FunctionConfig(
                name=str(name),
                handler=_require_str(fn.get("handler"), what=f"functions.{name}.handler"),
                runtime=_optional_str(fn.get("runtime"), what=f"functions.{name}.runtime"),
                profile=_optional_str(rust.get("profile"), what=f"functions.{name}.rust.profile"),
            )
        )
    return tuple(out)


def parse_service(raw: Any) -> ServiceConfig:
    if not isinstance(raw, dict):
        raise ConfigurationError("Service descriptor must be a mapping at the top level.")

    provider = _optional_table(raw.get("provider"), what="provider")
    custom = _optional_table(raw.get("custom"), what="custom")
    rust = _optional_table(custom.get("rust"), what="custom.rust")

    return ServiceConfig(
        provider_name=_optional_str(provider.get("name"), what="provider.name"),
        provider_runtime=_optional_str(provider.get("runtime"), what="provider.runtime"),
        profile=_optional_str(rust.get("profile"), what="custom.rust.profile"),
        cargo_flags=_parse_cargo_flags(rust.get("cargoFlags")),
        functions=_parse_functions(raw.get("functions")),
    )


def _load_json(text: str, path: Path) -> Any:
    try:
        return json.loads(text)
    except JSONDecodeError as e:
        raise ConfigurationError(
            f"Invalid JSON in {path} at line {e.lineno}, column {e.colno}: {e.msg}"
        ) from e


def _load_toml(text: str, path: Path) -> Any:
    try:
        return tomllib.loads(text)
    except tomllib.TOMLDecodeError as e:
        raise ConfigurationError(f"Invalid TOML in {path}: {e}") from e


def _load_yaml(text: str, path: Path) -> Any:
    try:
        import yaml  # type: ignore
    except ImportError as e:
        raise ConfigurationError(
            "YAML service files require PyYAML. Install it (e.g. 'python -m pip install pyyaml') "
            f"and retry loading {path}."
        ) from e
    try:
        return yaml.safe_load(text)
    except yaml.YAMLError as e:
        mark = getattr(e, "problem_mark", None)
        if mark is not None and hasattr(mark, "line") and hasattr(mark, "column"):
            line = int(mark.line) + 1
            col = int(mark.column) + 1
            raise ConfigurationError(f"Invalid YAML in {path} at line {line}, column {col}: {e}") from e
        raise ConfigurationError(f"Invalid YAML in {path}: {e}") from e


def find_service_file(service_root: Path) -> Path:
    for name in SERVICE_FILE_NAMES:
        candidate = service_root / name
        if candidate.is_file():
            return candidate
    raise ConfigurationError(
        f"No service file found in {service_root} (looked for {', '.join(SERVICE_FILE_NAMES)})."
    )


def load_service_file(path: Path) -> LoadedService:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigurationError(f"Cannot read service file {path}: {e}") from e
    suffix = path.suffix.lower()

    if suffix == ".json":
        raw = _load_json(text, path)
    elif suffix == ".toml":
        raw = _load_toml(text, path)
    elif suffix in (".yaml", ".yml"):
        raw = _load_yaml(text, path)
    else:
        raise ConfigurationError(
            f"Unsupported service file format for {path} (expected .json, .toml, .yaml, .yml)."
        )
    config = parse_service(raw)
    return LoadedService(path=path, raw=raw, config=config)


def dump_service(raw: dict[str, Any], path: Path) -> None:
    suffix = path.suffix.lower()
    if suffix not in (".json", ".yaml", ".yml"):
        raise ConfigurationError(f"Cannot write service descriptor as {path.suffix or 'no suffix'} (use .json, .yaml or .yml).")
    try:
        if suffix == ".json":
            # YAML/TOML hand back dates (e.g. IAM "Version: 2012-10-17"); keep their ISO text.
            text = json.dumps(raw, indent=2, default=str) + "\n"
        else:
            import yaml  # type: ignore

            text = yaml.safe_dump(raw, sort_keys=False)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
    except (OSError, TypeError, ValueError) as e:
        raise DescriptorWriteError(f"Cannot write patched service descriptor to {path}: {e}") from e
