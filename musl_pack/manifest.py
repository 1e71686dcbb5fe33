from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Sequence

from musl_pack.units import BuildUnit, Profile

MANIFEST_VERSION = 1


def default_manifest_path(service_root: Path) -> Path:
    return service_root / ".musl-pack" / "build-manifest.json"


@dataclass(frozen=True)
class BuiltUnit:
    """What a successful build left on disk for one function."""

    name: str
    handler: str
    binary: str
    profile: Profile
    binary_path: Path  # relative to the service root
    archive_path: Path

    @classmethod
    def from_unit(cls, unit: BuildUnit) -> "BuiltUnit":
        return cls(
            name=unit.name,
            handler=unit.handler,
            binary=unit.binary,
            profile=unit.profile,
            binary_path=unit.binary_path,
            archive_path=unit.archive_path,
        )

    def to_dict(self) -> dict[str, str]:
        return {
            "name": self.name,
            "handler": self.handler,
            "binary": self.binary,
            "profile": self.profile.value,
            "binary_path": self.binary_path.as_posix(),
            "archive_path": self.archive_path.as_posix(),
        }

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> "BuiltUnit":
        return cls(
            name=str(raw["name"]),
            handler=str(raw["handler"]),
            binary=str(raw["binary"]),
            profile=Profile(raw["profile"]),
            binary_path=Path(raw["binary_path"]),
            archive_path=Path(raw["archive_path"]),
        )


class BuildManifest:
    def __init__(self, path: Path, logger) -> None:
        self._path = path
        self._logger: logging.Logger = logger
        self._units: list[BuiltUnit] = []
        self._loaded = False

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> None:
        if self._loaded:
            return
        self._loaded = True
        if not self._path.exists():
            self._units = []
            return
        try:
            data = json.loads(self._path.read_text(encoding="utf-8")) or {}
            self._units = [BuiltUnit.from_dict(u) for u in data.get("units", [])]
        except (OSError, ValueError, KeyError, TypeError, AttributeError) as e:
            self._logger.warning("Failed to read build manifest %s: %s", self._path, e)
            self._units = []

    def records(self) -> list[BuiltUnit]:
        self.load()
        return list(self._units)

    def save(self, units: Sequence[BuiltUnit]) -> None:
        self._units = list(units)
        self._loaded = True
        data = {
            "version": MANIFEST_VERSION,
            "units": [u.to_dict() for u in self._units],
        }
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(json.dumps(data, indent=2) + "\n", encoding="utf-8")
        self._logger.debug("Saved build manifest with %d unit(s) to %s", len(self._units), self._path)

    def record(self, units: Sequence[BuiltUnit]) -> None:
        """Add a build's units to what earlier builds recorded; a rebuilt function replaces its old entry."""
        by_name = {u.name: u for u in self.records()}
        for unit in units:
            by_name.pop(unit.name, None)
            by_name[unit.name] = unit
        self.save(list(by_name.values()))

    def clear(self) -> None:
        self._units = []
        self._loaded = True
        self._path.unlink(missing_ok=True)
