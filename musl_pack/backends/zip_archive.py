from __future__ import annotations

import logging
import stat
import zipfile
from dataclasses import dataclass
from pathlib import Path

from musl_pack.core import BOOTSTRAP_NAME
from musl_pack.errors import PackagingError

ENTRY_MODE = 0o755
_UNIX = 3  # ZipInfo.create_system value that makes unzip honor the mode bits


@dataclass(frozen=True)
class ZipArchiveBackend:
    logger: logging.Logger

    def package(self, binary_path: Path, archive_path: Path) -> Path:
        """
        Write ``binary_path`` into a fresh zip at ``archive_path`` as its only
        entry, named ``bootstrap`` and marked executable.

        Any existing archive is overwritten. The binary itself is left in place.
        """
        try:
            data = binary_path.read_bytes()
            info = zipfile.ZipInfo.from_file(binary_path, arcname=BOOTSTRAP_NAME, strict_timestamps=False)
        except OSError as e:
            raise PackagingError(f"Cannot read compiled binary {binary_path}: {e}") from e

        info.create_system = _UNIX
        info.external_attr = (stat.S_IFREG | ENTRY_MODE) << 16
        info.compress_type = zipfile.ZIP_DEFLATED

        # Never leave a truncated zip at the final path.
        partial = archive_path.with_name(archive_path.name + ".partial")
        try:
            with zipfile.ZipFile(partial, "w") as zf:
                zf.writestr(info, data)
            partial.replace(archive_path)
        except (OSError, zipfile.BadZipFile) as e:
            partial.unlink(missing_ok=True)
            raise PackagingError(f"Cannot write archive {archive_path}: {e}") from e

        self.logger.debug("Wrote %s (%d bytes) as %s", archive_path, len(data), BOOTSTRAP_NAME)
        return archive_path
