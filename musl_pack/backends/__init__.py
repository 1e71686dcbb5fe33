from musl_pack.backends.cargo import CargoBackend
from musl_pack.backends.zip_archive import ZipArchiveBackend

__all__ = [
    "CargoBackend",
    "ZipArchiveBackend",
]
