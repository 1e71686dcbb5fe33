from __future__ import annotations


class MuslPackError(RuntimeError):
    """Base class for every failure that aborts a build or clean run."""


class ConfigurationError(MuslPackError):
    pass


class ToolchainError(MuslPackError):
    def __init__(self, message: str, *, returncode: int | None = None) -> None:
        super().__init__(message)
        self.returncode = returncode


class PackagingError(MuslPackError):
    pass


class CleanupError(MuslPackError):
    pass


class DescriptorWriteError(MuslPackError):
    pass
