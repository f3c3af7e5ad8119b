from __future__ import annotations

from pathlib import Path


class MergeError(Exception):
    """Base class for every failure that aborts a merge run."""

    exit_code = 1


class ArgumentError(MergeError):
    exit_code = 2


class EmptyInputError(MergeError):
    pass


class DecodeError(MergeError):
    def __init__(self, path: Path, reason: str) -> None:
        super().__init__(f"Could not decode image `{path}`: {reason}")
        self.path = path


class FilesystemError(MergeError, OSError):
    def __init__(self, path: Path, reason: str) -> None:
        super().__init__(f"{reason}: `{path}`")
        self.path = path


class PdfBuildError(MergeError):
    pass
