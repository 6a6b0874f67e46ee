"""
Error types raised by the build steps.

Every error is a ``BuildError`` so the CLI can report it and exit non-zero.
Dedup mismatches and empty fan-out globs are not errors.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Sequence


class BuildError(RuntimeError):
    """Base class for fatal build failures."""


class ConfigError(BuildError):
    """Coordinator configuration is missing or malformed."""


class ManifestMissing(BuildError):
    """A project manifest file does not exist."""

    def __init__(self, project: str, path: Path, message: Optional[str] = None):
        self.project = project
        self.path = path
        super().__init__(message or f"{project}: manifest not found at {path}")


class SourceDirectoryMissing(ManifestMissing):
    """A project's manifest directory does not exist."""

    def __init__(self, project: str, path: Path):
        super().__init__(project, path, f"{project}: source directory missing at {path}")


class ManifestInvalid(BuildError):
    """A manifest exists but cannot be parsed or lacks a required field."""

    def __init__(self, path: Path, reason: str):
        self.path = path
        super().__init__(f"Invalid manifest {path}: {reason}")


class NoArtifactsFound(BuildError):
    """The artifact pool holds no file to anchor a release timestamp."""

    def __init__(self, pool: Path):
        self.pool = pool
        super().__init__(f"No build artifacts found in {pool}")


class SubBuildFailure(BuildError):
    """A sibling project's own build process failed."""

    def __init__(self, project: str, returncode: Optional[int], detail: str = ""):
        self.project = project
        self.returncode = returncode
        message = f"{project}: sub-build failed"
        if returncode is not None:
            message += f" (exit code {returncode})"
        if detail:
            message += f": {detail}"
        super().__init__(message)


class ExternalToolFailure(BuildError):
    """An external transform (CSS compiler, minifier) failed."""

    def __init__(self, command: Sequence[str], returncode: Optional[int], detail: str = ""):
        self.command = list(command)
        self.returncode = returncode
        message = f"Command failed: {' '.join(self.command)}"
        if returncode is not None:
            message += f" (exit code {returncode})"
        if detail:
            message += f": {detail}"
        super().__init__(message)


class MinifyFailure(ExternalToolFailure):
    """The external minifier failed."""
