"""
suitebuild.build - Build orchestration for the library suite.

Shared source sync, bounded-parallel sibling builds, combined bundle
assembly, asset fan-out and CDN release staging.
"""

from suitebuild.build.config import (
    DEFAULT_PROJECTS,
    MAX_CONCURRENT_BUILDS,
    BuildSettings,
    ProjectSpec,
    load_settings,
)
from suitebuild.build.errors import (
    BuildError,
    ConfigError,
    ExternalToolFailure,
    ManifestInvalid,
    ManifestMissing,
    MinifyFailure,
    NoArtifactsFound,
    SourceDirectoryMissing,
    SubBuildFailure,
)
from suitebuild.build.orchestrator import COMMANDS, BuildCoordinator

__all__ = [
    # Configuration
    "DEFAULT_PROJECTS",
    "MAX_CONCURRENT_BUILDS",
    "BuildSettings",
    "ProjectSpec",
    "load_settings",
    # Errors
    "BuildError",
    "ConfigError",
    "ExternalToolFailure",
    "ManifestInvalid",
    "ManifestMissing",
    "MinifyFailure",
    "NoArtifactsFound",
    "SourceDirectoryMissing",
    "SubBuildFailure",
    # Coordinator
    "COMMANDS",
    "BuildCoordinator",
]
