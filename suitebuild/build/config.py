"""
Build configuration for the library suite.

Constants, project descriptors and the immutable settings value read from
config.json (with an optional config.local.json override).
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Mapping, Optional

from suitebuild.build.errors import ConfigError

__all__ = [
    "CONFIG_FILE",
    "LOCAL_CONFIG_FILE",
    "MAX_CONCURRENT_BUILDS",
    "DEFAULT_PROJECTS",
    "ProjectSpec",
    "BuildSettings",
    "load_settings",
    "merge_config",
]

# =============================================================================
# Constants
# =============================================================================

CONFIG_FILE = "config.json"
LOCAL_CONFIG_FILE = "config.local.json"

# Hard ceiling on simultaneous sub-builds
MAX_CONCURRENT_BUILDS = 4

DEFAULTS: dict[str, Any] = {
    "bundle_name": "createjs",
    "namespace": "createjs",
    "builds_path": "builds",
    "cdn_path": "cdn",
    "license_path": "LICENSE",
    "sub_build_command": ["grunt"],
    "sub_build_entry": "Gruntfile.js",
    "max_concurrent_builds": MAX_CONCURRENT_BUILDS,
    "minifier_command": ["uglifyjs"],
    "fanout_pattern": "*NEXT.min.js",
    "css_command": ["lessc"],
}


# =============================================================================
# Data Classes
# =============================================================================


@dataclass(frozen=True)
class ProjectSpec:
    """Static description of one sibling project."""

    name: str
    path_key: str  # config key holding the project root
    source_key: str  # key of the ordered source list in build/config.json
    site_src_exclude: Optional[str] = None  # basename glob skipped when copying src/ to the site

    @property
    def demo_dir(self) -> str:
        return self.name


# Fixed priority order: P1 (highest) .. P4
DEFAULT_PROJECTS: tuple[ProjectSpec, ...] = (
    ProjectSpec("EaselJS", "easel_path", "easel_source"),
    ProjectSpec("PreloadJS", "preload_path", "source", site_src_exclude="easeljs*"),
    ProjectSpec("SoundJS", "sound_path", "source", site_src_exclude="easeljs*"),
    ProjectSpec("TweenJS", "tween_path", "source", site_src_exclude="easeljs*"),
)


@dataclass(frozen=True)
class BuildSettings:
    """Merged configuration for one invocation.

    Built once by ``load_settings`` and passed to every step.
    """

    root: Path
    values: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))
    projects: tuple[ProjectSpec, ...] = DEFAULT_PROJECTS

    def get(self, key: str, default: Any = None) -> Any:
        if key in self.values:
            return self.values[key]
        return DEFAULTS.get(key, default)

    def require(self, key: str) -> Any:
        value = self.get(key)
        if value is None:
            raise ConfigError(f"Missing config value '{key}' in {self.root / CONFIG_FILE}")
        return value

    def path(self, key: str) -> Path:
        """Resolve a path-valued key against the coordinator root."""
        return (self.root / str(self.require(key))).resolve()

    def optional_path(self, key: str) -> Optional[Path]:
        if self.get(key) is None:
            return None
        return self.path(key)

    def project_root(self, spec: ProjectSpec) -> Path:
        return self.path(spec.path_key)

    @property
    def priority(self) -> list[str]:
        return [spec.name for spec in self.projects]

    @property
    def builds_dir(self) -> Path:
        return self.path("builds_path")

    @property
    def cdn_dir(self) -> Path:
        return self.path("cdn_path")

    @property
    def site_dir(self) -> Optional[Path]:
        return self.optional_path("site_path")

    @property
    def max_workers(self) -> int:
        try:
            workers = int(self.get("max_concurrent_builds"))
        except (TypeError, ValueError) as e:
            raise ConfigError(f"max_concurrent_builds must be an integer: {e}") from e
        return max(1, min(workers, MAX_CONCURRENT_BUILDS))

    def command(self, key: str) -> list[str]:
        value = self.require(key)
        if isinstance(value, str):
            return [value]
        return [str(part) for part in value]


# =============================================================================
# Loading
# =============================================================================


def _read_json(path: Path) -> dict[str, Any]:
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ConfigError(f"{path.name} is not valid JSON: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"{path.name} must contain a JSON object")
    return data


def merge_config(base: Mapping[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    """Shallow merge, override wins."""
    merged = dict(base)
    merged.update(override)
    return merged


def _ordered_projects(priority: Optional[list[str]]) -> tuple[ProjectSpec, ...]:
    if priority is None:
        return DEFAULT_PROJECTS

    by_name = {spec.name: spec for spec in DEFAULT_PROJECTS}
    if sorted(priority) != sorted(by_name):
        raise ConfigError(
            f"'priority' must list each project exactly once: {sorted(by_name)}"
        )
    return tuple(by_name[name] for name in priority)


def load_settings(root: Path) -> BuildSettings:
    """Read config.json and config.local.json from root into BuildSettings."""
    root = root.resolve()
    config_path = root / CONFIG_FILE

    if not config_path.exists():
        raise ConfigError(f"{CONFIG_FILE} not found in {root}")

    values = _read_json(config_path)

    local_path = root / LOCAL_CONFIG_FILE
    if local_path.exists():
        values = merge_config(values, _read_json(local_path))

    projects = _ordered_projects(values.get("priority"))

    return BuildSettings(
        root=root,
        values=MappingProxyType(values),
        projects=projects,
    )
