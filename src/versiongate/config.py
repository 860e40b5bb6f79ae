from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from versiongate.errors import ConfigError
from versiongate.semver import BumpKind, parse_bump_kind

MANIFEST_FILENAME = "version.manifest.json"
PINS_FILENAME = "versions.env"

DEFAULT_EXCLUDED_DIRS = frozenset({"node_modules", "build", "dist", ".git", "__pycache__"})
DEFAULT_EXCLUDED_FILES = frozenset({MANIFEST_FILENAME, ".ds_store", "thumbs.db"})
DEFAULT_EXCLUDED_SUFFIXES = ("~", ".swp", ".tmp")


@dataclass(frozen=True)
class Exclusions:
    dirs: frozenset[str] = DEFAULT_EXCLUDED_DIRS
    files: frozenset[str] = DEFAULT_EXCLUDED_FILES
    suffixes: tuple[str, ...] = DEFAULT_EXCLUDED_SUFFIXES

    def __post_init__(self) -> None:
        # file names match case-insensitively
        object.__setattr__(self, "files", frozenset(name.lower() for name in self.files))

    def with_file(self, name: str) -> Exclusions:
        return Exclusions(dirs=self.dirs, files=self.files | {name}, suffixes=self.suffixes)

    def skips_dir(self, name: str) -> bool:
        return name in self.dirs

    def skips_file(self, name: str) -> bool:
        return name.lower() in self.files or name.endswith(self.suffixes)


@dataclass(frozen=True)
class DecisionConfig:
    artifact_dir: Path
    artifact_name: str
    manifest_path: Path
    exports_file: str | None = None
    pins_file: Path | None = None
    forced_bump: BumpKind | None = None
    exclusions: Exclusions = field(default_factory=Exclusions)

    def effective_exclusions(self) -> Exclusions:
        return self.exclusions.with_file(self.manifest_path.name)


def _coerce_bump(value: str | None) -> BumpKind | None:
    if value is None or not value.strip():
        return None
    try:
        return parse_bump_kind(value)
    except ValueError as exc:
        raise ConfigError(str(exc)) from exc


def default_pins_file(artifact_dir: Path) -> Path | None:
    candidate = artifact_dir.parent / PINS_FILENAME
    return candidate if candidate.is_file() else None


def default_config(
    artifact_dir: Path,
    *,
    artifact_name: str | None = None,
    manifest_path: Path | None = None,
    exports_file: str | None = None,
    pins_file: Path | None = None,
    forced_bump: str | None = None,
    exclusions: Exclusions | None = None,
) -> DecisionConfig:
    base = artifact_dir.resolve()
    return DecisionConfig(
        artifact_dir=base,
        artifact_name=artifact_name or base.name,
        manifest_path=manifest_path or base / MANIFEST_FILENAME,
        exports_file=exports_file or None,
        pins_file=pins_file if pins_file is not None else default_pins_file(base),
        forced_bump=_coerce_bump(forced_bump),
        exclusions=exclusions or Exclusions(),
    )


def env_overrides() -> tuple[str | None, Path | None]:
    force_env = os.getenv("VERSIONGATE_FORCE_BUMP", "").strip()
    pins_env = os.getenv("VERSIONGATE_PINS_FILE", "").strip()
    return (force_env or None), (Path(pins_env) if pins_env else None)


def config_from_env(
    artifact_dir: Path,
    *,
    artifact_name: str | None = None,
    manifest_path: Path | None = None,
    exports_file: str | None = None,
    pins_file: Path | None = None,
    forced_bump: str | None = None,
) -> DecisionConfig:
    env_bump, env_pins = env_overrides()
    return default_config(
        artifact_dir,
        artifact_name=artifact_name,
        manifest_path=manifest_path,
        exports_file=exports_file,
        pins_file=pins_file if pins_file is not None else env_pins,
        forced_bump=forced_bump if forced_bump is not None else env_bump,
    )
