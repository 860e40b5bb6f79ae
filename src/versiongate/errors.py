"""versiongate exception hierarchy.

Every failure the engine surfaces to a caller derives from
VersionGateError. A corrupted manifest is not an error: it is recovered
locally and treated as "no prior build".
"""

from __future__ import annotations


class VersionGateError(Exception):
    """Base exception for all versiongate errors."""


class ConfigError(VersionGateError):
    """Invalid engine configuration (bad forced bump, duplicate artifact)."""


class SourceTreeError(VersionGateError):
    """Source directory missing or a file under it could not be read."""


class ExportExtractionError(VersionGateError):
    """Entry-point file exists but could not be read or decoded."""


class UnsafePathError(ExportExtractionError):
    """Entry-point path resolves outside the artifact directory."""


class ManifestWriteError(VersionGateError):
    """Version record could not be persisted after a changed decision."""
