from __future__ import annotations

import json
import logging
import os
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, field_validator

from versiongate.canonical import pretty_json_str
from versiongate.errors import ManifestWriteError
from versiongate.semver import SemVer, parse_version

logger = logging.getLogger(__name__)

MAX_MANIFEST_BYTES = 1_000_000


class VersionRecord(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    artifact_name: str = Field(
        alias="artifactName",
        validation_alias=AliasChoices("artifactName", "layer"),
        min_length=1,
    )
    version: str
    content_hash: str = Field(alias="contentHash", pattern=r"^[0-9a-f]{64}$")
    export_signature: list[str] | None = Field(
        default=None,
        alias="exportSignature",
        validation_alias=AliasChoices("exportSignature", "exports"),
    )
    input_files: list[str] = Field(
        default_factory=list,
        alias="inputFiles",
        validation_alias=AliasChoices("inputFiles", "inputs"),
    )
    built_at: str = Field(alias="builtAt")

    @field_validator("version")
    @classmethod
    def _check_version(cls, value: str) -> str:
        return str(parse_version(value))

    @property
    def semver(self) -> SemVer:
        return parse_version(self.version)

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


def utc_timestamp(now: datetime | None = None) -> str:
    moment = now or datetime.now(timezone.utc)
    moment = moment.astimezone(timezone.utc).replace(microsecond=0)
    return moment.isoformat().replace("+00:00", "Z")


def load_record(path: Path) -> VersionRecord | None:
    try:
        raw = path.read_bytes()
    except (FileNotFoundError, NotADirectoryError):
        return None
    except OSError as exc:
        logger.warning("manifest unreadable path=%s error=%s action=initial", path, exc)
        return None
    if len(raw) > MAX_MANIFEST_BYTES:
        logger.warning("manifest too large path=%s bytes=%s action=initial", path, len(raw))
        return None
    try:
        data = json.loads(raw.decode("utf-8-sig"))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        logger.warning("manifest corrupt path=%s error=%s action=initial", path, exc)
        return None
    if not isinstance(data, dict):
        logger.warning("manifest not an object path=%s action=initial", path)
        return None
    try:
        return VersionRecord.model_validate(data)
    except ValidationError as exc:
        logger.warning(
            "manifest invalid path=%s errors=%s action=initial", path, exc.error_count()
        )
        return None


def save_record(path: Path, record: VersionRecord) -> None:
    content = pretty_json_str(record.to_payload())
    tmp_path: str | None = None
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(
            dir=str(path.parent), prefix=f".{path.name}.", suffix=".tmp"
        )
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(content)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(tmp_path, path)
        tmp_path = None
    except OSError as exc:
        raise ManifestWriteError(f"cannot write manifest {path}: {exc}") from exc
    finally:
        if tmp_path is not None:
            try:
                os.unlink(tmp_path)
            except OSError:
                logger.warning("manifest temp file left behind path=%s", tmp_path)
    logger.info(
        "manifest written path=%s artifact=%s version=%s",
        path,
        record.artifact_name,
        record.version,
    )
