from __future__ import annotations

import hashlib
import logging
import os
import stat
from dataclasses import dataclass
from pathlib import Path

from versiongate.config import Exclusions
from versiongate.errors import SourceTreeError

logger = logging.getLogger(__name__)

_CHUNK_SIZE = 1024 * 1024
# Terminates each relative path so a path and the bytes after it cannot run together.
PATH_TERMINATOR = b"\x00"
# Precedes the pins file content so it always occupies the final slot of the digest input.
PINS_MARKER = b"\x00versiongate:pins\x00"


@dataclass(frozen=True)
class TreeDigest:
    content_hash: str
    input_files: list[str]


def _stat_mode(path: Path, what: str) -> int | None:
    try:
        return path.stat().st_mode
    except (FileNotFoundError, NotADirectoryError):
        return None
    except OSError as exc:
        raise SourceTreeError(f"cannot stat {what} {path}: {exc}") from exc


def list_tree_files(root: Path, exclusions: Exclusions) -> list[str]:
    mode = _stat_mode(root, "source directory")
    if mode is None or not stat.S_ISDIR(mode):
        raise SourceTreeError(f"source directory does not exist: {root}")
    results: list[str] = []
    _walk(root, "", exclusions, results)
    results.sort()
    return results


def _walk(directory: Path, prefix: str, exclusions: Exclusions, results: list[str]) -> None:
    try:
        entries = list(os.scandir(directory))
    except OSError as exc:
        raise SourceTreeError(f"cannot list directory {directory}: {exc}") from exc
    for entry in entries:
        relpath = f"{prefix}{entry.name}"
        if entry.is_symlink():
            logger.debug("tree skip symlink path=%s", relpath)
            continue
        if entry.is_dir(follow_symlinks=False):
            if exclusions.skips_dir(entry.name):
                continue
            _walk(Path(entry.path), f"{relpath}/", exclusions, results)
        elif entry.is_file(follow_symlinks=False):
            if exclusions.skips_file(entry.name):
                continue
            results.append(relpath)


def _feed_file(digest: hashlib._Hash, path: Path) -> None:
    try:
        with path.open("rb") as handle:
            for chunk in iter(lambda: handle.read(_CHUNK_SIZE), b""):
                digest.update(chunk)
    except OSError as exc:
        raise SourceTreeError(f"cannot read {path}: {exc}") from exc


def hash_tree(root: Path, exclusions: Exclusions, pins_file: Path | None = None) -> TreeDigest:
    files = list_tree_files(root, exclusions)
    digest = hashlib.sha256()
    for relpath in files:
        digest.update(relpath.encode("utf-8"))
        digest.update(PATH_TERMINATOR)
        _feed_file(digest, root / relpath)
    inputs = list(files)
    pins_mode = _stat_mode(pins_file, "pins file") if pins_file is not None else None
    if pins_file is not None and pins_mode is not None and stat.S_ISREG(pins_mode):
        digest.update(PINS_MARKER)
        _feed_file(digest, pins_file)
        inputs.append(Path(os.path.relpath(pins_file, root)).as_posix())
    elif pins_file is not None:
        logger.info("pins file absent path=%s", pins_file)
    content_hash = digest.hexdigest()
    logger.debug("tree hashed root=%s files=%s hash=%s", root, len(files), content_hash)
    return TreeDigest(content_hash=content_hash, input_files=inputs)
