"""Line-oriented export signature extraction.

The scanner does not parse the source language. It keeps every line that
starts at column 0 with the export keyword, which is enough to produce a
stable, comparable signature of an entry point's public surface:

    export function handler(event) {      -> "export function handler(event) {"
    export const  VERSION = "1";          -> "export const VERSION = \"1\";"
    export {                              -> "export { a, b as c };"
      a,
      b as c,
    };

Signatures are compared as sets (see diff_exports); the list keeps the
order in which entries were found so humans can read the manifest.
"""

from __future__ import annotations

import logging
import re
import stat
from dataclasses import dataclass, field
from pathlib import Path

from versiongate.errors import ExportExtractionError, UnsafePathError

logger = logging.getLogger(__name__)

EXPORT_KEYWORD = "export"

_WS_RE = re.compile(r"\s+")
_BLOCK_OPEN_RE = re.compile(rf"^{EXPORT_KEYWORD}\s+(type\s+)?\{{")
_TRAILING_COMMA_RE = re.compile(r",\s*\}")
_MAX_BLOCK_LINES = 200


@dataclass(frozen=True)
class ExportDiff:
    added: list[str] = field(default_factory=list)
    removed: list[str] = field(default_factory=list)
    comparable: bool = False


def resolve_entry_point(artifact_dir: Path, relative: str | None) -> Path | None:
    if relative is None or not relative.strip():
        return None
    if "\0" in relative:
        raise UnsafePathError(f"entry point path contains null bytes: {relative!r}")
    try:
        base = artifact_dir.resolve()
        target = (base / relative.replace("\\", "/")).resolve()
    except (OSError, RuntimeError) as exc:
        raise ExportExtractionError(f"cannot resolve entry point {relative}: {exc}") from exc
    if target != base and base not in target.parents:
        raise UnsafePathError(f"entry point outside artifact directory: {relative}")
    return target


def _normalize(text: str) -> str:
    return _WS_RE.sub(" ", text).strip()


def _is_export_line(line: str) -> bool:
    if not line.startswith(EXPORT_KEYWORD):
        return False
    rest = line[len(EXPORT_KEYWORD) :]
    return rest[:1].isspace() or rest[:1] in {"{", "*"}


def scan_exports(text: str) -> list[str]:
    lines = text.splitlines()
    entries: list[str] = []
    seen: set[str] = set()
    index = 0
    while index < len(lines):
        line = lines[index]
        index += 1
        if not _is_export_line(line):
            continue
        span = [line]
        if _BLOCK_OPEN_RE.match(line) and "}" not in line:
            # re-export block spanning several lines; join up to the closing brace
            while index < len(lines) and len(span) < _MAX_BLOCK_LINES:
                span.append(lines[index])
                index += 1
                if "}" in span[-1]:
                    break
        entry = _normalize(" ".join(span))
        if len(span) > 1:
            entry = _TRAILING_COMMA_RE.sub(" }", entry)
        if entry in seen:
            logger.debug("duplicate export entry=%s", entry)
            continue
        seen.add(entry)
        entries.append(entry)
    return entries


def extract_exports(path: Path | None) -> list[str] | None:
    if path is None:
        return None
    try:
        mode = path.stat().st_mode
    except (FileNotFoundError, NotADirectoryError):
        logger.info("entry point not found path=%s exports=unknown", path)
        return None
    except OSError as exc:
        raise ExportExtractionError(f"cannot stat entry point {path}: {exc}") from exc
    if stat.S_ISDIR(mode):
        raise ExportExtractionError(f"entry point is a directory: {path}")
    try:
        # utf-8-sig strips a leading byte order mark
        text = path.read_text(encoding="utf-8-sig")
    except UnicodeDecodeError as exc:
        raise ExportExtractionError(f"cannot decode entry point {path}: {exc}") from exc
    except OSError as exc:
        raise ExportExtractionError(f"cannot read entry point {path}: {exc}") from exc
    entries = scan_exports(text)
    logger.debug("exports extracted path=%s count=%s", path, len(entries))
    return entries


def diff_exports(previous: list[str] | None, current: list[str] | None) -> ExportDiff:
    if previous is None or current is None:
        return ExportDiff(comparable=False)
    previous_set = set(previous)
    current_set = set(current)
    removed = [entry for entry in dict.fromkeys(previous) if entry not in current_set]
    added = [entry for entry in dict.fromkeys(current) if entry not in previous_set]
    return ExportDiff(added=added, removed=removed, comparable=True)
