from __future__ import annotations

from pathlib import Path

import pytest

from versiongate.errors import ExportExtractionError, UnsafePathError
from versiongate.exports import diff_exports, extract_exports, resolve_entry_point, scan_exports

SOURCE = """\
import { helper } from "./helper.js";

export function handler(event) {
  export const notTopLevel = 1;
  return helper(event);
}

export   const VERSION = "1.0.0";
export class Client {}
export * from "./logging.js";
export {
  safeLog,
  safePath as resolvePath,
};
exports.legacy = 1;
export default handler;
export const VERSION = "1.0.0";
"""


def test_scan_keeps_top_level_exports_in_order() -> None:
    assert scan_exports(SOURCE) == [
        "export function handler(event) {",
        'export const VERSION = "1.0.0";',
        "export class Client {}",
        'export * from "./logging.js";',
        "export { safeLog, safePath as resolvePath };",
        "export default handler;",
    ]


def test_scan_handles_crlf_and_empty_input() -> None:
    assert scan_exports("export const a = 1;\r\nexport const b = 2;\r\n") == [
        "export const a = 1;",
        "export const b = 2;",
    ]
    assert scan_exports("") == []


def test_extract_unknown_when_unset_or_missing(tmp_path: Path) -> None:
    assert extract_exports(None) is None
    assert extract_exports(tmp_path / "src" / "index.js") is None


def test_extract_reads_file(tmp_path: Path) -> None:
    entry = tmp_path / "index.js"
    entry.write_text("export const a = 1;\n")
    assert extract_exports(entry) == ["export const a = 1;"]


def test_extract_fails_on_bad_encoding(tmp_path: Path) -> None:
    entry = tmp_path / "index.js"
    entry.write_bytes(b"export const a = '\xff\xfe';\n")
    with pytest.raises(ExportExtractionError, match="cannot decode"):
        extract_exports(entry)


def test_extract_strips_byte_order_mark(tmp_path: Path) -> None:
    entry = tmp_path / "index.js"
    entry.write_bytes(b"\xef\xbb\xbfexport const a = 1;\nexport const b = 2;\n")
    assert extract_exports(entry) == ["export const a = 1;", "export const b = 2;"]


def test_extract_fails_when_entry_point_cannot_be_stat(tmp_path: Path) -> None:
    with pytest.raises(ExportExtractionError, match="cannot stat"):
        extract_exports(tmp_path / ("x" * 300))


def test_extract_fails_on_directory(tmp_path: Path) -> None:
    with pytest.raises(ExportExtractionError, match="directory"):
        extract_exports(tmp_path)


def test_resolve_entry_point_refuses_traversal(tmp_path: Path) -> None:
    artifact = tmp_path / "layer"
    artifact.mkdir()
    assert resolve_entry_point(artifact, None) is None
    assert resolve_entry_point(artifact, "  ") is None
    assert resolve_entry_point(artifact, "src/index.js") == artifact.resolve() / "src" / "index.js"
    with pytest.raises(UnsafePathError):
        resolve_entry_point(artifact, "../other/index.js")
    with pytest.raises(UnsafePathError):
        resolve_entry_point(artifact, "..\\other\\index.js")
    with pytest.raises(UnsafePathError):
        resolve_entry_point(artifact, "src/\0index.js")


def test_diff_is_set_based() -> None:
    diff = diff_exports(["a", "b"], ["b", "c", "c"])
    assert diff.comparable is True
    assert diff.added == ["c"]
    assert diff.removed == ["a"]

    reordered = diff_exports(["a", "b"], ["b", "a"])
    assert reordered.added == [] and reordered.removed == []


def test_diff_not_comparable_when_unknown() -> None:
    assert diff_exports(None, ["a"]).comparable is False
    assert diff_exports(["a"], None).comparable is False
    assert diff_exports(None, None).comparable is False
