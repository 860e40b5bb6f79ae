from __future__ import annotations

from pathlib import Path

import pytest

from versiongate.batch import decide_many, discover_artifacts
from versiongate.config import default_config
from versiongate.errors import ConfigError


def _make_layer(root: Path, name: str, index: bytes) -> Path:
    layer = root / name
    (layer / "src").mkdir(parents=True)
    (layer / "src" / "index.js").write_bytes(index)
    return layer


def test_failing_artifact_does_not_block_others(tmp_path: Path) -> None:
    _make_layer(tmp_path, "auth", b"export const login = 1;\n")
    _make_layer(tmp_path, "broken", b"export const x = '\xff';\n")
    _make_layer(tmp_path, "core", b"export const core = 1;\n")
    (tmp_path / "node_modules").mkdir()
    (tmp_path / "versions.env").write_text("SDK=1.0.0\n")

    configs = discover_artifacts(tmp_path, exports_file="src/index.js")
    assert [config.artifact_name for config in configs] == ["auth", "broken", "core"]
    assert all(config.pins_file == tmp_path.resolve() / "versions.env" for config in configs)

    outcomes = decide_many(configs, max_workers=3)
    by_name = {outcome.artifact_name: outcome for outcome in outcomes}
    assert [outcome.artifact_name for outcome in outcomes] == ["auth", "broken", "core"]
    assert by_name["broken"].ok is False
    assert by_name["broken"].result is None
    assert "decode" in (by_name["broken"].error or "")
    for name in ("auth", "core"):
        result = by_name[name].result
        assert result is not None
        assert result.next_version == "0.1.0"
        assert (tmp_path / name / "version.manifest.json").exists()
    assert not (tmp_path / "broken" / "version.manifest.json").exists()


def test_unstattable_entry_point_is_isolated(tmp_path: Path) -> None:
    good = _make_layer(tmp_path, "good", b"export const ok = 1;\n")
    odd = _make_layer(tmp_path, "odd", b"export const ok = 1;\n")
    configs = [
        default_config(good, exports_file="src/index.js"),
        default_config(odd, exports_file="x" * 300),
    ]
    outcomes = decide_many(configs, max_workers=2)
    assert outcomes[0].ok and outcomes[0].result is not None
    assert outcomes[1].ok is False
    assert "cannot stat entry point" in (outcomes[1].error or "")
    assert not (odd / "version.manifest.json").exists()


def test_rerun_is_all_noop(tmp_path: Path) -> None:
    for name in ("a", "b"):
        _make_layer(tmp_path, name, b"export const v = 1;\n")
    configs = discover_artifacts(tmp_path, exports_file="src/index.js")
    decide_many(configs)
    second = decide_many(configs)
    assert [outcome.result.decision for outcome in second if outcome.result] == ["noop", "noop"]


def test_duplicate_artifact_rejected(tmp_path: Path) -> None:
    layer = _make_layer(tmp_path, "a", b"")
    with pytest.raises(ConfigError, match="twice"):
        decide_many([default_config(layer), default_config(layer)])


def test_empty_batch(tmp_path: Path) -> None:
    assert decide_many([]) == []
