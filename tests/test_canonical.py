from __future__ import annotations

from versiongate.canonical import canonical_json_bytes, canonical_model_str
from versiongate.engine import DecisionResult


def test_canonical_json_stability() -> None:
    obj1 = {"b": 1, "a": 2}
    obj2 = {"a": 2, "b": 1}
    assert canonical_json_bytes(obj1) == canonical_json_bytes(obj2)


def test_decision_result_uses_camel_case_keys() -> None:
    result = DecisionResult(
        artifact_name="layer",
        decision="noop",
        changed=False,
        current_version="0.1.0",
        content_hash="c" * 64,
        manifest_path="/tmp/layer/version.manifest.json",
    )
    text = canonical_model_str(result)
    assert text.startswith('{"addedExports":[],"artifactName":"layer","changed":false')
    assert '"nextVersion":null' in text
    assert '"currentVersion":"0.1.0"' in text
