"""Version decision engine.

decide() is the pure decision table: given the previous record (or None),
the current content hash and export signature, and an optional forced
bump, it returns the bump classification and next version. Rules are
evaluated top to bottom, first match wins:

1. forced bump set       -> forced kind (0.1.0 when there is no previous record)
2. no previous record    -> initial build, 0.1.0
3. same hash and exports -> noop, nothing written
4. an export removed     -> major
5. an export added       -> minor
6. anything else         -> patch

Exports are only compared when both sides are known. If either the stored
or the current signature is unknown the rules 4 and 5 cannot fire and a
changed hash falls through to patch.

run_decision() wires the tree hasher, export extractor and manifest store
around decide() for one artifact, strictly in sequence.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from versiongate.config import DecisionConfig
from versiongate.exports import diff_exports, extract_exports, resolve_entry_point
from versiongate.manifest import VersionRecord, load_record, save_record, utc_timestamp
from versiongate.semver import INITIAL_VERSION, BumpKind, SemVer
from versiongate.tree_hash import hash_tree

logger = logging.getLogger(__name__)

DecisionKind = Literal["noop", "patch", "minor", "major"]


@dataclass(frozen=True)
class Verdict:
    decision: DecisionKind
    next_version: SemVer | None
    initial: bool = False
    added: list[str] = field(default_factory=list)
    removed: list[str] = field(default_factory=list)
    reason: str = ""

    @property
    def changed(self) -> bool:
        return self.decision != "noop"


class DecisionResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    artifact_name: str = Field(alias="artifactName")
    decision: DecisionKind
    changed: bool
    initial: bool = False
    current_version: str | None = Field(default=None, alias="currentVersion")
    next_version: str | None = Field(default=None, alias="nextVersion")
    content_hash: str = Field(alias="contentHash")
    added_exports: list[str] = Field(default_factory=list, alias="addedExports")
    removed_exports: list[str] = Field(default_factory=list, alias="removedExports")
    manifest_path: str = Field(alias="manifestPath")


def _same_exports(previous: list[str] | None, current: list[str] | None) -> bool:
    if previous is None and current is None:
        return True
    if previous is None or current is None:
        return False
    return set(previous) == set(current)


def decide(
    previous: VersionRecord | None,
    current_hash: str,
    current_exports: list[str] | None,
    forced_bump: BumpKind | None = None,
) -> Verdict:
    previous_exports = previous.export_signature if previous is not None else None
    diff = diff_exports(previous_exports, current_exports)

    if forced_bump is not None:
        if previous is None:
            return Verdict(
                decision=forced_bump,
                next_version=INITIAL_VERSION,
                initial=True,
                added=diff.added,
                removed=diff.removed,
                reason="forced bump on first build",
            )
        return Verdict(
            decision=forced_bump,
            next_version=previous.semver.bump(forced_bump),
            added=diff.added,
            removed=diff.removed,
            reason=f"forced {forced_bump}",
        )

    if previous is None:
        return Verdict(
            decision="patch",
            next_version=INITIAL_VERSION,
            initial=True,
            reason="no previous record",
        )

    if current_hash == previous.content_hash and _same_exports(previous_exports, current_exports):
        return Verdict(decision="noop", next_version=None, reason="content unchanged")

    if diff.comparable and diff.removed:
        kind: BumpKind = "major"
        reason = f"{len(diff.removed)} export(s) removed"
    elif diff.comparable and diff.added:
        kind = "minor"
        reason = f"{len(diff.added)} export(s) added"
    elif diff.comparable:
        kind = "patch"
        reason = "content changed, exports unchanged"
    else:
        kind = "patch"
        reason = "content changed, exports not comparable"
    return Verdict(
        decision=kind,
        next_version=previous.semver.bump(kind),
        added=diff.added,
        removed=diff.removed,
        reason=reason,
    )


def run_decision(config: DecisionConfig, *, now: datetime | None = None) -> DecisionResult:
    logger.info("decision start artifact=%s dir=%s", config.artifact_name, config.artifact_dir)
    digest = hash_tree(config.artifact_dir, config.effective_exclusions(), config.pins_file)
    entry_point = resolve_entry_point(config.artifact_dir, config.exports_file)
    current_exports = extract_exports(entry_point)
    previous = load_record(config.manifest_path)

    verdict = decide(previous, digest.content_hash, current_exports, config.forced_bump)
    current_version = previous.version if previous is not None else None

    if verdict.changed and verdict.next_version is not None:
        record = VersionRecord(
            artifact_name=config.artifact_name,
            version=str(verdict.next_version),
            content_hash=digest.content_hash,
            export_signature=current_exports,
            input_files=digest.input_files,
            built_at=utc_timestamp(now),
        )
        save_record(config.manifest_path, record)

    logger.info(
        "decision complete artifact=%s decision=%s current=%s next=%s reason=%s",
        config.artifact_name,
        verdict.decision,
        current_version,
        verdict.next_version,
        verdict.reason,
    )
    return DecisionResult(
        artifact_name=config.artifact_name,
        decision=verdict.decision,
        changed=verdict.changed,
        initial=verdict.initial,
        current_version=current_version,
        next_version=str(verdict.next_version) if verdict.next_version is not None else None,
        content_hash=digest.content_hash,
        added_exports=verdict.added,
        removed_exports=verdict.removed,
        manifest_path=str(config.manifest_path),
    )
