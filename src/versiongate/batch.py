from __future__ import annotations

import logging
from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from versiongate.config import DecisionConfig, Exclusions, default_config
from versiongate.engine import DecisionResult, run_decision
from versiongate.errors import ConfigError, SourceTreeError, VersionGateError

logger = logging.getLogger(__name__)

_DEFAULT_WORKERS = 4


@dataclass(frozen=True)
class ArtifactOutcome:
    artifact_name: str
    result: DecisionResult | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def discover_artifacts(
    root: Path,
    *,
    exports_file: str | None = None,
    pins_file: Path | None = None,
    forced_bump: str | None = None,
    exclusions: Exclusions | None = None,
) -> list[DecisionConfig]:
    exclusions = exclusions or Exclusions()
    configs: list[DecisionConfig] = []
    try:
        children = sorted(root.iterdir())
    except OSError as exc:
        raise SourceTreeError(f"cannot list artifact root {root}: {exc}") from exc
    for child in children:
        if not child.is_dir() or child.name.startswith(".") or exclusions.skips_dir(child.name):
            continue
        configs.append(
            default_config(
                child,
                exports_file=exports_file,
                pins_file=pins_file,
                forced_bump=forced_bump,
                exclusions=exclusions,
            )
        )
    return configs


def _run_one(config: DecisionConfig, now: datetime | None) -> ArtifactOutcome:
    try:
        result = run_decision(config, now=now)
    except VersionGateError as exc:
        logger.error("decision failed artifact=%s error=%s", config.artifact_name, exc)
        return ArtifactOutcome(artifact_name=config.artifact_name, error=str(exc))
    return ArtifactOutcome(artifact_name=config.artifact_name, result=result)


def decide_many(
    configs: Sequence[DecisionConfig],
    *,
    max_workers: int = _DEFAULT_WORKERS,
    now: datetime | None = None,
) -> list[ArtifactOutcome]:
    seen: set[Path] = set()
    for config in configs:
        key = config.artifact_dir.resolve()
        if key in seen:
            raise ConfigError(f"artifact listed twice in one batch: {key}")
        seen.add(key)
    if not configs:
        return []
    workers = max(1, min(max_workers, len(configs)))
    logger.info("batch start artifacts=%s workers=%s", len(configs), workers)
    with ThreadPoolExecutor(max_workers=workers) as pool:
        outcomes = list(pool.map(lambda config: _run_one(config, now), configs))
    failed = sum(1 for outcome in outcomes if not outcome.ok)
    logger.info("batch complete artifacts=%s failed=%s", len(outcomes), failed)
    return outcomes
