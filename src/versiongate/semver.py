from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Literal, cast, get_args

BumpKind = Literal["patch", "minor", "major"]
ChangeClass = Literal["major", "minor", "patch", "same", "downgrade"]

BUMP_KINDS: tuple[str, ...] = get_args(BumpKind)

_SEMVER_RE = re.compile(r"^(\d+)\.(\d+)\.(\d+)$")


@dataclass(frozen=True, order=True)
class SemVer:
    major: int
    minor: int
    patch: int

    def __post_init__(self) -> None:
        if min(self.major, self.minor, self.patch) < 0:
            raise ValueError(f"version components must be non-negative: {self}")

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}.{self.patch}"

    def bump(self, kind: BumpKind) -> SemVer:
        if kind == "major":
            return SemVer(self.major + 1, 0, 0)
        if kind == "minor":
            return SemVer(self.major, self.minor + 1, 0)
        if kind == "patch":
            return SemVer(self.major, self.minor, self.patch + 1)
        raise ValueError(f"unknown bump kind: {kind}")


INITIAL_VERSION = SemVer(0, 1, 0)


def parse_version(text: str) -> SemVer:
    match = _SEMVER_RE.match(text.strip())
    if not match:
        raise ValueError(f"invalid semantic version: {text!r}")
    return SemVer(int(match.group(1)), int(match.group(2)), int(match.group(3)))


def parse_bump_kind(value: str) -> BumpKind:
    normalized = value.strip().lower()
    if normalized not in BUMP_KINDS:
        expected = ", ".join(BUMP_KINDS)
        raise ValueError(f"invalid bump kind: {value!r} (expected one of {expected})")
    return cast(BumpKind, normalized)


def classify_change(old: SemVer, new: SemVer) -> ChangeClass:
    if new == old:
        return "same"
    if new < old:
        return "downgrade"
    if new.major != old.major:
        return "major"
    if new.minor != old.minor:
        return "minor"
    return "patch"
