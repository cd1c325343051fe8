from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable, NamedTuple


VERSION_RE = re.compile(r"^\d+\.\d+\.\d+$")

PATCH = "patch"
MINOR = "minor"
MAJOR = "major"


class Version(NamedTuple):
    major: int
    minor: int
    patch: int

    @property
    def line(self) -> tuple[int, int]:
        return self.major, self.minor

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}.{self.patch}"


@dataclass(frozen=True)
class UpdateClassification:
    is_newer: bool
    update_type: str | None = None


def is_canonical(value: str) -> bool:
    return bool(VERSION_RE.fullmatch(value))


def parse_version(value: str) -> Version:
    """Parse a canonical ``X.Y.Z`` string.

    Callers filter with :func:`is_canonical` first; anything else is a bug.
    """
    if not is_canonical(value):
        raise ValueError(f"Not a canonical X.Y.Z version: {value!r}")
    major, minor, patch = (int(part) for part in value.split("."))
    return Version(major, minor, patch)


def sort_versions(values: Iterable[str]) -> list[str]:
    """Keep canonical versions only, dedupe, and order newest first."""
    unique = {v for v in values if is_canonical(v)}
    return sorted(unique, key=parse_version, reverse=True)


def classify_update(candidate: str, current: str | None) -> UpdateClassification:
    """Classify ``candidate`` against the pinned ``current`` version.

    Nothing pinned counts as a major update so a first install is always
    surfaced for review.
    """
    if not current:
        return UpdateClassification(is_newer=True, update_type=MAJOR)

    new = parse_version(candidate)
    cur = parse_version(current)
    for kind, a, b in ((MAJOR, new.major, cur.major), (MINOR, new.minor, cur.minor), (PATCH, new.patch, cur.patch)):
        if a != b:
            if a > b:
                return UpdateClassification(is_newer=True, update_type=kind)
            return UpdateClassification(is_newer=False)
    return UpdateClassification(is_newer=False)
