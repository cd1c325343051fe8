from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable

import httpx

from . import ci
from .adapters import Candidate, VersionAdapter, get_adapters
from .db import log_event
from .manifest import Manifest, load_manifest, save_manifest
from .models import ManifestEntry, Release, TrackedReleases, UpdateRecord, UpdateSummary
from .settings import settings
from .upstream import make_client
from .versioning import PATCH, classify_update, is_canonical, parse_version


UPDATED = "updated"
UP_TO_DATE = "up-to-date"
SKIPPED = "skipped"
FAILED = "error"


@dataclass
class ServiceOutcome:
    service: str
    status: str  # updated|up-to-date|skipped|error
    message: str
    record: UpdateRecord | None = None
    needs_review: bool = False


@dataclass
class RunResult:
    summary: UpdateSummary
    outcomes: list[ServiceOutcome] = field(default_factory=list)
    written: bool = False

    @property
    def changed(self) -> bool:
        return any(o.status == UPDATED for o in self.outcomes)

    @property
    def failed(self) -> list[str]:
        return [o.service for o in self.outcomes if o.status == FAILED]

    def report(self) -> dict[str, Any]:
        out = self.summary.to_json_dict()
        out["hasPatchUpdates"] = self.summary.has_patch_updates
        out["hasMajorMinorUpdates"] = self.summary.has_major_minor_updates
        out["failed"] = self.failed
        return out


def pinned_artifacts(entry: ManifestEntry | None) -> dict[str, str]:
    """Map each pinned version of an entry to its download URL."""
    if isinstance(entry, Release):
        return {entry.version: entry.download_url}
    if isinstance(entry, TrackedReleases):
        return {r.version: r.download_url for r in entry.versions}
    return {}


def line_changes(previous: list[str], current: list[str]) -> list[str]:
    """Diff two multi-track lists by major.minor line.

    A line that is new or whose patch moved is reported as ``+new``; a line that
    is no longer offered as ``-old``. Unchanged lines are not reported.
    """
    prev_by_line = {parse_version(v).line: v for v in previous}
    cur_lines = {parse_version(v).line for v in current}
    changes = [f"+{v}" for v in current if prev_by_line.get(parse_version(v).line) != v]
    changes += [f"-{v}" for v in previous if parse_version(v).line not in cur_lines]
    return changes


def _check_pinned(name: str, pinned: Iterable[str]) -> None:
    bad = [v for v in pinned if not is_canonical(v)]
    if bad:
        raise ValueError(f"Pinned version(s) for '{name}' are not X.Y.Z: {', '.join(bad)}")


def _reconcile_single(manifest: Manifest, name: str, candidate: Candidate) -> tuple[Manifest, ServiceOutcome]:
    entry = manifest.get(name)
    if isinstance(entry, TrackedReleases):
        raise ValueError(f"Manifest entry for '{name}' is multi-track but the service is single-track")
    current = entry.version if entry else None

    verdict = classify_update(candidate.version, current)
    if not verdict.is_newer:
        return manifest, ServiceOutcome(name, UP_TO_DATE, f"Up to date ({current})")

    record = UpdateRecord(service=name, from_version=current, to_version=candidate.version, type=verdict.update_type)
    new_entry = Release(version=candidate.version, download_url=candidate.download_url)
    needs_review = verdict.update_type != PATCH
    message = f"{current or 'none'} -> {candidate.version} ({verdict.update_type})"
    if needs_review:
        message += ", needs review"
    return {**manifest, name: new_entry}, ServiceOutcome(name, UPDATED, message, record, needs_review)


def _reconcile_tracks(manifest: Manifest, name: str, candidates: list[Candidate]) -> tuple[Manifest, ServiceOutcome]:
    entry = manifest.get(name)
    previous = list(pinned_artifacts(entry))
    current = [c.version for c in candidates]

    changes = line_changes(previous, current)
    if not changes and previous == current:
        return manifest, ServiceOutcome(name, UP_TO_DATE, f"Up to date ({', '.join(current)})")

    new_entry = TrackedReleases(versions=[Release(version=c.version, download_url=c.download_url) for c in candidates])
    record = UpdateRecord(
        service=name,
        from_version=", ".join(previous) or None,
        to_version=", ".join(current),
        type=PATCH,
        changes=changes,
    )
    return {**manifest, name: new_entry}, ServiceOutcome(name, UPDATED, ", ".join(changes) or "Reordered lines", record)


def reconcile_service(
    manifest: Manifest,
    adapter: VersionAdapter,
    client: httpx.Client,
) -> tuple[Manifest, ServiceOutcome]:
    """One service step: (manifest, service) -> (new manifest, outcome).

    The input manifest is never mutated. Adapter and validation errors propagate
    to the caller, which owns the per-service error boundary.
    """
    pinned = pinned_artifacts(manifest.get(adapter.name))
    _check_pinned(adapter.name, pinned)
    result = adapter.fetch(client, pinned)
    if not result:
        return manifest, ServiceOutcome(adapter.name, SKIPPED, "No usable upstream release found")
    if isinstance(result, list):
        return _reconcile_tracks(manifest, adapter.name, result)
    return _reconcile_single(manifest, adapter.name, result)


class Reconciler:
    """Reconciles the manifest with upstream releases, one service at a time."""

    def __init__(
        self,
        manifest_path: str | None = None,
        adapters: Iterable[VersionAdapter] | None = None,
        client: httpx.Client | None = None,
        dry_run: bool = False,
        github_output: str | None = None,
    ):
        self.manifest_path = manifest_path or settings.manifest_path
        self.adapters = list(adapters) if adapters is not None else get_adapters()
        self.client = client
        self.dry_run = dry_run
        self.github_output = github_output if github_output is not None else settings.github_output

    def run(self) -> RunResult:
        """Process every service, persist on change, emit CI signals.

        Raises ManifestError when the manifest cannot be loaded; everything
        else is contained per service.
        """
        log_event("INFO", f"Reading current versions from {self.manifest_path}")
        manifest = load_manifest(self.manifest_path)

        result = RunResult(summary=UpdateSummary())
        client = self.client or make_client()
        try:
            for adapter in self.adapters:
                manifest = self._step(manifest, adapter, client, result)
        finally:
            if self.client is None:
                client.close()

        if result.changed and not self.dry_run:
            save_manifest(self.manifest_path, manifest)
            result.written = True
            log_event("INFO", f"Updated {self.manifest_path}")
        elif result.changed:
            log_event("INFO", "Dry run: manifest left untouched")
        else:
            log_event("INFO", "No updates needed")

        if result.failed:
            log_event("WARN", f"{len(result.failed)} service(s) failed: {', '.join(result.failed)}")
        if not self.dry_run and ci.write_outputs(result.summary, self.github_output):
            log_event("DEBUG", "Wrote CI outputs")
        return result

    def _step(self, manifest: Manifest, adapter: VersionAdapter, client: httpx.Client, result: RunResult) -> Manifest:
        try:
            manifest, outcome = reconcile_service(manifest, adapter, client)
        except Exception as e:
            outcome = ServiceOutcome(adapter.name, FAILED, f"{type(e).__name__}: {e}")

        result.outcomes.append(outcome)
        if outcome.status == FAILED:
            log_event("ERROR", outcome.message, service_name=outcome.service)
        elif outcome.status == UPDATED:
            log_event("WARN" if outcome.needs_review else "INFO", outcome.message, service_name=outcome.service,
                      version=outcome.record.to_version if outcome.record else None)
        else:
            log_event("INFO", outcome.message, service_name=outcome.service)

        if outcome.record is not None:
            bucket = result.summary.major_minor if outcome.needs_review else result.summary.patch
            bucket.append(outcome.record)
        return manifest
