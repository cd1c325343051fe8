from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Mapping

import httpx

from .artifacts import ARCHIVE_EXTENSION, ArtifactError, probe_archive
from .db import log_event
from .settings import settings
from .upstream import fetch_list
from .versioning import Version, parse_version, sort_versions


TAGS = "tags"
RELEASES = "releases"


@dataclass(frozen=True)
class Candidate:
    version: str
    download_url: str


@dataclass(frozen=True)
class AdapterConfig:
    """Everything that differs between upstreams.

    ``tag_pattern`` must capture major, minor and patch as three groups; the
    canonical version is those groups joined with dots. ``url_templates`` are
    tried in order (primary first, then archival fallbacks) and are formatted
    with ``version`` plus whatever ``url_vars`` returns for that version.
    A multi-track config without ``min_line`` uses ``settings.php_min_line``.
    """

    name: str
    listing_url: str
    source: str
    tag_pattern: re.Pattern[str]
    url_templates: tuple[str, ...]
    multi_track: bool = False
    min_line: tuple[int, int] | None = None
    extension: str = ARCHIVE_EXTENSION
    url_vars: Callable[[Version], dict[str, str]] | None = field(default=None, compare=False)


class VersionAdapter:
    """Shared driver: list upstream versions, pick candidate(s), validate URLs."""

    def __init__(self, config: AdapterConfig):
        self.config = config

    @property
    def name(self) -> str:
        return self.config.name

    @property
    def multi_track(self) -> bool:
        return self.config.multi_track

    @property
    def min_line(self) -> tuple[int, int] | None:
        """Oldest line a multi-track adapter keeps; read from settings per call unless pinned in config."""
        if self.config.min_line is not None or not self.multi_track:
            return self.config.min_line
        return settings.php_min_line

    def _tag_names(self, items: list[dict[str, Any]]) -> Iterable[str]:
        if self.config.source == TAGS:
            for item in items:
                name = item.get("name")
                if isinstance(name, str):
                    yield name
            return
        if self.config.source == RELEASES:
            for item in items:
                if item.get("draft") or item.get("prerelease"):
                    continue
                tag = item.get("tag_name")
                if isinstance(tag, str):
                    yield tag
            return
        raise ValueError(f"Unknown listing source '{self.config.source}'")

    def normalize(self, tag: str) -> str | None:
        m = self.config.tag_pattern.match(tag)
        if not m:
            return None
        return ".".join(str(int(part)) for part in m.groups())

    def list_versions(self, client: httpx.Client) -> list[str]:
        """Canonical upstream versions, newest first."""
        items = fetch_list(client, self.config.listing_url)
        found = (self.normalize(tag) for tag in self._tag_names(items))
        return sort_versions(v for v in found if v)

    def download_urls(self, version: str) -> list[str]:
        parsed = parse_version(version)
        extra = self.config.url_vars(parsed) if self.config.url_vars else {}
        return [t.format(version=version, **extra) for t in self.config.url_templates]

    def resolve(self, client: httpx.Client, version: str) -> Candidate:
        """Return the first download URL that probes as a live archive."""
        reasons: list[str] = []
        for url in self.download_urls(version):
            ok, msg = probe_archive(client, url, self.config.extension)
            if ok:
                return Candidate(version=version, download_url=url)
            log_event("DEBUG", f"Rejected {url} ({msg})", service_name=self.name, version=version)
            reasons.append(msg)
        raise ArtifactError(f"No valid download URL for {version} ({'; '.join(reasons)})")

    def _candidate(self, client: httpx.Client, version: str, pinned: Mapping[str, str]) -> Candidate:
        # Already pinned artifacts are trusted as-is.
        if version in pinned:
            return Candidate(version=version, download_url=pinned[version])
        return self.resolve(client, version)

    def fetch(
        self,
        client: httpx.Client,
        pinned: Mapping[str, str] | None = None,
    ) -> Candidate | list[Candidate] | None:
        """Query upstream and build the candidate(s).

        ``pinned`` maps currently pinned versions to their download URLs.
        Returns None when upstream offers nothing usable; single-track adapters
        return the latest Candidate, multi-track ones the newest patch of every
        maintained line, newest line first.
        """
        pinned = pinned or {}
        versions = self.list_versions(client)
        if not versions:
            return None

        if not self.multi_track:
            return self._candidate(client, versions[0], pinned)

        floor = self.min_line
        latest_per_line: dict[tuple[int, int], str] = {}
        for v in versions:
            line = parse_version(v).line
            if floor and line < floor:
                continue
            latest_per_line.setdefault(line, v)
        if not latest_per_line:
            return None
        return [self._candidate(client, v, pinned) for v in latest_per_line.values()]


def php_toolset(version: Version) -> dict[str, str]:
    # Windows builds switched from VS16 to VS17 with PHP 8.4.
    return {"toolset": "vs17" if version.line >= (8, 4) else "vs16"}


NGINX = AdapterConfig(
    name="nginx",
    listing_url="https://api.github.com/repos/nginx/nginx/tags?per_page=100",
    source=TAGS,
    tag_pattern=re.compile(r"^release-(\d+)\.(\d+)\.(\d+)$"),
    url_templates=("https://nginx.org/download/nginx-{version}.zip",),
)

MARIADB = AdapterConfig(
    name="mariadb",
    listing_url="https://api.github.com/repos/MariaDB/server/releases?per_page=100",
    source=RELEASES,
    tag_pattern=re.compile(r"^mariadb-(\d+)\.(\d+)\.(\d+)$"),
    url_templates=(
        "https://archive.mariadb.org/mariadb-{version}/winx64-packages/mariadb-{version}-winx64.zip",
    ),
)

PHP = AdapterConfig(
    name="php",
    listing_url="https://api.github.com/repos/php/php-src/tags?per_page=100",
    source=TAGS,
    tag_pattern=re.compile(r"^php-(\d+)\.(\d+)\.(\d+)$"),
    url_templates=(
        "https://windows.php.net/downloads/releases/php-{version}-nts-Win32-{toolset}-x64.zip",
        "https://windows.php.net/downloads/releases/archives/php-{version}-nts-Win32-{toolset}-x64.zip",
    ),
    multi_track=True,
    url_vars=php_toolset,
)

PHPMYADMIN = AdapterConfig(
    name="phpmyadmin",
    listing_url="https://api.github.com/repos/phpmyadmin/phpmyadmin/releases?per_page=100",
    source=RELEASES,
    tag_pattern=re.compile(r"^RELEASE_(\d+)_(\d+)_(\d+)$"),
    url_templates=("https://files.phpmyadmin.net/phpMyAdmin/{version}/phpMyAdmin-{version}-all-languages.zip",),
)


ADAPTERS: tuple[VersionAdapter, ...] = tuple(VersionAdapter(c) for c in (NGINX, MARIADB, PHP, PHPMYADMIN))


def get_adapters(names: Iterable[str] | None = None) -> list[VersionAdapter]:
    """Adapters in processing order, optionally restricted to ``names``."""
    if not names:
        return list(ADAPTERS)
    wanted = set(names)
    unknown = wanted - {a.name for a in ADAPTERS}
    if unknown:
        raise KeyError(f"Unknown service(s): {', '.join(sorted(unknown))}")
    return [a for a in ADAPTERS if a.name in wanted]
