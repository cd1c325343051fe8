from __future__ import annotations

import os
from dataclasses import dataclass


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_line(name: str, default: tuple[int, int]) -> tuple[int, int]:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        major, minor = raw.strip().split(".")
        return int(major), int(minor)
    except ValueError:
        return default


DEFAULT_USER_AGENT = "Mozilla/5.0 (compatible; Wemp-Version-Updater/1.0; +https://github.com/electronfriends/wemp)"


@dataclass(frozen=True)
class Settings:
    # Core
    manifest_path: str = os.getenv("SVU_MANIFEST_PATH", os.path.join("api", "wemp", "versions.json"))
    http_timeout_s: float = _env_float("SVU_HTTP_TIMEOUT_S", 10.0)
    probe_timeout_s: float = _env_float("SVU_PROBE_TIMEOUT_S", 5.0)
    # Upper bound on followed `Link: rel="next"` pages per listing.
    listing_max_pages: int = _env_int("SVU_LISTING_MAX_PAGES", 30)
    user_agent: str = os.getenv("SVU_USER_AGENT", DEFAULT_USER_AGENT)
    github_token: str | None = os.getenv("SVU_GITHUB_TOKEN") or os.getenv("GITHUB_TOKEN")

    # Oldest PHP major.minor line kept in the multi-track entry.
    php_min_line: tuple[int, int] = _env_line("SVU_PHP_MIN_LINE", (8, 1))

    # Event journal (optional). Unset means log only.
    db_path: str | None = os.getenv("SVU_DB_PATH")

    # CI output channel (GitHub Actions).
    github_output: str | None = os.getenv("GITHUB_OUTPUT")


settings = Settings()
