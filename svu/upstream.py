from __future__ import annotations

from typing import Any

import httpx

from .settings import settings


class UpstreamError(Exception):
    """An upstream listing could not be fetched or had an unexpected shape."""


def make_client(transport: httpx.BaseTransport | None = None) -> httpx.Client:
    """Shared client for listing requests and artifact probes.

    ``transport`` lets tests plug in ``httpx.MockTransport``.
    """
    headers = {"User-Agent": settings.user_agent}
    return httpx.Client(
        headers=headers,
        timeout=settings.http_timeout_s,
        follow_redirects=True,
        transport=transport,
    )


def _github_headers(url: str) -> dict[str, str]:
    if not url.startswith("https://api.github.com/"):
        return {}
    headers = {"Accept": "application/vnd.github+json"}
    # Security: only ever send the token to the GitHub API host.
    if settings.github_token:
        headers["Authorization"] = f"Bearer {settings.github_token}"
    return headers


def _get(client: httpx.Client, url: str) -> httpx.Response:
    try:
        resp = client.get(url, headers=_github_headers(url))
    except httpx.TimeoutException as e:
        raise UpstreamError(f"Timed out fetching {url}") from e
    except httpx.HTTPError as e:
        raise UpstreamError(f"{type(e).__name__}: {e}") from e
    if not resp.is_success:
        raise UpstreamError(f"HTTP {resp.status_code}: {resp.reason_phrase}")
    return resp


def _json(resp: httpx.Response, url: str) -> Any:
    try:
        return resp.json()
    except ValueError as e:
        raise UpstreamError(f"Invalid JSON from {url}") from e


def fetch_list(client: httpx.Client, url: str, max_pages: int | None = None) -> list[dict[str, Any]]:
    """Fetch a JSON array of objects (GitHub tags/releases listing).

    GitHub pages these listings and orders tags by name, not by version, so
    every ``rel="next"`` page is followed. A listing longer than ``max_pages``
    is an error: a truncated listing could hide the newest patch of a line.
    """
    limit = max_pages or settings.listing_max_pages
    items: list[dict[str, Any]] = []
    page_url: str | None = url
    for _ in range(limit):
        resp = _get(client, page_url)
        data = _json(resp, page_url)
        if not isinstance(data, list) or not all(isinstance(item, dict) for item in data):
            raise UpstreamError(f"Unexpected response shape from {page_url}: expected a list of objects")
        items.extend(data)
        page_url = resp.links.get("next", {}).get("url")
        if not page_url:
            return items
    raise UpstreamError(f"Listing {url} has more than {limit} pages")
