from __future__ import annotations

from urllib.parse import urlsplit

import httpx

from .settings import settings


ARCHIVE_EXTENSION = ".zip"


class ArtifactError(Exception):
    pass


def probe_archive(
    client: httpx.Client,
    url: str,
    extension: str = ARCHIVE_EXTENSION,
    timeout_s: float | None = None,
) -> tuple[bool, str]:
    """HEAD a download URL without transferring the body.

    Returns (is_valid, message). Network trouble is a rejection, not an error;
    there are no retries.
    """
    filename = urlsplit(url).path.rsplit("/", 1)[-1]
    try:
        resp = client.head(url, timeout=timeout_s or settings.probe_timeout_s, follow_redirects=True)
    except httpx.TimeoutException:
        return False, "Timed out"
    except httpx.HTTPError as e:
        return False, f"Error: {type(e).__name__}: {e}"
    if not resp.is_success:
        return False, f"HTTP {resp.status_code}"
    if not filename.lower().endswith(extension):
        return False, f"Not a {extension} archive: {filename or url}"
    return True, "OK"
