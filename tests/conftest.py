import dataclasses
import json
import os
import sys

import httpx
import pytest

# Ensure project root is importable (so `import cli` works reliably across environments)
_project_root = os.path.dirname(os.path.dirname(__file__))
if _project_root not in sys.path:
    sys.path.insert(0, _project_root)

import cli  # noqa: E402
from svu import adapters, api, artifacts, db, reconciler, upstream  # noqa: E402
from svu import settings as settings_mod  # noqa: E402
from svu.upstream import make_client  # noqa: E402


_SETTINGS_USERS = (settings_mod, db, upstream, artifacts, adapters, reconciler, api, cli)


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch):
    """Keep the host environment (CI outputs, tokens, journal) out of tests."""

    def apply(**overrides):
        values = {
            "db_path": None,
            "github_output": None,
            "github_token": None,
            "php_min_line": (8, 1),
            "listing_max_pages": 30,
        }
        values.update(overrides)
        clean = dataclasses.replace(settings_mod.settings, **values)
        for mod in _SETTINGS_USERS:
            monkeypatch.setattr(mod, "settings", clean)
        return clean

    apply()
    return apply


class FakeUpstream:
    """httpx handler serving canned listings and live/dead archive URLs."""

    def __init__(self):
        self.listings: dict[str, object] = {}
        self.live: set[str] = set()
        self.errors: dict[str, Exception] = {}
        self.requests: list[tuple[str, str]] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        self.requests.append((request.method, url))
        if url in self.errors:
            raise self.errors[url]
        if request.method == "HEAD":
            return httpx.Response(200 if url in self.live else 404)
        payload = self.listings.get(url)
        if payload is None:
            return httpx.Response(404)
        if isinstance(payload, httpx.Response):
            return payload
        return httpx.Response(200, json=payload)

    def client(self) -> httpx.Client:
        return make_client(transport=httpx.MockTransport(self.handler))

    def heads(self) -> list[str]:
        return [url for method, url in self.requests if method == "HEAD"]


@pytest.fixture
def fake_upstream():
    return FakeUpstream()


@pytest.fixture
def client(fake_upstream):
    c = fake_upstream.client()
    yield c
    c.close()


@pytest.fixture
def write_manifest(tmp_path):
    def _write(data, name="versions.json"):
        path = tmp_path / name
        path.write_text(json.dumps(data, indent=2) + "\n", encoding="utf-8")
        return str(path)

    return _write
