from __future__ import annotations

from fastapi import FastAPI, HTTPException, Query

from . import db
from .adapters import get_adapters
from .manifest import ManifestError, dump_manifest, load_manifest
from .reconciler import pinned_artifacts
from .settings import settings


def create_app(manifest_path: str | None = None) -> FastAPI:
    """Read-only preview of the manifest as the installer sees it.

    Run with ``uvicorn svu.api:app``.
    """
    path = manifest_path or settings.manifest_path
    app = FastAPI(title="Service Version Updater")

    def _manifest():
        try:
            return load_manifest(path)
        except ManifestError as e:
            raise HTTPException(status_code=503, detail=str(e)) from e

    @app.get("/health")
    def health() -> dict[str, str]:
        return {"status": "healthy"}

    @app.get("/api/wemp/versions.json")
    def versions() -> dict:
        return dump_manifest(_manifest())

    @app.get("/services")
    def services() -> list[dict]:
        manifest = _manifest()
        out = []
        for adapter in get_adapters():
            pinned = list(pinned_artifacts(manifest.get(adapter.name)))
            out.append({"service": adapter.name, "multiTrack": adapter.multi_track, "pinned": pinned})
        return out

    @app.get("/events")
    def events(limit: int = Query(100, ge=1, le=1000)) -> list[dict]:
        return db.latest_events(limit=limit)

    return app


app = create_app()
