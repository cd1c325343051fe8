from __future__ import annotations

import json
import os
import tempfile
from typing import Any

from pydantic import ValidationError

from .models import MANIFEST_ADAPTER, ManifestEntry


Manifest = dict[str, ManifestEntry]


class ManifestError(Exception):
    """The manifest is missing, unreadable or malformed. Fatal for a run."""


def load_manifest(path: str) -> Manifest:
    try:
        with open(path, encoding="utf-8") as f:
            raw = json.load(f)
    except FileNotFoundError as e:
        raise ManifestError(f"Manifest not found: {path}") from e
    except (OSError, UnicodeDecodeError) as e:
        raise ManifestError(f"Cannot read manifest {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise ManifestError(f"Manifest {path} is not valid JSON: {e}") from e

    try:
        return MANIFEST_ADAPTER.validate_python(raw)
    except ValidationError as e:
        raise ManifestError(f"Manifest {path} has an unexpected shape: {e}") from e


def dump_manifest(manifest: Manifest) -> dict[str, Any]:
    return {name: entry.model_dump(by_alias=True) for name, entry in manifest.items()}


def save_manifest(path: str, manifest: Manifest) -> None:
    """Replace the manifest file in one step.

    The new document goes to a temp file next to the target and is moved over
    it, so a crash leaves either the old or the new file, never a mix.
    """
    text = json.dumps(dump_manifest(manifest), indent=2, ensure_ascii=False) + "\n"
    parent = os.path.dirname(os.path.abspath(path))
    os.makedirs(parent, exist_ok=True)

    fd, tmp = tempfile.mkstemp(prefix=".versions-", suffix=".json", dir=parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="\n") as f:
            f.write(text)
        os.chmod(tmp, 0o644)
        os.replace(tmp, path)
    except BaseException:
        if os.path.exists(tmp):
            os.remove(tmp)
        raise
