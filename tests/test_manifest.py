import json
import os

from svu.manifest import dump_manifest, load_manifest, save_manifest
from svu.models import Release, TrackedReleases


def test_save_is_pretty_printed_with_trailing_newline(tmp_path):
    path = tmp_path / "api" / "wemp" / "versions.json"
    manifest = {
        "nginx": Release(version="1.27.5", download_url="https://nginx.org/download/nginx-1.27.5.zip"),
        "php": TrackedReleases(versions=[Release(version="8.3.15", download_url="https://example.org/php-8.3.15.zip")]),
    }

    save_manifest(str(path), manifest)

    text = path.read_text(encoding="utf-8")
    assert text.endswith("}\n") and not text.endswith("\n\n")
    assert '\n  "nginx": {\n    "version": "1.27.5",' in text
    assert json.loads(text)["php"] == {"versions": [{"version": "8.3.15", "downloadUrl": "https://example.org/php-8.3.15.zip"}]}
    assert os.listdir(path.parent) == ["versions.json"]


def test_load_then_save_round_trips_the_document(tmp_path):
    source = os.path.join(os.path.dirname(os.path.dirname(__file__)), "api", "wemp", "versions.json")
    with open(source, encoding="utf-8") as f:
        original = f.read()

    target = tmp_path / "versions.json"
    save_manifest(str(target), load_manifest(source))

    assert target.read_text(encoding="utf-8") == original


def test_unknown_fields_survive_a_round_trip(tmp_path):
    document = {
        "nginx": {"version": "1.27.4", "downloadUrl": "https://nginx.org/download/nginx-1.27.4.zip", "sha256": "abc"},
        "apache": {"version": "2.4.62-win64", "downloadUrl": "https://example.org/httpd.zip"},
        "php": {
            "versions": [{"version": "8.3.15", "downloadUrl": "https://example.org/php-8.3.15.zip", "notes": "lts"}],
            "channel": "stable",
        },
    }
    source = tmp_path / "in.json"
    source.write_text(json.dumps(document, indent=2) + "\n", encoding="utf-8")

    target = tmp_path / "out.json"
    save_manifest(str(target), load_manifest(str(source)))

    assert target.read_text(encoding="utf-8") == source.read_text(encoding="utf-8")


def test_entry_shapes_are_recognised(tmp_path):
    path = tmp_path / "versions.json"
    path.write_text(
        json.dumps(
            {
                "nginx": {"version": "1.27.5", "downloadUrl": "https://nginx.org/download/nginx-1.27.5.zip"},
                "php": {"versions": []},
            }
        ),
        encoding="utf-8",
    )

    manifest = load_manifest(str(path))

    assert isinstance(manifest["nginx"], Release)
    assert isinstance(manifest["php"], TrackedReleases)
    assert dump_manifest(manifest)["php"] == {"versions": []}
