from __future__ import annotations

import json

from .models import UpdateSummary


SUMMARY_DELIMITER = "SVU_SUMMARY_EOF"


def _flag(value: bool) -> str:
    return "true" if value else "false"


def format_outputs(summary: UpdateSummary) -> str:
    """Render the signals in GitHub Actions ``GITHUB_OUTPUT`` syntax."""
    payload = json.dumps(summary.to_json_dict(), separators=(",", ":"), ensure_ascii=False)
    return (
        f"has_patch_updates={_flag(summary.has_patch_updates)}\n"
        f"has_major_minor_updates={_flag(summary.has_major_minor_updates)}\n"
        f"summary<<{SUMMARY_DELIMITER}\n{payload}\n{SUMMARY_DELIMITER}\n"
    )


def write_outputs(summary: UpdateSummary, output_path: str | None) -> bool:
    """Append the signals to the CI output file. Returns False outside CI."""
    if not output_path:
        return False
    with open(output_path, "a", encoding="utf-8") as f:
        f.write(format_outputs(summary))
    return True
