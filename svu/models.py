from __future__ import annotations

from typing import Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter


class Release(BaseModel):
    """A pinned version and the archive the installer downloads for it.

    Unknown keys (checksums, notes) are kept so they survive a write-back.
    """

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    version: str = Field(..., description="Pinned version; tracked services require X.Y.Z")
    download_url: str = Field(..., alias="downloadUrl", description="Archive URL")


class TrackedReleases(BaseModel):
    """Multi-track entry: one Release per maintained major.minor line, newest first."""

    model_config = ConfigDict(extra="allow")

    versions: list[Release]


ManifestEntry = Union[Release, TrackedReleases]

MANIFEST_ADAPTER = TypeAdapter(dict[str, ManifestEntry])


class UpdateRecord(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    service: str
    from_version: str | None = Field(None, alias="from")
    to_version: str = Field(..., alias="to")
    type: str = Field(..., description="patch|minor|major")
    changes: list[str] | None = Field(None, description="Per-line diff for multi-track services")


class UpdateSummary(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    patch: list[UpdateRecord] = Field(default_factory=list)
    major_minor: list[UpdateRecord] = Field(default_factory=list, alias="majorMinor")

    @property
    def has_patch_updates(self) -> bool:
        return bool(self.patch)

    @property
    def has_major_minor_updates(self) -> bool:
        return bool(self.major_minor)

    @property
    def is_empty(self) -> bool:
        return not (self.patch or self.major_minor)

    def to_json_dict(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)
