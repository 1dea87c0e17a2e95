from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class LatestVersions(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    release: Optional[str] = None
    snapshot: Optional[str] = None


class VersionEntry(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    id: str = Field(..., min_length=1)
    type: Optional[str] = None
    url: str = Field(..., min_length=1)
    sha1: Optional[str] = None


class VersionManifest(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    latest: LatestVersions = Field(default_factory=LatestVersions)
    versions: list[VersionEntry] = Field(default_factory=list)

    def find(self, version_id: str) -> VersionEntry | None:
        for v in self.versions:
            if v.id == version_id:
                return v
        return None


class Download(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    url: str
    sha1: Optional[str] = None
    size: Optional[int] = Field(default=None, ge=0)


class LibraryArtifact(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    path: Optional[str] = None
    url: Optional[str] = None
    sha1: Optional[str] = None
    size: Optional[int] = None


class LibraryDownloads(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    artifact: Optional[LibraryArtifact] = None


class Library(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    name: str
    downloads: LibraryDownloads = Field(default_factory=LibraryDownloads)


class Dependency(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    name: str
    url: str
    path: str


class VersionMetadata(BaseModel):
    """Per-version document. Read-only once fetched."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    id: str
    type: Optional[str] = None
    downloads: dict[str, Download] = Field(default_factory=dict)
    libraries: list[Library] = Field(default_factory=list)

    def primary_download(self, side: str) -> Download | None:
        return self.downloads.get(side)

    def mappings_download(self, side: str) -> Download | None:
        return self.downloads.get(f"{side}_mappings")

    def dependencies(self) -> list[Dependency]:
        """Libraries that carry both a download url and an install path."""
        out: list[Dependency] = []
        for lib in self.libraries:
            a = lib.downloads.artifact
            if a is None or not a.url or not a.path:
                continue
            out.append(Dependency(name=lib.name, url=a.url, path=a.path))
        return out
