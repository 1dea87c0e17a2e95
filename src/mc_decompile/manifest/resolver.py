from __future__ import annotations

import httpx
import structlog
from pydantic import ValidationError

from mc_decompile.core import MetadataFetchError, VersionNotFound
from mc_decompile.core.http import HttpFetchError, get_json

from .models import VersionEntry, VersionManifest, VersionMetadata

log = structlog.get_logger(__name__)

ALIASES = ("latest", "snapshot")


class VersionResolver:
    """
    Two-step lookup: manifest -> entry for the version id -> per-version metadata.

    No retry beyond `max_attempts`; any failure aborts.
    """

    def __init__(
        self,
        client: httpx.Client,
        *,
        manifest_url: str,
        max_attempts: int = 1,
    ) -> None:
        self.client = client
        self.manifest_url = manifest_url
        self.max_attempts = max_attempts

    def fetch_manifest(self) -> VersionManifest:
        try:
            raw = get_json(self.client, self.manifest_url, max_attempts=self.max_attempts)
            return VersionManifest.model_validate(raw)
        except (HttpFetchError, ValueError, ValidationError) as e:
            raise MetadataFetchError(
                f"Cannot load version manifest {self.manifest_url}: {e}"
            ) from e

    def resolve_entry(self, version_id: str) -> VersionEntry:
        manifest = self.fetch_manifest()
        wanted = version_id
        if version_id in ALIASES:
            alias = manifest.latest.release if version_id == "latest" else manifest.latest.snapshot
            if not alias:
                raise VersionNotFound(f"Manifest does not declare a {version_id} version")
            wanted = alias

        entry = manifest.find(wanted)
        if entry is None:
            raise VersionNotFound(f"Version {version_id!r} is not in {self.manifest_url}")
        log.debug("version.entry", version=entry.id, url=entry.url)
        return entry

    def fetch_metadata(self, entry: VersionEntry) -> VersionMetadata:
        try:
            raw = get_json(self.client, entry.url, max_attempts=self.max_attempts)
            return VersionMetadata.model_validate(raw)
        except (HttpFetchError, ValueError, ValidationError) as e:
            raise MetadataFetchError(
                f"Cannot load metadata for {entry.id} from {entry.url}: {e}"
            ) from e

    def resolve(self, version_id: str) -> VersionMetadata:
        return self.fetch_metadata(self.resolve_entry(version_id))
