from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import Literal, Sequence

import httpx
import structlog

from mc_decompile.core import (
    ArtifactFetchError,
    DependencyFetchWarning,
    Result,
    Workspace,
    err,
    file_digest,
    ok,
)
from mc_decompile.core.http import HttpFetchError, download_to
from mc_decompile.manifest import Dependency, VersionMetadata
from mc_decompile.pipeline.types import OFFICIAL, Artifact

log = structlog.get_logger(__name__)


def fetch_primary(
    client: httpx.Client,
    *,
    metadata: VersionMetadata,
    side: str,
    workspace: Workspace,
    max_attempts: int = 1,
) -> Result[Artifact]:
    """
    Download the side's jar to its fixed workspace path, always overwriting.
    """
    dl = metadata.primary_download(side)
    if dl is None:
        return err(ArtifactFetchError(f"Version {metadata.id} has no {side} download"))

    dest = workspace.primary_artifact(side)
    try:
        n = download_to(client, url=dl.url, dest=dest, max_attempts=max_attempts)
    except (HttpFetchError, OSError) as e:
        return err(ArtifactFetchError(f"Failed to download {side} jar from {dl.url}: {e}"))

    if dl.sha1:
        digest = file_digest(dest)
        if digest.sha1.lower() != dl.sha1.lower():
            return err(
                ArtifactFetchError(
                    f"{side} jar checksum mismatch: expected sha1 {dl.sha1}, got {digest.sha1}"
                )
            )

    log.info("artifact.downloaded", side=side, path=str(dest), bytes=n)
    return ok(Artifact(name="raw", path=dest, namespace=OFFICIAL))


@dataclass(frozen=True, slots=True)
class LibraryFetch:
    dependency: Dependency
    path: Path
    status: Literal["downloaded", "present", "failed"]
    warning: DependencyFetchWarning | None = None


def _fetch_library(
    client: httpx.Client,
    dep: Dependency,
    workspace: Workspace,
    max_attempts: int,
) -> LibraryFetch:
    try:
        dest = workspace.library(dep.path)
    except ValueError as e:
        return LibraryFetch(
            dependency=dep,
            path=workspace.libraries_dir(),
            status="failed",
            warning=DependencyFetchWarning(f"{dep.name}: {e}"),
        )

    if dest.exists():
        return LibraryFetch(dependency=dep, path=dest, status="present")

    try:
        download_to(client, url=dep.url, dest=dest, max_attempts=max_attempts)
    except (HttpFetchError, OSError) as e:
        return LibraryFetch(
            dependency=dep,
            path=dest,
            status="failed",
            warning=DependencyFetchWarning(f"Skipped library {dep.name}: {e}"),
        )
    return LibraryFetch(dependency=dep, path=dest, status="downloaded")


def fetch_libraries(
    client: httpx.Client,
    deps: Sequence[Dependency],
    *,
    workspace: Workspace,
    workers: int = 8,
    max_attempts: int = 1,
) -> list[LibraryFetch]:
    """
    Best-effort prefetch into libraries/{path}. Existing files are kept.
    Failures come back as warnings; results keep the input order.
    """
    if not deps:
        return []
    with ThreadPoolExecutor(max_workers=max(1, workers)) as pool:
        return list(
            pool.map(
                lambda d: _fetch_library(client, d, workspace, max_attempts),
                deps,
            )
        )
