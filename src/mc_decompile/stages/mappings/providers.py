from __future__ import annotations

import gzip
import shutil
import zipfile
from dataclasses import dataclass
from pathlib import Path

import httpx
import structlog
from pydantic import BaseModel, ConfigDict, ValidationError

from mc_decompile.core import (
    MappingExtractionError,
    MappingUnavailable,
    Result,
    Workspace,
    err,
    new_tmp_path,
    ok,
    safe_unlink,
)
from mc_decompile.core.http import HttpFetchError, download_to, get_json, is_not_found
from mc_decompile.pipeline.context import MappingProvider, RunContext
from mc_decompile.pipeline.events import EventType
from mc_decompile.pipeline.types import (
    INTERMEDIARY,
    NAMED,
    MappingEncoding,
    MappingSet,
)

log = structlog.get_logger(__name__)

INTERMEDIARY_JAR_ENTRY = "mappings/mappings.tiny"


def maven_path(coordinate: str, *, classifier: str | None = None, ext: str = "jar") -> str:
    """
    `group:artifact:version` -> `group/path/artifact/version/artifact-version[-classifier].ext`
    """
    parts = coordinate.split(":")
    if len(parts) < 3:
        raise ValueError(f"Not a maven coordinate: {coordinate!r}")
    group, artifact, version = parts[0], parts[1], parts[2]
    suffix = f"-{classifier}" if classifier else ""
    return f"{group.replace('.', '/')}/{artifact}/{version}/{artifact}-{version}{suffix}.{ext}"


class FabricRelease(BaseModel):
    """One entry of the Fabric meta `/v2/versions/{intermediary,yarn}/{game}` lists."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    maven: str
    version: str
    build: int | None = None
    stable: bool | None = None


def _fetch_releases(client: httpx.Client, url: str, *, max_attempts: int) -> list[FabricRelease]:
    """Empty list when the service has no release for the version (404 or [])."""
    try:
        raw = get_json(client, url, max_attempts=max_attempts)
    except HttpFetchError as e:
        if is_not_found(e):
            return []
        raise
    if not isinstance(raw, list):
        raise ValueError(f"Expected a JSON list from {url}")
    return [FabricRelease.model_validate(x) for x in raw]


class DirectMappingProvider:
    """
    One flat renaming table published alongside the version metadata.

    Mojang publishes it as ProGuard text written named -> obfuscated. It is
    handed to the remapper unchanged as official -> named, so the configured
    remapper must read ProGuard input and invert it.
    """

    kind = "direct"

    def provide(self, ctx: RunContext) -> list[MappingSet]:
        metadata = ctx.state.metadata
        stripped = ctx.state.stripped
        if metadata is None or stripped is None:
            raise ValueError("direct mappings need resolved metadata and a stripped artifact")

        dl = metadata.mappings_download(ctx.side)
        if dl is None:
            raise MappingUnavailable(
                f"Version {metadata.id} publishes no {ctx.side} mappings"
            )

        dest = ctx.workspace.mapping(f"{ctx.side}-{stripped.namespace}-{NAMED}.txt")
        try:
            download_to(
                ctx.http, url=dl.url, dest=dest, max_attempts=ctx.settings.http_max_attempts
            )
        except HttpFetchError as e:
            raise MappingUnavailable(f"Cannot download {ctx.side} mappings: {e}") from e

        return [
            MappingSet(
                name=NAMED,
                path=dest,
                from_ns=stripped.namespace,
                to_ns=NAMED,
                encoding=MappingEncoding.plain,
            )
        ]


@dataclass(slots=True)
class ChainedMappingProvider:
    """
    official -> intermediary (required), then intermediary -> named (optional).
    """

    meta_url: str
    maven_url: str
    kind: str = "chained"

    def intermediary_release(self, client: httpx.Client, version: str, *, max_attempts: int) -> FabricRelease:
        url = f"{self.meta_url.rstrip('/')}/v2/versions/intermediary/{version}"
        try:
            releases = _fetch_releases(client, url, max_attempts=max_attempts)
        except (HttpFetchError, ValueError, ValidationError) as e:
            raise MappingUnavailable(f"Cannot query intermediary releases: {e}") from e
        if not releases:
            raise MappingUnavailable(f"No intermediary release for {version}")
        return releases[0]

    def named_release(self, client: httpx.Client, version: str, *, max_attempts: int) -> FabricRelease | None:
        url = f"{self.meta_url.rstrip('/')}/v2/versions/yarn/{version}"
        releases = _fetch_releases(client, url, max_attempts=max_attempts)
        if not releases:
            return None
        return max(releases, key=lambda r: r.build or 0)

    def _artifact_url(self, coordinate: str, *, classifier: str | None = None, ext: str = "jar") -> str:
        return f"{self.maven_url.rstrip('/')}/{maven_path(coordinate, classifier=classifier, ext=ext)}"

    def fetch_intermediary(
        self,
        client: httpx.Client,
        release: FabricRelease,
        workspace: Workspace,
        *,
        start_ns: str,
        max_attempts: int,
    ) -> MappingSet:
        dest = workspace.mapping(f"intermediary-{release.version}.tiny")
        direct_url = self._artifact_url(release.maven, ext="tiny")
        try:
            download_to(client, url=direct_url, dest=dest, max_attempts=max_attempts)
            log.info("mappings.intermediary.direct", url=direct_url)
        except HttpFetchError as e:
            if not is_not_found(e):
                raise MappingUnavailable(f"Cannot download intermediary mappings: {e}") from e
            container = workspace.mapping(f"intermediary-{release.version}-v2.jar")
            jar_url = self._artifact_url(release.maven, classifier="v2")
            log.info("mappings.intermediary.fallback", url=jar_url)
            try:
                download_to(client, url=jar_url, dest=container, max_attempts=max_attempts)
            except HttpFetchError as e2:
                raise MappingUnavailable(
                    f"Intermediary mappings missing as .tiny and as {jar_url}: {e2}"
                ) from e2
            extract_entry(container, INTERMEDIARY_JAR_ENTRY, dest)

        return MappingSet(
            name=INTERMEDIARY,
            path=dest,
            from_ns=start_ns,
            to_ns=INTERMEDIARY,
            encoding=MappingEncoding.tiny,
        )

    def fetch_named(
        self,
        client: httpx.Client,
        workspace: Workspace,
        version: str,
        *,
        max_attempts: int,
    ) -> Result[MappingSet]:
        """
        An absent named layer (no release, or a 404 for its file) is returned as
        an error Result. Any other failure raises MappingUnavailable.
        """
        try:
            release = self.named_release(client, version, max_attempts=max_attempts)
        except (HttpFetchError, ValueError, ValidationError) as e:
            raise MappingUnavailable(f"Cannot query named mapping releases: {e}") from e
        if release is None:
            return err(MappingUnavailable(f"No named mapping release for {version}"))

        compressed = workspace.mapping(f"yarn-{release.version}.tiny.gz")
        url = self._artifact_url(release.maven, classifier="tiny", ext="gz")
        try:
            download_to(client, url=url, dest=compressed, max_attempts=max_attempts)
        except HttpFetchError as e:
            if not is_not_found(e):
                raise MappingUnavailable(f"Cannot download named mappings from {url}: {e}") from e
            return err(MappingUnavailable(f"Named mappings not published at {url}"))

        return ok(
            MappingSet(
                name=NAMED,
                path=compressed,
                from_ns=INTERMEDIARY,
                to_ns=NAMED,
                encoding=MappingEncoding.tiny,
                normalize_header=True,
            )
        )

    def provide(self, ctx: RunContext) -> list[MappingSet]:
        stripped = ctx.state.stripped
        if stripped is None:
            raise ValueError("chained mappings need a stripped artifact")
        attempts = ctx.settings.http_max_attempts

        release = self.intermediary_release(ctx.http, ctx.version, max_attempts=attempts)
        first = self.fetch_intermediary(
            ctx.http,
            release,
            ctx.workspace,
            start_ns=stripped.namespace,
            max_attempts=attempts,
        )

        named = self.fetch_named(ctx.http, ctx.workspace, ctx.version, max_attempts=attempts)
        if not named.ok:
            ctx.emit(
                EventType.MAPPINGS_LAYER_MISSING,
                stage="mappings",
                layer=NAMED,
                message=str(named.error),
            )
            return [first]

        second = named.unwrap()
        decompressed = ctx.workspace.mapping(second.path.name.removesuffix(".gz"))
        gunzip(second.path, decompressed)
        return [
            first,
            MappingSet(
                name=second.name,
                path=decompressed,
                from_ns=second.from_ns,
                to_ns=second.to_ns,
                encoding=second.encoding,
                normalize_header=second.normalize_header,
            ),
        ]


def extract_entry(container: Path, entry: str, dest: Path) -> Path:
    tmp = new_tmp_path(dest)
    try:
        with zipfile.ZipFile(container) as zf:
            try:
                info = zf.getinfo(entry)
            except KeyError as e:
                raise MappingExtractionError(f"{container.name} has no {entry}") from e
            with zf.open(info) as fin, tmp.open("wb") as fout:
                shutil.copyfileobj(fin, fout)
        tmp.replace(dest)
    except (zipfile.BadZipFile, OSError) as e:
        raise MappingExtractionError(f"Cannot read {container}: {e}") from e
    finally:
        safe_unlink(tmp)
    return dest


def gunzip(src: Path, dest: Path) -> Path:
    tmp = new_tmp_path(dest)
    try:
        with gzip.open(src, "rb") as fin, tmp.open("wb") as fout:
            shutil.copyfileobj(fin, fout)
        tmp.replace(dest)
    except (OSError, EOFError) as e:
        raise MappingExtractionError(f"Cannot decompress {src}: {e}") from e
    finally:
        safe_unlink(tmp)
    return dest


def make_provider(kind: str, *, meta_url: str, maven_url: str) -> MappingProvider:
    if kind == "direct":
        return DirectMappingProvider()
    if kind == "chained":
        return ChainedMappingProvider(meta_url=meta_url, maven_url=maven_url)
    raise ValueError(f"Unknown mapping provider: {kind!r}")
