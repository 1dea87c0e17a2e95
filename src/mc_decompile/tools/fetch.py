from __future__ import annotations

import xml.etree.ElementTree as ET
from dataclasses import dataclass
from pathlib import Path
from typing import Callable

import httpx
import structlog

from mc_decompile.core import Settings, ToolFetchError
from mc_decompile.core.http import HttpFetchError, download_to, get_text

log = structlog.get_logger(__name__)


@dataclass(frozen=True, slots=True)
class MavenTool:
    """
    A tool published to a maven repository as `{group}/{artifact}/{ver}/{artifact}-{ver}[-{classifier}].jar`.
    """

    name: str
    repo_url: str
    group_path: str
    artifact_id: str
    dest: Callable[[Settings], Path]
    classifier: str | None = None

    def base_url(self) -> str:
        return f"{self.repo_url.rstrip('/')}/{self.group_path}/{self.artifact_id}"

    def metadata_url(self) -> str:
        return f"{self.base_url()}/maven-metadata.xml"

    def jar_url(self, version: str) -> str:
        suffix = f"-{self.classifier}" if self.classifier else ""
        return f"{self.base_url()}/{version}/{self.artifact_id}-{version}{suffix}.jar"


TOOLS: dict[str, MavenTool] = {
    "forgeflower": MavenTool(
        name="forgeflower",
        repo_url="https://maven.minecraftforge.net",
        group_path="net/minecraftforge",
        artifact_id="forgeflower",
        dest=lambda s: Path(s.decompiler_jar),  # type: ignore[arg-type]
    ),
    "tiny-remapper": MavenTool(
        name="tiny-remapper",
        repo_url="https://maven.fabricmc.net",
        group_path="net/fabricmc",
        artifact_id="tiny-remapper",
        classifier="fat",
        dest=lambda s: Path(s.remapper_jar),  # type: ignore[arg-type]
    ),
}


def latest_maven_version(metadata_xml: str) -> str:
    """
    Pick <release>, then <latest>, then the last listed <version>.
    """
    try:
        root = ET.fromstring(metadata_xml)
    except ET.ParseError as e:
        raise ToolFetchError(f"Invalid maven-metadata.xml: {e}") from e

    for tag in ("versioning/release", "versioning/latest"):
        v = (root.findtext(tag) or "").strip()
        if v:
            return v

    versions = [
        (el.text or "").strip() for el in root.findall("versioning/versions/version")
    ]
    versions = [v for v in versions if v]
    if not versions:
        raise ToolFetchError("maven-metadata.xml lists no versions")
    return versions[-1]


def fetch_tool(
    tool: MavenTool,
    *,
    settings: Settings,
    client: httpx.Client,
) -> tuple[str, Path]:
    dest = tool.dest(settings)
    try:
        version = latest_maven_version(
            get_text(client, tool.metadata_url(), max_attempts=settings.http_max_attempts)
        )
        url = tool.jar_url(version)
        log.info("tool.download", tool=tool.name, version=version, url=url, dest=str(dest))
        download_to(client, url=url, dest=dest, max_attempts=settings.http_max_attempts)
    except (HttpFetchError, OSError) as e:
        raise ToolFetchError(f"{tool.name}: {e}") from e
    return version, dest
