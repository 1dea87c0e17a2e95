from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any, Optional, Protocol

import httpx

from mc_decompile.core import ILogger, Settings, Workspace, file_digest
from mc_decompile.tools.process import ToolRunner

from .events import EventSink, EventType, make_event
from .types import Artifact, ArtifactRef, MappingSet

if TYPE_CHECKING:
    from mc_decompile.manifest import VersionMetadata


class MappingProvider(Protocol):
    """Produces the ordered mapping chain for a run (see stages.mappings)."""

    kind: str

    def provide(self, ctx: "RunContext") -> list[MappingSet]: ...


@dataclass(slots=True)
class PipelineState:
    """
    Values handed from one stage to the next. Each field is set by exactly one stage.
    """

    metadata: Optional["VersionMetadata"] = None
    primary: Optional[Artifact] = None
    payload: Optional[Artifact] = None
    stripped: Optional[Artifact] = None
    mapping_sets: list[MappingSet] = field(default_factory=list)
    mapped: Optional[Artifact] = None
    sources_dir: Optional[Path] = None


@dataclass(slots=True)
class RunContext:
    """
    Context shared across stages for a single pipeline run.
    """

    run_id: str
    version: str
    workspace: Workspace
    settings: Settings
    logger: ILogger
    events: EventSink
    http: httpx.Client
    tools: ToolRunner
    provider: MappingProvider

    state: PipelineState = field(default_factory=PipelineState)
    meta: dict[str, Any] = field(default_factory=dict)

    @property
    def side(self) -> str:
        return self.settings.side

    def stage_logger(self, stage: str) -> ILogger:
        return self.logger.bind(stage=stage)

    def emit(self, event: EventType | str, **kw: object) -> None:
        # Keep event chatter at debug level to leave console logs readable.
        event_value = event.value if isinstance(event, EventType) else str(event)
        stage = kw.pop("stage", None)
        self.events.emit(
            make_event(
                event_type=event_value,
                run_id=self.run_id,
                stage=str(stage) if stage is not None else None,
                **kw,
            )
        )
        self.logger.debug(event_value, event_type=event_value, stage=stage, **kw)

    def record_artifact(
        self,
        *,
        stage: str,
        path: Path,
        content_type: str | None = None,
    ) -> ArtifactRef:
        p = Path(path)
        digest = file_digest(p)
        try:
            rel = p.relative_to(self.workspace.root).as_posix()
        except ValueError:
            rel = str(p)
        art = ArtifactRef(
            path=rel, bytes=digest.bytes, sha256=digest.sha256, content_type=content_type
        )
        self.emit(
            EventType.ARTIFACT_WRITTEN,
            stage=stage,
            path=art.path,
            bytes=art.bytes,
            sha256=art.sha256,
            content_type=art.content_type,
        )
        return art
