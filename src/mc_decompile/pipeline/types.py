from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from pathlib import Path
from typing import Any, Optional

OFFICIAL = "official"
INTERMEDIARY = "intermediary"
NAMED = "named"


@dataclass(frozen=True, slots=True)
class ArtifactRef:
    """
    A reference to a file produced by a stage, as recorded in the run report.
    """

    path: str
    bytes: int
    sha256: str
    content_type: Optional[str] = None


@dataclass(frozen=True, slots=True)
class Event:
    """
    Structured event emitted by the pipeline.
    """

    type: str
    ts_utc: str
    run_id: str
    stage: Optional[str] = None
    data: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class Artifact:
    """
    A jar at a workspace path, tagged with the namespace its identifiers are in.

    Stages never rewrite an Artifact's file; they produce a new one.
    """

    name: str
    path: Path
    namespace: str

    def derive(self, *, name: str, path: Path, namespace: str | None = None) -> "Artifact":
        return Artifact(
            name=name,
            path=path,
            namespace=self.namespace if namespace is None else namespace,
        )


class MappingEncoding(StrEnum):
    plain = "plain"
    tiny = "tiny"


@dataclass(frozen=True, slots=True)
class MappingSet:
    """
    A mapping document and the namespace pair it rewrites.

    `name` doubles as the remap pass name (build/{name}-mapped.jar).
    """

    name: str
    path: Path
    from_ns: str
    to_ns: str
    encoding: MappingEncoding
    normalize_header: bool = False


def check_chain(sets: list[MappingSet], start_ns: str) -> None:
    """
    Raise ValueError unless `sets` is a 1-2 element chain starting at `start_ns`
    where each from-namespace equals the previous to-namespace.
    """
    if not 1 <= len(sets) <= 2:
        raise ValueError(f"Mapping chain must have 1 or 2 sets, got {len(sets)}")
    ns = start_ns
    for ms in sets:
        if ms.from_ns != ns:
            raise ValueError(
                f"Mapping set {ms.name!r} expects {ms.from_ns!r} but chain is at {ns!r}"
            )
        ns = ms.to_ns
