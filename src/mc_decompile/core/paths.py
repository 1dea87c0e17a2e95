from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from .errors import WorkspaceError
from .fs import is_writable_dir


@dataclass(frozen=True, slots=True)
class Workspace:
    """
    Canonical path layout for one pipeline run:

      {root}/{side}.jar                     primary artifact
      {root}/libraries/{path}               dependency libraries
      {root}/unpacked/                      bundler extraction (bundled jars only)
      {root}/{side}-stripped.jar            sanitized payload
      {root}/mappings/                      mapping documents and intermediate copies
      {root}/build/{stage}-mapped.jar       one per remap pass
      {root}/sources/                       decompiler output
      {root}/runs/{run_id}/                 events.jsonl, run_report.json

    Filenames are fixed per side, so two runs sharing a root overwrite each other.
    """

    root: Path

    def primary_artifact(self, side: str) -> Path:
        return self.root / f"{side}.jar"

    def libraries_dir(self) -> Path:
        return self.root / "libraries"

    def library(self, rel_path: str) -> Path:
        p = (self.libraries_dir() / rel_path).resolve()
        base = self.libraries_dir().resolve()
        if base not in p.parents:
            raise ValueError(f"Library path escapes libraries dir: {rel_path}")
        return p

    def unpack_dir(self) -> Path:
        return self.root / "unpacked"

    def stripped_artifact(self, side: str) -> Path:
        return self.root / f"{side}-stripped.jar"

    def mappings_dir(self) -> Path:
        return self.root / "mappings"

    def mapping(self, filename: str) -> Path:
        return self.mappings_dir() / filename

    def build_dir(self) -> Path:
        return self.root / "build"

    def mapped(self, stage_name: str, ext: str = "jar") -> Path:
        return self.build_dir() / f"{stage_name}-mapped.{ext}"

    def sources_dir(self) -> Path:
        return self.root / "sources"

    def runs_dir(self) -> Path:
        return self.root / "runs"

    def prepare(self) -> None:
        try:
            for p in (
                self.root,
                self.libraries_dir(),
                self.mappings_dir(),
                self.build_dir(),
            ):
                p.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise WorkspaceError(f"Cannot create workspace {self.root}: {e}") from e

        if not is_writable_dir(self.root):
            raise WorkspaceError(f"Workspace is not writable: {self.root}")


def default_workspace_root(workspace_root: Path, version: str) -> Path:
    return Path(workspace_root) / version
