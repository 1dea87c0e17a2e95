from __future__ import annotations

from pathlib import Path
from typing import Sequence

import structlog

from mc_decompile.core import DecompileFailure
from mc_decompile.pipeline.types import Artifact
from mc_decompile.tools.process import ToolResult, ToolRunner, java_jar_argv

log = structlog.get_logger(__name__)


def decompile(
    artifact: Artifact,
    out_dir: Path,
    *,
    tools: ToolRunner,
    java_bin: str,
    decompiler_jar: Path,
    extra_args: Sequence[str] = (),
    timeout: float | None = None,
) -> ToolResult:
    """
    Only the exit status is checked; the produced tree is not validated.
    """
    out_dir.mkdir(parents=True, exist_ok=True)
    argv = java_jar_argv(java_bin, decompiler_jar, *extra_args, artifact.path, out_dir)
    res = tools(argv, timeout=timeout)
    if not res.ok:
        raise DecompileFailure(
            f"Decompiler exited with {res.returncode} on {artifact.path.name}: {res.tail()}"
        )
    log.info("decompile.done", input=str(artifact.path), out_dir=str(out_dir), duration_ms=res.duration_ms)
    return res
