from __future__ import annotations

from pathlib import Path
from typing import Any

from mc_decompile.pipeline.context import RunContext
from mc_decompile.pipeline.events import EventType
from mc_decompile.stages.decompile.runner import decompile


def stage_decompile(ctx: RunContext) -> dict[str, Any]:
    mapped = ctx.state.mapped
    if mapped is None:
        raise ValueError("stage_decompile requires a mapped artifact")

    out_dir = ctx.workspace.sources_dir()
    res = decompile(
        mapped,
        out_dir,
        tools=ctx.tools,
        java_bin=ctx.settings.java_bin,
        decompiler_jar=Path(ctx.settings.decompiler_jar),  # type: ignore[arg-type]
        extra_args=ctx.settings.decompiler_args,
        timeout=ctx.settings.tool_timeout_s,
    )
    ctx.state.sources_dir = out_dir
    ctx.emit(
        EventType.TOOL_INVOKED,
        stage="decompile",
        argv=list(res.argv),
        returncode=res.returncode,
        duration_ms=res.duration_ms,
    )

    files = sum(1 for p in out_dir.rglob("*") if p.is_file())
    return {
        "sources": str(out_dir),
        "input": str(mapped.path),
        "namespace": mapped.namespace,
        "_metrics": {"source_files": files, "duration_ms": res.duration_ms},
    }
