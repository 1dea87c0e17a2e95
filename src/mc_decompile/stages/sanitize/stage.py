from __future__ import annotations

from typing import Any

from mc_decompile.pipeline.context import RunContext
from mc_decompile.stages.sanitize.sanitizer import sanitize


def stage_sanitize(ctx: RunContext) -> dict[str, Any]:
    payload = ctx.state.payload
    if payload is None:
        raise ValueError("stage_sanitize requires a payload artifact")

    stripped, kept, dropped = sanitize(
        payload, ctx.workspace.stripped_artifact(ctx.side)
    )
    ctx.state.stripped = stripped
    art = ctx.record_artifact(stage="sanitize", path=stripped.path, content_type="application/java-archive")
    return {
        "stripped": art.path,
        "_artifacts": [art],
        "_metrics": {"entries_kept": kept, "entries_dropped": dropped},
    }
