from __future__ import annotations

from typing import Any

from mc_decompile.pipeline.context import RunContext
from mc_decompile.pipeline.events import EventType
from mc_decompile.stages.unpack.inspector import inspect_package


def stage_unpack(ctx: RunContext) -> dict[str, Any]:
    primary = ctx.state.primary
    if primary is None:
        raise ValueError("stage_unpack requires a fetched primary artifact")

    payload, bundled = inspect_package(
        primary,
        workspace=ctx.workspace,
        tools=ctx.tools,
        java_bin=ctx.settings.java_bin,
        timeout=ctx.settings.tool_timeout_s,
    )
    ctx.state.payload = payload

    out: dict[str, Any] = {"bundled": bundled, "payload": str(payload.path)}
    if bundled:
        ctx.emit(EventType.UNPACK_DETECTED, stage="unpack", payload=str(payload.path))
        out["_artifacts"] = [ctx.record_artifact(stage="unpack", path=payload.path)]
    return out
