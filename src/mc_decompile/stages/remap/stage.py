from __future__ import annotations

from pathlib import Path
from typing import Any

from mc_decompile.pipeline.context import RunContext
from mc_decompile.pipeline.events import EventType
from mc_decompile.pipeline.types import Artifact, ArtifactRef, MappingSet
from mc_decompile.stages.remap.runner import remap_chain
from mc_decompile.tools.process import ToolResult


def stage_remap(ctx: RunContext) -> dict[str, Any]:
    stripped = ctx.state.stripped
    sets = ctx.state.mapping_sets
    if stripped is None or not sets:
        raise ValueError("stage_remap requires a stripped artifact and mapping sets")

    artifacts: list[ArtifactRef] = []

    def _on_pass(ms: MappingSet, out: Artifact, res: ToolResult) -> None:
        ctx.emit(
            EventType.REMAP_PASS_FINISH,
            stage="remap",
            name=ms.name,
            from_ns=ms.from_ns,
            to_ns=ms.to_ns,
            output=str(out.path),
            duration_ms=res.duration_ms,
        )
        artifacts.append(ctx.record_artifact(stage="remap", path=out.path, content_type="application/java-archive"))

    outputs = remap_chain(
        stripped,
        sets,
        workspace=ctx.workspace,
        tools=ctx.tools,
        java_bin=ctx.settings.java_bin,
        remapper_jar=Path(ctx.settings.remapper_jar),  # type: ignore[arg-type]
        extra_args=ctx.settings.remapper_args,
        timeout=ctx.settings.tool_timeout_s,
        on_pass=_on_pass,
    )
    final = outputs[-1]
    ctx.state.mapped = final

    return {
        "passes": [f"{a.name}:{a.namespace}" for a in outputs],
        "mapped": str(final.path),
        "namespace": final.namespace,
        "_artifacts": artifacts,
        "_metrics": {"passes": len(outputs)},
    }
