from __future__ import annotations

from typing import Any

from mc_decompile.pipeline.context import RunContext
from mc_decompile.pipeline.events import EventType
from mc_decompile.stages.fetch.runner import fetch_libraries, fetch_primary


def stage_fetch(ctx: RunContext) -> dict[str, Any]:
    metadata = ctx.state.metadata
    if metadata is None:
        raise ValueError("stage_fetch requires resolved version metadata")

    primary = fetch_primary(
        ctx.http,
        metadata=metadata,
        side=ctx.side,
        workspace=ctx.workspace,
        max_attempts=ctx.settings.http_max_attempts,
    ).unwrap()
    ctx.state.primary = primary
    art = ctx.record_artifact(stage="fetch", path=primary.path, content_type="application/java-archive")

    libs = fetch_libraries(
        ctx.http,
        metadata.dependencies(),
        workspace=ctx.workspace,
        workers=ctx.settings.library_workers,
        max_attempts=ctx.settings.http_max_attempts,
    )

    warnings: list[str] = []
    counts = {"downloaded": 0, "present": 0, "failed": 0}
    for lib in libs:
        counts[lib.status] += 1
        if lib.status == "present":
            ctx.emit(EventType.FETCH_LIBRARY_SKIP, stage="fetch", library=lib.dependency.name)
        if lib.warning is not None:
            ctx.emit(
                EventType.FETCH_LIBRARY_FAILED,
                stage="fetch",
                library=lib.dependency.name,
                message=str(lib.warning),
            )
            warnings.append(str(lib.warning))

    return {
        "primary": art.path,
        "_artifacts": [art],
        "_warnings": warnings,
        "_metrics": {f"libraries_{k}": v for k, v in counts.items()},
    }
