from __future__ import annotations

from typing import Any

from mc_decompile.manifest import VersionResolver
from mc_decompile.pipeline.context import RunContext
from mc_decompile.pipeline.events import EventType


def stage_resolve(ctx: RunContext) -> dict[str, Any]:
    resolver = VersionResolver(
        ctx.http,
        manifest_url=ctx.settings.manifest_url,
        max_attempts=ctx.settings.http_max_attempts,
    )
    entry = resolver.resolve_entry(ctx.version)
    metadata = resolver.fetch_metadata(entry)
    ctx.state.metadata = metadata

    deps = metadata.dependencies()
    ctx.emit(
        EventType.RESOLVE_FINISH,
        stage="resolve",
        version=metadata.id,
        metadata_url=entry.url,
        downloads=sorted(metadata.downloads),
        libraries=len(deps),
    )
    return {
        "version": metadata.id,
        "metadata_url": entry.url,
        "downloads": sorted(metadata.downloads),
        "_metrics": {"libraries": len(deps)},
    }
