from __future__ import annotations

from dataclasses import replace
from typing import Any

from mc_decompile.core import MappingUnavailable
from mc_decompile.pipeline.context import RunContext
from mc_decompile.pipeline.events import EventType
from mc_decompile.pipeline.types import NAMED, MappingSet, check_chain
from mc_decompile.stages.mappings.normalizer import normalize_file


def _normalized(ms: MappingSet) -> MappingSet:
    if not ms.normalize_header:
        return ms
    dest = ms.path.with_name(f"{ms.path.stem}-normalized{ms.path.suffix}")
    normalize_file(ms.path, dest, from_ns=ms.from_ns, to_ns=ms.to_ns)
    return replace(ms, path=dest, normalize_header=False)


def stage_mappings(ctx: RunContext) -> dict[str, Any]:
    stripped = ctx.state.stripped
    if stripped is None:
        raise ValueError("stage_mappings requires a stripped artifact")

    sets = ctx.provider.provide(ctx)
    try:
        check_chain(sets, stripped.namespace)
    except ValueError as e:
        raise MappingUnavailable(f"{ctx.provider.kind} provider returned a bad chain: {e}") from e

    sets = [_normalized(ms) for ms in sets]
    ctx.state.mapping_sets = sets

    ctx.emit(
        EventType.MAPPINGS_SELECTED,
        stage="mappings",
        provider=ctx.provider.kind,
        chain=[f"{ms.from_ns}->{ms.to_ns}" for ms in sets],
    )

    warnings: list[str] = []
    if sets[-1].to_ns != NAMED:
        warnings.append(
            f"Named layer unavailable; output stays in the {sets[-1].to_ns} namespace"
        )

    return {
        "provider": ctx.provider.kind,
        "chain": [f"{ms.from_ns}->{ms.to_ns}" for ms in sets],
        "documents": [str(ms.path) for ms in sets],
        "_artifacts": [ctx.record_artifact(stage="mappings", path=ms.path, content_type="text/plain") for ms in sets],
        "_warnings": warnings,
    }
