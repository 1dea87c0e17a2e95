from __future__ import annotations

from pathlib import Path
from typing import Callable, Sequence

import structlog

from mc_decompile.core import RemapFailure, Workspace, safe_unlink
from mc_decompile.pipeline.types import Artifact, MappingSet
from mc_decompile.tools.process import ToolResult, ToolRunner, java_jar_argv

log = structlog.get_logger(__name__)


def remap_argv(
    *,
    java_bin: str,
    remapper_jar: Path,
    input_path: Path,
    mapping: MappingSet,
    output_path: Path,
    extra_args: Sequence[str] = (),
) -> list[str]:
    return java_jar_argv(
        java_bin,
        remapper_jar,
        input_path,
        output_path,
        mapping.path,
        mapping.from_ns,
        mapping.to_ns,
        *extra_args,
    )


def remap_once(
    artifact: Artifact,
    mapping: MappingSet,
    *,
    workspace: Workspace,
    tools: ToolRunner,
    java_bin: str,
    remapper_jar: Path,
    extra_args: Sequence[str] = (),
    timeout: float | None = None,
) -> tuple[Artifact, ToolResult]:
    if mapping.from_ns != artifact.namespace:
        raise RemapFailure(
            f"Pass {mapping.name!r} maps from {mapping.from_ns!r} "
            f"but {artifact.name} is in {artifact.namespace!r}"
        )

    out = workspace.mapped(mapping.name)
    if out.resolve() == artifact.path.resolve():
        raise RemapFailure(f"Pass {mapping.name!r} would overwrite its own input {out}")
    out.parent.mkdir(parents=True, exist_ok=True)
    # the existence check below must not see a previous run's output
    safe_unlink(out)

    argv = remap_argv(
        java_bin=java_bin,
        remapper_jar=remapper_jar,
        input_path=artifact.path,
        mapping=mapping,
        output_path=out,
        extra_args=extra_args,
    )
    res = tools(argv, timeout=timeout)
    if not res.ok:
        raise RemapFailure(
            f"Remapper exited with {res.returncode} on pass {mapping.name!r}: {res.tail()}"
        )
    if not out.is_file():
        raise RemapFailure(f"Remapper reported success but {out} was not written")

    log.info(
        "remap.pass",
        name=mapping.name,
        from_ns=mapping.from_ns,
        to_ns=mapping.to_ns,
        output=str(out),
        duration_ms=res.duration_ms,
    )
    return Artifact(name=f"{mapping.name}-mapped", path=out, namespace=mapping.to_ns), res


def remap_chain(
    artifact: Artifact,
    sets: Sequence[MappingSet],
    *,
    workspace: Workspace,
    tools: ToolRunner,
    java_bin: str,
    remapper_jar: Path,
    extra_args: Sequence[str] = (),
    timeout: float | None = None,
    on_pass: Callable[[MappingSet, Artifact, ToolResult], None] | None = None,
) -> list[Artifact]:
    """
    One remap pass per mapping set, in order. Returns every pass output; the last is final.
    """
    outputs: list[Artifact] = []
    current = artifact
    for ms in sets:
        current, res = remap_once(
            current,
            ms,
            workspace=workspace,
            tools=tools,
            java_bin=java_bin,
            remapper_jar=remapper_jar,
            extra_args=extra_args,
            timeout=timeout,
        )
        outputs.append(current)
        if on_pass is not None:
            on_pass(ms, current, res)
    return outputs
