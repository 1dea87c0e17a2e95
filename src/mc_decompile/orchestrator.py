from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Callable

import httpx

from mc_decompile.core import (
    ILogger,
    Settings,
    Workspace,
    default_workspace_root,
    get_logger,
)
from mc_decompile.core.http import make_http_client
from mc_decompile.pipeline.context import RunContext
from mc_decompile.pipeline.report import RunReport
from mc_decompile.pipeline.runner import PipelineRunner
from mc_decompile.pipeline.stage import Stage, StageFn
from mc_decompile.stages import (
    stage_decompile,
    stage_fetch,
    stage_mappings,
    stage_remap,
    stage_resolve,
    stage_sanitize,
    stage_unpack,
)
from mc_decompile.stages.mappings import make_provider
from mc_decompile.tools import ToolRunner, check_tools, run_tool

STAGE_ORDER: tuple[tuple[str, StageFn], ...] = (
    ("resolve", stage_resolve),
    ("fetch", stage_fetch),
    ("unpack", stage_unpack),
    ("sanitize", stage_sanitize),
    ("mappings", stage_mappings),
    ("remap", stage_remap),
    ("decompile", stage_decompile),
)


@dataclass(frozen=True, slots=True)
class PipelineOutcome:
    exit_code: int
    report: RunReport
    context: RunContext

    @property
    def ok(self) -> bool:
        return self.exit_code == 0


def build_stages(wrap: Callable[[str, StageFn], StageFn] | None = None) -> list[Stage]:
    return [
        PipelineRunner.fn(stage_id=sid, fn=wrap(sid, fn) if wrap else fn)
        for sid, fn in STAGE_ORDER
    ]


def run_pipeline(
    version: str,
    *,
    settings: Settings,
    workspace_dir: Path | None = None,
    mappings: str | None = None,
    run_id: str | None = None,
    logger: ILogger | None = None,
    tools: ToolRunner = run_tool,
    transport: httpx.BaseTransport | None = None,
    preflight: Callable[[Settings], None] = check_tools,
    wrap: Callable[[str, StageFn], StageFn] | None = None,
) -> PipelineOutcome:
    """
    Preconditions (tools, then workspace) raise before any stage runs.
    Stage failures are reported through the outcome, never raised.
    """
    preflight(settings)

    workspace = Workspace(
        root=Path(workspace_dir)
        if workspace_dir is not None
        else default_workspace_root(settings.workspace_root, version)
    )
    workspace.prepare()

    kind = mappings or settings.mappings
    provider = make_provider(
        kind, meta_url=settings.fabric_meta_url, maven_url=settings.fabric_maven_url
    )

    runner = PipelineRunner(
        stages=build_stages(wrap), logger=logger or get_logger("mc_decompile")
    )
    with make_http_client(timeout=settings.http_timeout_s, transport=transport) as client:
        exit_code, report, ctx = runner.run(
            version=version,
            workspace=workspace,
            settings=settings,
            http=client,
            tools=tools,
            provider=provider,
            run_id=run_id,
            meta={"side": settings.side},
        )
    return PipelineOutcome(exit_code=exit_code, report=report, context=ctx)
