from __future__ import annotations

from typing import Any, Sequence

import httpx

from mc_decompile.core import (
    ILogger,
    Settings,
    Workspace,
    configure_logging,
    get_logger,
    monotonic_ms,
    new_run_id,
    utc_now_iso,
)
from mc_decompile.tools.process import ToolRunner

from .context import MappingProvider, RunContext
from .events import EventSink, EventType, make_event
from .report import RunReport, build_run_report
from .stage import FunctionStage, Stage, StageResult, format_duration_ms, run_stage


def default_logger() -> ILogger:
    """
    Provide a structlog BoundLogger that satisfies ILogger.
    """
    configure_logging()
    return get_logger("pipeline")


class PipelineRunner:
    """
    Runs stages in order and stops at the first failure.

    The workspace must already be prepared; the runner only adds runs/{run_id}/.
    """

    def __init__(
        self,
        *,
        stages: Sequence[Stage],
        logger: ILogger | None = None,
    ) -> None:
        self.stages = list(stages)
        self.logger: ILogger = logger or default_logger()

        ids = [s.stage_id for s in self.stages]
        if len(ids) != len(set(ids)):
            dupes = sorted({x for x in ids if ids.count(x) > 1})
            raise ValueError(f"Duplicate stage_id(s): {dupes}")

    @staticmethod
    def fn(stage_id: str, fn) -> Stage:
        return FunctionStage(stage_id=stage_id, fn=fn)

    def run(
        self,
        *,
        version: str,
        workspace: Workspace,
        settings: Settings,
        http: httpx.Client,
        tools: ToolRunner,
        provider: MappingProvider,
        run_id: str | None = None,
        meta: dict[str, Any] | None = None,
    ) -> tuple[int, RunReport, RunContext]:
        """
        Execute the pipeline and write:
          - runs/{run_id}/events.jsonl
          - runs/{run_id}/run_report.json

        Returns: (exit_code, report, context)
        """
        meta = dict(meta or {})
        rid = run_id or new_run_id()
        run_root = workspace.runs_dir() / rid
        run_root.mkdir(parents=True, exist_ok=True)

        events_path = run_root / "events.jsonl"
        sink = EventSink(events_path)

        ctx = RunContext(
            run_id=rid,
            version=version,
            workspace=workspace,
            settings=settings,
            logger=self.logger,
            events=sink,
            http=http,
            tools=tools,
            provider=provider,
            meta=meta,
        )

        started_at = utc_now_iso()
        t0 = monotonic_ms()

        self.logger.info(
            "Pipeline starting",
            run_id=rid,
            version=version,
            stages=[s.stage_id for s in self.stages],
            workspace=str(workspace.root),
            mappings=provider.kind,
        )
        sink.emit(
            make_event(
                event_type=EventType.RUN_START,
                run_id=rid,
                version=version,
                mappings=provider.kind,
                **meta,
            )
        )

        results: list[StageResult] = []

        total = len(self.stages)
        for idx, st in enumerate(self.stages, start=1):
            res = run_stage(ctx=ctx, stage=st, index=idx, total=total)
            results.append(res)

            if res.status == "failed":
                self.logger.error("Stopping on first failure", stage=st.stage_id)
                break

        finished_at = utc_now_iso()
        duration = monotonic_ms() - t0

        report = build_run_report(
            run_id=rid,
            started_at_utc=started_at,
            finished_at_utc=finished_at,
            duration_ms=duration,
            stage_results=results,
            events_jsonl=str(events_path),
            meta={"version": version, "mappings": provider.kind, **meta},
        )

        report_json = run_root / "run_report.json"
        report.write_json(report_json)

        sink.emit(
            make_event(
                event_type=EventType.RUN_FINISH,
                run_id=rid,
                status=report.status,
                duration_ms=duration,
                report_json=str(report_json),
            )
        )
        sink.close()

        self.logger.info(
            "Run complete",
            duration_ms=duration,
            duration=format_duration_ms(duration),
            report=str(report_json),
            status=report.status,
        )

        exit_code = 0 if report.status == "success" else 1
        return exit_code, report, ctx
