from __future__ import annotations

import argparse
from dataclasses import dataclass
from pathlib import Path

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from mc_decompile.core import (
    PipelineError,
    Settings,
    bind,
    clear_bindings,
    configure_logging,
    get_logger,
    load_settings,
    new_run_id,
)
from mc_decompile.core.http import make_http_client
from mc_decompile.orchestrator import run_pipeline
from mc_decompile.pipeline.stage import StageFn
from mc_decompile.tools.fetch import TOOLS, fetch_tool

console = Console()
err_console = Console(stderr=True)

EXIT_STAGE_FAILED = 1
EXIT_PRECONDITION = 2


@dataclass(frozen=True, slots=True)
class _RunArgs:
    version: str
    workspace: Path | None
    mappings: str | None
    side: str | None


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="mc-decompile",
        description="Download, remap and decompile a Minecraft release jar.",
    )
    sub = p.add_subparsers(dest="cmd", required=True)

    run = sub.add_parser("run", help="Run the complete pipeline for one version")
    run.add_argument("version", help="Version id, or 'latest' / 'snapshot'")
    run.add_argument(
        "--workspace",
        type=Path,
        default=None,
        help="Workspace directory (default: {workspace_root}/{version})",
    )
    run.add_argument(
        "--mappings",
        choices=("direct", "chained"),
        default=None,
        help="direct: published mappings, one pass. chained: intermediary then yarn.",
    )
    run.add_argument(
        "--side",
        choices=("server", "client"),
        default=None,
        help="Which jar to decompile (default: server)",
    )

    tools = sub.add_parser("fetch-tools", help="Download the remapper and decompiler jars")
    tools.add_argument(
        "--tool",
        choices=(*sorted(TOOLS), "all"),
        default="all",
        help="Tool to download (default: all)",
    )
    return p


def _run_args(args: argparse.Namespace) -> _RunArgs:
    return _RunArgs(
        version=str(args.version),
        workspace=args.workspace,
        mappings=args.mappings,
        side=args.side,
    )


def _with_status(stage_id: str, fn: StageFn) -> StageFn:
    def _run_with_status(ctx):
        with console.status(f"[bold]{stage_id}[/]", spinner="dots"):
            return fn(ctx)

    return _run_with_status


def _cmd_run(args: _RunArgs, s: Settings) -> int:
    if args.side:
        s = s.model_copy(update={"side": args.side})
    mappings = args.mappings or s.mappings

    run_id = new_run_id()
    bind(run_id=run_id, version=args.version, mappings=mappings)

    console.print(
        Panel.fit(
            Text(
                f"mc-decompile - run\nrun_id={run_id}\nversion={args.version}\n"
                f"mappings={mappings}\nside={s.side}",
                style="bold",
            ),
            title="Run",
        )
    )

    try:
        outcome = run_pipeline(
            args.version,
            settings=s,
            workspace_dir=args.workspace,
            mappings=mappings,
            run_id=run_id,
            logger=get_logger("mc_decompile"),
            wrap=_with_status,
        )
    except PipelineError as e:
        err_console.print(f"error: {e.stage}: {type(e).__name__}: {e}", markup=False, highlight=False)
        return EXIT_PRECONDITION

    report = outcome.report
    tbl = Table(title="Result", show_header=True, box=None)
    tbl.add_row(
        "status", "[green]ok[/green]" if outcome.ok else "[red]failed[/red]"
    )
    for st in report.stages:
        tbl.add_row(st.stage, st.status)
    if outcome.context.state.mapped is not None:
        tbl.add_row("namespace", outcome.context.state.mapped.namespace)
    if outcome.context.state.sources_dir is not None:
        tbl.add_row("sources", str(outcome.context.state.sources_dir))
    tbl.add_row("report", str(outcome.context.workspace.runs_dir() / report.run_id / "run_report.json"))
    console.print(tbl)

    failed = report.failed_stage()
    if failed is not None:
        kind = failed.error.exc_type if failed.error else "Error"
        msg = failed.error.message if failed.error else "unknown error"
        err_console.print(
            f"error: stage '{failed.stage}' failed: {kind}: {msg}", markup=False, highlight=False
        )
        return EXIT_STAGE_FAILED
    return 0


def _cmd_fetch_tools(tool: str, s: Settings) -> int:
    names = sorted(TOOLS) if tool == "all" else [tool]
    tbl = Table(title="Tools", show_header=True, box=None)
    tbl.add_column("tool")
    tbl.add_column("version")
    tbl.add_column("path")
    try:
        with make_http_client(timeout=s.http_timeout_s) as client:
            for name in names:
                with console.status(f"[bold]{name}[/]", spinner="dots"):
                    version, dest = fetch_tool(TOOLS[name], settings=s, client=client)
                tbl.add_row(name, version, str(dest))
    except PipelineError as e:
        err_console.print(f"error: {e.stage}: {type(e).__name__}: {e}", markup=False, highlight=False)
        return EXIT_STAGE_FAILED
    console.print(tbl)
    return 0


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)

    s = load_settings()
    configure_logging(level=s.log_level, fmt=s.log_format)

    if args.cmd == "fetch-tools":
        return _cmd_fetch_tools(str(args.tool), s)
    try:
        return _cmd_run(_run_args(args), s)
    finally:
        clear_bindings()


if __name__ == "__main__":
    raise SystemExit(main())
