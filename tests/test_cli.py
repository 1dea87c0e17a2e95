from __future__ import annotations

from pathlib import Path

import pytest
from structlog.contextvars import get_contextvars

from mc_decompile import cli
from mc_decompile.core import load_settings


def test_parser_run_options() -> None:
    args = cli._build_parser().parse_args(["run", "latest", "--mappings", "chained", "--side", "client"])
    run = cli._run_args(args)
    assert (run.version, run.mappings, run.side, run.workspace) == ("latest", "chained", "client", None)

    with pytest.raises(SystemExit):
        cli._build_parser().parse_args(["run", "1.0", "--mappings", "official"])


def test_parser_fetch_tools_defaults_to_all() -> None:
    args = cli._build_parser().parse_args(["fetch-tools"])
    assert args.tool == "all"


def test_missing_tools_is_a_precondition_failure(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("MC_DECOMPILE_JAVA_BIN", "definitely-not-java-xyz")
    monkeypatch.setenv("MC_DECOMPILE_TOOLS_DIR", str(tmp_path / "tools"))
    load_settings.cache_clear()
    try:
        code = cli.main(["run", "1.0", "--workspace", str(tmp_path / "ws")])
    finally:
        load_settings.cache_clear()

    assert code == cli.EXIT_PRECONDITION
    assert "ToolMissing" in capsys.readouterr().err
    assert not (tmp_path / "ws").exists()
    assert get_contextvars() == {}
