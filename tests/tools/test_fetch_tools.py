from __future__ import annotations

import sys
from pathlib import Path

import pytest
from conftest import Routes

from mc_decompile.core import Settings, ToolFetchError
from mc_decompile.tools.fetch import TOOLS, fetch_tool, latest_maven_version
from mc_decompile.tools.process import run_tool

METADATA = """<?xml version="1.0" encoding="UTF-8"?>
<metadata>
  <groupId>net.fabricmc</groupId>
  <artifactId>tiny-remapper</artifactId>
  <versioning>
    <latest>0.10.1</latest>
    <release>0.10.0</release>
    <versions><version>0.9.0</version><version>0.10.0</version></versions>
  </versioning>
</metadata>
"""


def test_latest_maven_version() -> None:
    assert latest_maven_version(METADATA) == "0.10.0"
    only_list = "<metadata><versioning><versions><version>1</version><version>2</version></versions></versioning></metadata>"
    assert latest_maven_version(only_list) == "2"
    with pytest.raises(ToolFetchError):
        latest_maven_version("<metadata/>")
    with pytest.raises(ToolFetchError):
        latest_maven_version("not xml")


def test_fetch_tool_downloads_to_configured_path(settings: Settings, routes: Routes) -> None:
    tool = TOOLS["tiny-remapper"]
    routes.add(tool.metadata_url(), METADATA)
    routes.add(tool.jar_url("0.10.0"), b"fat jar")
    assert tool.jar_url("0.10.0").endswith("/tiny-remapper/0.10.0/tiny-remapper-0.10.0-fat.jar")

    version, dest = fetch_tool(tool, settings=settings, client=routes.client())

    assert version == "0.10.0"
    assert dest == Path(settings.remapper_jar)
    assert dest.read_bytes() == b"fat jar"


def test_fetch_tool_missing_jar(settings: Settings, routes: Routes) -> None:
    tool = TOOLS["forgeflower"]
    routes.add(tool.metadata_url(), METADATA)
    with pytest.raises(ToolFetchError):
        fetch_tool(tool, settings=settings, client=routes.client())


def test_run_tool_captures_output(tmp_path: Path) -> None:
    res = run_tool([sys.executable, "-c", "import sys; print('hi'); sys.exit(3)"], cwd=tmp_path)
    assert res.returncode == 3
    assert res.stdout.strip() == "hi"
    assert not res.ok

    missing = run_tool(["definitely-not-a-binary-xyz"])
    assert missing.returncode == -1
