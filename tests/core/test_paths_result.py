from __future__ import annotations

import os
from pathlib import Path

import pytest

from mc_decompile.core import (
    MappingUnavailable,
    RemapFailure,
    ToolMissing,
    Workspace,
    WorkspaceError,
    default_workspace_root,
    err,
    errors,
    ok,
)


def test_workspace_layout(tmp_path: Path) -> None:
    ws = Workspace(root=tmp_path)
    assert ws.primary_artifact("server") == tmp_path / "server.jar"
    assert ws.stripped_artifact("server") == tmp_path / "server-stripped.jar"
    assert ws.mapped("intermediary") == tmp_path / "build" / "intermediary-mapped.jar"
    assert ws.sources_dir() == tmp_path / "sources"
    assert ws.library("com/a/b.jar") == (tmp_path / "libraries" / "com/a/b.jar").resolve()
    assert default_workspace_root(Path("w"), "1.20.4") == Path("w") / "1.20.4"


def test_workspace_rejects_escaping_library_path(tmp_path: Path) -> None:
    with pytest.raises(ValueError):
        Workspace(root=tmp_path).library("../../etc/passwd")


def test_workspace_prepare_creates_dirs(tmp_path: Path) -> None:
    ws = Workspace(root=tmp_path / "a" / "b")
    ws.prepare()
    assert ws.root.is_dir()
    assert ws.libraries_dir().is_dir()
    assert ws.build_dir().is_dir()


@pytest.mark.skipif(os.geteuid() == 0, reason="root ignores directory permissions")
def test_workspace_prepare_rejects_read_only(tmp_path: Path) -> None:
    root = tmp_path / "ro"
    root.mkdir()
    (root / "libraries").mkdir()
    (root / "mappings").mkdir()
    (root / "build").mkdir()
    root.chmod(0o500)
    try:
        with pytest.raises(WorkspaceError):
            Workspace(root=root).prepare()
    finally:
        root.chmod(0o700)


def test_workspace_prepare_fails_on_file(tmp_path: Path) -> None:
    f = tmp_path / "file"
    f.write_text("x")
    with pytest.raises(WorkspaceError):
        Workspace(root=f).prepare()


def test_result_ok_and_err() -> None:
    r = ok(3)
    assert r.ok and r.unwrap() == 3

    e = err(MappingUnavailable("nope"))
    assert not e.ok
    with pytest.raises(MappingUnavailable):
        e.unwrap()


def test_error_stage_names() -> None:
    assert ToolMissing("x").stage == "preflight"
    assert RemapFailure("x").stage == "remap"
    assert RemapFailure("x", stage="custom").stage == "custom"

    try:
        raise ValueError("boom")
    except Exception as exc:
        rec = errors.stage_error_from_exc(exc)
    assert rec.exc_type == "ValueError"
    assert "boom" in rec.message
