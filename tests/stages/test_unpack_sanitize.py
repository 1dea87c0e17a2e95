from __future__ import annotations

import zipfile
from pathlib import Path

import pytest
from conftest import SERVER_CLASSES, FakeTools, make_jar

from mc_decompile.core import SanitizeError, UnpackError, Workspace
from mc_decompile.pipeline.types import OFFICIAL, Artifact
from mc_decompile.stages.sanitize.sanitizer import sanitize, strip_archive
from mc_decompile.stages.unpack.inspector import BUNDLER_MARKER, inspect_package, is_bundled


def _artifact(tmp_path: Path, entries: dict[str, bytes], name: str = "server.jar") -> Artifact:
    p = tmp_path / name
    p.write_bytes(make_jar(entries))
    return Artifact(name="raw", path=p, namespace=OFFICIAL)


def _ws(tmp_path: Path) -> Workspace:
    ws = Workspace(root=tmp_path / "ws")
    ws.prepare()
    return ws


def test_marker_detection(tmp_path: Path) -> None:
    plain = _artifact(tmp_path, {"a.class": b"a"}, "plain.jar")
    bundled = _artifact(tmp_path, {BUNDLER_MARKER: b"x", "a.class": b"a"}, "bundled.jar")
    near_miss = _artifact(tmp_path, {"META-INF/versions.list.bak": b"x"}, "near.jar")
    assert not is_bundled(plain.path)
    assert is_bundled(bundled.path)
    assert not is_bundled(near_miss.path)


def test_plain_jar_passes_through_unchanged(tmp_path: Path, fake_tools: FakeTools) -> None:
    art = _artifact(tmp_path, SERVER_CLASSES)
    before = art.path.read_bytes()

    payload, bundled = inspect_package(art, workspace=_ws(tmp_path), tools=fake_tools, java_bin="java")

    assert not bundled
    assert payload == art
    assert payload.path.read_bytes() == before
    assert fake_tools.calls == []


def test_bundled_jar_is_extracted(tmp_path: Path, fake_tools: FakeTools) -> None:
    art = _artifact(tmp_path, {BUNDLER_MARKER: b"x"})
    ws = _ws(tmp_path)

    payload, bundled = inspect_package(art, workspace=ws, tools=fake_tools, java_bin="java")

    assert bundled
    assert payload.path == ws.unpack_dir() / "versions" / "1.0" / "server-1.0.jar"
    assert payload.namespace == OFFICIAL
    (kind, argv), = fake_tools.calls
    assert kind == "unpack"
    assert argv[:3] == ("java", "-DbundlerMainClass=", "-jar")


def test_bundled_jar_failures(tmp_path: Path) -> None:
    art = _artifact(tmp_path, {BUNDLER_MARKER: b"x"})

    with pytest.raises(UnpackError):
        inspect_package(art, workspace=_ws(tmp_path), tools=FakeTools(fail={"unpack"}), java_bin="java")

    with pytest.raises(UnpackError):
        inspect_package(
            art, workspace=_ws(tmp_path), tools=FakeTools(skip_output={"unpack"}), java_bin="java"
        )


def test_not_an_archive(tmp_path: Path, fake_tools: FakeTools) -> None:
    p = tmp_path / "server.jar"
    p.write_bytes(b"<html>404</html>")
    with pytest.raises(UnpackError):
        inspect_package(
            Artifact(name="raw", path=p, namespace=OFFICIAL),
            workspace=_ws(tmp_path),
            tools=fake_tools,
            java_bin="java",
        )


def test_sanitize_drops_only_meta_inf(tmp_path: Path) -> None:
    entries = {**SERVER_CLASSES, "META-INF/sub/x.txt": b"x", "assets/META-INF.txt": b"kept"}
    art = _artifact(tmp_path, entries)
    dest = tmp_path / "stripped.jar"

    stripped, kept, dropped = sanitize(art, dest)

    assert stripped.path == dest
    assert stripped.namespace == art.namespace
    assert (kept, dropped) == (3, 3)
    with zipfile.ZipFile(dest) as zf:
        names = set(zf.namelist())
        assert names == {"net/minecraft/a.class", "net/minecraft/b.class", "assets/META-INF.txt"}
        for n in names:
            assert zf.read(n) == entries[n]
    # input untouched
    with zipfile.ZipFile(art.path) as zf:
        assert set(zf.namelist()) == set(entries)


def test_sanitize_errors(tmp_path: Path) -> None:
    bad = tmp_path / "bad.jar"
    bad.write_bytes(b"nope")
    with pytest.raises(SanitizeError):
        strip_archive(bad, tmp_path / "out.jar")
    assert not (tmp_path / "out.jar").exists()

    art = _artifact(tmp_path, {"a.class": b"a"})
    with pytest.raises(SanitizeError):
        strip_archive(art.path, art.path)
