from __future__ import annotations

import hashlib
from pathlib import Path

from conftest import Routes, make_jar

from mc_decompile.core import ArtifactFetchError, Workspace
from mc_decompile.manifest import VersionMetadata
from mc_decompile.pipeline.types import OFFICIAL
from mc_decompile.stages.fetch.runner import fetch_libraries, fetch_primary


def _meta(server_sha1: str | None = None) -> VersionMetadata:
    server = {"url": "https://cdn.test/server.jar"}
    if server_sha1:
        server["sha1"] = server_sha1
    return VersionMetadata.model_validate(
        {
            "id": "1.0",
            "downloads": {"server": server},
            "libraries": [
                {"name": "ok", "downloads": {"artifact": {"url": "https://lib.test/ok.jar", "path": "x/ok.jar"}}},
                {"name": "gone", "downloads": {"artifact": {"url": "https://lib.test/gone.jar", "path": "x/gone.jar"}}},
                {"name": "cached", "downloads": {"artifact": {"url": "https://lib.test/cached.jar", "path": "x/cached.jar"}}},
            ],
        }
    )


def test_primary_overwrites_existing(tmp_path: Path, routes: Routes) -> None:
    jar = make_jar({"a.class": b"1"})
    routes.add("https://cdn.test/server.jar", jar)
    ws = Workspace(root=tmp_path)
    ws.prepare()
    ws.primary_artifact("server").write_bytes(b"stale partial download")

    res = fetch_primary(routes.client(), metadata=_meta(), side="server", workspace=ws)
    art = res.unwrap()
    assert art.namespace == OFFICIAL
    assert art.path.read_bytes() == jar


def test_primary_checksum_and_missing(tmp_path: Path, routes: Routes) -> None:
    jar = make_jar({"a.class": b"1"})
    routes.add("https://cdn.test/server.jar", jar)
    ws = Workspace(root=tmp_path)
    ws.prepare()
    client = routes.client()

    good = fetch_primary(client, metadata=_meta(hashlib.sha1(jar).hexdigest()), side="server", workspace=ws)
    assert good.ok

    bad = fetch_primary(client, metadata=_meta("0" * 40), side="server", workspace=ws)
    assert isinstance(bad.error, ArtifactFetchError)

    no_client_jar = fetch_primary(client, metadata=_meta(), side="client", workspace=ws)
    assert isinstance(no_client_jar.error, ArtifactFetchError)

    routes.responses.pop("https://cdn.test/server.jar")
    gone = fetch_primary(client, metadata=_meta(), side="server", workspace=ws)
    assert isinstance(gone.error, ArtifactFetchError)


def test_libraries_are_best_effort(tmp_path: Path, routes: Routes) -> None:
    routes.add("https://lib.test/ok.jar", b"ok")
    ws = Workspace(root=tmp_path)
    ws.prepare()
    cached = ws.library("x/cached.jar")
    cached.parent.mkdir(parents=True)
    cached.write_bytes(b"already here")

    out = fetch_libraries(routes.client(), _meta().dependencies(), workspace=ws, workers=2)

    by_name = {r.dependency.name: r for r in out}
    assert [r.dependency.name for r in out] == ["ok", "gone", "cached"]
    assert by_name["ok"].status == "downloaded"
    assert ws.library("x/ok.jar").read_bytes() == b"ok"
    assert by_name["gone"].status == "failed"
    assert "gone" in str(by_name["gone"].warning)
    assert by_name["cached"].status == "present"
    assert cached.read_bytes() == b"already here"
    assert "https://lib.test/cached.jar" not in routes.requested
