from __future__ import annotations

import gzip
import io
import json
import shutil
import sys
import zipfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Sequence

import httpx
import pytest

from mc_decompile.core import Settings
from mc_decompile.tools.process import ToolResult

MANIFEST_URL = "https://meta.test/mc/game/version_manifest_v2.json"
META_URL = "https://fabric-meta.test"
MAVEN_URL = "https://fabric-maven.test"


def make_jar(entries: dict[str, bytes]) -> bytes:
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w") as zf:
        for name, data in entries.items():
            zf.writestr(name, data)
    return buf.getvalue()


def gz(data: bytes) -> bytes:
    return gzip.compress(data)


class Routes:
    """URL -> (status, body) table served through httpx.MockTransport. Unknown URLs are 404."""

    def __init__(self) -> None:
        self.responses: dict[str, tuple[int, bytes]] = {}
        self.requested: list[str] = []

    def add(self, url: str, body: bytes | str | Any, status: int = 200) -> None:
        if isinstance(body, str):
            data = body.encode("utf-8")
        elif isinstance(body, bytes):
            data = body
        else:
            data = json.dumps(body).encode("utf-8")
        self.responses[url] = (status, data)

    def handler(self, request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        self.requested.append(url)
        status, data = self.responses.get(url, (404, b"not found"))
        return httpx.Response(status, content=data)

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def client(self) -> httpx.Client:
        return httpx.Client(transport=self.transport())


@dataclass
class FakeTools:
    """
    Stands in for java: extracts bundles, copies remap input to output,
    writes one source file for the decompiler.
    """

    fail: set[str] = field(default_factory=set)
    skip_output: set[str] = field(default_factory=set)
    calls: list[tuple[str, tuple[str, ...]]] = field(default_factory=list)
    bundled_payload: bytes = field(default_factory=lambda: make_jar({"a.class": b"payload"}))

    def kind(self, argv: Sequence[str]) -> str:
        if "-DbundlerMainClass=" in argv:
            return "unpack"
        jar = Path(argv[argv.index("-jar") + 1]).name
        return "remap" if "remapper" in jar else "decompile"

    def __call__(
        self,
        argv: Sequence[str],
        *,
        cwd: Path | None = None,
        timeout: float | None = None,
    ) -> ToolResult:
        args = tuple(str(a) for a in argv)
        kind = self.kind(args)
        self.calls.append((kind, args))
        if kind in self.fail:
            return ToolResult(argv=args, returncode=3, stdout="", stderr=f"{kind} broke", duration_ms=1)

        if kind not in self.skip_output:
            rest = args[args.index("-jar") + 2 :]
            if kind == "unpack":
                assert cwd is not None
                out = Path(cwd) / "versions" / "1.0" / "server-1.0.jar"
                out.parent.mkdir(parents=True, exist_ok=True)
                out.write_bytes(self.bundled_payload)
            elif kind == "remap":
                src, dst = Path(rest[0]), Path(rest[1])
                shutil.copyfile(src, dst)
            else:
                out_dir = Path(rest[-1])
                (out_dir / "net" / "minecraft").mkdir(parents=True, exist_ok=True)
                (out_dir / "net" / "minecraft" / "Main.java").write_text("class Main {}\n")

        return ToolResult(argv=args, returncode=0, stdout="ok", stderr="", duration_ms=1)

    def remap_passes(self) -> list[tuple[str, ...]]:
        return [a for k, a in self.calls if k == "remap"]


@pytest.fixture()
def routes() -> Routes:
    return Routes()


@pytest.fixture()
def fake_tools() -> FakeTools:
    return FakeTools()


@pytest.fixture()
def settings(tmp_path: Path) -> Settings:
    tools_dir = tmp_path / "tools"
    remapper = tools_dir / "tiny-remapper" / "tiny-remapper.jar"
    decompiler = tools_dir / "forgeflower" / "forgeflower.jar"
    for p in (remapper, decompiler):
        p.parent.mkdir(parents=True, exist_ok=True)
        p.write_bytes(b"jar")
    return Settings(
        workspace_root=tmp_path / "workspaces",
        manifest_url=MANIFEST_URL,
        fabric_meta_url=META_URL,
        fabric_maven_url=MAVEN_URL,
        java_bin=sys.executable,
        tools_dir=tools_dir,
        library_workers=2,
        _env_file=None,
    )


SERVER_CLASSES = {
    "net/minecraft/a.class": b"\xca\xfe\xba\xbe a",
    "net/minecraft/b.class": b"\xca\xfe\xba\xbe b",
    "META-INF/MANIFEST.MF": b"Manifest-Version: 1.0\n",
    "META-INF/MOJANGCS.SF": b"signature",
}


def install_version(
    routes: Routes,
    version: str = "1.0",
    *,
    bundled: bool = False,
    mappings: bool = True,
    libraries: Sequence[dict[str, Any]] = (),
) -> dict[str, str]:
    """Register manifest, metadata and jar downloads for `version`. Returns the urls used."""
    meta_url = f"https://meta.test/v1/packages/{version}.json"
    server_url = f"https://cdn.test/{version}/server.jar"
    mappings_url = f"https://cdn.test/{version}/server.txt"

    routes.add(
        MANIFEST_URL,
        {
            "latest": {"release": version, "snapshot": version},
            "versions": [
                {"id": "0.9", "type": "release", "url": "https://meta.test/v1/packages/0.9.json"},
                {"id": version, "type": "release", "url": meta_url},
            ],
        },
    )

    downloads: dict[str, Any] = {"server": {"url": server_url}}
    if mappings:
        downloads["server_mappings"] = {"url": mappings_url}
        routes.add(mappings_url, "a -> net.minecraft.Main:\n")
    routes.add(
        meta_url,
        {"id": version, "type": "release", "downloads": downloads, "libraries": list(libraries)},
    )

    if bundled:
        jar = make_jar({"META-INF/versions.list": b"abc\t1.0\tserver-1.0.jar\n", "net/minecraft/bundler/Main.class": b"x"})
    else:
        jar = make_jar(SERVER_CLASSES)
    routes.add(server_url, jar)
    return {"metadata": meta_url, "server": server_url, "mappings": mappings_url}


def install_fabric(
    routes: Routes,
    version: str = "1.0",
    *,
    direct_tiny: bool = False,
    fallback_jar: bool = True,
    named: bool = True,
    yarn_text: str = "v1\tofficial\tintermediary\tnamed\nCLASS\ta\tnet/minecraft/class_1\tnet/minecraft/Main\n",
) -> None:
    routes.add(
        f"{META_URL}/v2/versions/intermediary/{version}",
        [{"maven": f"net.fabricmc:intermediary:{version}", "version": version, "stable": True}],
    )
    base = f"{MAVEN_URL}/net/fabricmc/intermediary/{version}/intermediary-{version}"
    tiny = "tiny\t2\t0\tofficial\tintermediary\nc\ta\tnet/minecraft/class_1\n"
    if direct_tiny:
        routes.add(f"{base}.tiny", tiny)
    if fallback_jar:
        routes.add(f"{base}-v2.jar", make_jar({"mappings/mappings.tiny": tiny.encode()}))

    if named:
        routes.add(
            f"{META_URL}/v2/versions/yarn/{version}",
            [
                {"maven": f"net.fabricmc:yarn:{version}+build.1", "version": f"{version}+build.1", "build": 1},
                {"maven": f"net.fabricmc:yarn:{version}+build.2", "version": f"{version}+build.2", "build": 2},
            ],
        )
        routes.add(
            f"{MAVEN_URL}/net/fabricmc/yarn/{version}+build.2/yarn-{version}+build.2-tiny.gz",
            gz(yarn_text.encode()),
        )


@pytest.fixture()
def make_ctx(tmp_path: Path, settings: Settings, routes: Routes, fake_tools: FakeTools):
    from mc_decompile.core import Workspace, get_logger
    from mc_decompile.pipeline.context import RunContext
    from mc_decompile.pipeline.events import EventSink
    from mc_decompile.stages.mappings import make_provider

    clients: list[httpx.Client] = []

    def _make(version: str = "1.0", mappings: str = "direct") -> RunContext:
        ws = Workspace(root=tmp_path / "ws")
        ws.prepare()
        client = routes.client()
        clients.append(client)
        return RunContext(
            run_id="test",
            version=version,
            workspace=ws,
            settings=settings,
            logger=get_logger("test"),
            events=EventSink(ws.runs_dir() / "test" / "events.jsonl"),
            http=client,
            tools=fake_tools,
            provider=make_provider(mappings, meta_url=META_URL, maven_url=MAVEN_URL),
        )

    yield _make
    for c in clients:
        c.close()
