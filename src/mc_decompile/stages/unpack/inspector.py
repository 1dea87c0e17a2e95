from __future__ import annotations

import zipfile
from pathlib import Path

import structlog

from mc_decompile.core import UnpackError, Workspace
from mc_decompile.pipeline.types import Artifact
from mc_decompile.tools.process import ToolResult, ToolRunner, java_jar_argv

log = structlog.get_logger(__name__)

BUNDLER_MARKER = "META-INF/versions.list"
BUNDLER_OUTPUT_SUBDIR = "versions"

# An empty main class makes the bundler extract its jars and exit.
BUNDLER_EXTRACT_PROPS = ("-DbundlerMainClass=",)


def is_bundled(path: Path) -> bool:
    try:
        with zipfile.ZipFile(path) as zf:
            try:
                zf.getinfo(BUNDLER_MARKER)
            except KeyError:
                return False
            return True
    except (zipfile.BadZipFile, OSError) as e:
        raise UnpackError(f"Cannot open {path} as an archive: {e}") from e


def find_payload(unpack_dir: Path) -> Path | None:
    out = unpack_dir / BUNDLER_OUTPUT_SUBDIR
    if not out.is_dir():
        return None
    jars = sorted(p for p in out.rglob("*.jar") if p.is_file())
    return jars[0] if jars else None


def unpack_bundle(
    artifact: Artifact,
    *,
    workspace: Workspace,
    tools: ToolRunner,
    java_bin: str,
    timeout: float | None = None,
) -> tuple[Artifact, ToolResult]:
    unpack_dir = workspace.unpack_dir()
    unpack_dir.mkdir(parents=True, exist_ok=True)

    argv = java_jar_argv(
        java_bin, artifact.path.resolve(), props=BUNDLER_EXTRACT_PROPS
    )
    res = tools(argv, cwd=unpack_dir, timeout=timeout)
    if not res.ok:
        raise UnpackError(
            f"Bundler extraction exited with {res.returncode}: {res.tail()}"
        )

    payload = find_payload(unpack_dir)
    if payload is None:
        raise UnpackError(
            f"Bundler extraction produced no jar under {unpack_dir / BUNDLER_OUTPUT_SUBDIR}"
        )

    log.info("bundle.unpacked", payload=str(payload))
    return artifact.derive(name="payload", path=payload), res


def inspect_package(
    artifact: Artifact,
    *,
    workspace: Workspace,
    tools: ToolRunner,
    java_bin: str,
    timeout: float | None = None,
) -> tuple[Artifact, bool]:
    """
    Return (payload, bundled). Without the marker entry the input is the payload, untouched.
    """
    if not is_bundled(artifact.path):
        return artifact, False
    payload, _ = unpack_bundle(
        artifact, workspace=workspace, tools=tools, java_bin=java_bin, timeout=timeout
    )
    return payload, True
