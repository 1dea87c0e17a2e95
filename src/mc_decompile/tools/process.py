from __future__ import annotations

import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol, Sequence

import structlog

from mc_decompile.core import monotonic_ms

log = structlog.get_logger(__name__)


@dataclass(frozen=True, slots=True)
class ToolResult:
    argv: tuple[str, ...]
    returncode: int
    stdout: str
    stderr: str
    duration_ms: int

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    def tail(self, *, lines: int = 20) -> str:
        """Last lines of combined output, for error messages."""
        text = "\n".join(x for x in (self.stdout, self.stderr) if x)
        return "\n".join(text.splitlines()[-lines:])


class ToolRunner(Protocol):
    def __call__(
        self,
        argv: Sequence[str],
        *,
        cwd: Path | None = None,
        timeout: float | None = None,
    ) -> ToolResult: ...


def run_tool(
    argv: Sequence[str],
    *,
    cwd: Path | None = None,
    timeout: float | None = None,
) -> ToolResult:
    """
    Run an external tool to completion and capture its output.

    timeout=None blocks until the process exits. A timeout or a missing
    executable is reported as returncode -1 rather than raised.
    """
    args = tuple(str(a) for a in argv)
    t0 = monotonic_ms()
    log.debug("tool.start", argv=list(args), cwd=str(cwd) if cwd else None)
    try:
        proc = subprocess.run(
            args,
            cwd=str(cwd) if cwd else None,
            capture_output=True,
            text=True,
            errors="replace",
            timeout=timeout,
            check=False,
        )
    except subprocess.TimeoutExpired as e:
        return ToolResult(
            argv=args,
            returncode=-1,
            stdout=_as_text(e.stdout),
            stderr=_as_text(e.stderr) + f"\ntimed out after {timeout}s",
            duration_ms=monotonic_ms() - t0,
        )
    except OSError as e:
        return ToolResult(
            argv=args,
            returncode=-1,
            stdout="",
            stderr=str(e),
            duration_ms=monotonic_ms() - t0,
        )

    duration = monotonic_ms() - t0
    log.debug("tool.finish", argv0=args[0], returncode=proc.returncode, duration_ms=duration)
    return ToolResult(
        argv=args,
        returncode=proc.returncode,
        stdout=proc.stdout or "",
        stderr=proc.stderr or "",
        duration_ms=duration,
    )


def _as_text(v: bytes | str | None) -> str:
    if v is None:
        return ""
    if isinstance(v, bytes):
        return v.decode("utf-8", errors="replace")
    return v


def java_jar_argv(java_bin: str, jar: Path, *args: object, props: Sequence[str] = ()) -> list[str]:
    return [java_bin, *props, "-jar", str(jar), *(str(a) for a in args)]
