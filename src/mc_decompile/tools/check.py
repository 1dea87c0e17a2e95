from __future__ import annotations

import shutil
from pathlib import Path

from mc_decompile.core import Settings, ToolMissing


def check_tools(settings: Settings) -> None:
    """
    Fail before any network or filesystem work if a required tool is absent.
    """
    missing: list[str] = []

    if shutil.which(settings.java_bin) is None:
        missing.append(f"java executable {settings.java_bin!r} not found on PATH")

    for label, jar in (
        ("remapper", settings.remapper_jar),
        ("decompiler", settings.decompiler_jar),
    ):
        if jar is None or not Path(jar).is_file():
            missing.append(f"{label} jar not found at {jar}")

    if missing:
        raise ToolMissing(
            "; ".join(missing) + " (run `mc-decompile fetch-tools` to download the jars)"
        )
