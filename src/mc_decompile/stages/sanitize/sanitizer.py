from __future__ import annotations

import shutil
import zipfile
from pathlib import Path

from mc_decompile.core import SanitizeError, new_tmp_path, safe_unlink
from mc_decompile.pipeline.types import Artifact

RESERVED_DIR = "META-INF/"


def is_reserved(entry_name: str) -> bool:
    return entry_name.upper().startswith(RESERVED_DIR)


def strip_archive(src: Path, dest: Path) -> tuple[int, int]:
    """
    Copy every entry of `src` not under META-INF/ into a new archive at `dest`.

    Returns (kept, dropped).
    """
    if Path(src).resolve() == Path(dest).resolve():
        raise SanitizeError(f"Refusing to strip {src} in place")

    tmp = new_tmp_path(dest)
    kept = dropped = 0
    try:
        with zipfile.ZipFile(src) as zin, zipfile.ZipFile(
            tmp, "w", compression=zipfile.ZIP_DEFLATED
        ) as zout:
            for info in zin.infolist():
                if is_reserved(info.filename):
                    dropped += 1
                    continue
                if info.is_dir():
                    zout.writestr(info, b"")
                else:
                    with zin.open(info) as fin, zout.open(info, "w") as fout:
                        shutil.copyfileobj(fin, fout, 1024 * 1024)
                kept += 1
        tmp.replace(dest)
    except (zipfile.BadZipFile, zipfile.LargeZipFile, OSError, RuntimeError) as e:
        raise SanitizeError(f"Failed to strip {src}: {e}") from e
    finally:
        safe_unlink(tmp)
    return kept, dropped


def sanitize(artifact: Artifact, dest: Path) -> tuple[Artifact, int, int]:
    kept, dropped = strip_archive(artifact.path, dest)
    return artifact.derive(name="stripped", path=dest), kept, dropped
