from __future__ import annotations

from pathlib import Path
from typing import Iterable

from mc_decompile.core import atomic_write_text

TINY_HEADER_PREFIX = "tiny\t2\t0"


def namespace_header(from_ns: str, to_ns: str) -> str:
    return f"{TINY_HEADER_PREFIX}\t{from_ns}\t{to_ns}"


def normalize_lines(lines: Iterable[str], *, from_ns: str, to_ns: str) -> list[str]:
    """
    Line 1 is kept as-is (a schema marker), the namespace header goes in as line 2,
    everything after follows unchanged. Empty input yields only the header.
    """
    header = namespace_header(from_ns, to_ns)
    it = iter(lines)
    first = next(it, None)
    if first is None:
        return [header]
    return [first, header, *it]


def normalize_text(text: str, *, from_ns: str, to_ns: str) -> str:
    return "\n".join(normalize_lines(text.splitlines(), from_ns=from_ns, to_ns=to_ns)) + "\n"


def normalize_file(src: Path, dest: Path, *, from_ns: str, to_ns: str) -> Path:
    if Path(src).resolve() == Path(dest).resolve():
        raise ValueError(f"Refusing to normalize {src} in place")
    text = Path(src).read_text(encoding="utf-8")
    atomic_write_text(dest, normalize_text(text, from_ns=from_ns, to_ns=to_ns))
    return dest
