import hashlib
from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class FileDigest:
    sha256: str
    sha1: str
    bytes: int


def file_digest(path: Path, *, chunk_bytes: int = 1024 * 1024) -> FileDigest:
    """
    sha256 for our own records, sha1 because that is what version metadata publishes.
    """
    h256 = hashlib.sha256()
    h1 = hashlib.sha1()
    total = 0
    with path.open("rb") as f:
        while True:
            b = f.read(chunk_bytes)
            if not b:
                break
            h256.update(b)
            h1.update(b)
            total += len(b)

    return FileDigest(sha256=h256.hexdigest(), sha1=h1.hexdigest(), bytes=total)
