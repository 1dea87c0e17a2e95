from .models import (
    Dependency,
    Download,
    Library,
    VersionEntry,
    VersionManifest,
    VersionMetadata,
)
from .resolver import VersionResolver

__all__ = [
    "Dependency",
    "Download",
    "Library",
    "VersionEntry",
    "VersionManifest",
    "VersionMetadata",
    "VersionResolver",
]
