from .decompile import stage_decompile
from .fetch import stage_fetch
from .mappings import stage_mappings
from .remap import stage_remap
from .resolve import stage_resolve
from .sanitize import stage_sanitize
from .unpack import stage_unpack

__all__ = [
    "stage_resolve",
    "stage_fetch",
    "stage_unpack",
    "stage_sanitize",
    "stage_mappings",
    "stage_remap",
    "stage_decompile",
]
