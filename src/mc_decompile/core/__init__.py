from .config import Settings, load_settings
from .errors import (
    ArtifactFetchError,
    DecompileFailure,
    DependencyFetchWarning,
    MappingExtractionError,
    MappingUnavailable,
    MetadataFetchError,
    PipelineError,
    RemapFailure,
    SanitizeError,
    StageError,
    ToolFetchError,
    ToolMissing,
    UnpackError,
    VersionNotFound,
    WorkspaceError,
)
from .fs import (
    atomic_write_text,
    new_tmp_path,
    safe_unlink,
)
from .hashing import FileDigest, file_digest
from .logging import ILogger, bind, clear_bindings, configure_logging, get_logger
from .paths import Workspace, default_workspace_root
from .provenance import new_run_id
from .result import Result, err, ok
from .time import monotonic_ms, utc_now_iso

__all__ = [
    "ArtifactFetchError",
    "DecompileFailure",
    "DependencyFetchWarning",
    "FileDigest",
    "ILogger",
    "MappingExtractionError",
    "MappingUnavailable",
    "MetadataFetchError",
    "PipelineError",
    "RemapFailure",
    "Result",
    "SanitizeError",
    "Settings",
    "StageError",
    "ToolFetchError",
    "ToolMissing",
    "UnpackError",
    "VersionNotFound",
    "Workspace",
    "WorkspaceError",
    "atomic_write_text",
    "bind",
    "clear_bindings",
    "configure_logging",
    "default_workspace_root",
    "err",
    "file_digest",
    "get_logger",
    "load_settings",
    "monotonic_ms",
    "new_run_id",
    "new_tmp_path",
    "ok",
    "safe_unlink",
    "utc_now_iso",
]
