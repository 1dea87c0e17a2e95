from __future__ import annotations

import traceback
from dataclasses import dataclass


class PipelineError(RuntimeError):
    """Base error. `stage` names the pipeline stage that detected it."""

    stage: str = "pipeline"

    def __init__(self, message: str, *, stage: str | None = None) -> None:
        super().__init__(message)
        if stage is not None:
            self.stage = stage


@dataclass(frozen=True, slots=True)
class StageError:
    """
    A normalized error record for stage failures.
    """

    exc_type: str
    message: str
    traceback: str


def stage_error_from_exc(exc: BaseException) -> StageError:
    return StageError(
        exc_type=type(exc).__name__,
        message=str(exc),
        traceback=traceback.format_exc(),
    )


class ToolMissing(PipelineError):
    """A required external executable or jar is not available"""

    stage = "preflight"


class WorkspaceError(PipelineError):
    """Workspace directory cannot be created or is not writable"""

    stage = "preflight"


class VersionNotFound(PipelineError):
    """Version id is not listed in the manifest"""

    stage = "resolve"


class MetadataFetchError(PipelineError):
    """Manifest or per-version metadata could not be retrieved or parsed"""

    stage = "resolve"


class ArtifactFetchError(PipelineError):
    """Primary artifact download failed"""

    stage = "fetch"


class DependencyFetchWarning(UserWarning):
    """
    Non-fatal: a dependency library could not be downloaded.
    Logged and recorded as a stage warning, never raised out of the fetch stage.
    """


class UnpackError(PipelineError):
    stage = "unpack"


class SanitizeError(PipelineError):
    stage = "sanitize"


class MappingUnavailable(PipelineError):
    """Required mapping data does not exist for this version"""

    stage = "mappings"


class MappingExtractionError(PipelineError):
    """Fallback container does not hold the expected mapping entry"""

    stage = "mappings"


class RemapFailure(PipelineError):
    stage = "remap"


class DecompileFailure(PipelineError):
    stage = "decompile"


class ToolFetchError(PipelineError):
    """fetch-tools could not resolve or download a tool"""

    stage = "fetch-tools"
