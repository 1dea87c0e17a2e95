from .context import MappingProvider, PipelineState, RunContext
from .runner import PipelineRunner
from .stage import Stage, StageResult

__all__ = [
    "MappingProvider",
    "PipelineRunner",
    "PipelineState",
    "RunContext",
    "Stage",
    "StageResult",
]
