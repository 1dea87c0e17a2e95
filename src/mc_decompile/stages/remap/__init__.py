from .stage import stage_remap

__all__ = ["stage_remap"]
