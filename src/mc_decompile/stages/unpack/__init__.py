from .stage import stage_unpack

__all__ = ["stage_unpack"]
