from .stage import stage_decompile

__all__ = ["stage_decompile"]
