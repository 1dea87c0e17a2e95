from .stage import stage_fetch

__all__ = ["stage_fetch"]
