from .stage import stage_resolve

__all__ = ["stage_resolve"]
