from .stage import stage_sanitize

__all__ = ["stage_sanitize"]
