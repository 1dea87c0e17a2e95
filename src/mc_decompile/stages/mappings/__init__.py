from .providers import ChainedMappingProvider, DirectMappingProvider, make_provider
from .stage import stage_mappings

__all__ = [
    "ChainedMappingProvider",
    "DirectMappingProvider",
    "make_provider",
    "stage_mappings",
]
