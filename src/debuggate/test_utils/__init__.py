from .bus import SpyBus
from .workspace import WorkspaceFactory
from .helpers import check_sources, check_units, summarize, unit_from_yaml

__all__ = [
    "SpyBus",
    "WorkspaceFactory",
    "check_sources",
    "check_units",
    "summarize",
    "unit_from_yaml",
]
