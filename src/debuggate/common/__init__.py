from debuggate.needle import needle
from .messaging.bus import bus

__all__ = ["bus", "needle"]
