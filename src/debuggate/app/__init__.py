from .core import DebugGateApp
from .runners import CancellationToken, CheckReporter, CheckRunner

__all__ = ["DebugGateApp", "CancellationToken", "CheckReporter", "CheckRunner"]
