from .check import CancellationToken, CheckRunner, load_error_finding
from .reporter import CheckReporter

__all__ = ["CancellationToken", "CheckRunner", "CheckReporter", "load_error_finding"]
