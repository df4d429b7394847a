from .finding import Finding, FindingCategory
from .results import CheckResult

__all__ = ["Finding", "FindingCategory", "CheckResult"]
