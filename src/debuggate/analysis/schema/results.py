from dataclasses import dataclass, field
from typing import List

from .finding import Finding, FindingCategory


@dataclass
class CheckResult:
    findings: List[Finding] = field(default_factory=list)
    unit_count: int = 0

    def _of(self, category: FindingCategory) -> List[Finding]:
        return [f for f in self.findings if f.category == category]

    @property
    def violations(self) -> List[Finding]:
        return self._of(FindingCategory.VIOLATION)

    @property
    def unsafe_overrides(self) -> List[Finding]:
        return self._of(FindingCategory.UNSAFE_OVERRIDE)

    @property
    def input_errors(self) -> List[Finding]:
        return self._of(FindingCategory.INPUT_ERROR)

    @property
    def is_clean(self) -> bool:
        return len(self.findings) == 0
