from collections import defaultdict
from typing import Dict, List

from debuggate.analysis.schema import CheckResult, Finding, FindingCategory
from debuggate.common import bus
from debuggate.needle import L


class CheckReporter:
    def report(self, result: CheckResult) -> bool:
        findings_by_unit: Dict[str, List[Finding]] = defaultdict(list)
        for finding in result.findings:
            findings_by_unit[finding.location.unit].append(finding)

        for unit in sorted(findings_by_unit):
            findings = findings_by_unit[unit]
            bus.error(L.check.unit.findings, path=unit, count=len(findings))
            for finding in findings:
                # Findings arrive sorted; keep that order within the unit.
                report = (
                    bus.warning
                    if finding.category == FindingCategory.UNSAFE_OVERRIDE
                    else bus.error
                )
                report(
                    L.check.finding.line,
                    path=finding.location.unit,
                    line=finding.location.line,
                    column=finding.location.column,
                    label=finding.label,
                    message=finding.message,
                )

        if not result.is_clean:
            bus.error(
                L.check.run.fail,
                count=len(result.findings),
                units=len(findings_by_unit),
            )
            return False
        bus.success(L.check.run.success)
        return True
