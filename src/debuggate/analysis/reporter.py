from typing import Dict, Iterable, List, Tuple

from debuggate.needle import L

from .engines.propagation import ResolvedIndex
from .scanner.types import ReferenceSite
from .schema import Finding


class ViolationReporter:
    """
    Turns reference sites into violations and merges every finding of a run
    into a single, duplicate-free, deterministically ordered list.
    """

    def __init__(self, resolved: ResolvedIndex):
        self.resolved = resolved

    def violation_for(self, site: ReferenceSite) -> Finding:
        symbol = self.resolved.index.symbol(site.symbol_id)
        return Finding(
            kind=L.finding.violation,
            location=site.location,
            symbol=symbol.qualified_name,
            context={"access": site.describe()},
        )

    def violations(self, sites: Iterable[ReferenceSite]) -> List[Finding]:
        return [
            self.violation_for(site)
            for site in sites
            if self.resolved.is_debug_only(site.symbol_id) and not site.is_gated
        ]

    def report(
        self, sites: Iterable[ReferenceSite], *finding_groups: Iterable[Finding]
    ) -> List[Finding]:
        return merge_findings(*finding_groups, self.violations(sites))


def merge_findings(*finding_groups: Iterable[Finding]) -> List[Finding]:
    unique: Dict[Tuple, Finding] = {}
    for group in finding_groups:
        for finding in group:
            unique.setdefault(finding.dedupe_key(), finding)
    return sorted(unique.values(), key=lambda f: f.sort_key())
