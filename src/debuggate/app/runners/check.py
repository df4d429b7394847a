import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Sequence, TypeVar

from debuggate.analysis.engines import PropagationResolver
from debuggate.analysis.reporter import ViolationReporter
from debuggate.analysis.scanner import ReferenceScanner
from debuggate.analysis.schema import CheckResult, Finding
from debuggate.exceptions import CheckCancelled, UnitLoadError
from debuggate.index import DeclarationIndex, index_unit
from debuggate.io import UnitLoader, discover_unit_files, load_units
from debuggate.needle import L
from debuggate.spec import MarkerPredicate, SourceLocation, SourceUnit

log = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")


class CancellationToken:
    """Cooperative cancellation shared between the caller and worker threads."""

    def __init__(self):
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise CheckCancelled()


def load_error_finding(error: UnitLoadError) -> Finding:
    return Finding(
        kind=L.finding.input_error.unit_load,
        location=SourceLocation(error.path, 1, 0),
        symbol=error.path,
        context={"reason": error.reason},
    )


class CheckRunner:
    """
    Runs the check pipeline over a set of units.

    Indexing and scanning are per-unit and run on a thread pool; building the
    index and propagating marks happen once, after every unit is indexed.
    """

    def __init__(
        self,
        is_marked: MarkerPredicate,
        external_types: Iterable[str] = (),
        jobs: int = 1,
        loader: Optional[UnitLoader] = None,
    ):
        self.is_marked = is_marked
        self.external_types = list(external_types)
        self.jobs = max(1, jobs)
        self.loader = loader or UnitLoader()

    def _map(
        self,
        fn: Callable[[T], R],
        items: Sequence[T],
        token: CancellationToken,
    ) -> List[R]:
        def guarded(item: T) -> R:
            token.raise_if_cancelled()
            return fn(item)

        if self.jobs == 1 or len(items) <= 1:
            return [guarded(item) for item in items]

        with ThreadPoolExecutor(max_workers=self.jobs) as pool:
            futures = [pool.submit(guarded, item) for item in items]
            try:
                return [future.result() for future in futures]
            except CheckCancelled:
                for future in futures:
                    future.cancel()
                raise

    def check_units(
        self,
        units: Sequence[SourceUnit],
        load_errors: Iterable[UnitLoadError] = (),
        token: Optional[CancellationToken] = None,
    ) -> CheckResult:
        token = token or CancellationToken()
        load_findings = [load_error_finding(e) for e in load_errors]

        tables = self._map(lambda unit: index_unit(unit, self.is_marked), units, token)
        token.raise_if_cancelled()

        index = DeclarationIndex.build(tables, self.external_types)
        resolved, override_findings = PropagationResolver(index).resolve()
        log.debug(
            f"Indexed {len(index.symbols)} symbol(s) in {len(index.containers)} "
            f"container(s); {len(resolved.failed_units)} unit(s) failed"
        )
        token.raise_if_cancelled()

        scanner = ReferenceScanner(resolved)
        scans = self._map(scanner.scan_unit, units, token)
        token.raise_if_cancelled()

        sites = [site for scan in scans for site in scan.sites]
        scan_findings = [finding for scan in scans for finding in scan.findings]
        findings = ViolationReporter(resolved).report(
            sites, load_findings, index.findings, override_findings, scan_findings
        )
        return CheckResult(
            findings=findings, unit_count=len(units) + len(load_findings)
        )

    def check_paths(
        self, paths: Iterable[Path], token: Optional[CancellationToken] = None
    ) -> CheckResult:
        files = discover_unit_files(paths)
        units, load_errors = load_units(files, self.loader)
        return self.check_units(units, load_errors, token)
