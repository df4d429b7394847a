from pathlib import Path
from typing import Iterable, List, Optional

from debuggate.analysis.schema import CheckResult
from debuggate.common import bus
from debuggate.config import DebugGateConfig, load_config_from_path
from debuggate.exceptions import CheckCancelled
from debuggate.io import UnitLoader, discover_unit_files, load_units
from debuggate.needle import L
from debuggate.spec import AnnotationMarker

from .runners import CancellationToken, CheckReporter, CheckRunner


class DebugGateApp:
    def __init__(self, root_path: Path, config: Optional[DebugGateConfig] = None):
        self.root_path = root_path
        self.config = config or load_config_from_path(root_path)
        self.loader = UnitLoader()
        self.reporter = CheckReporter()

    def _resolve_paths(self, paths: Optional[Iterable[Path]]) -> List[Path]:
        explicit = list(paths or [])
        if explicit:
            return explicit
        if self.config.scan_paths:
            return [self.config.root_path / p for p in self.config.scan_paths]
        return [self.root_path]

    def make_runner(
        self, markers: Optional[List[str]] = None, jobs: Optional[int] = None
    ) -> CheckRunner:
        effective_markers = markers or self.config.markers
        effective_jobs = jobs or self.config.jobs
        bus.debug(L.debug.log.config, markers=effective_markers, jobs=effective_jobs)
        return CheckRunner(
            is_marked=AnnotationMarker(effective_markers),
            external_types=self.config.external_types,
            jobs=effective_jobs,
            loader=self.loader,
        )

    def analyze(
        self,
        paths: Optional[Iterable[Path]] = None,
        markers: Optional[List[str]] = None,
        jobs: Optional[int] = None,
        token: Optional[CancellationToken] = None,
    ) -> Optional[CheckResult]:
        files = discover_unit_files(self._resolve_paths(paths))
        if not files:
            bus.warning(L.check.run.no_units)
            return None

        bus.info(L.check.run.start, units=len(files))
        units, load_errors = load_units(files, self.loader)
        for unit in units:
            bus.debug(
                L.check.unit.loaded, path=unit.path, declarations=len(unit.declarations)
            )
        runner = self.make_runner(markers, jobs)
        return runner.check_units(units, load_errors, token)

    def run_check(
        self,
        paths: Optional[Iterable[Path]] = None,
        markers: Optional[List[str]] = None,
        jobs: Optional[int] = None,
        token: Optional[CancellationToken] = None,
    ) -> bool:
        try:
            result = self.analyze(paths, markers, jobs, token)
        except CheckCancelled:
            bus.warning(L.check.run.cancelled)
            return False
        if result is None:
            return True
        return self.reporter.report(result)
