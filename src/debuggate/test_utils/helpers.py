from textwrap import dedent
from typing import Iterable, List, Optional, Tuple

import yaml

from debuggate.analysis.schema import CheckResult
from debuggate.app.runners import CheckRunner
from debuggate.config import DEFAULT_MARKERS
from debuggate.io import UnitLoader
from debuggate.spec import AnnotationMarker, SourceUnit


def unit_from_yaml(source: str, path: str = "lib/main.dart") -> SourceUnit:
    """Builds a unit from an inline YAML document (`unit:` overrides `path`)."""
    return UnitLoader().load_document(yaml.safe_load(dedent(source)), default_path=path)


def check_units(
    units: Iterable[SourceUnit],
    markers: Optional[Iterable[str]] = None,
    external_types: Iterable[str] = (),
    jobs: int = 1,
) -> CheckResult:
    runner = CheckRunner(
        is_marked=AnnotationMarker(markers or DEFAULT_MARKERS),
        external_types=external_types,
        jobs=jobs,
    )
    return runner.check_units(list(units))


def check_sources(*sources: str, **kwargs) -> CheckResult:
    """Checks inline YAML units; unnamed units get distinct default paths."""
    units = [
        unit_from_yaml(source, path=f"lib/unit_{i}.dart")
        for i, source in enumerate(sources)
    ]
    return check_units(units, **kwargs)


def summarize(result: CheckResult) -> List[Tuple[str, str, int]]:
    """(category, symbol, line) for each finding, in report order."""
    return [
        (f.category.value, f.symbol, f.location.line) for f in result.findings
    ]
