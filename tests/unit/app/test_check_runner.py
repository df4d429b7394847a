import random
from pathlib import Path

import pytest

from debuggate.app.runners import CancellationToken, CheckRunner
from debuggate.exceptions import CheckCancelled, UnitLoadError
from debuggate.needle import L
from debuggate.spec import AnnotationMarker
from debuggate.test_utils import unit_from_yaml

FIXTURES = Path(__file__).parents[2] / "integration" / "fixtures"


def _runner(jobs: int = 1) -> CheckRunner:
    return CheckRunner(is_marked=AnnotationMarker(["_debugAssert"]), jobs=jobs)


def _fixture_units():
    runner = _runner()
    return [runner.loader.load(p) for p in sorted(FIXTURES.glob("*.yaml"))]


def _keys(result):
    return [(str(f.kind), str(f.location), f.symbol, f.message) for f in result.findings]


def test_check_is_idempotent():
    units = _fixture_units()
    runner = _runner()

    first = runner.check_units(units)
    second = runner.check_units(units)

    assert first.findings
    assert _keys(first) == _keys(second)


@pytest.mark.parametrize("seed", [0, 1, 2])
def test_unit_order_and_parallelism_do_not_change_findings(seed: int):
    units = _fixture_units()
    baseline = _keys(_runner().check_units(units))

    shuffled = list(units)
    random.Random(seed).shuffle(shuffled)
    parallel = _runner(jobs=4).check_units(shuffled)

    assert _keys(parallel) == baseline


def test_cancellation_aborts_without_a_report():
    token = CancellationToken()
    token.cancel()

    with pytest.raises(CheckCancelled):
        _runner(jobs=2).check_units(_fixture_units(), token=token)


def test_cancellation_from_a_worker_stops_the_run(mocker):
    token = CancellationToken()
    units = _fixture_units()
    scan_unit = mocker.patch(
        "debuggate.app.runners.check.ReferenceScanner.scan_unit",
        side_effect=lambda unit: token.cancel(),
    )

    with pytest.raises(CheckCancelled):
        _runner().check_units(units, token=token)
    assert scan_unit.call_count == 1


def test_load_errors_become_input_errors():
    unit = unit_from_yaml("declarations: []", path="lib/ok.dart")
    error = UnitLoadError("units/bad.yaml", "while parsing a flow sequence")

    result = _runner().check_units([unit], [error])

    assert result.unit_count == 2
    assert len(result.input_errors) == 1
    finding = result.input_errors[0]
    assert finding.kind == L.finding.input_error.unit_load
    assert finding.symbol == "units/bad.yaml"
    assert finding.message == "Could not load unit: while parsing a flow sequence"
    assert not result.is_clean


def test_check_paths_discovers_and_loads(tmp_path: Path):
    (tmp_path / "broken.yaml").write_text("declarations: [\n")
    for fixture in FIXTURES.glob("*.yaml"):
        (tmp_path / fixture.name).write_text(fixture.read_text())

    result = _runner().check_paths([tmp_path])

    assert result.unit_count == 3
    assert [f.kind for f in result.input_errors] == [L.finding.input_error.unit_load]
    assert result.violations
