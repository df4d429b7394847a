import shutil
from collections import Counter
from pathlib import Path

import pytest
from typer.testing import CliRunner

from debuggate.cli.main import app
from debuggate.io import UnitLoader
from debuggate.test_utils import check_units, summarize

FIXTURES = Path(__file__).parent / "fixtures"
ACCESS_UNIT = "lib/debug_only_access.dart"

V = "violation"
O = "unsafe_override"

EXPECTED = Counter(
    {
        # Top-level variable and function
        (V, "globalVaraibleFromDebugLib", 15): 2,
        (V, "globalFunctionFromDebugLib", 16): 1,
        (V, "globalFunctionFromDebugLib", 17): 1,
        (V, "globalFunctionFromDebugLib", 18): 1,
        # Static member through the type name
        (V, "MixinFromDebugLib.staticMethodFromDebugLib", 19): 1,
        (V, "MixinFromDebugLib.staticMethodFromDebugLib", 20): 1,
        # Field and getter/setter, plain and null-aware
        (V, "MixinFromDebugLib.fieldFromDebugLib", 21): 1,
        (V, "MixinFromDebugLib.fieldFromDebugLib", 22): 1,
        (V, "MixinFromDebugLib.debugGetSet", 23): 1,
        (V, "MixinFromDebugLib.debugGetSet", 24): 1,
        (V, "MixinFromDebugLib.debugGetSet=", 25): 1,
        (V, "MixinFromDebugLib.debugGetSet=", 26): 1,
        # Cascades with compound assignments
        (V, "MixinFromDebugLib.fieldFromDebugLib", 27): 2,
        (V, "MixinFromDebugLib.debugGetSet", 27): 1,
        (V, "MixinFromDebugLib.debugGetSet", 28): 2,
        (V, "MixinFromDebugLib.debugGetSet=", 28): 1,
        (V, "MixinFromDebugLib.fieldFromDebugLib", 29): 2,
        (V, "MixinFromDebugLib.debugGetSet", 29): 1,
        (V, "MixinFromDebugLib.debugGetSet", 30): 2,
        (V, "MixinFromDebugLib.debugGetSet=", 30): 1,
        # Tear-offs, extensions and enums
        (V, "MixinFromDebugLib.methodFromDebugLib", 31): 1,
        (V, "DebugOnly.debugOnlyExtensionMethod", 32): 1,
        (V, "DebugOnly.debugOnlyExtensionMethod", 33): 1,
        (V, "DebugOnlyEnum.foo", 34): 1,
        (V, "DebugOnlyEnum.values", 35): 1,
        (V, "DebugOnlyMixinOnRegularEnum.debugOnlyMethod", 36): 1,
        # Operators resolved through the mixin
        (V, "MixinFromDebugLib.operator ~", 43): 1,
        (V, "MixinFromDebugLib.operator ~", 44): 1,
        (V, "MixinFromDebugLib.operator []", 45): 1,
        (V, "MixinFromDebugLib.debugGetSet", 45): 1,
        (V, "MixinFromDebugLib.operator []", 46): 1,
        (V, "MixinFromDebugLib.debugGetSet", 46): 1,
        # Implicit `this` inside an unmarked override
        (V, "MixinFromDebugLib.debugGetSet", 83): 2,
        (V, "MixinFromDebugLib.debugGetSet=", 83): 1,
        (V, "MixinFromDebugLib.fieldFromDebugLib", 84): 3,
        # Debug-only bodies are not exempt
        (V, "MixinOnBaseClass.value", 100): 1,
        # Overrides that disagree with what they override
        (O, "ProductionClassWithDebugOnlyMixin.operator +", 81): 1,
        (O, "MixinOnBaseClass.value", 96): 1,
        (O, "MixinOnBaseClass.operator ~", 100): 1,
        (O, "ClassWithBadAnnotation1.run", 106): 1,
        (O, "ClassWithBadAnnotation2.run", 114): 1,
        (O, "ClassWithBadAnnotation2.value", 120): 1,
    }
)


@pytest.fixture(scope="module")
def units():
    loader = UnitLoader()
    return [loader.load(path) for path in sorted(FIXTURES.glob("*.yaml"))]


def test_fixture_findings_match_expected(units):
    result = check_units(units)

    assert Counter(summarize(result)) == EXPECTED
    assert result.input_errors == []
    assert {f.location.unit for f in result.findings} == {ACCESS_UNIT}


def test_gated_closure_is_clean(units):
    result = check_units(units)

    good = [f for f in result.findings if 50 <= f.location.line <= 63]
    assert good == []


def test_findings_are_ordered_by_location(units):
    result = check_units(units)

    positions = [(f.location.line, f.location.column) for f in result.findings]
    assert positions == sorted(positions)
    # An override and a violation on the same line: the override comes first.
    on_line_100 = [f.category.value for f in result.findings if f.location.line == 100]
    assert on_line_100 == [O, V]


def test_cascade_access_is_described(units):
    result = check_units(units)

    line_27 = sorted(
        f.message
        for f in result.findings
        if f.location.line == 27 and f.symbol.endswith("fieldFromDebugLib")
    )
    assert line_27 == [
        "MixinFromDebugLib.fieldFromDebugLib is debug-only and is read by a "
        "compound assignment in a cascade outside an assert-gated closure.",
        "MixinFromDebugLib.fieldFromDebugLib is debug-only and is written by a "
        "compound assignment in a cascade outside an assert-gated closure.",
    ]


def test_parallel_run_matches_serial_run(units):
    serial = summarize(check_units(units))
    parallel = summarize(check_units(list(reversed(units)), jobs=4))

    assert parallel == serial


def test_marker_set_controls_the_result(units):
    # No declaration in the fixtures carries `debugOnly`.
    result = check_units(units, markers=["debugOnly"])

    assert result.is_clean


def test_cli_end_to_end(tmp_path, monkeypatch):
    for fixture in FIXTURES.glob("*.yaml"):
        shutil.copy(fixture, tmp_path / fixture.name)
    monkeypatch.chdir(tmp_path)

    result = CliRunner().invoke(app, ["check", str(tmp_path)])

    assert result.exit_code == 1
    total = sum(EXPECTED.values())
    assert f"Found {total} finding(s) in 1 unit(s)." in result.output
    assert (
        f"{ACCESS_UNIT}:81:0: [unsafe-override] "
        "ProductionClassWithDebugOnlyMixin.operator + overrides debug-only "
        "MixinFromDebugLib.operator + without restating the debug-only marker."
    ) in result.output
