from debuggate.analysis.reporter import merge_findings
from debuggate.analysis.schema import Finding, FindingCategory
from debuggate.needle import L
from debuggate.spec import SourceLocation


def _finding(kind, unit, line, column, symbol, **context):
    return Finding(
        kind=kind,
        location=SourceLocation(unit, line, column),
        symbol=symbol,
        context=context,
    )


def test_merge_dedupes_identical_sites():
    # Arrange
    read = _finding(L.finding.violation, "lib/a.dart", 3, 2, "A.x", access="is read")
    again = _finding(L.finding.violation, "lib/a.dart", 3, 2, "A.x", access="is read")
    write = _finding(L.finding.violation, "lib/a.dart", 3, 2, "A.x", access="is written")

    # Act
    merged = merge_findings([read, again], [write])

    # Assert
    assert merged == [read, write]


def test_merge_sorts_by_location_then_category():
    violation = _finding(L.finding.violation, "lib/b.dart", 1, 0, "v", access="is read")
    override = _finding(
        L.finding.unsafe_override.dropped, "lib/b.dart", 1, 0, "o", overridden="p"
    )
    error = _finding(L.finding.input_error.cycle, "lib/a.dart", 9, 0, "C", cycle="C -> C")
    later = _finding(L.finding.violation, "lib/b.dart", 1, 4, "a", access="is read")

    merged = merge_findings([later, violation], [override, error])

    assert merged == [error, override, violation, later]
    assert [f.category for f in merged] == [
        FindingCategory.INPUT_ERROR,
        FindingCategory.UNSAFE_OVERRIDE,
        FindingCategory.VIOLATION,
        FindingCategory.VIOLATION,
    ]


def test_finding_messages_render_from_assets():
    finding = _finding(
        L.finding.unsafe_override.dropped, "lib/a.dart", 1, 0, "B.run", overridden="A.run"
    )

    assert finding.label == "unsafe-override"
    assert finding.message == (
        "B.run overrides debug-only A.run without restating the debug-only marker."
    )
    # Missing template data falls back to the kind and symbol.
    broken = _finding(L.finding.violation, "lib/a.dart", 1, 0, "B.run")
    assert broken.message == "finding.violation: B.run"
