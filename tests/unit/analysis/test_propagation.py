from debuggate.analysis.engines import PropagationResolver
from debuggate.index import DeclarationIndex, index_unit
from debuggate.needle import L
from debuggate.spec import AnnotationMarker
from debuggate.test_utils import unit_from_yaml


def _resolve(*sources: str):
    units = [unit_from_yaml(s, path=f"lib/u{i}.dart") for i, s in enumerate(sources)]
    index = DeclarationIndex.build(
        [index_unit(u, AnnotationMarker(["debugOnly"])) for u in units]
    )
    resolved, findings = PropagationResolver(index).resolve()

    def is_debug_only(qualified_name: str) -> bool:
        symbol = next(s for s in index.symbols if s.qualified_name == qualified_name)
        return resolved.is_debug_only(symbol.id)

    return resolved, findings, is_debug_only


def test_container_marking_blankets_declared_members_only():
    # Arrange / Act
    _, findings, is_debug_only = _resolve(
        """
        declarations:
          - kind: class
            name: Base
            members:
              - {kind: method, name: run}
          - kind: class
            name: Tools
            extends: Base
            annotations: debugOnly
            members:
              - {kind: method, name: inspect}
              - {kind: method, name: create, static: true}
              - {kind: method, name: dump, static: true, annotations: debugOnly}
          - {kind: function, name: trace, annotations: debugOnly}
          - {kind: variable, name: level, type: int}
        """
    )

    # Assert
    assert is_debug_only("Tools.inspect")
    assert is_debug_only("Tools")
    assert not is_debug_only("Base.run")
    assert not is_debug_only("Tools.create")
    assert is_debug_only("Tools.dump")
    assert is_debug_only("trace")
    assert not is_debug_only("level")
    assert findings == []


def test_override_dropping_marker_is_unsafe_and_stays_unmarked():
    _, findings, is_debug_only = _resolve(
        """
        declarations:
          - kind: mixin
            name: Helpers
            members:
              - {kind: operator, name: "+", params: [other], annotations: debugOnly}
              - {kind: getter, name: size, type: int, annotations: debugOnly}
          - kind: class
            name: Product
            with: Helpers
            line: 10
            members:
              - {kind: operator, name: "+", params: [other], line: 11}
              - {kind: getter, name: size, type: int, annotations: debugOnly, line: 12}
        """
    )

    assert len(findings) == 1
    finding = findings[0]
    assert finding.kind == L.finding.unsafe_override.dropped
    assert finding.symbol == "Product.operator +"
    assert finding.context == {"overridden": "Helpers.operator +"}
    assert finding.location.line == 11
    assert not is_debug_only("Product.operator +")
    assert is_debug_only("Product.size")


def test_marked_override_of_regular_member_is_unsafe():
    _, findings, _ = _resolve(
        """
        declarations:
          - kind: class
            name: Base
            members:
              - {kind: method, name: run}
          - kind: mixin
            name: OnBase
            implements: Base
          - kind: class
            name: Bad
            with: OnBase
            members:
              - {kind: method, name: run, annotations: debugOnly}
        """
    )

    assert [(str(f.kind), f.symbol, f.context["overridden"]) for f in findings] == [
        ("finding.unsafe_override.introduced", "Bad.run", "Base.run")
    ]


def test_mixin_marking_does_not_mark_the_applying_class():
    _, findings, is_debug_only = _resolve(
        """
        declarations:
          - kind: mixin
            name: DebugMixin
            annotations: debugOnly
            members:
              - {kind: method, name: probe}
          - kind: enum
            name: Regular
            with: DebugMixin
            values: [one]
          - kind: enum
            name: Marked
            annotations: debugOnly
            values: [two]
        """
    )

    assert is_debug_only("DebugMixin.probe")
    assert not is_debug_only("Regular")
    assert not is_debug_only("Regular.one")
    assert not is_debug_only("Regular.values")
    assert is_debug_only("Marked.two")
    assert is_debug_only("Marked.values")
    assert findings == []


def test_cycles_are_input_errors_that_fail_their_units():
    resolved, findings, _ = _resolve(
        """
        declarations:
          - {kind: class, name: A, extends: B, line: 1}
          - {kind: class, name: B, extends: A, line: 2}
        """,
        """
        declarations:
          - {kind: class, name: Fine}
        """,
    )

    assert len(findings) == 1
    assert findings[0].kind == L.finding.input_error.cycle
    assert findings[0].symbol == "A"
    assert findings[0].context == {"cycle": "A -> B -> A"}
    assert resolved.failed_units == frozenset({"lib/u0.dart"})


def test_marked_interface_member_is_not_hidden_by_unmarked_base():
    _, findings, is_debug_only = _resolve(
        """
        declarations:
          - kind: class
            name: Base
            members:
              - {kind: method, name: run}
          - kind: class
            name: Contract
            members:
              - {kind: method, name: run, annotations: debugOnly}
          - kind: class
            name: Impl
            extends: Base
            implements: Contract
            members:
              - {kind: method, name: run, line: 10}
        """
    )

    assert [(f.kind, f.symbol, f.location.line) for f in findings] == [
        (L.finding.unsafe_override.dropped, "Impl.run", 10)
    ]
    assert findings[0].context == {"overridden": "Contract.run"}
    assert not is_debug_only("Impl.run")


def test_marked_base_member_is_not_hidden_by_unmarked_mixin():
    _, findings, _ = _resolve(
        """
        declarations:
          - kind: class
            name: Base
            members:
              - {kind: method, name: run, annotations: debugOnly}
          - kind: mixin
            name: Plain
            members:
              - {kind: method, name: run}
          - kind: class
            name: Impl
            extends: Base
            with: Plain
            members:
              - {kind: method, name: run, line: 7}
        """
    )

    assert [(f.kind, f.symbol, f.context) for f in findings] == [
        (L.finding.unsafe_override.dropped, "Impl.run", {"overridden": "Base.run"})
    ]


def test_marked_override_is_safe_when_any_supertype_is_debug_only():
    _, findings, is_debug_only = _resolve(
        """
        declarations:
          - kind: class
            name: Base
            members:
              - {kind: method, name: run}
          - kind: class
            name: Contract
            members:
              - {kind: method, name: run, annotations: debugOnly}
          - kind: class
            name: Impl
            extends: Base
            implements: Contract
            members:
              - {kind: method, name: run, annotations: debugOnly}
        """
    )

    assert findings == []
    assert is_debug_only("Impl.run")
