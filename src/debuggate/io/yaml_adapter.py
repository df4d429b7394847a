"""
Loads parsed source units from YAML (or JSON) documents.

A front-end serializes each parsed unit as a mapping::

    unit: lib/debug_only_access.dart
    declarations:
      - kind: function
        name: badDebugAssertAccess
        line: 14
        body:
          - {kind: call, name: globalFunctionFromDebugLib, line: 16}

Every node is a mapping selected by its ``kind`` key. A bare string in
expression position is an identifier, and bare numbers and booleans are
literals. Nodes without ``line``/``column`` inherit the location of their
parent.
"""

import logging
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

import yaml

from debuggate.exceptions import UnitLoadError
from debuggate.spec import (
    Assert,
    Assignment,
    BinaryOperation,
    Block,
    Cascade,
    CascadeReceiver,
    Closure,
    ContainerDecl,
    ContainerKind,
    EnumValueDecl,
    Expression,
    ExpressionStatement,
    FunctionDecl,
    If,
    IndexExpression,
    InstanceCreation,
    Invocation,
    Literal,
    LocalVariable,
    MemberDecl,
    MemberKind,
    MethodCall,
    Name,
    NullCheck,
    Parameter,
    PrefixOperation,
    PropertyAccess,
    Return,
    SourceLocation,
    SourceUnit,
    Statement,
    This,
    TopLevelDecl,
    VariableDecl,
)

log = logging.getLogger(__name__)

UNIT_SUFFIXES = (".yaml", ".yml", ".json")


class _Malformed(Exception):
    pass


def _require(node: Dict[str, Any], key: str) -> Any:
    if key not in node:
        raise _Malformed(f"'{node.get('kind', '?')}' node is missing '{key}'")
    return node[key]


def _names(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, list) and all(isinstance(v, str) for v in value):
        return list(value)
    raise _Malformed(f"expected a name or a list of names, got {value!r}")


class UnitLoader:
    def __init__(self):
        self._expressions: Dict[str, Callable[[Dict[str, Any], SourceLocation], Expression]] = {
            "name": self._name,
            "this": lambda node, loc: This(location=loc),
            "literal": self._literal,
            "property": self._property,
            "call": self._call,
            "invoke": self._invoke,
            "assign": self._assign,
            "binary": self._binary,
            "prefix": self._prefix,
            "null_check": self._null_check,
            "index": self._index,
            "cascade": self._cascade,
            "receiver": lambda node, loc: CascadeReceiver(location=loc),
            "new": self._new,
            "closure": self._closure,
        }
        self._statements: Dict[str, Callable[[Dict[str, Any], SourceLocation], Statement]] = {
            "expression": self._expression_statement,
            "var": self._local_variable,
            "return": self._return,
            "if": self._if,
            "assert": self._assert,
            "block": lambda node, loc: self._block(node.get("statements"), loc),
        }

    # --- Entry points ---

    def load(self, path: Path) -> SourceUnit:
        try:
            with path.open("r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except (OSError, UnicodeDecodeError, yaml.YAMLError) as e:
            raise UnitLoadError(str(path), str(e)) from e
        return self.load_document(data, default_path=path.as_posix())

    def load_document(self, data: Any, default_path: str = "<memory>") -> SourceUnit:
        if not isinstance(data, dict):
            raise UnitLoadError(default_path, "a unit document must be a mapping")

        unit_path = str(data.get("unit", default_path))
        root = SourceLocation(unit_path, 1, 0)
        try:
            declarations = [
                self._declaration(decl, root)
                for decl in data.get("declarations") or []
            ]
        except (_Malformed, KeyError, TypeError, ValueError) as e:
            raise UnitLoadError(unit_path, str(e)) from e
        return SourceUnit(path=unit_path, declarations=declarations)

    # --- Helpers ---

    def _location(self, node: Dict[str, Any], parent: SourceLocation) -> SourceLocation:
        line = node.get("line", parent.line)
        column = node.get("column", parent.column if "line" not in node else 0)
        return SourceLocation(parent.unit, int(line), int(column))

    def _params(self, value: Any, loc: SourceLocation) -> List[Parameter]:
        params = []
        for item in value or []:
            if isinstance(item, str):
                params.append(Parameter(item, location=loc))
            else:
                params.append(
                    Parameter(
                        _require(item, "name"),
                        item.get("type"),
                        location=self._location(item, loc),
                    )
                )
        return params

    def _block(self, value: Any, loc: SourceLocation) -> Block:
        if value is None:
            return Block(location=loc)
        if not isinstance(value, list):
            raise _Malformed(f"expected a list of statements, got {value!r}")
        return Block([self._statement(s, loc) for s in value], location=loc)

    # --- Declarations ---

    def _declaration(self, node: Dict[str, Any], parent: SourceLocation) -> TopLevelDecl:
        kind = _require(node, "kind")
        loc = self._location(node, parent)
        name = _require(node, "name")
        annotations = _names(node.get("annotations"))

        if kind == "function":
            return FunctionDecl(
                name,
                type=node.get("type"),
                params=self._params(node.get("params"), loc),
                body=self._block(node.get("body"), loc),
                annotations=annotations,
                location=loc,
            )
        if kind == "variable":
            initializer = node.get("initializer")
            return VariableDecl(
                name,
                type=node.get("type"),
                initializer=self._expression(initializer, loc)
                if initializer is not None
                else None,
                annotations=annotations,
                location=loc,
            )

        try:
            container_kind = ContainerKind(kind)
        except ValueError:
            raise _Malformed(f"unknown declaration kind '{kind}'") from None

        interfaces = _names(node.get("implements"))
        extension_target = None
        if container_kind == ContainerKind.EXTENSION:
            extension_target = _require(node, "target")
        else:
            interfaces.extend(_names(node.get("constraints")))

        values = []
        for value in node.get("values") or []:
            if isinstance(value, str):
                values.append(EnumValueDecl(value, location=loc))
            else:
                values.append(
                    EnumValueDecl(
                        _require(value, "name"),
                        annotations=_names(value.get("annotations")),
                        location=self._location(value, loc),
                    )
                )

        return ContainerDecl(
            name,
            container_kind,
            superclass=node.get("extends"),
            mixins=_names(node.get("with")),
            interfaces=interfaces,
            extension_target=extension_target,
            members=[self._member(m, loc) for m in node.get("members") or []],
            enum_values=values,
            annotations=annotations,
            location=loc,
        )

    def _member(self, node: Dict[str, Any], parent: SourceLocation) -> MemberDecl:
        loc = self._location(node, parent)
        try:
            kind = MemberKind(_require(node, "kind"))
        except ValueError:
            raise _Malformed(f"unknown member kind '{node['kind']}'") from None
        body = node.get("body")
        initializer = node.get("initializer")
        return MemberDecl(
            str(_require(node, "name")),
            kind,
            type=node.get("type"),
            params=self._params(node.get("params"), loc),
            is_static=bool(node.get("static", False)),
            body=self._block(body, loc) if body is not None else None,
            initializer=self._expression(initializer, loc)
            if initializer is not None
            else None,
            annotations=_names(node.get("annotations")),
            location=loc,
        )

    # --- Statements ---

    def _statement(self, node: Any, parent: SourceLocation) -> Statement:
        if not isinstance(node, dict):
            return ExpressionStatement(self._expression(node, parent), location=parent)
        kind = _require(node, "kind")
        loc = self._location(node, parent)
        builder = self._statements.get(kind)
        if builder is None:
            # Any expression node in statement position is an expression statement.
            return ExpressionStatement(self._expression(node, parent), location=loc)
        return builder(node, loc)

    def _expression_statement(self, node, loc) -> Statement:
        return ExpressionStatement(
            self._expression(_require(node, "expression"), loc), location=loc
        )

    def _local_variable(self, node, loc) -> Statement:
        initializer = node.get("initializer")
        return LocalVariable(
            _require(node, "name"),
            node.get("type"),
            self._expression(initializer, loc) if initializer is not None else None,
            location=loc,
        )

    def _return(self, node, loc) -> Statement:
        value = node.get("value")
        return Return(
            self._expression(value, loc) if value is not None else None, location=loc
        )

    def _if(self, node, loc) -> Statement:
        otherwise = node.get("else")
        return If(
            self._expression(_require(node, "condition"), loc),
            self._block(node.get("then"), loc),
            self._block(otherwise, loc) if otherwise is not None else None,
            location=loc,
        )

    def _assert(self, node, loc) -> Statement:
        message = node.get("message")
        return Assert(
            self._expression(_require(node, "condition"), loc),
            self._expression(message, loc) if message is not None else None,
            location=loc,
        )

    # --- Expressions ---

    def _expression(self, node: Any, parent: SourceLocation) -> Expression:
        if isinstance(node, str):
            return Name(node, location=parent)
        if isinstance(node, bool):
            return Literal("bool", node, location=parent)
        if isinstance(node, int):
            return Literal("int", node, location=parent)
        if isinstance(node, float):
            return Literal("double", node, location=parent)
        if not isinstance(node, dict):
            raise _Malformed(f"cannot read an expression from {node!r}")

        kind = _require(node, "kind")
        builder = self._expressions.get(kind)
        if builder is None:
            raise _Malformed(f"unknown expression kind '{kind}'")
        return builder(node, self._location(node, parent))

    def _args(self, node: Dict[str, Any], loc: SourceLocation) -> List[Expression]:
        return [self._expression(arg, loc) for arg in node.get("args") or []]

    def _name(self, node, loc) -> Expression:
        return Name(_require(node, "id"), location=loc)

    def _literal(self, node, loc) -> Expression:
        return Literal(_require(node, "type"), node.get("value"), location=loc)

    def _property(self, node, loc) -> Expression:
        return PropertyAccess(
            self._expression(_require(node, "target"), loc),
            _require(node, "name"),
            bool(node.get("null_aware", False)),
            location=loc,
        )

    def _call(self, node, loc) -> Expression:
        target = node.get("target")
        return MethodCall(
            self._expression(target, loc) if target is not None else None,
            _require(node, "name"),
            self._args(node, loc),
            bool(node.get("null_aware", False)),
            location=loc,
        )

    def _invoke(self, node, loc) -> Expression:
        return Invocation(
            self._expression(_require(node, "function"), loc),
            self._args(node, loc),
            location=loc,
        )

    def _assign(self, node, loc) -> Expression:
        return Assignment(
            self._expression(_require(node, "target"), loc),
            self._expression(_require(node, "value"), loc),
            node.get("op", "="),
            location=loc,
        )

    def _binary(self, node, loc) -> Expression:
        return BinaryOperation(
            _require(node, "op"),
            self._expression(_require(node, "left"), loc),
            self._expression(_require(node, "right"), loc),
            location=loc,
        )

    def _prefix(self, node, loc) -> Expression:
        return PrefixOperation(
            _require(node, "op"),
            self._expression(_require(node, "operand"), loc),
            location=loc,
        )

    def _null_check(self, node, loc) -> Expression:
        return NullCheck(self._expression(_require(node, "operand"), loc), location=loc)

    def _index(self, node, loc) -> Expression:
        return IndexExpression(
            self._expression(_require(node, "target"), loc),
            self._expression(_require(node, "index"), loc),
            bool(node.get("null_aware", False)),
            location=loc,
        )

    def _cascade(self, node, loc) -> Expression:
        return Cascade(
            self._expression(_require(node, "target"), loc),
            [self._expression(s, loc) for s in _require(node, "sections")],
            bool(node.get("null_aware", False)),
            location=loc,
        )

    def _new(self, node, loc) -> Expression:
        return InstanceCreation(
            _require(node, "type"), self._args(node, loc), location=loc
        )

    def _closure(self, node, loc) -> Expression:
        if "expression" in node:
            body = Block(
                [Return(self._expression(node["expression"], loc), location=loc)],
                location=loc,
            )
        else:
            body = self._block(node.get("body"), loc)
        return Closure(self._params(node.get("params"), loc), body, location=loc)


def discover_unit_files(paths: Iterable[Path]) -> List[Path]:
    found = set()
    for path in paths:
        if path.is_dir():
            for candidate in path.rglob("*"):
                if candidate.is_file() and candidate.suffix.lower() in UNIT_SUFFIXES:
                    found.add(candidate)
        elif path.suffix.lower() in UNIT_SUFFIXES:
            found.add(path)
        else:
            log.warning(f"Ignoring {path}: not a unit document.")
    return sorted(found)


def load_units(
    paths: Iterable[Path], loader: Optional[UnitLoader] = None
) -> Tuple[List[SourceUnit], List[UnitLoadError]]:
    """
    Loads every unit file, collecting load failures instead of raising.

    Returns a ``(units, failures)`` pair.
    """
    effective_loader = loader or UnitLoader()
    units: List[SourceUnit] = []
    failures: List[UnitLoadError] = []
    for path in paths:
        try:
            units.append(effective_loader.load(path))
        except UnitLoadError as e:
            log.warning(f"Could not load unit {path}: {e.reason}")
            failures.append(e)
    return units, failures
