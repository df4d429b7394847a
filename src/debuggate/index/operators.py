"""
Operator desugaring table.

Maps declared operators and their surface syntax to the lookup key of the
operator symbol on the receiver's type, e.g. `a + b` -> "+", `~a` -> "~",
`-a` -> "unary-", `a[i]` -> "[]" and `a[i] = v` -> "[]=".
"""

from typing import Dict, Optional, Tuple

# declared operator name -> {parameter count: lookup key}
DECLARED_OPERATORS: Dict[str, Dict[int, str]] = {
    "+": {1: "+"},
    "-": {0: "unary-", 1: "-"},
    "*": {1: "*"},
    "/": {1: "/"},
    "~/": {1: "~/"},
    "%": {1: "%"},
    "<": {1: "<"},
    "<=": {1: "<="},
    ">": {1: ">"},
    ">=": {1: ">="},
    "==": {1: "=="},
    "&": {1: "&"},
    "|": {1: "|"},
    "^": {1: "^"},
    "<<": {1: "<<"},
    ">>": {1: ">>"},
    ">>>": {1: ">>>"},
    "~": {0: "~"},
    "[]": {1: "[]"},
    "[]=": {2: "[]="},
}

# binary surface syntax -> lookup key
BINARY_OPERATORS: Dict[str, str] = {
    op: arities[1] for op, arities in DECLARED_OPERATORS.items() if 1 in arities
}
BINARY_OPERATORS.pop("[]")
BINARY_OPERATORS["!="] = "=="

# prefix surface syntax -> lookup key
PREFIX_OPERATORS: Dict[str, str] = {"~": "~", "-": "unary-"}

INDEX_READ = "[]"
INDEX_WRITE = "[]="

# Results that do not depend on the operand types.
BOOLEAN_OPERATORS = {"==", "!=", "<", "<=", ">", ">=", "&&", "||", "!", "is", "is!"}
NON_OVERLOADABLE = {"&&", "||", "??", "is", "is!", "!"}


class OperatorArityError(Exception):
    def __init__(self, name: str, actual: int, expected: Tuple[int, ...]):
        self.name = name
        self.actual = actual
        self.expected = expected
        super().__init__(f"operator {name} takes {expected}, got {actual}")


class UnknownOperatorError(Exception):
    def __init__(self, name: str):
        self.name = name
        super().__init__(f"'{name}' is not a user-definable operator")


def declared_operator_key(name: str, param_count: int) -> str:
    arities = DECLARED_OPERATORS.get(name)
    if arities is None:
        raise UnknownOperatorError(name)
    key = arities.get(param_count)
    if key is None:
        raise OperatorArityError(name, param_count, tuple(sorted(arities)))
    return key


def compound_operator_key(assignment_operator: str) -> Optional[str]:
    """`+=` -> "+"; `=` and `??=` have no operator to resolve."""
    if assignment_operator in ("=", "??="):
        return None
    return BINARY_OPERATORS.get(assignment_operator[:-1])


def operator_display(key: str) -> str:
    if key == "unary-":
        return "operator unary-"
    return f"operator {key}"
