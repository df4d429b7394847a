from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Tuple

from debuggate.needle import L, SemanticPointer, needle
from debuggate.spec import SourceLocation


class FindingCategory(str, Enum):
    VIOLATION = "violation"
    UNSAFE_OVERRIDE = "unsafe_override"
    INPUT_ERROR = "input_error"


_CATEGORY_ORDER = {
    FindingCategory.INPUT_ERROR: 0,
    FindingCategory.UNSAFE_OVERRIDE: 1,
    FindingCategory.VIOLATION: 2,
}


@dataclass
class Finding:
    """
    A single result of a check run.

    The kind is a semantic pointer (e.g. L.finding.violation) so that the
    message template can be resolved by the Needle runtime.
    """

    kind: SemanticPointer

    location: SourceLocation

    # Qualified name of the symbol the finding is about
    symbol: str

    # Data used to render the message (access form, overridden symbol, ...)
    context: Dict[str, Any] = field(default_factory=dict)

    @property
    def category(self) -> FindingCategory:
        return FindingCategory(str(self.kind).split(".")[1])

    @property
    def label(self) -> str:
        return needle.get(getattr(L.finding, self.category.value).label)

    @property
    def message(self) -> str:
        template = needle.get(self.kind)
        try:
            return template.format(symbol=self.symbol, **self.context)
        except (KeyError, IndexError):
            return f"{self.kind}: {self.symbol}"

    def sort_key(self) -> Tuple:
        return (
            self.location.unit,
            self.location.line,
            self.location.column,
            _CATEGORY_ORDER[self.category],
            self.symbol,
            str(self.kind),
            self.context.get("access", ""),
        )

    def dedupe_key(self) -> Tuple:
        return (
            self.location,
            str(self.kind),
            self.symbol,
            tuple(sorted((k, str(v)) for k, v in self.context.items())),
        )
