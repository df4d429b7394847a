from contextlib import contextmanager
from enum import Enum
from typing import Iterator, List, Tuple


class ContextKind(str, Enum):
    ORDINARY = "ordinary"
    ASSERT_GATED = "assert-gated"


class ContextStack:
    """
    Lexical frames entered while walking a body.

    A frame is assert-gated only for the closure passed directly as the
    condition of an assert and invoked immediately with no arguments.
    """

    def __init__(self):
        self._frames: List[ContextKind] = []

    @contextmanager
    def enter(self, kind: ContextKind) -> Iterator[None]:
        self._frames.append(kind)
        try:
            yield
        finally:
            self._frames.pop()

    def snapshot(self) -> Tuple[ContextKind, ...]:
        """Enclosing contexts, innermost first."""
        return tuple(reversed(self._frames))
