from contextlib import contextmanager
from typing import Any, Dict, List, Optional, Union

# Import the package so the singleton is patched in place.
import debuggate.common
from debuggate.common.messaging.protocols import Renderer
from debuggate.needle import SemanticPointer


class SpyRenderer(Renderer):
    def __init__(self):
        self.messages: List[Dict[str, Any]] = []

    def render(self, message: str, level: str) -> None:
        pass

    def record(self, level: str, msg_id: SemanticPointer, params: Dict[str, Any]):
        self.messages.append({"level": level, "id": str(msg_id), "params": params})


class SpyBus:
    """
    Spies on the global debuggate.common.bus singleton.

    Modules hold the instance itself (``from debuggate.common import bus``),
    so the instance methods are patched rather than the module attribute.
    """

    def __init__(self):
        self._spy_renderer = SpyRenderer()

    @contextmanager
    def patch(self, monkeypatch: Any):
        real_bus = debuggate.common.bus

        def intercept_render(
            level: str, msg_id: Union[str, SemanticPointer], **kwargs: Any
        ) -> None:
            if isinstance(msg_id, SemanticPointer):
                self._spy_renderer.record(level, msg_id, kwargs)

        monkeypatch.setattr(real_bus, "_render", intercept_render)
        monkeypatch.setattr(real_bus, "_renderer", self._spy_renderer)

        yield self

    def get_messages(self) -> List[Dict[str, Any]]:
        return self._spy_renderer.messages

    def ids(self, level: Optional[str] = None) -> List[str]:
        return [
            m["id"] for m in self.get_messages() if level is None or m["level"] == level
        ]

    def assert_id_called(self, msg_id: SemanticPointer, level: Optional[str] = None):
        key = str(msg_id)
        if key not in self.ids(level):
            raise AssertionError(
                f"Message with ID '{key}' was not sent.\nCaptured IDs: {self.ids()}"
            )

    def assert_id_not_called(self, msg_id: SemanticPointer):
        key = str(msg_id)
        if key in self.ids():
            raise AssertionError(f"Message with ID '{key}' was sent unexpectedly.")
