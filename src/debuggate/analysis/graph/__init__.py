from .builder import InheritanceGraphBuilder
from .algorithms import detect_cycles, topological_order

__all__ = ["InheritanceGraphBuilder", "detect_cycles", "topological_order"]
