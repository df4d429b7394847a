from .propagation import PropagationResolver, ResolvedIndex

__all__ = ["PropagationResolver", "ResolvedIndex"]
