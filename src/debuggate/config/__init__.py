from .loader import DebugGateConfig, load_config_from_path, DEFAULT_MARKERS

__all__ = ["DebugGateConfig", "load_config_from_path", "DEFAULT_MARKERS"]
