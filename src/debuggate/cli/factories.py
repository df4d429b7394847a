from pathlib import Path

from debuggate.app import DebugGateApp
from debuggate.config import load_config_from_path


def get_project_root() -> Path:
    return Path.cwd()


def make_app() -> DebugGateApp:
    root_path = get_project_root()
    # Raises ConfigError; the command reports it.
    config = load_config_from_path(root_path)
    return DebugGateApp(root_path=root_path, config=config)
