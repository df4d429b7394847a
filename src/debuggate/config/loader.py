import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List

if sys.version_info < (3, 11):
    import tomli as tomllib
else:
    import tomllib

from debuggate.exceptions import ConfigError

DEFAULT_MARKERS = ["_debugAssert", "debugOnly"]


@dataclass
class DebugGateConfig:
    scan_paths: List[str] = field(default_factory=list)
    markers: List[str] = field(default_factory=lambda: list(DEFAULT_MARKERS))
    external_types: List[str] = field(default_factory=list)
    jobs: int = 1
    root_path: Path = field(default_factory=Path.cwd)


def _find_pyproject_toml(search_path: Path) -> Path:
    current_dir = search_path.resolve()
    while True:
        pyproject_path = current_dir / "pyproject.toml"
        if pyproject_path.is_file():
            return pyproject_path
        if current_dir.parent == current_dir:
            break
        current_dir = current_dir.parent
    raise FileNotFoundError("Could not find pyproject.toml in any parent directory.")


def _string_list(data: Dict[str, Any], key: str, default: List[str]) -> List[str]:
    value = data.get(key, default)
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ConfigError(f"tool.debuggate.{key} must be a list of strings")
    return list(value)


def load_config_from_path(search_path: Path) -> DebugGateConfig:
    try:
        config_path = _find_pyproject_toml(search_path)
    except FileNotFoundError:
        return DebugGateConfig(root_path=search_path.resolve())

    try:
        with open(config_path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"{config_path}: {e}") from e

    section: Dict[str, Any] = data.get("tool", {}).get("debuggate", {})

    jobs = section.get("jobs", 1)
    if not isinstance(jobs, int) or isinstance(jobs, bool) or jobs < 1:
        raise ConfigError("tool.debuggate.jobs must be a positive integer")

    return DebugGateConfig(
        scan_paths=_string_list(section, "scan_paths", []),
        markers=_string_list(section, "markers", DEFAULT_MARKERS),
        external_types=_string_list(section, "external_types", []),
        jobs=jobs,
        root_path=config_path.parent,
    )
