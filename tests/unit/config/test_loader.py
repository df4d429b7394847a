from pathlib import Path
from textwrap import dedent

import pytest

from debuggate.config import DEFAULT_MARKERS, load_config_from_path
from debuggate.exceptions import ConfigError


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    (tmp_path / "pyproject.toml").write_text(
        dedent("""
        [tool.debuggate]
        scan_paths = ["units"]
        markers = ["debugOnly"]
        external_types = ["Widget"]
        jobs = 4
    """)
    )
    (tmp_path / "units" / "nested").mkdir(parents=True)
    return tmp_path


def test_load_config_reads_tool_section(workspace: Path):
    # Act: search starts below the project root
    config = load_config_from_path(workspace / "units" / "nested")

    # Assert
    assert config.scan_paths == ["units"]
    assert config.markers == ["debugOnly"]
    assert config.external_types == ["Widget"]
    assert config.jobs == 4
    assert config.root_path == workspace


def test_load_config_defaults_without_section(tmp_path: Path):
    (tmp_path / "pyproject.toml").write_text("[project]\nname = 'other'\n")

    config = load_config_from_path(tmp_path)

    assert config.scan_paths == []
    assert config.markers == DEFAULT_MARKERS
    assert config.jobs == 1


@pytest.mark.parametrize(
    "body",
    [
        "jobs = 0",
        "jobs = true",
        'markers = "debugOnly"',
        "scan_paths = [1, 2]",
        "not valid toml = = =",
    ],
)
def test_load_config_rejects_invalid_values(tmp_path: Path, body: str):
    (tmp_path / "pyproject.toml").write_text(f"[tool.debuggate]\n{body}\n")

    with pytest.raises(ConfigError):
        load_config_from_path(tmp_path)
