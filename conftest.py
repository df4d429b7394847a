import pytest

from debuggate.test_utils import SpyBus, WorkspaceFactory


@pytest.fixture
def workspace_factory(tmp_path, monkeypatch):
    # A clean workspace per test, used as the working directory.
    factory = WorkspaceFactory(tmp_path)
    monkeypatch.chdir(tmp_path)
    return factory


@pytest.fixture
def spy_bus(monkeypatch):
    spy = SpyBus()
    with spy.patch(monkeypatch):
        yield spy
