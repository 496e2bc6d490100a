"""Shared fixtures: isolate tests from user config and DEFERLRU_* env vars."""

import os

import pytest
import structlog

from deferlru.config.settings import CacheSettings, get_settings


@pytest.fixture(autouse=True)
def _isolated_settings(tmp_path, monkeypatch):
    for name in list(os.environ):
        if name.upper().startswith("DEFERLRU_"):
            monkeypatch.delenv(name)
    monkeypatch.setattr(
        "deferlru.config.settings.USER_CONFIG_FILE", tmp_path / "missing.yaml"
    )
    monkeypatch.chdir(tmp_path)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
    structlog.reset_defaults()


@pytest.fixture
def settings() -> CacheSettings:
    return CacheSettings(_env_file=None)


@pytest.fixture
def recorder():
    """Eviction callback that records (key, value) pairs in call order."""

    class Recorder:
        def __init__(self) -> None:
            self.calls: list[tuple] = []

        def __call__(self, key, value):
            self.calls.append((key, value))

        @property
        def keys(self) -> list:
            return [k for k, _ in self.calls]

    return Recorder()


@pytest.fixture
def check_arena():
    """Assert that an arena's key index and recency list agree."""

    def check(arena) -> None:
        forward = [id(n) for n in arena.iter_nodes()]
        backward = [id(n) for n in arena.iter_nodes(from_tail=True)]
        assert forward == backward[::-1], "list links are inconsistent"
        assert len(forward) == len(arena) <= arena.capacity
        assert (arena.head is None) == (arena.tail is None) == (len(arena) == 0)
        for node in arena.iter_nodes():
            assert arena.peek(node.key) is node

    return check
