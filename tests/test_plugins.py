from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any, Callable

import pytest

import refit_cli.plugins as plugins
from refit_cli.errors import CLIError
from refit_cli.plugins import PluginInfo
from refit_cli.settings import GenerationConfig


@dataclass
class DummyEntryPoint:
    name: str
    value: str
    loader: Callable[[], Any]

    def load(self) -> Any:
        return self.loader()


def _clear_plugin_caches() -> None:
    plugins.load_plugins.cache_clear()
    plugins._load_plugin_errors.cache_clear()  # type: ignore[attr-defined]


@pytest.fixture(autouse=True)
def fresh_caches():
    _clear_plugin_caches()
    yield
    _clear_plugin_caches()


def test_list_plugins(monkeypatch) -> None:
    entry_points = [
        DummyEntryPoint("alpha", "pkg.alpha:plugin", lambda: object()),
        DummyEntryPoint("beta", "pkg.beta:plugin", lambda: object()),
    ]
    monkeypatch.setattr(plugins, "_iter_entry_points", lambda group: entry_points)

    assert plugins.list_plugins() == [
        PluginInfo(name="alpha", value="pkg.alpha:plugin"),
        PluginInfo(name="beta", value="pkg.beta:plugin"),
    ]


def test_plugin_statuses_records_load_errors(monkeypatch) -> None:
    def bad_loader() -> Any:
        raise RuntimeError("boom")

    entry_points = [
        DummyEntryPoint("good", "pkg.good:plugin", lambda: object()),
        DummyEntryPoint("bad", "pkg.bad:plugin", bad_loader),
    ]
    monkeypatch.setattr(plugins, "_iter_entry_points", lambda group: entry_points)

    statuses = dict((info.name, error) for info, error in plugins.plugin_statuses())
    assert statuses["good"] is None
    assert "boom" in (statuses["bad"] or "")


def test_create_generator_skips_plugins_without_hook(monkeypatch) -> None:
    monkeypatch.setattr(plugins, "load_plugins", lambda: {"inert": object()})
    result = asyncio.run(plugins.create_generator_with_plugins(GenerationConfig(), ctx=None))
    assert result is None


def test_create_generator_awaits_async_hooks(monkeypatch) -> None:
    class Generator:
        def generate(self) -> str:
            return "// async plugin\n"

    class AsyncPlugin:
        @staticmethod
        async def create_generator(config, *, ctx):
            assert config.namespace == "Petstore"
            return Generator()

    monkeypatch.setattr(plugins, "load_plugins", lambda: {"async": AsyncPlugin})
    result = asyncio.run(
        plugins.create_generator_with_plugins(GenerationConfig(namespace="Petstore"), ctx=None)
    )
    assert result is not None
    assert result.generate() == "// async plugin\n"


def test_create_generator_wraps_plugin_failures(monkeypatch) -> None:
    class BrokenPlugin:
        @staticmethod
        def create_generator(config, *, ctx):
            raise ValueError("bad config")

    monkeypatch.setattr(plugins, "load_plugins", lambda: {"broken": BrokenPlugin})
    with pytest.raises(CLIError) as excinfo:
        asyncio.run(plugins.create_generator_with_plugins(GenerationConfig(), ctx=None))
    assert "broken" in str(excinfo.value)
    assert "bad config" in str(excinfo.value)
