"""Plugin loading and extension hooks for refit_cli."""

from __future__ import annotations

import importlib.metadata
import inspect
from dataclasses import dataclass
from functools import lru_cache
from typing import TYPE_CHECKING, Any, Dict, Iterable, List, Optional, Protocol, Tuple, cast

from .constants import PLUGIN_GROUP
from .errors import CLIError
from .settings import GenerationConfig

if TYPE_CHECKING:  # pragma: no cover
    from .context import AppContext
    from .generator import CodeGenerator


@dataclass(frozen=True)
class PluginInfo:
    name: str
    value: str


class RefitCLIPlugin(Protocol):
    """Optional plugin surface (implement any subset)."""

    def create_generator(
        self,
        config: GenerationConfig,
        *,
        ctx: Optional["AppContext"],
    ) -> Optional["CodeGenerator"]: ...


def _iter_entry_points(group: str) -> List[importlib.metadata.EntryPoint]:
    entry_points = importlib.metadata.entry_points()
    if hasattr(entry_points, "select"):
        return list(entry_points.select(group=group))
    return [
        ep
        for ep in cast(Iterable[importlib.metadata.EntryPoint], entry_points)
        if ep.group == group
    ]


def list_plugins() -> List[PluginInfo]:
    return [PluginInfo(name=ep.name, value=ep.value) for ep in _iter_entry_points(PLUGIN_GROUP)]


@lru_cache()
def load_plugins() -> Dict[str, Any]:
    plugins: Dict[str, Any] = {}
    errors = _load_plugin_errors()
    for ep in _iter_entry_points(PLUGIN_GROUP):
        if ep.name in errors:
            continue
        try:
            plugins[ep.name] = ep.load()
        except Exception as exc:
            errors[ep.name] = f"{exc}"
    return plugins


@lru_cache()
def _load_plugin_errors() -> Dict[str, str]:
    return {}


def plugin_statuses() -> List[Tuple[PluginInfo, Optional[str]]]:
    """
    Return (PluginInfo, error) tuples for discovered plugins.

    error is populated when a plugin failed to import/load.
    """
    infos = list_plugins()
    loaded = load_plugins()
    errors = _load_plugin_errors()
    statuses: List[Tuple[PluginInfo, Optional[str]]] = []
    for info in infos:
        error = errors.get(info.name)
        if info.name in loaded:
            error = None
        statuses.append((info, error))
    return statuses


async def create_generator_with_plugins(
    config: GenerationConfig,
    *,
    ctx: Optional["AppContext"],
) -> Optional["CodeGenerator"]:
    for name, plugin in load_plugins().items():
        factory = getattr(plugin, "create_generator", None)
        if not callable(factory):
            continue
        try:
            result = factory(config, ctx=ctx)
            if inspect.isawaitable(result):
                result = await result
        except Exception as exc:
            raise CLIError(f"plugin {name!r} failed to create a generator: {exc}") from exc
        if result is not None:
            return cast("CodeGenerator", result)
    return None
