"""Code generation entry points."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Awaitable, Callable, Dict, Protocol

from .console import log
from .csharp import CSharpEmitter
from .openapi_spec import load_document
from .plugins import create_generator_with_plugins
from .settings import GenerationConfig

if TYPE_CHECKING:  # pragma: no cover
    from .context import AppContext


class CodeGenerator(Protocol):
    def generate(self) -> str: ...


GeneratorFactory = Callable[[GenerationConfig], Awaitable[CodeGenerator]]


class RefitGenerator:
    """Built-in generator producing a Refit interface plus contracts."""

    def __init__(self, config: GenerationConfig, document: Dict[str, Any]) -> None:
        self.config = config
        self.document = document

    @classmethod
    async def create(cls, config: GenerationConfig, *, ctx: "AppContext") -> "RefitGenerator":
        document = await load_document(config.openapi_path, ctx)
        return cls(config, document)

    def generate(self) -> str:
        return CSharpEmitter(self.config, self.document).render()


def default_generator_factory(ctx: "AppContext") -> GeneratorFactory:
    async def create(config: GenerationConfig) -> CodeGenerator:
        plugin_generator = await create_generator_with_plugins(config, ctx=ctx)
        if plugin_generator is not None:
            log("using code generator provided by plugin")
            return plugin_generator
        return await RefitGenerator.create(config, ctx=ctx)

    return create
