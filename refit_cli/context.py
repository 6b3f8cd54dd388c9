"""Application context for injectable dependencies."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Callable, Optional

import httpx

from .analytics import Analytics, NullAnalytics
from .http import http_timeout

if TYPE_CHECKING:  # pragma: no cover
    from .generator import GeneratorFactory
    from .validation import SpecValidator


HttpClientFactory = Callable[[httpx.Timeout], httpx.AsyncClient]


def default_http_client_factory(timeout: httpx.Timeout) -> httpx.AsyncClient:
    return httpx.AsyncClient(timeout=timeout, follow_redirects=True)


@dataclass(frozen=True)
class AppContext:
    """Shared dependencies for the generate pipeline (HTTP, analytics, collaborators)."""

    analytics: Analytics = field(default_factory=NullAnalytics)
    spec_validator: Optional["SpecValidator"] = None
    generator_factory: Optional["GeneratorFactory"] = None
    http_client_factory: HttpClientFactory = default_http_client_factory
    http_timeout_seconds: Optional[float] = None
    clock: Callable[[], float] = time.perf_counter

    def new_http_client(self) -> httpx.AsyncClient:
        return self.http_client_factory(http_timeout(self.http_timeout_seconds))

    def validator(self) -> "SpecValidator":
        if self.spec_validator is not None:
            return self.spec_validator
        from .validation import OpenApiSpecValidator

        return OpenApiSpecValidator(ctx=self)

    def generators(self) -> "GeneratorFactory":
        if self.generator_factory is not None:
            return self.generator_factory
        from .generator import default_generator_factory

        return default_generator_factory(self)
