from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, Optional

import httpx
import pytest

from refit_cli.args import GenerateArgs
from refit_cli.context import AppContext
from refit_cli.openapi_spec import OpenApiStats
from refit_cli.settings import GenerationConfig
from refit_cli.validation import Diagnostic, DiagnosticKind, ValidationOutcome

PETSTORE: Dict[str, Any] = {
    "openapi": "3.0.3",
    "info": {"title": "Swagger Petstore", "version": "1.0.0"},
    "paths": {
        "/pets": {
            "get": {
                "operationId": "listPets",
                "summary": "List all pets",
                "tags": ["pets"],
                "parameters": [
                    {
                        "name": "limit",
                        "in": "query",
                        "required": False,
                        "schema": {"type": "integer", "format": "int32"},
                    }
                ],
                "responses": {
                    "200": {
                        "description": "A paged array of pets",
                        "content": {
                            "application/json": {
                                "schema": {
                                    "type": "array",
                                    "items": {"$ref": "#/components/schemas/Pet"},
                                }
                            }
                        },
                    }
                },
            },
            "post": {
                "operationId": "createPet",
                "tags": ["pets"],
                "requestBody": {
                    "required": True,
                    "content": {
                        "application/json": {"schema": {"$ref": "#/components/schemas/Pet"}}
                    },
                },
                "responses": {"201": {"description": "Created"}},
            },
        },
        "/pets/{petId}": {
            "get": {
                "operationId": "showPetById",
                "tags": ["pets"],
                "parameters": [
                    {
                        "name": "petId",
                        "in": "path",
                        "required": True,
                        "schema": {"type": "string"},
                    },
                    {
                        "name": "X-Request-Id",
                        "in": "header",
                        "required": False,
                        "schema": {"type": "string"},
                    },
                ],
                "responses": {
                    "200": {
                        "description": "Expected response to a valid request",
                        "content": {
                            "application/json": {
                                "schema": {"$ref": "#/components/schemas/Pet"}
                            }
                        },
                    }
                },
            }
        },
        "/stores/{storeId}/inventory": {
            "get": {
                "operationId": "getInventory",
                "tags": ["store"],
                "deprecated": True,
                "parameters": [
                    {
                        "name": "storeId",
                        "in": "path",
                        "required": True,
                        "schema": {"type": "integer", "format": "int64"},
                    },
                    {
                        "name": "since",
                        "in": "query",
                        "schema": {"type": "string", "format": "date"},
                    },
                ],
                "responses": {
                    "200": {
                        "description": "Inventory counts",
                        "content": {
                            "application/json": {
                                "schema": {
                                    "type": "object",
                                    "additionalProperties": {"type": "integer"},
                                }
                            }
                        },
                    }
                },
            }
        },
    },
    "components": {
        "schemas": {
            "Pet": {
                "type": "object",
                "required": ["id", "name"],
                "properties": {
                    "id": {"type": "integer", "format": "int64"},
                    "name": {"type": "string", "description": "Display name"},
                    "status": {"$ref": "#/components/schemas/PetStatus"},
                    "tags": {"type": "array", "items": {"type": "string"}},
                },
            },
            "PetStatus": {"type": "string", "enum": ["available", "pending", "sold-out"]},
        }
    },
}


class FakeValidator:
    """SpecValidator returning a fixed outcome and recording references."""

    def __init__(self, outcome: Optional[ValidationOutcome] = None) -> None:
        self.outcome = outcome or ValidationOutcome(statistics=OpenApiStats(path_items=2))
        self.calls: List[str] = []

    async def validate(self, reference: str) -> ValidationOutcome:
        self.calls.append(reference)
        return self.outcome


class FakeGenerator:
    def __init__(self, code: str) -> None:
        self.code = code

    def generate(self) -> str:
        return self.code


class FakeGeneratorFactory:
    def __init__(
        self,
        code: str = "public interface IApi {}\r\n",
        error: Optional[BaseException] = None,
    ) -> None:
        self.code = code
        self.error = error
        self.configs: List[GenerationConfig] = []

    async def __call__(self, config: GenerationConfig) -> FakeGenerator:
        self.configs.append(config)
        if self.error is not None:
            raise self.error
        return FakeGenerator(self.code)


class RecordingAnalytics:
    def __init__(self, *, fail: bool = False) -> None:
        self.fail = fail
        self.configured = 0
        self.features: List[GenerateArgs] = []
        self.errors: List[BaseException] = []

    def configure(self) -> None:
        self.configured += 1
        if self.fail:
            raise RuntimeError("analytics unavailable")

    def support_key(self) -> str:
        if self.fail:
            raise RuntimeError("analytics unavailable")
        return "abc1234"

    async def log_feature_usage(self, args: GenerateArgs) -> None:
        self.features.append(args)
        if self.fail:
            raise RuntimeError("analytics unavailable")

    async def log_error(self, error: BaseException, args: GenerateArgs) -> None:
        self.errors.append(error)
        if self.fail:
            raise RuntimeError("analytics unavailable")


def error_outcome() -> ValidationOutcome:
    return ValidationOutcome(
        diagnostics=[
            Diagnostic(DiagnosticKind.ERROR, "'info' is a required property", "#/"),
            Diagnostic(DiagnosticKind.WARNING, "operation GET /pets has no operationId", "#/paths/~1pets/get"),
        ]
    )


@pytest.fixture
def petstore() -> Dict[str, Any]:
    return json.loads(json.dumps(PETSTORE))


@pytest.fixture
def spec_file(tmp_path: Path, petstore: Dict[str, Any]) -> Path:
    path = tmp_path / "petstore.json"
    path.write_text(json.dumps(petstore), encoding="utf-8")
    return path


@pytest.fixture
def fake_validator() -> FakeValidator:
    return FakeValidator()


@pytest.fixture
def fake_generators() -> FakeGeneratorFactory:
    return FakeGeneratorFactory()


@pytest.fixture
def analytics() -> RecordingAnalytics:
    return RecordingAnalytics()


@pytest.fixture
def app_context(fake_validator, fake_generators, analytics) -> AppContext:
    ticks = iter([10.0, 11.5, 20.0, 21.5, 30.0, 31.5])
    return AppContext(
        analytics=analytics,
        spec_validator=fake_validator,
        generator_factory=fake_generators,
        clock=lambda: next(ticks),
    )


@pytest.fixture
def mock_http_context():
    """Build an AppContext whose HTTP client is served by an httpx.MockTransport."""

    def _make(handler, **kwargs: Any) -> AppContext:
        def factory(timeout: httpx.Timeout) -> httpx.AsyncClient:
            return httpx.AsyncClient(transport=httpx.MockTransport(handler), timeout=timeout)

        return AppContext(http_client_factory=factory, **kwargs)

    return _make


@pytest.fixture
def analytics_cls() -> type[RecordingAnalytics]:
    return RecordingAnalytics


@pytest.fixture
def invalid_outcome() -> ValidationOutcome:
    return error_outcome()
