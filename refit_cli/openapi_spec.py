"""OpenAPI/Swagger document loading and inspection helpers."""

from __future__ import annotations

import asyncio
import json
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, Iterator, Optional, Tuple

import httpx
import yaml

from .errors import SpecificationLoadError
from .http import describe_http_error, request_headers, request_with_retries
from .locator import is_url, resolve_local_path

if TYPE_CHECKING:  # pragma: no cover
    from .context import AppContext

HTTP_METHODS = ("get", "put", "post", "delete", "options", "head", "patch", "trace")
YAML_SUFFIXES = (".yaml", ".yml")
ACCEPT_DOCUMENT = "application/json, application/yaml;q=0.9, text/yaml;q=0.9, */*;q=0.8"


def detect_spec_kind(doc: Dict[str, Any]) -> Optional[str]:
    swagger = doc.get("swagger")
    if isinstance(swagger, str) and swagger.strip():
        return "swagger2"
    openapi = doc.get("openapi")
    if isinstance(openapi, str) and openapi.strip():
        return "openapi3"
    return None


def _stringify_keys(value: Any) -> Any:
    # YAML turns response codes like 200 into ints; OpenAPI keys are strings.
    if isinstance(value, dict):
        return {str(key): _stringify_keys(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_stringify_keys(item) for item in value]
    return value


def parse_document(text: str, source: str) -> Dict[str, Any]:
    lowered = source.lower().split("?", 1)[0]
    try:
        if lowered.endswith(YAML_SUFFIXES):
            data = yaml.safe_load(text)
        elif lowered.endswith(".json"):
            data = json.loads(text)
        else:
            stripped = text.lstrip()
            if stripped.startswith(("{", "[")):
                data = json.loads(text)
            else:
                data = yaml.safe_load(text)
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        raise SpecificationLoadError(f"failed to parse OpenAPI document {source}: {exc}") from exc
    if not isinstance(data, dict):
        raise SpecificationLoadError(f"OpenAPI document {source} is not a JSON/YAML object")
    return _stringify_keys(data)


async def read_document_text(reference: str, ctx: "AppContext") -> str:
    if is_url(reference):
        async with ctx.new_http_client() as client:
            try:
                response = await request_with_retries(
                    client,
                    "GET",
                    reference,
                    headers=request_headers(accept=ACCEPT_DOCUMENT),
                )
                response.raise_for_status()
            except httpx.HTTPError as exc:
                raise SpecificationLoadError(
                    f"failed to fetch OpenAPI document from {reference}: {describe_http_error(exc)}"
                ) from exc
        return response.text

    path = resolve_local_path(reference)
    try:
        return await asyncio.to_thread(path.read_text, encoding="utf-8")
    except OSError as exc:
        raise SpecificationLoadError(f"failed to read OpenAPI document {path}: {exc}") from exc


async def load_document(reference: str, ctx: "AppContext") -> Dict[str, Any]:
    text = await read_document_text(reference, ctx)
    return parse_document(text, reference)


def iter_operations(
    doc: Dict[str, Any],
) -> Iterator[Tuple[str, str, Dict[str, Any], Dict[str, Any]]]:
    """Yield (path, method, path_item, operation) in document order."""
    paths = doc.get("paths")
    if not isinstance(paths, dict):
        return
    for path, path_item in paths.items():
        if not isinstance(path_item, dict):
            continue
        for method in HTTP_METHODS:
            operation = path_item.get(method)
            if isinstance(operation, dict):
                yield path, method, path_item, operation


def _component_section(doc: Dict[str, Any], name: str) -> Dict[str, Any]:
    components = doc.get("components")
    if isinstance(components, dict) and isinstance(components.get(name), dict):
        return components[name]
    return {}


def schema_definitions(doc: Dict[str, Any]) -> Dict[str, Any]:
    if detect_spec_kind(doc) == "swagger2":
        definitions = doc.get("definitions")
        return definitions if isinstance(definitions, dict) else {}
    return _component_section(doc, "schemas")


@dataclass
class OpenApiStats:
    path_items: int = 0
    operations: int = 0
    parameters: int = 0
    request_bodies: int = 0
    responses: int = 0
    links: int = 0
    callbacks: int = 0
    schemas: int = 0
    headers: int = 0

    def __str__(self) -> str:
        return "\n".join(
            [
                f" - Path Items: {self.path_items}",
                f" - Operations: {self.operations}",
                f" - Parameters: {self.parameters}",
                f" - Request Bodies: {self.request_bodies}",
                f" - Responses: {self.responses}",
                f" - Links: {self.links}",
                f" - Callbacks: {self.callbacks}",
                f" - Schemas: {self.schemas}",
                f" - Headers: {self.headers}",
            ]
        )


def _count_list(value: Any) -> int:
    return len(value) if isinstance(value, list) else 0


def _count_map(value: Any) -> int:
    return len(value) if isinstance(value, dict) else 0


def collect_statistics(doc: Dict[str, Any]) -> OpenApiStats:
    stats = OpenApiStats()
    swagger2 = detect_spec_kind(doc) == "swagger2"
    paths = doc.get("paths")
    stats.path_items = _count_map(paths)
    if isinstance(paths, dict):
        for path_item in paths.values():
            if isinstance(path_item, dict):
                stats.parameters += _count_list(path_item.get("parameters"))

    for _path, _method, _item, operation in iter_operations(doc):
        stats.operations += 1
        parameters = operation.get("parameters") or []
        stats.parameters += _count_list(parameters)
        if swagger2:
            stats.request_bodies += sum(
                1
                for parameter in parameters
                if isinstance(parameter, dict) and parameter.get("in") in ("body", "formData")
            )
        elif isinstance(operation.get("requestBody"), dict):
            stats.request_bodies += 1
        stats.callbacks += _count_map(operation.get("callbacks"))
        responses = operation.get("responses")
        if isinstance(responses, dict):
            stats.responses += len(responses)
            for response in responses.values():
                if isinstance(response, dict):
                    stats.links += _count_map(response.get("links"))
                    stats.headers += _count_map(response.get("headers"))

    stats.schemas = len(schema_definitions(doc))
    if swagger2:
        stats.parameters += _count_map(doc.get("parameters"))
        stats.responses += _count_map(doc.get("responses"))
    else:
        stats.parameters += len(_component_section(doc, "parameters"))
        stats.request_bodies += len(_component_section(doc, "requestBodies"))
        stats.responses += len(_component_section(doc, "responses"))
        stats.links += len(_component_section(doc, "links"))
        stats.callbacks += len(_component_section(doc, "callbacks"))
        stats.headers += len(_component_section(doc, "headers"))
    return stats
