"""OpenAPI specification validation backed by openapi-spec-validator."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, Iterable, List, Optional, Protocol

from openapi_spec_validator import (
    OpenAPIV2SpecValidator,
    OpenAPIV30SpecValidator,
    OpenAPIV31SpecValidator,
)

from .errors import SpecificationInvalidError, SpecificationLoadError
from .locator import is_url, resolve_local_path
from .openapi_spec import OpenApiStats, collect_statistics, iter_operations, load_document

if TYPE_CHECKING:  # pragma: no cover
    from .context import AppContext


class DiagnosticKind(str, Enum):
    ERROR = "Error"
    WARNING = "Warning"


@dataclass(frozen=True)
class Diagnostic:
    kind: DiagnosticKind
    message: str
    location: str = "#/"

    def __str__(self) -> str:
        return f"{self.message} [{self.location}]"


@dataclass
class ValidationOutcome:
    diagnostics: List[Diagnostic] = field(default_factory=list)
    statistics: OpenApiStats = field(default_factory=OpenApiStats)

    @property
    def errors(self) -> List[Diagnostic]:
        return [item for item in self.diagnostics if item.kind is DiagnosticKind.ERROR]

    @property
    def warnings(self) -> List[Diagnostic]:
        return [item for item in self.diagnostics if item.kind is DiagnosticKind.WARNING]

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def raise_if_invalid(self) -> None:
        if not self.is_valid:
            raise SpecificationInvalidError(self)


class SpecValidator(Protocol):
    async def validate(self, reference: str) -> ValidationOutcome: ...


def json_pointer(*parts: Any) -> str:
    escaped = [str(part).replace("~", "~0").replace("/", "~1") for part in parts]
    return "#/" + "/".join(escaped)


def _validator_class(doc: Dict[str, Any]) -> Optional[type]:
    swagger = doc.get("swagger")
    if isinstance(swagger, str) and swagger.strip().startswith("2."):
        return OpenAPIV2SpecValidator
    openapi = doc.get("openapi")
    if isinstance(openapi, str):
        version = openapi.strip()
        if version.startswith("3.0"):
            return OpenAPIV30SpecValidator
        if version.startswith("3.1"):
            return OpenAPIV31SpecValidator
    return None


def _schema_errors(doc: Dict[str, Any], base_uri: str) -> Iterable[Diagnostic]:
    validator_cls = _validator_class(doc)
    if validator_cls is None:
        yield Diagnostic(
            DiagnosticKind.ERROR,
            "document is not a Swagger 2.0 or OpenAPI 3.0/3.1 specification",
        )
        return
    validator = validator_cls(doc, base_uri=base_uri)
    try:
        for error in validator.iter_errors():
            path = getattr(error, "absolute_path", None) or ()
            message = getattr(error, "message", None) or str(error)
            yield Diagnostic(DiagnosticKind.ERROR, message, json_pointer(*path))
    except Exception as exc:
        # Unresolvable references abort iteration inside the validator.
        yield Diagnostic(DiagnosticKind.ERROR, f"{exc.__class__.__name__}: {exc}")


def _lint_warnings(doc: Dict[str, Any]) -> Iterable[Diagnostic]:
    if isinstance(doc.get("swagger"), str):
        yield Diagnostic(
            DiagnosticKind.WARNING,
            "Swagger 2.0 documents are supported but OpenAPI 3.x is recommended",
            json_pointer("swagger"),
        )
    for path, method, _item, operation in iter_operations(doc):
        operation_id = operation.get("operationId")
        if not isinstance(operation_id, str) or not operation_id.strip():
            yield Diagnostic(
                DiagnosticKind.WARNING,
                f"operation {method.upper()} {path} has no operationId;"
                " its name will be derived from the path",
                json_pointer("paths", path, method),
            )


def validate_document(doc: Dict[str, Any], *, base_uri: str = "") -> ValidationOutcome:
    diagnostics = list(_schema_errors(doc, base_uri))
    diagnostics.extend(_lint_warnings(doc))
    return ValidationOutcome(diagnostics=diagnostics, statistics=collect_statistics(doc))


def _base_uri(reference: str) -> str:
    if is_url(reference):
        return reference
    return resolve_local_path(reference).as_uri()


class OpenApiSpecValidator:
    """Default SpecValidator: load the document, validate it, gather statistics."""

    def __init__(self, *, ctx: "AppContext") -> None:
        self._ctx = ctx

    async def validate(self, reference: str) -> ValidationOutcome:
        try:
            doc = await load_document(reference, self._ctx)
        except SpecificationLoadError as exc:
            return ValidationOutcome(
                diagnostics=[Diagnostic(DiagnosticKind.ERROR, str(exc))],
            )
        return validate_document(doc, base_uri=_base_uri(reference))
