"""Error types and failure classification for refit_cli."""

from __future__ import annotations

import traceback
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Optional

from .constants import EXIT_CODE_FAILURE, EXIT_CODE_SPEC_INVALID, EXIT_CODE_USAGE

if TYPE_CHECKING:  # pragma: no cover
    from .validation import ValidationOutcome


class FailureKind(str, Enum):
    SPECIFICATION_INVALID = "specification_invalid"
    OTHER = "other"


class CLIError(Exception):
    """Raised for user-facing CLI errors."""

    exit_code = EXIT_CODE_USAGE


class SpecificationLoadError(CLIError):
    """Raised when an OpenAPI document cannot be read or parsed."""


class SpecificationInvalidError(Exception):
    """Raised after upstream validation has already reported its diagnostics."""

    exit_code = EXIT_CODE_SPEC_INVALID
    failure_kind = FailureKind.SPECIFICATION_INVALID

    def __init__(self, outcome: "ValidationOutcome") -> None:
        self.outcome = outcome
        super().__init__(
            "OpenAPI specification is invalid"
            f" ({len(outcome.errors)} error(s), {len(outcome.warnings)} warning(s))"
        )


def exit_code_for(exc: BaseException) -> int:
    code = getattr(exc, "exit_code", None)
    if isinstance(code, int) and not isinstance(code, bool) and code != 0:
        return code
    if isinstance(exc, OSError) and isinstance(exc.errno, int) and exc.errno > 0:
        return exc.errno
    return EXIT_CODE_FAILURE


@dataclass(frozen=True)
class Failure:
    """A classified pipeline failure; the reporter inspects `kind` once."""

    kind: FailureKind
    error: BaseException
    exit_code: int

    @classmethod
    def from_exception(cls, exc: BaseException) -> "Failure":
        kind = getattr(exc, "failure_kind", FailureKind.OTHER)
        if not isinstance(kind, FailureKind):
            kind = FailureKind.OTHER
        return cls(kind=kind, error=exc, exit_code=exit_code_for(exc))

    @property
    def message(self) -> str:
        return str(self.error) or self.error.__class__.__name__

    @property
    def category(self) -> str:
        cls = type(self.error)
        module = cls.__module__
        if module in ("builtins", "__main__"):
            return cls.__qualname__
        return f"{module}.{cls.__qualname__}"

    def stack_trace(self) -> Optional[str]:
        tb = self.error.__traceback__
        if tb is None:
            return None
        return "".join(traceback.format_tb(tb)).rstrip()
