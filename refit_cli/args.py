"""Argument models shared across refit_cli modules."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Tuple


@dataclass(frozen=True)
class GenerateArgs:
    """Arguments for `refit_cli generate`, read-only once parsed."""

    openapi_path: Optional[str] = None
    settings_file: Optional[str] = None
    namespace: Optional[str] = None
    output_path: Optional[str] = None
    no_auto_generated_header: bool = False
    no_accept_headers: bool = False
    interface_only: bool = False
    return_iapi_response: bool = False
    use_cancellation_tokens: bool = False
    no_operation_headers: bool = False
    use_iso_date_format: bool = False
    internal_type_accessibility: bool = False
    additional_namespaces: Tuple[str, ...] = field(default_factory=tuple)
    multiple_interfaces: Optional[str] = None
    match_paths: Tuple[str, ...] = field(default_factory=tuple)
    tags: Tuple[str, ...] = field(default_factory=tuple)
    no_deprecated_operations: bool = False
    operation_name_template: Optional[str] = None
    no_logging: bool = False
    skip_validation: bool = False
