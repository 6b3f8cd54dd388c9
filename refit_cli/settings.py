"""Resolve command-line values and settings files into a GenerationConfig.

Resolution runs twice per invocation:

- `resolve_for_validation` is used while validating arguments. It reads the
  settings file (when given) to learn the specification reference.
- `resolve_for_execution` runs right before generation. The settings file is
  read again from disk and is authoritative; only the specification reference
  resolved during validation is forced on top of it.

Both go through `_resolve`.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field, replace
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Type, TypeVar

from .analytics import Analytics
from .args import GenerateArgs
from .constants import DEFAULT_INTERFACE_NAME, DEFAULT_NAMESPACE, OPERATION_NAME_PLACEHOLDER
from .errors import CLIError
from .locator import is_url, resolve_local_path

E = TypeVar("E", bound=Enum)


class TypeAccessibility(str, Enum):
    PUBLIC = "Public"
    INTERNAL = "Internal"


class MultipleInterfaces(str, Enum):
    UNSET = "Unset"
    BY_ENDPOINT = "ByEndpoint"
    BY_TAG = "ByTag"


@dataclass(frozen=True)
class NamingSettings:
    use_openapi_title: bool = True
    interface_name: str = DEFAULT_INTERFACE_NAME


@dataclass(frozen=True)
class GenerationConfig:
    openapi_path: str = ""
    namespace: str = DEFAULT_NAMESPACE
    add_auto_generated_header: bool = True
    add_accept_headers: bool = True
    generate_contracts: bool = True
    return_iapi_response: bool = False
    use_cancellation_tokens: bool = False
    generate_operation_headers: bool = True
    use_iso_date_format: bool = False
    type_accessibility: TypeAccessibility = TypeAccessibility.PUBLIC
    additional_namespaces: List[str] = field(default_factory=list)
    multiple_interfaces: MultipleInterfaces = MultipleInterfaces.UNSET
    include_path_matches: List[str] = field(default_factory=list)
    include_tags: List[str] = field(default_factory=list)
    generate_deprecated_operations: bool = True
    operation_name_template: Optional[str] = None
    naming: NamingSettings = field(default_factory=NamingSettings)


@dataclass(frozen=True)
class ValidationVerdict:
    ok: bool
    message: Optional[str] = None
    config: Optional[GenerationConfig] = None

    @classmethod
    def success(cls, config: GenerationConfig) -> "ValidationVerdict":
        return cls(ok=True, config=config)

    @classmethod
    def error(cls, message: str) -> "ValidationVerdict":
        return cls(ok=False, message=message)


def parse_enum(enum_cls: Type[E], value: Any, default: E) -> E:
    if isinstance(value, enum_cls):
        return value
    if isinstance(value, int) and not isinstance(value, bool):
        members = list(enum_cls)
        return members[value] if 0 <= value < len(members) else default
    if not isinstance(value, str) or not value.strip():
        return default
    wanted = value.strip().replace("-", "").replace("_", "").lower()
    for member in enum_cls:
        if member.value.lower() == wanted or member.name.replace("_", "").lower() == wanted:
            return member
    choices = ", ".join(member.value for member in enum_cls)
    raise CLIError(f"invalid {enum_cls.__name__} value {value!r}; expected one of: {choices}")


def _blank(value: Optional[str]) -> bool:
    return value is None or not value.strip()


def build_config(args: GenerateArgs, openapi_path: Optional[str] = None) -> GenerationConfig:
    """Map command-line values onto a GenerationConfig, applying defaults."""
    return GenerationConfig(
        openapi_path=openapi_path if openapi_path is not None else (args.openapi_path or ""),
        namespace=args.namespace or DEFAULT_NAMESPACE,
        add_auto_generated_header=not args.no_auto_generated_header,
        add_accept_headers=not args.no_accept_headers,
        generate_contracts=not args.interface_only,
        return_iapi_response=args.return_iapi_response,
        use_cancellation_tokens=args.use_cancellation_tokens,
        generate_operation_headers=not args.no_operation_headers,
        use_iso_date_format=args.use_iso_date_format,
        type_accessibility=(
            TypeAccessibility.INTERNAL
            if args.internal_type_accessibility
            else TypeAccessibility.PUBLIC
        ),
        additional_namespaces=list(args.additional_namespaces),
        multiple_interfaces=parse_enum(
            MultipleInterfaces, args.multiple_interfaces, MultipleInterfaces.UNSET
        ),
        include_path_matches=list(args.match_paths),
        include_tags=list(args.tags),
        generate_deprecated_operations=not args.no_deprecated_operations,
        operation_name_template=args.operation_name_template or None,
    )


def _first_present(mapping: Dict[str, Any], *keys: str) -> Any:
    for key in keys:
        if key in mapping:
            return mapping[key]
    return None


def _as_bool(value: Any, default: bool) -> bool:
    return value if isinstance(value, bool) else default


def _as_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    return value if isinstance(value, str) else str(value)


def _as_str_list(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    return [str(item) for item in value if item is not None and str(item).strip()]


def config_from_document(data: Dict[str, Any]) -> GenerationConfig:
    """Deserialize a settings document (camelCase or snake_case keys)."""
    defaults = GenerationConfig()

    def get(camel: str, snake: str) -> Any:
        return _first_present(data, camel, snake)

    naming_raw = get("naming", "naming")
    naming = NamingSettings()
    if isinstance(naming_raw, dict):
        naming = NamingSettings(
            use_openapi_title=_as_bool(
                _first_present(naming_raw, "useOpenApiTitle", "use_openapi_title"),
                naming.use_openapi_title,
            ),
            interface_name=(
                _as_str(_first_present(naming_raw, "interfaceName", "interface_name"))
                or naming.interface_name
            ),
        )

    return GenerationConfig(
        openapi_path=_as_str(get("openApiPath", "openapi_path")) or "",
        namespace=_as_str(get("namespace", "namespace")) or defaults.namespace,
        add_auto_generated_header=_as_bool(
            get("addAutoGeneratedHeader", "add_auto_generated_header"),
            defaults.add_auto_generated_header,
        ),
        add_accept_headers=_as_bool(
            get("addAcceptHeaders", "add_accept_headers"), defaults.add_accept_headers
        ),
        generate_contracts=_as_bool(
            get("generateContracts", "generate_contracts"), defaults.generate_contracts
        ),
        return_iapi_response=_as_bool(
            get("returnIApiResponse", "return_iapi_response"), defaults.return_iapi_response
        ),
        use_cancellation_tokens=_as_bool(
            get("useCancellationTokens", "use_cancellation_tokens"),
            defaults.use_cancellation_tokens,
        ),
        generate_operation_headers=_as_bool(
            get("generateOperationHeaders", "generate_operation_headers"),
            defaults.generate_operation_headers,
        ),
        use_iso_date_format=_as_bool(
            get("useIsoDateFormat", "use_iso_date_format"), defaults.use_iso_date_format
        ),
        type_accessibility=parse_enum(
            TypeAccessibility,
            get("typeAccessibility", "type_accessibility"),
            defaults.type_accessibility,
        ),
        additional_namespaces=_as_str_list(
            get("additionalNamespaces", "additional_namespaces")
        ),
        multiple_interfaces=parse_enum(
            MultipleInterfaces,
            get("multipleInterfaces", "multiple_interfaces"),
            defaults.multiple_interfaces,
        ),
        include_path_matches=_as_str_list(
            get("includePathMatches", "include_path_matches")
        ),
        include_tags=_as_str_list(get("includeTags", "include_tags")),
        generate_deprecated_operations=_as_bool(
            get("generateDeprecatedOperations", "generate_deprecated_operations"),
            defaults.generate_deprecated_operations,
        ),
        operation_name_template=_as_str(
            get("operationNameTemplate", "operation_name_template")
        )
        or None,
        naming=naming,
    )


def load_settings_file(path: str) -> GenerationConfig:
    """Read and deserialize a settings file; I/O and JSON errors propagate."""
    raw = Path(path).expanduser().read_text(encoding="utf-8")
    data = json.loads(raw)
    if not isinstance(data, dict):
        raise ValueError(f"settings file {path} must contain a JSON object")
    return config_from_document(data)


def _resolve(
    args: GenerateArgs,
    read_settings: Callable[[str], GenerationConfig],
) -> GenerationConfig:
    if not _blank(args.settings_file):
        assert args.settings_file is not None
        return read_settings(args.settings_file)
    return build_config(args)


def _read_settings_for_validation(path: str) -> GenerationConfig:
    try:
        return load_settings_file(path)
    except OSError as exc:
        raise CLIError(f"failed to read settings file {path}: {exc}") from exc
    except ValueError as exc:
        raise CLIError(f"failed to parse settings file {path}: {exc}") from exc


def resolve_for_validation(args: GenerateArgs) -> GenerationConfig:
    return _resolve(args, _read_settings_for_validation)


def resolve_for_execution(args: GenerateArgs, spec_reference: str) -> GenerationConfig:
    config = _resolve(args, load_settings_file)
    return replace(config, openapi_path=spec_reference)


def validate_args(args: GenerateArgs, analytics: Analytics) -> ValidationVerdict:
    """Check the invocation before anything is generated."""
    if not args.no_logging:
        try:
            analytics.configure()
        except Exception:
            pass

    if _blank(args.openapi_path) and _blank(args.settings_file):
        return ValidationVerdict.error("Input or settings file is required")

    if not _blank(args.openapi_path) and not _blank(args.settings_file):
        return ValidationVerdict.error(
            "You should either specify an input URL/file directly "
            "or use specify it in 'openApiPath' from the settings file, "
            "not both"
        )

    try:
        config = resolve_for_validation(args)
    except CLIError as exc:
        return ValidationVerdict.error(str(exc))

    if not _blank(args.settings_file) and _blank(config.openapi_path):
        return ValidationVerdict.error(
            "The 'openApiPath' in settings file is required when "
            "URL or file path to OpenAPI Specification file "
            "is not specified in command line argument"
        )

    reference = config.openapi_path
    if is_url(reference):
        return ValidationVerdict.success(config)

    template = args.operation_name_template
    if not _blank(template) and OPERATION_NAME_PLACEHOLDER not in (template or ""):
        return ValidationVerdict.error(
            f"'{OPERATION_NAME_PLACEHOLDER}' placeholder must be present in operation name template"
        )

    path = resolve_local_path(reference)
    if not path.is_file():
        return ValidationVerdict.error(f"File not found - {path}")
    return ValidationVerdict.success(config)
