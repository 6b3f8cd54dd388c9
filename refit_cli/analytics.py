"""Anonymous usage analytics (best-effort, opt-out with --no-logging)."""

from __future__ import annotations

import hashlib
import uuid
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Protocol

import httpx

from .args import GenerateArgs
from .config import platform_dirs
from .constants import INSTALLATION_ID_FILENAME, PACKAGE_NAME, SUPPORT_KEY_LENGTH
from .http import http_timeout, request_headers
from .version import cli_version

_FLAG_FEATURES = (
    ("no_auto_generated_header", "no-auto-generated-header"),
    ("no_accept_headers", "no-accept-headers"),
    ("interface_only", "interface-only"),
    ("return_iapi_response", "return-iapi-response"),
    ("use_cancellation_tokens", "use-cancellation-tokens"),
    ("no_operation_headers", "no-operation-headers"),
    ("use_iso_date_format", "use-iso-date-format"),
    ("internal_type_accessibility", "internal-type-accessibility"),
    ("no_deprecated_operations", "no-deprecated-operations"),
    ("skip_validation", "skip-validation"),
)
_VALUE_FEATURES = (
    ("settings_file", "settings-file"),
    ("namespace", "namespace"),
    ("output_path", "output"),
    ("additional_namespaces", "additional-namespace"),
    ("multiple_interfaces", "multiple-interfaces"),
    ("match_paths", "match-path"),
    ("tags", "tag"),
    ("operation_name_template", "operation-name-template"),
)


def feature_usage(args: GenerateArgs) -> List[str]:
    """Names of the options that differ from their defaults."""
    features = [name for attr, name in _FLAG_FEATURES if getattr(args, attr)]
    features.extend(name for attr, name in _VALUE_FEATURES if getattr(args, attr))
    return features


class Analytics(Protocol):
    def configure(self) -> None: ...

    def support_key(self) -> str: ...

    async def log_feature_usage(self, args: GenerateArgs) -> None: ...

    async def log_error(self, error: BaseException, args: GenerateArgs) -> None: ...


class NullAnalytics:
    """Analytics sink that records nothing."""

    def configure(self) -> None:
        return None

    def support_key(self) -> str:
        return "0" * SUPPORT_KEY_LENGTH

    async def log_feature_usage(self, args: GenerateArgs) -> None:
        return None

    async def log_error(self, error: BaseException, args: GenerateArgs) -> None:
        return None


def default_installation_id_path() -> Path:
    return Path(platform_dirs().user_data_path) / INSTALLATION_ID_FILENAME


def _default_client_factory() -> httpx.AsyncClient:
    return httpx.AsyncClient(timeout=http_timeout(5.0), follow_redirects=True)


class HttpAnalytics:
    """Posts JSON events to an HTTP collector; disabled without an endpoint."""

    def __init__(
        self,
        endpoint: Optional[str],
        *,
        installation_id_path: Optional[Path] = None,
        client_factory: Callable[[], httpx.AsyncClient] = _default_client_factory,
    ) -> None:
        self.endpoint = (endpoint or "").strip() or None
        self._id_path = installation_id_path or default_installation_id_path()
        self._client_factory = client_factory
        self._installation_id: Optional[str] = None

    @property
    def configured(self) -> bool:
        return self._installation_id is not None

    def configure(self) -> None:
        if self._installation_id is not None:
            return
        existing = ""
        try:
            existing = self._id_path.read_text(encoding="utf-8").strip()
        except FileNotFoundError:
            existing = ""
        if not existing:
            existing = uuid.uuid4().hex
            self._id_path.parent.mkdir(parents=True, exist_ok=True)
            self._id_path.write_text(existing + "\n", encoding="utf-8")
        self._installation_id = existing

    def support_key(self) -> str:
        self.configure()
        assert self._installation_id is not None
        digest = hashlib.sha256(self._installation_id.encode("utf-8")).hexdigest()
        return digest[:SUPPORT_KEY_LENGTH]

    def _event(self, kind: str, args: GenerateArgs) -> Dict[str, Any]:
        return {
            "type": kind,
            "source": PACKAGE_NAME,
            "version": cli_version(),
            "support_key": self.support_key(),
            "features": feature_usage(args),
        }

    async def _post(self, payload: Dict[str, Any]) -> None:
        if not self.endpoint:
            return
        async with self._client_factory() as client:
            response = await client.post(
                self.endpoint,
                headers=request_headers(content_type="application/json"),
                json=payload,
            )
            response.raise_for_status()

    async def log_feature_usage(self, args: GenerateArgs) -> None:
        await self._post(self._event("feature_usage", args))

    async def log_error(self, error: BaseException, args: GenerateArgs) -> None:
        payload = self._event("error", args)
        payload["error"] = {
            "type": type(error).__name__,
            "message": str(error),
        }
        await self._post(payload)
