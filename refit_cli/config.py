"""Configuration file support for refit_cli."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from platformdirs import PlatformDirs

from .constants import (
    ANALYTICS_URL_ENV_VAR,
    CONFIG_ENV_VAR,
    DEFAULT_CONFIG_DIR_NAME,
    HTTP_TIMEOUT_SECONDS,
    NO_LOGGING_ENV_VAR,
)
from .errors import CLIError

try:
    import tomllib  # py311+
except ModuleNotFoundError:  # pragma: no cover (py<311)
    import tomli as tomllib

_TRUTHY = {"1", "true", "yes", "on"}
_FALSY = {"0", "false", "no", "off"}


@dataclass(frozen=True)
class ConfigFile:
    no_logging: Optional[bool] = None
    analytics_url: Optional[str] = None
    http_timeout: Optional[float] = None


def platform_dirs() -> PlatformDirs:
    return PlatformDirs(appname=DEFAULT_CONFIG_DIR_NAME, appauthor=False, roaming=True)


def default_config_path() -> Path:
    return Path(platform_dirs().user_config_path) / "config.toml"


def resolve_config_path() -> Path:
    env_value = (os.environ.get(CONFIG_ENV_VAR) or "").strip()
    if env_value:
        return Path(env_value).expanduser()
    return default_config_path()


def _safe_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, str):
        normalized = value.strip()
        return normalized or None
    return str(value).strip() or None


def _safe_bool(value: Any) -> Optional[bool]:
    if value is None:
        return None
    if isinstance(value, bool):
        return value
    return None


def _safe_float(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        parsed = float(value)
    except (TypeError, ValueError):
        return None
    return parsed if parsed > 0 else None


def _env_bool(name: str) -> Optional[bool]:
    raw = (os.environ.get(name) or "").strip().lower()
    if raw in _TRUTHY:
        return True
    if raw in _FALSY:
        return False
    return None


def load_config(path: Optional[Path] = None) -> ConfigFile:
    config_path = path or resolve_config_path()
    if not config_path.exists():
        return ConfigFile()
    try:
        data = tomllib.loads(config_path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise CLIError(f"failed to read config file {config_path}: {exc}") from exc
    except Exception as exc:
        raise CLIError(f"failed to parse config file {config_path}: {exc}") from exc
    if not isinstance(data, dict):
        return ConfigFile()
    analytics = data.get("analytics") if isinstance(data.get("analytics"), dict) else {}
    return ConfigFile(
        no_logging=_safe_bool(
            data.get("no_logging") if "no_logging" in data else data.get("noLogging")
        ),
        analytics_url=_safe_str(
            analytics.get("url") or data.get("analytics_url") or data.get("analyticsUrl")
        ),
        http_timeout=_safe_float(data.get("http_timeout") or data.get("httpTimeout")),
    )


def config_template() -> str:
    return (
        "# refit_cli configuration (TOML)\n"
        "#\n"
        "# Precedence (highest -> lowest):\n"
        "#   CLI flags > environment variables > this file > built-in defaults\n"
        "\n"
        f"# no_logging = false  # or set {NO_LOGGING_ENV_VAR}=1\n"
        "# http_timeout = 30.0\n"
        "\n"
        "# [analytics]\n"
        f"# url = \"https://telemetry.example.com/events\"  # or {ANALYTICS_URL_ENV_VAR}\n"
    )


def write_default_config(path: Optional[Path] = None, *, force: bool) -> Path:
    config_path = path or resolve_config_path()
    if config_path.exists() and not force:
        raise CLIError(f"config file already exists: {config_path} (use --force to overwrite)")
    try:
        config_path.parent.mkdir(parents=True, exist_ok=True)
        config_path.write_text(config_template(), encoding="utf-8")
    except OSError as exc:
        raise CLIError(f"failed to write config file {config_path}: {exc}") from exc
    return config_path


def effective_config(config: ConfigFile) -> Tuple[Dict[str, Any], Dict[str, str]]:
    """
    Compute the effective ambient settings (no CLI flags), with sources.

    Returns (values, sources) where sources map key -> one of:
    "env", "config", "default".
    """
    sources: Dict[str, str] = {}

    env_no_logging = _env_bool(NO_LOGGING_ENV_VAR)
    if env_no_logging is not None:
        no_logging = env_no_logging
        sources["no_logging"] = "env"
    elif config.no_logging is not None:
        no_logging = config.no_logging
        sources["no_logging"] = "config"
    else:
        no_logging = False
        sources["no_logging"] = "default"

    env_url = (os.environ.get(ANALYTICS_URL_ENV_VAR) or "").strip()
    analytics_url = env_url or config.analytics_url
    sources["analytics_url"] = (
        "env" if env_url else ("config" if config.analytics_url else "default")
    )

    http_timeout = config.http_timeout or HTTP_TIMEOUT_SECONDS
    sources["http_timeout"] = "config" if config.http_timeout else "default"

    values: Dict[str, Any] = {
        "no_logging": no_logging,
        "analytics_url": analytics_url,
        "http_timeout": http_timeout,
    }
    return values, sources
