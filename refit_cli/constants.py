"""Shared constants for refit_cli."""

from __future__ import annotations

PACKAGE_NAME = "refit_cli"
DEFAULT_CONFIG_DIR_NAME = "refit_cli"

CONFIG_ENV_VAR = "REFIT_CLI_CONFIG"
NO_LOGGING_ENV_VAR = "REFIT_CLI_NO_LOGGING"
ANALYTICS_URL_ENV_VAR = "REFIT_CLI_ANALYTICS_URL"

DEFAULT_NAMESPACE = "GeneratedCode"
DEFAULT_INTERFACE_NAME = "ApiClient"
DEFAULT_OUTPUT_FILENAME = "Output.cs"
OPERATION_NAME_PLACEHOLDER = "{operationName}"

SUPPORT_KEY_LENGTH = 7
INSTALLATION_ID_FILENAME = "installation_id"

EXIT_CODE_FAILURE = 1
EXIT_CODE_USAGE = 2
EXIT_CODE_SPEC_INVALID = 3
EXIT_CODE_INTERRUPT = 130

HTTP_TIMEOUT_SECONDS = 30.0

PLUGIN_GROUP = "refit_cli.plugins"
