#!/usr/bin/env python3
"""refit_cli CLI entry point."""

from __future__ import annotations

import json
import sys
from dataclasses import replace
from typing import Any, Dict, List, Optional, Sequence

import click
import typer

from .analytics import HttpAnalytics, NullAnalytics
from .args import GenerateArgs
from .config import effective_config, load_config, resolve_config_path, write_default_config
from .console import log, log_error
from .constants import EXIT_CODE_INTERRUPT, EXIT_CODE_USAGE, PACKAGE_NAME
from .context import AppContext
from .errors import CLIError
from .pipeline import run_generate
from .plugins import plugin_statuses
from .version import cli_version

app = typer.Typer(help="Generate Refit interfaces and contracts from OpenAPI specifications")
config_app = typer.Typer(help="User configuration helpers")
app.add_typer(config_app, name="config")


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"{PACKAGE_NAME} {cli_version()}")
        raise typer.Exit()


def build_context(values: Dict[str, Any]) -> AppContext:
    analytics = NullAnalytics() if values["no_logging"] else HttpAnalytics(values["analytics_url"])
    return AppContext(analytics=analytics, http_timeout_seconds=values["http_timeout"])


def handle_generate(args: GenerateArgs) -> int:
    values, _ = effective_config(load_config())
    no_logging = args.no_logging or values["no_logging"]
    args = replace(args, no_logging=no_logging)
    return run_generate(args, build_context(dict(values, no_logging=no_logging)))


def handle_config_init(force: bool) -> int:
    path = write_default_config(force=force)
    log(f"wrote config file to {path}")
    return 0


def handle_config_show(as_json: bool) -> int:
    path = resolve_config_path()
    values, sources = effective_config(load_config(path))
    if as_json:
        typer.echo(
            json.dumps(
                {"config_path": str(path), "values": values, "sources": sources},
                indent=2,
                sort_keys=True,
            )
        )
        return 0
    typer.echo(f"config file: {path}{'' if path.exists() else ' (missing)'}")
    for key in sorted(values):
        typer.echo(f"{key} = {values[key]!r} ({sources[key]})")
    return 0


def handle_plugins() -> int:
    statuses = plugin_statuses()
    if not statuses:
        typer.echo("no plugins installed")
        return 0
    failed = False
    for info, error in statuses:
        if error:
            failed = True
            typer.echo(f"{info.name} ({info.value}): failed to load: {error}")
        else:
            typer.echo(f"{info.name} ({info.value})")
    return 1 if failed else 0


@app.callback(invoke_without_command=True)
def cli_callback(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        help="show the refit_cli version and exit",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit(code=EXIT_CODE_USAGE)


@app.command()
def generate(
    openapi_path: Optional[str] = typer.Argument(
        None, metavar="INPUT", help="URL or file path to the OpenAPI specification"
    ),
    settings_file: Optional[str] = typer.Option(
        None, "--settings-file", "-s", help="path to a .refitter settings file"
    ),
    namespace: Optional[str] = typer.Option(
        None, "--namespace", "-n", help="default namespace for the generated types"
    ),
    output_path: Optional[str] = typer.Option(
        None, "--output", "-o", help="path of the generated code file"
    ),
    no_auto_generated_header: bool = typer.Option(
        False, "--no-auto-generated-header", help="omit the <auto-generated> header"
    ),
    no_accept_headers: bool = typer.Option(
        False, "--no-accept-headers", help="omit [Headers(\"Accept: ...\")] attributes"
    ),
    interface_only: bool = typer.Option(
        False, "--interface-only", help="generate the Refit interface without contracts"
    ),
    return_iapi_response: bool = typer.Option(
        False, "--return-iapi-response", help="return Task<IApiResponse<T>> instead of Task<T>"
    ),
    use_cancellation_tokens: bool = typer.Option(
        False, "--use-cancellation-tokens", help="add a CancellationToken parameter to each method"
    ),
    no_operation_headers: bool = typer.Option(
        False, "--no-operation-headers", help="omit operation [Header] parameters"
    ),
    use_iso_date_format: bool = typer.Option(
        False, "--use-iso-date-format", help="format date query parameters as yyyy-MM-dd"
    ),
    internal_type_accessibility: bool = typer.Option(
        False, "--internal-type-accessibility", help="generate internal types instead of public ones"
    ),
    additional_namespaces: List[str] = typer.Option(
        [],
        "--additional-namespaces",
        "--additional-namespace",
        help="extra using directive (repeatable)",
    ),
    multiple_interfaces: Optional[str] = typer.Option(
        None,
        "--multiple-interfaces",
        help="generate one interface per endpoint or per tag (ByEndpoint, ByTag)",
    ),
    match_paths: List[str] = typer.Option(
        [],
        "--match-paths",
        "--match-path",
        help="only include paths matching this regex (repeatable)",
    ),
    tags: List[str] = typer.Option(
        [], "--tags", "--tag", help="only include operations with this tag (repeatable)"
    ),
    no_deprecated_operations: bool = typer.Option(
        False, "--no-deprecated-operations", help="skip deprecated operations"
    ),
    operation_name_template: Optional[str] = typer.Option(
        None,
        "--operation-name-template",
        help="method name template; must contain {operationName}",
    ),
    no_logging: bool = typer.Option(False, "--no-logging", help="disable anonymous analytics"),
    skip_validation: bool = typer.Option(
        False, "--skip-validation", help="skip OpenAPI specification validation"
    ),
) -> None:
    """Generate a Refit client from an OpenAPI specification."""
    args = GenerateArgs(
        openapi_path=openapi_path,
        settings_file=settings_file,
        namespace=namespace,
        output_path=output_path,
        no_auto_generated_header=no_auto_generated_header,
        no_accept_headers=no_accept_headers,
        interface_only=interface_only,
        return_iapi_response=return_iapi_response,
        use_cancellation_tokens=use_cancellation_tokens,
        no_operation_headers=no_operation_headers,
        use_iso_date_format=use_iso_date_format,
        internal_type_accessibility=internal_type_accessibility,
        additional_namespaces=tuple(additional_namespaces),
        multiple_interfaces=multiple_interfaces,
        match_paths=tuple(match_paths),
        tags=tuple(tags),
        no_deprecated_operations=no_deprecated_operations,
        operation_name_template=operation_name_template,
        no_logging=no_logging,
        skip_validation=skip_validation,
    )
    try:
        rc = handle_generate(args)
    except CLIError as exc:
        log_error(f"error: {exc}")
        raise typer.Exit(code=EXIT_CODE_USAGE) from exc
    raise typer.Exit(code=rc)


@app.command("plugins")
def plugins_command() -> None:
    """List installed generator plugins."""
    raise typer.Exit(code=handle_plugins())


@config_app.command("init")
def config_init(
    force: bool = typer.Option(False, "--force", help="overwrite an existing config file"),
) -> None:
    try:
        rc = handle_config_init(force)
    except CLIError as exc:
        log_error(f"error: {exc}")
        raise typer.Exit(code=EXIT_CODE_USAGE) from exc
    raise typer.Exit(code=rc)


@config_app.command("show")
def config_show(
    as_json: bool = typer.Option(False, "--json", help="print as JSON"),
) -> None:
    try:
        rc = handle_config_show(as_json)
    except CLIError as exc:
        log_error(f"error: {exc}")
        raise typer.Exit(code=EXIT_CODE_USAGE) from exc
    raise typer.Exit(code=rc)


def main(argv: Optional[Sequence[str]] = None) -> int:
    command = typer.main.get_command(app)
    try:
        result = command.main(
            args=list(argv) if argv is not None else None,
            prog_name=PACKAGE_NAME,
            standalone_mode=False,
        )
    except SystemExit as exc:
        return int(exc.code or 0)
    except (KeyboardInterrupt, typer.Abort):
        log_error("interrupted")
        return EXIT_CODE_INTERRUPT
    except click.ClickException as exc:
        exc.show()
        return exc.exit_code
    except CLIError as exc:
        log_error(f"error: {exc}")
        return EXIT_CODE_USAGE
    return int(result or 0)


if __name__ == "__main__":
    sys.exit(main())
