"""The `generate` command pipeline and its status reporting."""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable

from .analytics import Analytics, NullAnalytics
from .args import GenerateArgs
from .console import ERROR_COLOR, WARNING_COLOR, log_error, log_status
from .constants import EXIT_CODE_USAGE
from .context import AppContext
from .errors import Failure, FailureKind
from .settings import GenerationConfig, resolve_for_execution, validate_args
from .validation import Diagnostic, SpecValidator, ValidationOutcome
from .version import cli_version
from .writer import write_output


async def _best_effort(action: Callable[[], Awaitable[None]]) -> None:
    try:
        await action()
    except Exception:
        return


def _try_report(diagnostic: Diagnostic, color: str, label: str) -> None:
    try:
        log_status(f"{label}:\n{diagnostic}\n", color)
    except Exception:
        return


def format_duration(seconds: float) -> str:
    seconds = max(seconds, 0.0)
    hours, remainder = divmod(seconds, 3600)
    minutes, secs = divmod(remainder, 60)
    return f"{int(hours):02d}:{int(minutes):02d}:{secs:010.7f}"


def _support_key_line(args: GenerateArgs, analytics: Analytics) -> str:
    if args.no_logging:
        return "Support key: Unavailable when logging is disabled"
    try:
        return f"Support key: {analytics.support_key()}"
    except Exception:
        return "Support key: Unavailable"


async def validate_openapi_spec(reference: str, validator: SpecValidator) -> ValidationOutcome:
    outcome = await validator.validate(reference)
    if not outcome.is_valid:
        log_status("\nOpenAPI validation failed:\n", ERROR_COLOR)
        for error in outcome.errors:
            _try_report(error, ERROR_COLOR, "Error")
        for warning in outcome.warnings:
            _try_report(warning, WARNING_COLOR, "Warning")
        outcome.raise_if_invalid()

    log_status(f"\nOpenAPI statistics:\n{outcome.statistics}\n")
    return outcome


def report_failure(failure: Failure) -> None:
    if failure.kind is FailureKind.SPECIFICATION_INVALID:
        return
    log_status(f"Error:\n{failure.message}", ERROR_COLOR, err=True)
    log_status(f"Exception:\n{failure.category}", ERROR_COLOR, err=True)
    log_status(f"Stack Trace:\n{failure.stack_trace() or ''}", WARNING_COLOR, err=True)


async def execute(args: GenerateArgs, tentative: GenerationConfig, ctx: AppContext) -> int:
    """Run validation, generation and output for an already-validated invocation."""
    analytics: Analytics = NullAnalytics() if args.no_logging else ctx.analytics
    started = ctx.clock()
    try:
        log_status(f"refit_cli v{cli_version()}")
        log_status(_support_key_line(args, analytics))

        spec_reference = tentative.openapi_path
        if not args.skip_validation:
            await validate_openapi_spec(spec_reference, ctx.validator())

        config = resolve_for_execution(args, spec_reference)
        create_generator = ctx.generators()
        generator = await create_generator(config)
        code = generator.generate()

        await write_output(code, args.output_path)
        await _best_effort(lambda: analytics.log_feature_usage(args))

        log_status(f"Duration: {format_duration(ctx.clock() - started)}\n")
        return 0
    except Exception as exc:
        failure = Failure.from_exception(exc)
        report_failure(failure)
        await _best_effort(lambda: analytics.log_error(exc, args))
        return failure.exit_code


def run_generate(args: GenerateArgs, ctx: AppContext) -> int:
    verdict = validate_args(args, ctx.analytics)
    if not verdict.ok or verdict.config is None:
        log_error(f"error: {verdict.message}")
        return EXIT_CODE_USAGE
    return asyncio.run(execute(args, verdict.config, ctx))
