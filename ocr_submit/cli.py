"""CLI entry point for ocr-submit."""

from __future__ import annotations

import asyncio
import json
import sys
from pathlib import Path
from typing import Optional

import click

from ocr_submit import __version__
from ocr_submit.config.settings import ClientConfig, load_config
from ocr_submit.models import Document
from ocr_submit.processor.machine import ProcessingStateMachine
from ocr_submit.processor.states import ProcessingSession, SessionStatus
from ocr_submit.reporter.notifications import Notification, Notifier
from ocr_submit.utils.atomic import AtomicWriteError
from ocr_submit.utils.logging import configure_logging, get_logger
from ocr_submit.utils.result import ExitCode


class Context:
    """CLI context for sharing state between commands."""

    def __init__(self, config: ClientConfig) -> None:
        self.config = config
        self.logger = get_logger("cli")


pass_context = click.make_pass_decorator(Context)


def output_json(data: dict) -> None:
    """Output JSON to stdout."""
    click.echo(json.dumps(data, indent=2, default=str, ensure_ascii=False))


def echo_notification(notification: Notification) -> None:
    """Print a notification to stderr."""
    prefix = "!" if notification.destructive else "*"
    click.echo(f"{prefix} {notification.title}: {notification.description}", err=True)


def load_documents(paths: tuple[Path, ...], mime_type: Optional[str]) -> list[Document]:
    return [Document.from_path(path, mime_type=mime_type) for path in paths]


@click.group()
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Path to a YAML config file (default: ./ocr-submit.yaml if present)",
)
@click.option(
    "--endpoint",
    default=None,
    help="Processing endpoint URL (overrides config and OCR_ENDPOINT_URL)",
)
@click.option(
    "--log-level",
    type=click.Choice(["debug", "info", "warn", "error"], case_sensitive=False),
    default=None,
    help="Logging level",
)
@click.option(
    "--log-format",
    type=click.Choice(["json", "text"], case_sensitive=False),
    default=None,
    help="Log format",
)
@click.version_option(version=__version__)
@click.pass_context
def cli(
    ctx: click.Context,
    config_path: Optional[Path],
    endpoint: Optional[str],
    log_level: Optional[str],
    log_format: Optional[str],
) -> None:
    """
    OCR document submission client.

    Validates a single image, sends it to the configured processing
    endpoint and prints the extracted result.
    """
    result = load_config(config_path)
    if result.is_err():
        click.echo(f"Error: {result.unwrap_err()}", err=True)
        ctx.exit(ExitCode.CONFIG_ERROR)

    config = result.unwrap()
    if endpoint:
        config = config.with_endpoint(endpoint)
        validation = config.validate()
        if validation.is_err():
            click.echo(f"Error: {validation.unwrap_err()}", err=True)
            ctx.exit(ExitCode.CONFIG_ERROR)

    configure_logging(
        level=log_level or config.logging.level,
        format_type=log_format or config.logging.format,
    )

    ctx.obj = Context(config=config)


@cli.command()
@click.argument(
    "files",
    nargs=-1,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option("--mime-type", default=None, help="Declared MIME type (default: from extension)")
@pass_context
def validate(ctx: Context, files: tuple[Path, ...], mime_type: Optional[str]) -> None:
    """Check whether a file would be accepted. Only the first file counts."""
    machine = ProcessingStateMachine.from_config(ctx.config)
    outcome = machine.validator.select(load_documents(files, mime_type))

    if outcome is None:
        output_json({"status": "error", "message": "No file given"})
        sys.exit(ExitCode.NO_FILE_SELECTED)

    if outcome.is_err():
        rejection = outcome.unwrap_err()
        output_json({
            "status": "rejected",
            "reason": rejection.reason.value,
            "file_name": rejection.file_name,
            "message": str(rejection),
        })
        sys.exit(ExitCode.FILE_REJECTED)

    document = outcome.unwrap()
    output_json({
        "status": "accepted",
        "document": document.to_dict(),
        "size": document.display_size,
    })


@cli.command()
@click.argument(
    "files",
    nargs=-1,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option("--mime-type", default=None, help="Declared MIME type (default: from extension)")
@click.option(
    "--export-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Write ocr-results-<file>.json here on success",
)
@click.option("--text-only", is_flag=True, default=False, help="Print only the extracted text")
@pass_context
def submit(
    ctx: Context,
    files: tuple[Path, ...],
    mime_type: Optional[str],
    export_dir: Optional[Path],
    text_only: bool,
) -> None:
    """Submit an image for processing and print the result."""
    notifier = Notifier()
    notifier.subscribe(echo_notification)
    machine = ProcessingStateMachine.from_config(ctx.config, notifier=notifier)

    outcome = machine.select_file(load_documents(files, mime_type))
    if outcome is not None and outcome.is_err():
        sys.exit(ExitCode.FILE_REJECTED)

    session = asyncio.run(machine.submit())

    if machine.document is None:
        sys.exit(ExitCode.NO_FILE_SELECTED)

    if text_only and session.result is not None:
        click.echo(session.result.text)
    else:
        output_json(session.to_dict())
    click.echo(session_summary(session), err=True)

    if session.status is SessionStatus.ERROR:
        sys.exit(ExitCode.SUBMISSION_FAILED)

    if export_dir is not None:
        export_session(ctx, machine, export_dir)


def export_session(ctx: Context, machine: ProcessingStateMachine, export_dir: Path) -> None:
    artifact = machine.export()
    if artifact is None:
        return
    try:
        path = artifact.write(export_dir)
    except AtomicWriteError as e:
        ctx.logger.error("export_failed", error=str(e))
        click.echo(f"Error: {e}", err=True)
        sys.exit(ExitCode.EXPORT_FAILED)
    click.echo(f"Results written to {path}", err=True)


def session_summary(session: ProcessingSession) -> str:
    """One-line human summary of a session."""
    if session.status is SessionStatus.SUCCESS and session.result is not None:
        summary = f"{session.status.label}: {len(session.result.text)} characters"
        if session.result.confidence is not None:
            summary += f", confidence {round(session.result.confidence * 100)}%"
        return summary
    if session.status is SessionStatus.ERROR:
        return f"{session.status.label}: {session.error_message}"
    return session.status.label


def main() -> None:
    """Main entry point."""
    try:
        cli()
    except Exception as e:
        logger = get_logger("cli")
        logger.error("cli_error", error=str(e))
        sys.exit(ExitCode.GENERAL_ERROR)


if __name__ == "__main__":
    main()
