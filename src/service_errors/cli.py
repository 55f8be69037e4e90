from __future__ import annotations

import sys

import typer
from loguru import logger
from pydantic import ValidationError

from service_errors.config import Settings
from service_errors.domain.codes import ErrorCategory
from service_errors.domain.models import ErrorPayload
from service_errors.errors import StructuredError
from service_errors.infrastructure.http import status_for_category
from service_errors.infrastructure.telemetry import configure_logging

app = typer.Typer(
    name="service-errors",
    help="Inspect structured error codes and serialized error payloads",
)


@app.command("categories", help="List error categories with status and retryability")
def categories_cmd() -> None:
    for category in ErrorCategory:
        retry = "retryable" if category.is_default_retryable() else "-"
        typer.echo(
            f"{category.value:<20} {status_for_category(category):>3} {retry}"
        )


@app.command("status", help="Print the HTTP status for a dotted error CODE")
def status_cmd(code: str) -> None:
    category = code.split(".", 1)[0]
    typer.echo(str(status_for_category(category)))


@app.command("inspect", help="Describe a serialized error PAYLOAD ('-' reads stdin)")
def inspect_cmd(payload: str) -> None:
    raw = sys.stdin.read() if payload == "-" else payload
    try:
        err = StructuredError.from_payload(ErrorPayload.model_validate_json(raw))
    except ValidationError as exc:
        typer.echo(f"Invalid error payload: {exc.error_count()} problem(s)", err=True)
        raise typer.Exit(2) from exc
    logger.debug("Decoded error payload {}", err.code)
    typer.echo(str(err))
    typer.echo(f"status: {status_for_category(err.category)}")
    typer.echo(f"retryable: {'yes' if err.retryable else 'no'}")
    for key, value in sorted(err.context.items()):
        typer.echo(f"  {key}={value}")


@app.callback()
def root() -> None:
    """Root command for service-errors."""
    configure_logging(Settings())


def main() -> None:  # pragma: no cover - CLI entry point
    """Entrypoint for the CLI."""
    app()


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    main()
