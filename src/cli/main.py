"""extdash command line.

One subcommand per verb, the store as argument:

    extdash status chrome --app <id>
    extdash update edge --app <id> --file extension.zip
    extdash sign firefox --file extension.xpi

Successful payloads are printed as JSON on stdout; any failure is rendered as
a panel on stderr and exits with code 1.
"""

from __future__ import annotations

import json
import signal
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

import typer
from rich.console import Console

from cli import doctor
from cli.log_setup import configure_logging
from cli.ui_components import print_error
from core.clock import CancellationToken
from core.config import AppSettings, load_settings
from core.domain.errors import ExtdashError
from core.domain.models import StoreKind, SubmissionRequest, Verb
from core.services.workflow import WorkflowOrchestrator

__version__ = "0.1.0"

app = typer.Typer(
    no_args_is_help=True,
    help="Publish and update browser extensions in the Chrome, Edge and Firefox stores.",
)
app.add_typer(doctor.app, name="doctor")

_err_console = Console(stderr=True)

AppOption = typer.Option(None, "--app", "-a", help="Extension id in the store.")
FileOption = typer.Option(None, "--file", "-f", help="Packaged extension (zip/xpi).", dir_okay=False)
SourceOption = typer.Option(None, "--source", "-s", help="Source code archive (Firefox only).", dir_okay=False)
VerboseOption = typer.Option(False, "--verbose", "-v", help="Log every request and poll tick.")


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"extdash {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        False, "--version", callback=_version_callback, is_eager=True, help="Show the version and exit."
    ),
) -> None:
    """Browser extension store workflows."""


@contextmanager
def _cancel_on_sigint() -> Iterator[CancellationToken]:
    """Turn the first Ctrl-C into a cancellation request.

    Polls stop at their next checkpoint; a second Ctrl-C interrupts as usual.
    """

    token = CancellationToken()
    if threading.current_thread() is not threading.main_thread():
        yield token
        return

    def _handle(signum, frame):
        token.cancel()
        signal.signal(signal.SIGINT, signal.default_int_handler)

    previous = signal.signal(signal.SIGINT, _handle)
    try:
        yield token
    finally:
        signal.signal(signal.SIGINT, previous if previous is not None else signal.default_int_handler)


def _execute(
    verb: Verb,
    store: StoreKind,
    *,
    app_id: str | None = None,
    archive: Path | None = None,
    source: Path | None = None,
    verbose: bool = False,
) -> None:
    request = SubmissionRequest(store=store, app_id=app_id, archive_path=archive, source_path=source)
    try:
        settings = load_settings(AppSettings)
        configure_logging("DEBUG" if verbose else settings.log_level, console=_err_console)
        with _cancel_on_sigint() as cancel:
            result = WorkflowOrchestrator(settings=settings, cancel=cancel).run(verb, request)
    except ExtdashError as exc:
        print_error(_err_console, exc)
        raise typer.Exit(code=1) from exc

    typer.echo(json.dumps(result.to_jsonable(), ensure_ascii=False, indent=2))


@app.command()
def status(
    store: StoreKind = typer.Argument(..., help="Target store."),
    app_id: Optional[str] = AppOption,
    verbose: bool = VerboseOption,
) -> None:
    """Show the store's view of an extension."""

    _execute(Verb.STATUS, store, app_id=app_id, verbose=verbose)


@app.command()
def insert(
    store: StoreKind = typer.Argument(..., help="Target store."),
    file: Optional[Path] = FileOption,
    source: Optional[Path] = SourceOption,
    verbose: bool = VerboseOption,
) -> None:
    """Upload an extension to the store for the first time."""

    _execute(Verb.INSERT, store, archive=file, source=source, verbose=verbose)


@app.command()
def update(
    store: StoreKind = typer.Argument(..., help="Target store."),
    app_id: Optional[str] = AppOption,
    file: Optional[Path] = FileOption,
    source: Optional[Path] = SourceOption,
    verbose: bool = VerboseOption,
) -> None:
    """Upload a new version of an existing extension."""

    _execute(Verb.UPDATE, store, app_id=app_id, archive=file, source=source, verbose=verbose)


@app.command()
def publish(
    store: StoreKind = typer.Argument(..., help="Target store."),
    app_id: Optional[str] = AppOption,
    verbose: bool = VerboseOption,
) -> None:
    """Submit the uploaded draft for publication."""

    _execute(Verb.PUBLISH, store, app_id=app_id, verbose=verbose)


@app.command()
def sign(
    store: StoreKind = typer.Argument(..., help="Target store."),
    file: Optional[Path] = FileOption,
    verbose: bool = VerboseOption,
) -> None:
    """Upload, wait for signing and download the signed package."""

    _execute(Verb.SIGN, store, archive=file, verbose=verbose)


def run() -> None:
    app()


if __name__ == "__main__":
    run()
