"""Doctor command for environment diagnostics."""

from __future__ import annotations

import typer
from rich.console import Console

from cli.ui_components import build_credentials_table, print_error
from core.config import AppSettings, ChromeSettings, EdgeSettings, FirefoxSettings, load_settings, write_user_env_vars
from core.domain.errors import ConfigurationError
from core.domain.models import StoreKind

app = typer.Typer(no_args_is_help=True, help="Environment diagnostics and credential setup.")

_console = Console()

_SETTINGS = {
    StoreKind.CHROME: ChromeSettings,
    StoreKind.EDGE: EdgeSettings,
    StoreKind.FIREFOX: FirefoxSettings,
}

_PROMPTS: dict[StoreKind, tuple[tuple[str, str, bool], ...]] = {
    StoreKind.CHROME: (
        ("CHROME_CLIENT_ID", "Client id", False),
        ("CHROME_CLIENT_SECRET", "Client secret", True),
        ("CHROME_REFRESH_TOKEN", "Refresh token", True),
    ),
    StoreKind.EDGE: (
        ("EDGE_CLIENT_ID", "Client id", False),
        ("EDGE_CLIENT_SECRET", "Client secret", True),
        ("EDGE_ACCESS_TOKEN_URL", "Access token URL", False),
    ),
    StoreKind.FIREFOX: (
        ("FIREFOX_CLIENT_ID", "JWT issuer", False),
        ("FIREFOX_CLIENT_SECRET", "JWT secret", True),
    ),
}


@app.command()
def run() -> None:
    """Show which store credentials are configured."""

    try:
        settings = load_settings(AppSettings)
        stores = {kind: load_settings(settings_cls) for kind, settings_cls in _SETTINGS.items()}
    except ConfigurationError as exc:
        print_error(Console(stderr=True), exc)
        raise typer.Exit(code=1) from exc

    table = build_credentials_table()
    for kind, store in stores.items():
        missing = store.missing()
        if missing:
            table.add_row(kind.value, "MISSING", ", ".join(missing))
        else:
            table.add_row(kind.value, "OK", store.api_url)

    table.add_row("output dir", "OK", str(settings.output_dir.resolve()))
    table.add_row("http timeout", "OK", f"{settings.http_timeout_seconds:g}s")
    _console.print(table)


@app.command()
def setup(store: StoreKind = typer.Argument(..., help="Store to configure.")) -> None:
    """Prompt for a store's credentials and save them in the user config .env."""

    values: dict[str, str] = {}
    for key, label, secret in _PROMPTS[store]:
        value = typer.prompt(label, hide_input=secret).strip()
        if not value:
            raise typer.BadParameter(f"{label} is required")
        values[key] = value

    env_path = write_user_env_vars(values)
    _console.print(f"[green]Saved {store.value} credentials to:[/green] {env_path}")
