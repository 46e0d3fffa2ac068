"""CLI UI components (Rich).

Why separate components:
- Keeps command logic apart from visual details.
- Lets `main` and `doctor` share panels and tables.
"""

from __future__ import annotations

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from core.domain.errors import ExtdashError, ProtocolError, ValidationFailed


def build_error_panel(error: ExtdashError) -> Panel:
    """Panel describing a failed operation, store diagnostics included."""

    body = Text()
    body.append(str(error).strip() or error.__class__.__name__)
    if isinstance(error, ProtocolError) and error.status_code is not None:
        body.append(f"\n\nHTTP status: {error.status_code}", style="dim")
    if isinstance(error, ValidationFailed) and error.payload is not None:
        body.append("\n\nThe store rejected the submission; see the status above.", style="dim")

    title = Text(error.__class__.__name__, style="bold red")
    return Panel(body, title=title, border_style="red")


def print_error(console: Console, error: ExtdashError) -> None:
    console.print(build_error_panel(error))


def build_credentials_table() -> Table:
    table = Table(title="extdash doctor")
    table.add_column("Store", style="cyan", no_wrap=True)
    table.add_column("Status", style="white")
    table.add_column("Details", style="dim")
    return table
