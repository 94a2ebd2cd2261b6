import logging
from typing import Any, Sequence

from rich.box import HEAVY, SIMPLE
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from apiwarden.domain.interfaces.user_interface import UserInterface

logger = logging.getLogger(__name__)


def format_bytes(value: Any) -> str:
    """Renders a byte count with a decimal unit, or '-' when unknown."""
    if value is None:
        return "-"
    size = float(value)
    for unit in ("bytes", "KB", "MB", "GB"):
        if abs(size) < 1000:
            return f"{size:.0f} {unit}" if unit == "bytes" else f"{size:.2f} {unit}"
        size /= 1000
    return f"{size:.2f} TB"


class ConsoleDisplay(UserInterface):
    """Concrete implementation of UserInterface using the rich library for console output."""

    def __init__(self, console: Console = None):
        self.console = console or Console()

    def display_table(self, title: str, columns: Sequence[str], rows: Sequence[Sequence[Any]], **kwargs: Any) -> None:
        """Renders rows as a rich table.

        Args:
            title: Table caption.
            columns: Column headers.
            rows: Cell values; each is converted with str().
            **kwargs: ``numeric_columns`` lists headers to right-align.
        """
        numeric_columns = set(kwargs.get("numeric_columns", ()))
        table = Table(title=title, box=SIMPLE, header_style="bold cyan")
        for column in columns:
            table.add_column(column, justify="right" if column in numeric_columns else "left")
        for row in rows:
            table.add_row(*("" if cell is None else str(cell) for cell in row))
        logger.debug(f"Displaying table '{title}' with {len(rows)} rows")
        self.console.print(table)

    def display_error(self, error_message: str, **kwargs: Any) -> None:
        """Displays an error message in a distinct style."""
        panel = Panel(
            Text(error_message, style="white"),
            title="[bold red]Error[/bold red]",
            border_style="red",
            box=HEAVY,
            padding=(0, 1)
        )
        self.console.print(panel)

    def display_info(self, info_message: str, **kwargs: Any) -> None:
        panel = Panel(
            Text(info_message, style="white"),
            title="[bold blue]Info[/bold blue]",
            border_style="blue",
            box=SIMPLE,
            padding=(0, 1)
        )
        self.console.print(panel)

    def display_warning(self, warning_message: str, **kwargs: Any) -> None:
        logger.warning(f"Display warning: {warning_message}")
        panel = Panel(
            Text(warning_message, style="white"),
            title="[bold yellow]Warning[/bold yellow]",
            border_style="yellow",
            box=HEAVY,
            padding=(0, 1)
        )
        self.console.print(panel)
