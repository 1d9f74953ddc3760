"""Console rendering and progress helpers for filesender CLI."""
from __future__ import annotations

from typing import Any, Dict, Optional

from rich.console import Console
from rich.panel import Panel
from rich.progress import BarColumn, Progress, SpinnerColumn, TaskID, TextColumn, TimeElapsedColumn
from rich.table import Table

console = Console()


def human_size(value: int) -> str:
    size = float(max(value, 0))
    units = ["B", "KB", "MB", "GB", "TB"]
    unit_idx = 0
    while size >= 1024.0 and unit_idx < len(units) - 1:
        size /= 1024.0
        unit_idx += 1
    if unit_idx == 0:
        return f"{int(size)} {units[unit_idx]}"
    return f"{size:.2f} {units[unit_idx]}"


def render_configuration_summary(config: Dict[str, Any]) -> None:
    """Render startup configuration summary."""
    table = Table.grid(padding=(0, 2))
    table.add_column(style="bold cyan", justify="right")
    table.add_column(style="white")

    for key, value in config.items():
        rendered = "-" if value is None else str(value)
        table.add_row(key, rendered)

    panel = Panel(
        table,
        title="[bold green]send-file[/bold green]",
        subtitle="[dim]filesender CLI[/dim]",
        border_style="blue",
    )
    console.print(panel)


class TransferProgress:
    """
    Single-file percentage progress bar.

    Base64 transfers report no progress; the bar then stays at 0 until
    complete() is called.
    """

    def __init__(self, filename: str, size_bytes: int = 0):
        self.filename = filename
        self.size_bytes = size_bytes
        self._last_percent = -1
        self._task_id: Optional[TaskID] = None
        self._progress = Progress(
            SpinnerColumn(),
            TextColumn("[bold cyan]{task.fields[filename]}", justify="left"),
            BarColumn(bar_width=42),
            TextColumn("[progress.percentage]{task.percentage:>3.0f}%"),
            TimeElapsedColumn(),
            expand=False,
            console=console,
            transient=True,
        )

    def start(self) -> None:
        if self._task_id is not None:
            return
        self._progress.start()
        self._task_id = self._progress.add_task(
            "upload",
            filename=f"{self.filename[:60]} ({human_size(self.size_bytes)})",
            total=100,
        )

    def update(self, percent: int) -> None:
        if self._task_id is None:
            self.start()
        if percent == self._last_percent:
            return
        self._last_percent = percent
        self._progress.update(self._task_id, completed=min(max(percent, 0), 100))

    def complete(self, success: bool = True, message: Optional[str] = None) -> None:
        if self._task_id is not None:
            self._progress.stop()
            self._task_id = None

        suffix = f" - {message}" if message else ""
        if success:
            console.print(f"[green]Uploaded:[/green] {self.filename}{suffix}")
        else:
            console.print(f"[red]Failed:[/red] {self.filename}{suffix}")

    def get_callback(self):
        def callback(percent: int) -> None:
            self.update(percent)

        return callback
