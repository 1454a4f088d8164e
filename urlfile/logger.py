import logging
import time
from typing import Optional

from rich.console import Console, Group
from rich.panel import Panel
from rich.table import Table
from rich.text import Text
from rich.theme import Theme

flow_theme = Theme({
    "step": "bold cyan",
    "success": "bold green",
    "error": "bold red",
    "key": "bold blue",
    "value": "default"
})

default_console = Console(theme=flow_theme, stderr=True)

logger = logging.getLogger("urlfile")


class FlowChartLogger:
    """
    Draws one discovery or fetch as a top-down chain of panels.

    Each flow owns its step state and clock; create one per HEAD probe or
    range request. Output goes to ``console`` (the shared stderr console
    when None), rendered with ``flow_theme`` whatever theme it carries.
    """

    def __init__(self, console: Optional[Console] = None):
        self.console = console if console is not None else default_console
        self._steps = 0
        self._start_time = time.monotonic()

    @property
    def elapsed(self) -> str:
        return f"{time.monotonic() - self._start_time:.4f}s"

    def _panel(self, title: str, details: Optional[dict], style: str, subtitle: str) -> Panel:
        items = [Text(title, style="bold")]
        if details:
            grid = Table.grid(padding=(0, 2))
            grid.add_column(style="key", justify="right")
            grid.add_column(style="value", justify="left")
            for k, v in details.items():
                grid.add_row(f"{k}:", str(v))
            items.append(Text("──────", style="dim"))
            items.append(grid)
        return Panel(Group(*items), style=style, subtitle=subtitle, expand=False, padding=(0, 2))

    def step(self, title: str, details: Optional[dict] = None, style: str = "step", subtitle: str = ""):
        with self.console.use_theme(flow_theme):
            if self._steps:
                self.console.print("   [dim]│[/]")
                self.console.print("   [dim]▼[/]")
            self.console.print(self._panel(title, details, style, subtitle))
        self._steps += 1

    def done(self, title: str, details: Optional[dict] = None):
        self.step(title, details, style="success", subtitle=f"[{self.elapsed}]")

    def fail(self, title: str, details: Optional[dict] = None):
        self.step(title, details, style="error", subtitle=f"[{self.elapsed}]")
