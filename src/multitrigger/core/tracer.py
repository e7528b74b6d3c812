from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any

from rich.console import Console


def _stderr_console() -> Console:
    return Console(stderr=True)


@dataclass
class Tracer:
    console: Console = field(default_factory=_stderr_console)
    enabled: bool = False

    def info(self, msg: str) -> None:
        if self.enabled:
            self.console.print(f"[cyan]INFO[/cyan] {msg}")

    def warn(self, msg: str) -> None:
        if self.enabled:
            self.console.print(f"[yellow]WARN[/yellow] {msg}")

    def debug(self, msg: str) -> None:
        if self.enabled:
            self.console.print(f"[dim]DEBUG {msg}[/dim]")

    def step(self, title: str) -> None:
        if self.enabled:
            self.console.print(f"\n[bold magenta]▶ {title}[/bold magenta]")

    def data(self, label: str, obj: Any) -> None:
        if self.enabled:
            self.console.print(f"[bold]{label}:[/bold] {obj}")
