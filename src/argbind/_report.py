"""Diagnostic sinks for binding failures.

A reporter receives every `BindingError` the invoker surfaces. The error
already carries the service, the method and the raw input, so a reporter only
decides where to show them.
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any, Protocol

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

if TYPE_CHECKING:
    from ._errors import BindingError

logger = logging.getLogger(__name__)


class ErrorReporter(Protocol):
    def report(self, error: BindingError) -> None: ...


def _render_value(value: Any) -> str:
    try:
        return json.dumps(value, ensure_ascii=False, default=repr)
    except (TypeError, ValueError):
        return repr(value)


class LoggingReporter:
    """Log binding failures at WARNING level."""

    def __init__(self, log: logging.Logger | None = None) -> None:
        self.log = log if log is not None else logger

    def report(self, error: BindingError) -> None:
        self.log.warning(
            "%s: binding %s.%s failed: %s (params: %s)",
            error.kind,
            error.service,
            error.method,
            error.message,
            _render_value(error.params),
        )


def params_table(params: dict[str, Any] | None) -> Table:
    """Build a table of the raw input parameters."""
    table = Table(title="Input parameters", show_lines=False)
    table.add_column("Parameter", style="cyan")
    table.add_column("Value")
    table.add_column("Type", style="dim")
    for name, value in (params or {}).items():
        table.add_row(escape(str(name)), escape(_render_value(value)), type(value).__name__)
    return table


class ConsoleReporter:
    """Print binding failures to a rich console."""

    def __init__(self, console: Console | None = None) -> None:
        self.console = console if console is not None else Console(stderr=True)

    def report(self, error: BindingError) -> None:
        method = f"{error.service}::{error.method}()" if error.method else str(error.service)
        self.console.print(
            Panel(
                escape(error.message),
                title=f"[red]{error.kind}[/red] in [bold]{escape(method)}[/bold]",
                border_style="red",
            ),
        )
        if error.params:
            self.console.print(params_table(error.params))
