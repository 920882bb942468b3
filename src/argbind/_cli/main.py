import importlib
import json
import logging
import sys
from pathlib import Path
from typing import Annotated, Any

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.pretty import Pretty
from rich.table import Table

from argbind._binder import ArgumentBinder
from argbind._errors import BindingError
from argbind._invoke import ServiceMethodInvoker
from argbind._metadata import SignatureMetadataProvider
from argbind._report import ConsoleReporter
from argbind._resolver import ChainResolver, EntityRepository, EntityResolver, default_resolver
from argbind._types import HasDefault, NoDefault

from .config import ArgbindConfig, ConfigError, get_config

app = typer.Typer()

logger = logging.getLogger(__name__)
# Console for stderr (info/errors)
err_console = Console(stderr=True)
# Console for stdout (results)
out_console = Console()


@app.callback()
def callback(
    *,
    verbose: bool = typer.Option(default=False, help="Enable verbose output"),
) -> None:
    """Argbind CLI."""
    log_level = logging.DEBUG if verbose else logging.INFO

    # Configure rich logging handler to output to stderr
    logging.basicConfig(
        level=log_level,
        format="%(message)s",
        handlers=[
            RichHandler(
                console=err_console,
                show_time=False,
                show_path=verbose,
                rich_tracebacks=True,
            ),
        ],
    )


def _load_object_from_module_path(module_path: str, import_root: Path | None = None) -> Any:
    """Load an object from a module path (e.g., 'app.services:user_service').

    `import_root` (the project root, else the current directory) is made importable,
    so services of the project at hand can be loaded.
    """
    if ":" not in module_path:
        msg = "Module path must be in format 'module.path:variable_name'"
        raise ValueError(msg)

    module_name, attr_name = module_path.split(":", 1)
    root = str(import_root if import_root is not None else Path.cwd())
    if root not in sys.path:
        sys.path.insert(0, root)

    try:
        module = importlib.import_module(module_name)
    except ImportError:
        logger.exception("Import error")
        raise

    if not hasattr(module, attr_name):
        msg = f"Could not find '{attr_name}' in module '{module_name}'"
        raise ValueError(msg)
    return getattr(module, attr_name)


def _build_resolver(config: ArgbindConfig) -> EntityResolver:
    """Create the resolver chain, extended by the configured resolver or repository."""
    if config.resolver is None:
        return default_resolver()

    configured = _load_object_from_module_path(config.resolver, config.project_root)
    if isinstance(configured, type):
        configured = configured()
    if isinstance(configured, EntityResolver):
        return ChainResolver([default_resolver(), configured])
    if isinstance(configured, EntityRepository):
        return default_resolver(configured)

    msg = f"'{config.resolver}' is neither an entity resolver nor an entity repository"
    raise TypeError(msg)


def _load_config() -> ArgbindConfig:
    try:
        return get_config()
    except ConfigError as e:
        err_console.print(f"[red]Configuration error:[/red] {escape(str(e))}")
        raise typer.Exit(code=2) from e


def _get_method(service: object, method: str) -> Any:
    fn = getattr(service, method, None)
    if fn is None or not callable(fn):
        err_console.print(f"[red]Error: '{escape(str(service))}' has no method '{escape(method)}'[/red]")
        raise typer.Exit(code=1)
    return fn


def _read_payload(params: str | None, input_path: Path | None) -> dict[str, Any]:
    if params is not None and input_path is not None:
        msg = "Use either --params or --input, not both"
        raise typer.BadParameter(msg)

    if input_path is not None:
        raw = input_path.read_text(encoding="utf-8")
    elif params is not None:
        raw = params
    else:
        return {}

    try:
        payload = json.loads(raw)
    except json.JSONDecodeError as e:
        msg = f"Invalid JSON payload: {e}"
        raise typer.BadParameter(msg) from e
    if not isinstance(payload, dict):
        msg = "The payload must be a JSON object"
        raise typer.BadParameter(msg)
    return payload


def _describe_default(spec_default: object) -> str:
    if isinstance(spec_default, HasDefault):
        return repr(spec_default.value)
    if isinstance(spec_default, NoDefault):
        return ""
    return "[red]unavailable[/red]"


@app.command("params")
def show_params(
    target: Annotated[
        str,
        typer.Argument(help="Module path of the service (e.g., app.services:user_service)"),
    ],
    method: Annotated[str, typer.Argument(help="Name of the service method")],
) -> None:
    """Show the parameters a service method is bound against."""
    config = _load_config()
    service = _load_object_from_module_path(target, config.project_root)
    parameters = SignatureMetadataProvider().describe_parameters(_get_method(service, method))

    table = Table(title=f"{escape(target)}.{escape(method)}")
    table.add_column("#", justify="right")
    table.add_column("Parameter", style="cyan")
    table.add_column("Type")
    table.add_column("Nullable")
    table.add_column("Default")
    for spec in parameters:
        table.add_row(
            str(spec.position),
            ("*" if spec.variadic else "") + spec.name,
            escape(spec.type.type_name),
            "yes" if spec.allows_null else "no",
            _describe_default(spec.default),
        )
    out_console.print(table)


@app.command()
def invoke(  # noqa: PLR0913
    target: Annotated[
        str,
        typer.Argument(help="Module path of the service (e.g., app.services:user_service)"),
    ],
    method: Annotated[str, typer.Argument(help="Name of the service method")],
    *,
    params: Annotated[
        str | None,
        typer.Option("-p", "--params", help="JSON object with the raw parameters"),
    ] = None,
    input: Annotated[  # noqa: A002
        Path | None,
        typer.Option("-i", "--input", help="Path to a JSON file with the raw parameters"),
    ] = None,
    data_must_be_array: Annotated[
        bool | None,
        typer.Option("--data-must-be-array/--no-data-must-be-array", help="Bind the whole payload to 'data'"),
    ] = None,
    dry_run: Annotated[
        bool,
        typer.Option("--dry-run", help="Only bind the arguments and show them"),
    ] = False,
) -> None:
    """Bind a JSON payload to a service method and call it."""
    config = _load_config()
    if data_must_be_array is None:
        data_must_be_array = config.data_must_be_array

    payload = _read_payload(params, input)
    service = _load_object_from_module_path(target, config.project_root)
    bound_method = _get_method(service, method)
    resolver = _build_resolver(config)
    err_console.print(f"[cyan]Service:[/cyan] [bold]{escape(str(service))}[/bold]")

    reporter = ConsoleReporter(err_console)
    try:
        if dry_run:
            metadata = SignatureMetadataProvider()
            parameters = metadata.describe_parameters(bound_method)
            bound = ArgumentBinder(metadata, resolver).bind(
                service,
                method,
                parameters,
                payload,
                raw_data_mode=data_must_be_array,
            )
            table = Table(title="Bound arguments")
            table.add_column("Parameter", style="cyan")
            table.add_column("Value")
            for name, value in bound.arguments.items():
                table.add_row(name, Pretty(value))
            out_console.print(table)
            return

        invoker = ServiceMethodInvoker(resolver=resolver, reporter=reporter)
        result = invoker.invoke(service, method, payload, data_must_be_array=data_must_be_array)
    except BindingError as e:
        if dry_run:
            reporter.report(e)
        raise typer.Exit(code=1) from e

    out_console.print(Pretty(result))


def main() -> None:
    app()
