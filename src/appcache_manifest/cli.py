import typer
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple
from importlib.metadata import version, PackageNotFoundError

from .command import AppcacheCommand, execute_sync
from .config import AppcacheConfig, ConfigError, load_config
from .util import (
    setup_logging, logging, init_console,
    print_json, print_success, print_error
)
from . import util

app = typer.Typer(help="Appcache Manifest Generator", add_completion=False)


def version_callback(value: bool):
    if value:
        try:
            v = version("appcache-manifest")
        except PackageNotFoundError:
            v = "unknown"
        typer.echo(f"appcache-manifest v{v}")
        raise typer.Exit()


@app.callback()
def main_callback(
    version: Optional[bool] = typer.Option(
        None, "--version", callback=version_callback, is_eager=True, help="Show version."
    )
):
    pass


def parse_fallback(value: str) -> Tuple[str, str]:
    """Splits RESOURCE=FALLBACK on the first '='."""
    resource, sep, fallback = value.partition("=")
    if not sep or not resource or not fallback:
        raise ConfigError(f"Fallback must look like RESOURCE=FALLBACK, got '{value}'")
    return resource, fallback


def build_options(
    config_file: Optional[Path],
    dir: Optional[str],
    html_path: Optional[str],
    template: Optional[Path],
    extras: List[str],
    fallbacks: List[str],
    depends: List[str]
) -> Dict[str, Any]:
    """Config file values first, command line values on top."""
    options: Dict[str, Any] = load_config(config_file) if config_file else {}

    if dir is not None:
        options["dir"] = dir
    if html_path is not None:
        options["html_path"] = html_path
    if template is not None:
        options["manifest_template"] = template
    if extras:
        options["extras"] = list(extras)
    if fallbacks:
        options["fallbacks"] = [parse_fallback(f) for f in fallbacks]
    if depends:
        options["depends"] = list(depends)
    return options


@app.command()
def generate(
    dir: Optional[str] = typer.Option(None, "--dir", help="Built site directory [default: www-built]"),
    html_path: Optional[str] = typer.Option(None, help="Entry HTML file, relative to --dir [default: index.html]"),
    template: Optional[Path] = typer.Option(None, help="Manifest template [default: bundled template]"),
    extra: List[str] = typer.Option([], help="Extra path to cache, listed after the site files"),
    fallback: List[str] = typer.Option([], help="Fallback mapping as RESOURCE=FALLBACK"),
    depends: List[str] = typer.Option([], help="Shell command to run first (repeatable)"),
    config_file: Optional[Path] = typer.Option(None, "--config", help="JSON file with command options"),

    # Modes
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Minimal output"),
    json_mode: bool = typer.Option(False, "--json", help="Output JSON only"),
    debug: bool = typer.Option(False, help="Enable debug logging")
):
    """
    Generate manifest.appcache and point the entry HTML at it.
    """
    init_console(quiet=quiet, json_mode=json_mode)
    setup_logging(debug)

    rich_enabled = bool(util.console) and (not quiet) and (not json_mode)

    try:
        options = build_options(config_file, dir, html_path, template, extra, fallback, depends)
        command = AppcacheCommand(AppcacheConfig(**options))
    except Exception as e:
        if json_mode:
            print_json({"error": str(e)})
            raise typer.Exit(code=1)
        print_error(str(e), hint="Check --config and the --fallback format.")
        raise typer.Exit(code=1)

    if rich_enabled and util.console:
        util.console.rule("[bold cyan]Appcache Manifest - Generator[/bold cyan]")
        logging.debug(command.summary)

    result = execute_sync(command)

    if result.get("error"):
        if json_mode:
            print_json(result)
        else:
            print_error(result["error"])
        raise typer.Exit(code=1)

    if json_mode:
        print_json(result)
    elif quiet:
        print(result["manifest_path"])
    else:
        from rich.table import Table

        table = Table(title="Appcache Manifest", show_header=True, header_style="bold magenta")
        table.add_column("Property", style="cyan")
        table.add_column("Value", style="green")

        table.add_row("Manifest", result["manifest_path"])
        table.add_row("Patched HTML", result["html_path"])
        table.add_row("Cached Entries", str(result["file_count"]))
        table.add_row("Stamp", result["stamp"])

        if rich_enabled and util.console:
            util.console.print(table)
        print_success(f"Manifest written: {result['manifest_path']}")


def main():
    app()


if __name__ == "__main__":
    main()
