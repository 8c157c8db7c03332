"""
Command line interface.

Usage::

    cds-typer model.json --output-directory @cds-models
    cds-typer https://example.org/model.csn --inline-declarations structured --dry-run
"""

import argparse
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from . import __version__
from .codegen.core.config import (
    INLINE_DECLARATION_STYLES,
    ConfigError,
    TyperConfig,
    get_config_manager,
)
from .codegen.core.generator import (
    CompilationResult,
    WriteoutError,
    compile_model,
    write_js_config,
    writeout,
)
from .logging_config import LEVELS, get_logger, setup_logging
from .utils import CSNLoaderError, load_csn

logger = get_logger(__name__)

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_USAGE = 2


class CLIError(Exception):
    """Exception raised for CLI-related errors."""

    pass


console = Console()


def create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cds-typer",
        description="Generate TypeScript declarations from a compiled CDS model (CSN)",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  cds-typer model.json
  cds-typer model.json --output-directory @cds-models --inline-declarations structured
  cds-typer https://example.org/model.json --dry-run
        """.strip(),
    )
    parser.add_argument("source", help="CSN file or http(s) URL to compile")

    output_group = parser.add_argument_group("output")
    output_group.add_argument(
        "--output-directory", "-o", metavar="DIR",
        help="Root directory of the generated files (default: @cds-models)",
    )
    output_group.add_argument(
        "--js-config-path", metavar="PATH",
        help="Write a jsconfig.json enabling type checks of JavaScript files",
    )
    output_group.add_argument(
        "--dry-run", action="store_true",
        help="Compile and report, but don't write any files",
    )

    options_group = parser.add_argument_group("type generation")
    options_group.add_argument("--config", metavar="FILE", help="JSON configuration file")
    options_group.add_argument(
        "--inline-declarations", choices=INLINE_DECLARATION_STYLES,
        help="Print inline structures flattened or as nested types",
    )
    options_group.add_argument(
        "--properties-optional", choices=["true", "false"],
        help="Whether properties are optional by default",
    )
    options_group.add_argument(
        "--ieee754-compatible", action="store_true", default=None,
        help="Allow strings for Decimal, DecimalFloat, Int64 and Integer64",
    )
    options_group.add_argument(
        "--use-entities-proxy", action="store_true", default=None,
        help="Bind entities lazily in the runtime stubs",
    )

    misc_group = parser.add_argument_group("miscellaneous")
    misc_group.add_argument(
        "--log-level", type=str.upper, choices=list(LEVELS),
        help="Minimum level of log messages (default: WARNING)",
    )
    misc_group.add_argument("--log-file", metavar="FILE", help="Also write log messages to FILE")
    misc_group.add_argument("--verbose", action="store_true", help="Show compilation metadata")
    misc_group.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def build_config(args: argparse.Namespace) -> TyperConfig:
    """
    Merge a configuration file with the command line options.

    Raises:
        CLIError: If the configuration file can not be loaded or is invalid
    """
    overrides: Dict[str, Any] = {
        "output_directory": args.output_directory,
        "js_config_path": args.js_config_path,
        "inline_declarations": args.inline_declarations,
        "properties_optional": args.properties_optional,
        "ieee754_compatible": args.ieee754_compatible,
        "use_entities_proxy": args.use_entities_proxy,
        "log_level": args.log_level,
    }
    manager = get_config_manager()
    try:
        config = manager.get_config(
            {k: v for k, v in overrides.items() if v is not None}, args.config
        )
    except ConfigError as e:
        raise CLIError(f"Configuration error: {e}") from e

    for problem in manager.validate_config(config):
        logger.warning(problem)
    if config.inline_declarations not in INLINE_DECLARATION_STYLES:
        raise CLIError(f"Invalid inline_declarations: {config.inline_declarations}")
    return config


def _print_summary(result: CompilationResult, root: Optional[Path], dry_run: bool):
    table = Table(title="Generated namespaces", box=box.ROUNDED, title_style="bold cyan")
    table.add_column("Namespace", style="bold green")
    table.add_column("Directory", style="cyan")
    table.add_column("Size", justify="right", style="dim")
    for emitted in result.files:
        size = len(emitted.type_definitions) + len(emitted.runtime_stub)
        directory = emitted.directory if root is None else str(root / emitted.directory)
        table.add_row(emitted.namespace or "[dim](root)[/dim]", directory, f"{size} B")

    console.print()
    console.print(table)
    if dry_run:
        console.print("[yellow]Dry run, no files written.[/yellow]")


def _print_metadata(metadata: Dict[str, Any]):
    table = Table(title="Compilation Metadata", box=box.SIMPLE, header_style="bold cyan")
    table.add_column("Property", style="bold")
    table.add_column("Value", style="green")
    for key, value in metadata.items():
        table.add_row(key.replace("_", " ").title(), str(value))
    console.print()
    console.print(table)


def _print_warnings(warnings: List[str]):
    if not warnings:
        return
    console.print()
    console.print(
        Panel("\n".join(f"• {w}" for w in warnings), title="Warnings", border_style="yellow")
    )


def run(args: argparse.Namespace) -> int:
    """Compile and write according to parsed arguments."""
    config = build_config(args)
    setup_logging(config.log_level, args.log_file)

    try:
        source, csn = load_csn(args.source)
    except (CSNLoaderError, FileNotFoundError) as e:
        console.print(f"[red]✗ Failed to load model:[/red] {e}")
        return EXIT_ERROR

    with Progress(
        SpinnerColumn(), TextColumn("[progress.description]{task.description}"), console=console
    ) as progress:
        task = progress.add_task(f"[cyan]Compiling {source}...", total=None)
        result = compile_model(csn, config)
        progress.remove_task(task)

    if not result.success:
        console.print(f"[red]✗ {result.error_message}[/red]")
        _print_warnings(result.warnings)
        return EXIT_ERROR

    root = None if args.dry_run else Path(config.output_directory)
    if root is not None:
        try:
            writeout(root, result.files)
            if config.js_config_path:
                js_config = write_js_config(config.js_config_path)
                console.print(f"[green]✓[/green] Wrote [cyan]{js_config}[/cyan]")
        except WriteoutError as e:
            console.print(f"[red]✗ {e}[/red]")
            return EXIT_ERROR

    _print_summary(result, root, args.dry_run)
    if args.verbose:
        _print_metadata(result.metadata)
    _print_warnings(result.warnings)
    console.print(f"[green]✓[/green] Generated {len(result.files)} namespace(s) from {source}")
    return EXIT_OK


def main(argv: Optional[List[str]] = None) -> int:
    parser = create_parser()
    args = parser.parse_args(argv)
    try:
        return run(args)
    except CLIError as e:
        console.print(f"[red]✗ Error:[/red] {e}")
        return EXIT_USAGE
    except KeyboardInterrupt:
        console.print("[yellow]Interrupted[/yellow]")
        return EXIT_ERROR


if __name__ == "__main__":
    sys.exit(main())
