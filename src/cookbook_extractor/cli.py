#!/usr/bin/env python3
"""CLI for cookbook-extractor: turn saved recipe pages into structured recipes.

Subcommands:
    extract   Run the full pipeline on a saved HTML page
    clean     Show what the cleaning cascade does to a page
    hash      Print the normalized URL and its cache key
    validate  Check a recipe YAML file against the structural rules

The CLI is responsible for argument parsing, Rich output and error
presentation. All extraction logic lives in the pipeline components.
"""

from __future__ import annotations

import argparse
import logging
import time
from pathlib import Path

from rich.console import Console
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn, TimeElapsedColumn
from rich.syntax import Syntax
from rich.table import Table

from .config import ExtractionConfig
from .exceptions import (
    ConfigurationError,
    CookbookExtractorError,
    InvalidArgumentError,
    MalformedUrlError,
    RecipeValidationError,
)
from .export import write_recipes
from .hashing import ContentHasher, normalize_url
from .serialization import recipe_from_yaml, recipe_to_yaml
from .services import ServiceFactory
from .validator import RecipeValidator

# Create global Rich console for styled output
console = Console()


def setup_logging(log_file: str = "cookbook_extractor.log", verbose: bool = False) -> None:
    """Set up logging configuration for the application.

    Detailed logs go to a file only. Console output is handled separately via
    Rich.

    Args:
        log_file: Path to the log file
        verbose: Log at DEBUG instead of INFO
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        handlers=[logging.FileHandler(log_file, mode="w")],
    )


def create_progress() -> Progress:
    """Create a Rich progress spinner with standard configuration."""
    return Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        TimeElapsedColumn(),
        console=console,
    )


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser with all subcommands."""
    parser = argparse.ArgumentParser(
        description="Extract structured recipes from web pages", prog="cookbook-extractor"
    )
    parser.add_argument("--config", type=str, help="Path to a TOML configuration file")
    parser.add_argument(
        "--log-file",
        type=str,
        default="cookbook_extractor.log",
        help="Log file (default: cookbook_extractor.log)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    extract = subparsers.add_parser("extract", help="Extract recipes from a saved page")
    extract.add_argument("url", type=str, help="URL the page was fetched from")
    extract.add_argument("--html", type=str, required=True, help="Path to the saved HTML")
    extract.add_argument("--model", type=str, help="OpenAI model to use")
    extract.add_argument("--cache-dir", type=str, help="Directory for the file cache")
    extract.add_argument("--output-dir", type=str, help="Write recipes as YAML files here")
    extract.add_argument(
        "--max-retries", type=int, help="Validation feedback retries (0 disables validation)"
    )
    extract.add_argument(
        "--no-adaptive", action="store_true", help="Do not escalate cleaning strategies"
    )

    clean = subparsers.add_parser("clean", help="Run the cleaning cascade only")
    clean.add_argument("--html", type=str, required=True, help="Path to the saved HTML")
    clean.add_argument("--url", type=str, default="", help="Source URL (for logging)")
    clean.add_argument("--show", action="store_true", help="Print the cleaned payload")

    hash_cmd = subparsers.add_parser("hash", help="Print the cache key of a URL")
    hash_cmd.add_argument("url", type=str, help="URL to normalize and hash")

    validate = subparsers.add_parser("validate", help="Validate a recipe YAML file")
    validate.add_argument("path", type=str, help="Path to the recipe YAML file")

    return parser


def display_error(title: str, message: str) -> None:
    """Display an error panel."""
    console.print()
    console.print(Panel(message, title=f"[bold red]{title}[/bold red]", border_style="red"))
    console.print()


def _read_html(path: str) -> str:
    html_path = Path(path)
    if not html_path.exists():
        raise FileNotFoundError(path)
    return html_path.read_text(encoding="utf-8", errors="replace")


def _load_config(args: argparse.Namespace) -> ExtractionConfig:
    config = ExtractionConfig.load(args.config)
    overrides: dict[str, object] = {}
    if getattr(args, "model", None):
        overrides["model"] = args.model
    if getattr(args, "cache_dir", None):
        overrides["cache_dir"] = Path(args.cache_dir)
    if getattr(args, "max_retries", None) is not None:
        overrides["validation_max_retries"] = args.max_retries
    if getattr(args, "no_adaptive", False):
        overrides["adaptive_cleaning_enabled"] = False
    return config.with_overrides(**overrides) if overrides else config


def cmd_extract(args: argparse.Namespace) -> int:
    """Run the full pipeline and show the recipes."""
    html = _read_html(args.html)
    config = _load_config(args)
    factory = ServiceFactory(config=config)
    pipeline = factory.create_pipeline()

    start_time = time.time()
    with create_progress() as progress:
        progress.add_task(f"Extracting {args.url}", total=None)
        result = pipeline.run(args.url, html)
    elapsed = time.time() - start_time

    if not result.is_recipe:
        console.print(
            Panel(
                f"No recipe found at [cyan]{args.url}[/cyan]\n"
                f"[dim]Confidence: {result.confidence:.2f}[/dim]",
                title="[bold yellow]Not a recipe[/bold yellow]",
                border_style="yellow",
            )
        )
        return 1

    source = "cache" if result.from_cache else "extraction"
    console.print(
        f"[green]✓[/green] {len(result.recipes)} recipe(s) from {source} in {elapsed:.1f}s"
    )
    for recipe in result.recipes:
        console.print(Panel(Syntax(recipe_to_yaml(recipe), "yaml"), title=recipe.title))

    if args.output_dir:
        paths = write_recipes(result.recipes, Path(args.output_dir))
        for path in paths:
            console.print(f"[green]✓[/green] Wrote [cyan]{path}[/cyan]")

    logging.info(f"Metrics: {factory.metrics.snapshot()}")
    return 0


def cmd_clean(args: argparse.Namespace) -> int:
    """Run the cleaning cascade and show size metrics."""
    html = _read_html(args.html)
    config = _load_config(args)
    result = ServiceFactory(config=config).create_cleaner().reduce(html, args.url)

    table = Table(title="[bold]Cleaning result[/bold]", header_style="bold cyan")
    table.add_column("Metric", style="cyan", width=20)
    table.add_column("Value", style="green", justify="right")
    table.add_row("Strategy", result.strategy_used.value)
    table.add_row("Original size", str(result.original_size))
    table.add_row("Cleaned size", str(result.cleaned_size))
    table.add_row("Reduction", f"{result.reduction_ratio * 100:.1f}%")
    console.print(table)

    if args.show:
        console.print(result.cleaned_html, markup=False, highlight=False)
    return 0


def cmd_hash(args: argparse.Namespace) -> int:
    """Print the normalized URL and its content hash."""
    config = _load_config(args)
    hasher = ContentHasher(config.tracking_parameters)
    console.print(f"[bold]Normalized:[/bold] {normalize_url(args.url, config.tracking_parameters)}")
    console.print(f"[bold]Hash:[/bold] {hasher.hash(args.url)}")
    return 0


def cmd_validate(args: argparse.Namespace) -> int:
    """Validate a recipe YAML file."""
    recipe = recipe_from_yaml(Path(args.path).read_text(encoding="utf-8"))
    try:
        RecipeValidator().ensure_valid(recipe)
    except RecipeValidationError as e:
        display_error("Invalid recipe", e.message)
        return 1
    console.print(f"[green]✓[/green] {recipe.title or args.path} is valid")
    return 0


COMMANDS = {
    "extract": cmd_extract,
    "clean": cmd_clean,
    "hash": cmd_hash,
    "validate": cmd_validate,
}


def main(argv: list[str] | None = None) -> None:
    """Entry point for the cookbook-extractor CLI command."""
    args = build_parser().parse_args(argv)
    setup_logging(args.log_file, args.verbose)

    try:
        exit_code = COMMANDS[args.command](args)
    except FileNotFoundError as e:
        display_error("Error", f"[bold red]File not found:[/bold red]\n{e}")
        raise SystemExit(1) from e
    except (MalformedUrlError, InvalidArgumentError, ConfigurationError) as e:
        display_error("Error", str(e))
        raise SystemExit(2) from e
    except CookbookExtractorError as e:
        display_error("Error", str(e))
        logging.exception("Command failed")
        raise SystemExit(1) from e
    except KeyboardInterrupt:
        console.print("[yellow]Interrupted by user[/yellow]")
        raise SystemExit(130) from None
    except Exception as e:  # Intentional catch-all for CLI entry point
        display_error(
            "Error",
            f"[bold red]An unexpected error occurred:[/bold red]\n\n{e!s}\n\n"
            f"[dim]Check {args.log_file} for detailed error information.[/dim]",
        )
        logging.exception("Unexpected error during processing")
        raise SystemExit(1) from e

    if exit_code:
        raise SystemExit(exit_code)


if __name__ == "__main__":
    main()
