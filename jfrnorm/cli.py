"""
jfrnorm Command Line Interface
Parse decoded flight recordings into normalized samples and event tables.
"""

import json
import logging
import sys
from pathlib import Path
from typing import Optional

import click
import yaml

from jfrnorm import __version__
from jfrnorm.core.config import ParserConfig
from jfrnorm.core.errors import InvalidArgumentError, ParseJobError, ParserBusyError
from jfrnorm.core.utils import safe_json_dump
from jfrnorm.handlers.collecting import CollectingHandler
from jfrnorm.parser.gateway import ParseGateway

EXIT_FAILED = 1
EXIT_BUSY = 2


# Configure logging
def setup_logging(verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%H:%M:%S",
    )


def _run_parse(config: ParserConfig, trace_path: str) -> CollectingHandler:
    """Parse one trace through the gateway, mapping failures to exit codes."""
    logger = logging.getLogger("jfrnorm.cli")

    try:
        with ParseGateway(config) as gateway:
            return gateway.parse_path(CollectingHandler(), trace_path)
    except ParserBusyError as e:
        click.echo(click.style(f"Busy: {e}", fg="yellow"), err=True)
        sys.exit(EXIT_BUSY)
    except ParseJobError as e:
        logger.debug("Parse failed", exc_info=True)
        click.echo(click.style(f"Parse failed: {e}", fg="red"), err=True)
        sys.exit(EXIT_FAILED)


@click.group()
@click.version_option(__version__, prog_name="jfrnorm")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="YAML parser configuration",
)
@click.pass_context
def cli(ctx: click.Context, verbose: bool, config_path: Optional[str]) -> None:
    """
    jfrnorm - flight recording normalizer

    Classifies recorded event types, infers per-type column schemas and
    emits stack samples and structured event tables.
    """
    setup_logging(verbose)
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose

    try:
        ctx.obj["config"] = ParserConfig.from_yaml(config_path) if config_path else ParserConfig()
    except InvalidArgumentError as e:
        raise click.BadParameter(str(e), param_hint="--config")


@cli.command()
@click.argument("trace", type=click.Path(exists=True, dir_okay=False))
@click.option("--output", "-o", default="./jfrnorm_out", help="Output directory")
@click.option(
    "--format",
    "-f",
    "fmt",
    default="json",
    type=click.Choice(["json", "parquet"]),
    help="Output format for event tables",
)
@click.pass_context
def parse(ctx: click.Context, trace: str, output: str, fmt: str) -> None:
    """
    Normalize a trace into samples and event tables.

    JSON output holds everything in one file; Parquet output writes one
    table per custom event type.
    """
    config: ParserConfig = ctx.obj["config"]
    handler = _run_parse(config, trace)

    out_dir = Path(output)
    out_dir.mkdir(parents=True, exist_ok=True)

    if fmt == "json":
        handler.write_json(out_dir / f"{Path(trace).stem}.normalized.json")
    else:
        handler.write_parquet(out_dir)

    click.echo(click.style("\nParse complete", fg="green", bold=True))
    click.echo(f"  Profile types: {len(handler.profiles)}")
    click.echo(f"  Samples:       {handler.sample_count}")
    click.echo(f"  Event types:   {len(handler.headers)}")
    click.echo(f"  Records:       {handler.record_count}")
    click.echo(f"  Output:        {out_dir}")


@cli.command()
@click.argument("trace", type=click.Path(exists=True, dir_okay=False))
@click.option("--type", "-t", "type_id", default=None, help="Profile event type (default: all)")
@click.option("--threshold", type=float, default=None, help="Minimum sample fraction per node")
@click.option("--output", "-o", default=None, help="Output file (default: stdout)")
@click.pass_context
def flame(
    ctx: click.Context,
    trace: str,
    type_id: Optional[str],
    threshold: Optional[float],
    output: Optional[str],
) -> None:
    """Fold profile samples into a flame graph tree (JSON)."""
    config: ParserConfig = ctx.obj["config"]
    if threshold is None:
        threshold = config.threshold

    handler = _run_parse(config, trace)
    tree = handler.flame_graph(type_id=type_id, threshold=threshold)

    if output:
        safe_json_dump(tree, output)
        click.echo(f"Flame graph ({tree['value']} samples) written to {output}")
    else:
        click.echo(json.dumps(tree, indent=2))


@cli.command("config")
@click.pass_context
def show_config(ctx: click.Context) -> None:
    """Print the effective parser configuration."""
    config: ParserConfig = ctx.obj["config"]
    click.echo(yaml.safe_dump({"parser": config.to_dict()}, sort_keys=False))


def main() -> None:
    cli(obj={})


if __name__ == "__main__":
    main()
