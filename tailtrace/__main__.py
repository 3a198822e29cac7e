import asyncio
import json

import click

from tailtrace.cli import replay_file
from tailtrace.config import load_config
from tailtrace.doctor import check_config
from tailtrace.error_handler import handle_error
from tailtrace.exceptions import TailtraceError
from tailtrace.log import init_logger, logger


@click.group()
def cli():
    pass


@cli.command()
@click.argument("events_file", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "-c",
    "--config-path",
    "config_path",
    type=click.Path(exists=True),
    required=False,
    help="Path to configuration file",
)
@click.option(
    "--endpoint",
    type=str,
    required=False,
    help="The OTLP/HTTP traces endpoint, overrides the config",
)
@click.option(
    "--dry-run",
    is_flag=True,
    help="Print the OTLP requests instead of sending them",
)
def replay(
    events_file: str,
    config_path: str | None,
    endpoint: str | None,
    dry_run: bool,
):
    """
    Replay captured tail stream events and export the resulting spans.
    """
    try:
        config = load_config(config_path)
        if endpoint:
            config.otel_endpoint = endpoint
        init_logger(config)
        count = asyncio.run(
            replay_file(
                events_file, config, dry_run or config.replay.dry_run
            )
        )
    except TailtraceError as e:
        handle_error(e, exit_on_error=True)
        return
    logger.info(f"Replayed {count} invocation(s)")


@cli.command()
@click.option(
    "-c",
    "--config-path",
    "config_path",
    type=click.Path(exists=True),
    required=False,
    help="Path to configuration file",
)
def doctor(config_path: str | None):
    """
    Check the configuration and report problems.
    """
    try:
        config = load_config(config_path)
    except TailtraceError as e:
        handle_error(e, exit_on_error=True)
        return
    report = check_config(config)
    click.echo(json.dumps(report, indent=2))
    if report["errors"]:
        raise SystemExit(1)


if __name__ == "__main__":
    cli()
