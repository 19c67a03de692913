#!/usr/bin/env python3

import logging

import click

from refwatch.commands.check import check_handler
from refwatch.commands.config import config_cmd
from refwatch.commands.ls_remote import ls_remote_handler
from refwatch.commands.resolve import resolve_handler
from refwatch.commands.watch import watch_handler


def configure_logging(verbose: bool = False) -> None:
    """Set the refwatch log level from --verbose or the configuration."""
    from refwatch.config import load_config
    from refwatch.errors import ConfigError

    logger = logging.getLogger("refwatch")
    if verbose:
        logger.setLevel(logging.DEBUG)
        return

    try:
        level_name = str(load_config().get("logging", {}).get("level", "INFO")).upper()
    except ConfigError:
        # Reported by the command itself
        return
    logger.setLevel(getattr(logging, level_name, logging.INFO))


@click.group()
@click.version_option(package_name="refwatch")
@click.option("--verbose", "-v", is_flag=True, help="Debug logging on stderr")
def cli(verbose):
    """refwatch - Keep track of the remote branches you keep up to date.

    Resolves, for each configured repository, which watched references the
    remote currently advertises and which reference merges should target.
    """
    configure_logging(verbose)


cli.add_command(resolve_handler, name='resolve')
cli.add_command(watch_handler, name='watch')
cli.add_command(check_handler, name='check')
cli.add_command(ls_remote_handler, name='ls-remote')
cli.add_command(config_cmd)


def main():
    cli()


if __name__ == "__main__":
    main()
