#!/usr/bin/env python3

import click

from mirrorpull.commands.config import config_cmd
from mirrorpull.commands.run import run_handler, list_handler
from mirrorpull.commands.webhook import resolve_handler, webhook_handler, serve_handler


@click.group()
@click.version_option(package_name='mirrorpull')
def cli():
    """mirrorpull - Keep bare git mirrors in sync with their upstream remotes.

    Fetches every mirror under the configured repository root from its
    allowed remotes, triggers CI pipelines for repositories that received
    new refs, and mails a report.
    """
    pass


# Core commands
cli.add_command(run_handler, name='run')
cli.add_command(list_handler, name='list')

# Webhook entry points
cli.add_command(resolve_handler, name='resolve')
cli.add_command(webhook_handler, name='webhook')
cli.add_command(serve_handler, name='serve')

# Command groups
cli.add_command(config_cmd)


def main():
    cli()

if __name__ == "__main__":
    main()
