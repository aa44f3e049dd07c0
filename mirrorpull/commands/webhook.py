"""
Webhook commands for mirrorpull.

Both read a GitLab or GitHub webhook payload (JSON) from a file or stdin.
"""

import json
from typing import IO, Optional

import click

from ..cli_utils import add_common_options, load_cli_settings, standard_command
from ..exit_codes import MalformedPayload
from ..services.mirror_service import MirrorRunner, RunOptions
from .run import emit_report, finish


def read_payload(stream: IO[str]):
    """Decode a JSON payload, treating invalid JSON as a malformed payload."""
    try:
        return json.load(stream)
    except json.JSONDecodeError as e:
        raise MalformedPayload(f"Payload is not valid JSON: {e}") from e


@click.command('resolve')
@add_common_options('config', 'log_level')
@click.argument('payload_file', type=click.File('r'), default='-')
@standard_command
def resolve_handler(config_path: Optional[str], log_level: Optional[str], payload_file: IO[str]):
    """Print the mirror path a webhook payload refers to.

    \b
    Examples:
        mirrorpull resolve hook.json
        curl ... | mirrorpull resolve -
    """
    settings = load_cli_settings(config_path, log_level)
    path = MirrorRunner(settings).resolve_webhook(read_payload(payload_file))
    click.echo(json.dumps({'path': path}))


@click.command('webhook')
@add_common_options('config', 'log_level', 'pretty')
@click.option('--no-trigger', is_flag=True, help='Do not trigger pipelines')
@click.option('--no-mail', is_flag=True, help='Do not send report mails')
@click.argument('payload_file', type=click.File('r'), default='-')
@standard_command
def webhook_handler(
    config_path: Optional[str],
    log_level: Optional[str],
    pretty: bool,
    no_trigger: bool,
    no_mail: bool,
    payload_file: IO[str],
):
    """Fetch the single mirror a webhook payload refers to."""
    settings = load_cli_settings(config_path, log_level)
    runner = MirrorRunner(settings)

    report = runner.run_webhook(
        read_payload(payload_file),
        RunOptions(trigger=not no_trigger, notify=not no_mail),
    )
    emit_report(report, pretty)
    finish(report)


@click.command('serve')
@add_common_options('config', 'log_level')
@click.option('--host', help='Bind address (default: server.host from config)')
@click.option('--port', type=int, help='Port (default: server.port from config)')
@standard_command
def serve_handler(config_path: Optional[str], log_level: Optional[str], host: Optional[str], port: Optional[int]):
    """Run the webhook receiver (POST /webhook)."""
    from ..server import run_server

    settings = load_cli_settings(config_path, log_level)
    run_server(settings, host=host, port=port)
