"""
Run command for mirrorpull.

Fetches every selected mirror, triggers pipelines for repositories that
received new refs, and mails the report.
"""

from typing import Optional

import click

from ..cli_utils import add_common_options, load_cli_settings, standard_command
from ..domain.report import MirrorReport
from ..exit_codes import PartialSuccessError
from ..output import emit
from ..render import render_report
from ..services.mirror_service import MirrorRunner, RunOptions


def emit_report(report: MirrorReport, pretty: bool) -> None:
    """Print a finished report as JSONL records or a table."""
    if pretty:
        render_report(report)
        return
    emit(report.outcomes)
    emit({'type': 'trigger', **t.to_dict()} for t in report.triggers)
    emit([report])


def finish(report: MirrorReport) -> None:
    """Turn recorded failures into the partial-success exit status."""
    if not report.success:
        raise PartialSuccessError(
            f"{len(report.failures)} operation(s) failed",
            succeeded=len(report.successes),
            failed=len(report.failures),
        )


@click.command('run')
@add_common_options('config', 'log_level', 'pretty')
@click.option('--no-trigger', is_flag=True, help='Do not trigger pipelines')
@click.option('--no-mail', is_flag=True, help='Do not send report mails')
@standard_command
def run_handler(
    config_path: Optional[str],
    log_level: Optional[str],
    pretty: bool,
    no_trigger: bool,
    no_mail: bool,
):
    """Fetch all mirrors from their allowed remotes.

    \b
    Examples:
        mirrorpull run
        mirrorpull run --pretty --no-mail
        mirrorpull run -c /etc/mirrorpull/config.yml -l INFO
    """
    settings = load_cli_settings(config_path, log_level)
    runner = MirrorRunner(settings)

    report = runner.run(options=RunOptions(trigger=not no_trigger, notify=not no_mail))
    emit_report(report, pretty)
    finish(report)


@click.command('list')
@add_common_options('config', 'log_level', 'pretty')
@standard_command
def list_handler(config_path: Optional[str], log_level: Optional[str], pretty: bool):
    """List the mirrors a run would fetch."""
    settings = load_cli_settings(config_path, log_level)
    repos = MirrorRunner(settings).select()
    emit(({'path': path} for path in repos), pretty=pretty)
