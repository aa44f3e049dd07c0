"""
Common CLI utilities and decorators for consistent command behavior.
"""

import sys
from functools import wraps
from typing import Optional

import click

from .config import MirrorSettings, configure_logging, load_settings
from .exit_codes import (
    SUCCESS, INTERRUPTED,
    get_exit_code_for_exception, CommandError
)
from .output import emit_error


def standard_command(func):
    """
    Decorator that provides standard CLI behavior:
    - Consistent error handling with JSON errors on stderr
    - Exit codes from mirrorpull.exit_codes
    """
    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            func(*args, **kwargs)
            sys.exit(SUCCESS)
        except KeyboardInterrupt:
            emit_error("Interrupted by user", type="interrupted")
            sys.exit(INTERRUPTED)
        except click.ClickException:
            # Click exceptions already have their exit code
            raise
        except CommandError as e:
            context = None
            if hasattr(e, 'succeeded'):
                context = {'succeeded': e.succeeded, 'failed': e.failed}
            emit_error(str(e), type=type(e).__name__, context=context)
            sys.exit(e.exit_code)
        except Exception as e:
            emit_error(f"Command failed: {e}", type=type(e).__name__)
            sys.exit(get_exit_code_for_exception(e))

    return wrapper


def load_cli_settings(config_path: Optional[str], log_level: Optional[str]) -> MirrorSettings:
    """Load settings and configure logging; --log-level wins over the config file."""
    settings = load_settings(config_path)
    configure_logging(log_level or settings.log_level, settings.log_format)
    return settings


# Standard options that many commands share
common_options = {
    'config': click.option('-c', '--config', 'config_path', type=click.Path(dir_okay=False),
                           help='Config file (default: $MIRRORPULL_CONFIG or ~/.mirrorpull/config.yml)'),
    'log_level': click.option('-l', '--log-level',
                              type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR'], case_sensitive=False),
                              help='Log level (default: logging.level from config)'),
    'pretty': click.option('--pretty', is_flag=True,
                           help='Display as a table instead of JSONL'),
}


def add_common_options(*option_names):
    """
    Decorator to add common options to a command.

    Example:
        @add_common_options('config', 'log_level')
        def my_command(config_path, log_level):
            ...
    """
    def decorator(func):
        for name in reversed(option_names):
            if name in common_options:
                func = common_options[name](func)
        return func
    return decorator
