#!/usr/bin/env python3

import os
import json
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import logging
import sys

import yaml

from .domain.trigger import TriggerRule
from .exit_codes import ConfigError

logger = logging.getLogger("mirrorpull")

CONFIG_FILENAMES = ['config.yml', 'config.yaml', 'config.json', 'config.toml']


def configure_logging(level: Optional[str] = None, fmt: Optional[str] = None) -> None:
    """Attach a single stderr handler to the package logger.

    Args:
        level: Level name (DEBUG, INFO, WARNING, ERROR). Defaults to ERROR,
            the level mirror runs have always been quiet at.
        fmt: logging format string
    """
    numeric_level = getattr(logging, (level or "ERROR").upper(), logging.ERROR)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(fmt or "%(levelname)s: %(message)s"))

    logger.handlers.clear()
    logger.addHandler(handler)
    logger.setLevel(numeric_level)
    logger.propagate = False

    logging.getLogger("urllib3").setLevel(logging.WARNING)


def get_config_path():
    """Get the path to the configuration file.

    Checks in order:
    1. MIRRORPULL_CONFIG environment variable
    2. ~/.mirrorpull/ directory
    """
    if 'MIRRORPULL_CONFIG' in os.environ:
        path = Path(os.environ['MIRRORPULL_CONFIG'])
        if path.exists():
            return path

    config_dir = Path.home() / '.mirrorpull'
    for filename in CONFIG_FILENAMES:
        path = config_dir / filename
        if path.exists() and path.stat().st_size > 10:  # Not empty/trivial
            return path

    # Nothing found; report where a config would be looked for first
    return config_dir / 'config.yml'


def _read_config_file(config_path: Path) -> Dict[str, Any]:
    suffix = config_path.suffix.lower()
    if suffix == '.toml':
        with open(config_path, 'rb') as f:
            return tomllib.load(f)
    if suffix in ('.yaml', '.yml'):
        with open(config_path, 'r') as f:
            return yaml.safe_load(f) or {}
    with open(config_path, 'r') as f:
        return json.load(f)


def load_config(path: Optional[str] = None) -> Dict[str, Any]:
    """Load configuration from file.

    Args:
        path: Explicit config file. Unlike the discovered locations, an
            explicit path that does not exist is an error.

    Raises:
        ConfigError: If the file cannot be read or parsed
    """
    if path is not None:
        config_path = Path(os.path.expanduser(path))
        if not config_path.exists():
            raise ConfigError(f"Config file not found: {config_path}")
    else:
        config_path = get_config_path()

    config = get_default_config()

    if config_path.exists():
        try:
            file_config = _read_config_file(config_path)
        except (OSError, ValueError, yaml.YAMLError) as e:
            raise ConfigError(f"Error loading config from {config_path}: {e}") from e
        if not isinstance(file_config, dict):
            raise ConfigError(f"Config file {config_path} must contain a mapping")
        config = merge_configs(config, file_config)
        logger.debug(f"Loaded config from {config_path}")

    return apply_env_overrides(config)


def get_default_config():
    """Get default configuration."""
    return {
        "git": {
            "path": "git",
            "repos": "/var/opt/gitlab/git-data/repositories",
            "timeout": 300,
        },
        "provider": [],
        "ignore": [],
        "pipeline": {
            "trigger": [],
        },
        "api": {
            "url": "",
            "token": "",
            "timeout": 30,
        },
        "mail": {
            "sender": "",
            "receiver": "",
            "subject": "Gitlab Mirror Pull",
            "send_on_error": True,
            "send_report": False,
            "transport": "sendmail",
            "sendmail_path": "/usr/sbin/sendmail",
            "smtp": {
                "host": "localhost",
                "port": 25,
                "username": "",
                "password": "",
                "use_tls": False,
            },
        },
        "logging": {
            "level": "ERROR",
            "format": "%(levelname)s: %(message)s",
        },
        "server": {
            "host": "127.0.0.1",
            "port": 8088,
        },
    }


def generate_config_example() -> str:
    """Return an example configuration document as YAML."""
    example = get_default_config()
    example["provider"] = ["github"]
    example["ignore"] = ["group/archived-project"]
    example["pipeline"]["trigger"] = [{"repo": "group/project", "branch": "master"}]
    example["api"]["url"] = "https://gitlab.example.com"
    example["api"]["token"] = "your-private-token"
    example["mail"]["sender"] = "mirror@example.com"
    example["mail"]["receiver"] = "admin@example.com"
    return yaml.safe_dump(example, default_flow_style=False, sort_keys=False)


def merge_configs(base_config, override_config):
    """
    Recursively merge two configuration dictionaries.

    Args:
        base_config (dict): Base configuration
        override_config (dict): Configuration to merge/override with

    Returns:
        dict: Merged configuration
    """
    merged = base_config.copy()

    for key, value in override_config.items():
        if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
            merged[key] = merge_configs(merged[key], value)
        else:
            merged[key] = value

    return merged


def _coerce_env_value(env_key: str, value: str, current: Any) -> Any:
    """Convert an override to the type of the value it replaces.

    Strings stay strings, so tokens and passwords are never reinterpreted.
    """
    if isinstance(current, bool):
        if value.lower() in ('true', 'yes', 'on', '1'):
            return True
        if value.lower() in ('false', 'no', 'off', '0'):
            return False
        raise ConfigError(f"{env_key} must be a boolean, got {value!r}")
    if isinstance(current, int) and value.isascii() and value.isdigit():
        return int(value)
    return value


def apply_env_overrides(config):
    """
    Apply environment variable overrides to configuration.
    Environment variables follow the pattern: MIRRORPULL_SECTION_SUBSECTION_KEY
    For example: MIRRORPULL_MAIL_SEND_ON_ERROR=false

    Values take the type of the setting they replace. Booleans accept the
    usual yes/no spellings, integers accept digits, and anything else is
    kept as the literal string.

    Raises:
        ConfigError: If a boolean setting gets an unrecognized value
    """
    env_prefix = "MIRRORPULL_"

    for env_key, value in os.environ.items():
        if not env_key.startswith(env_prefix) or env_key == "MIRRORPULL_CONFIG":
            continue

        key_parts = env_key[len(env_prefix):].lower().split('_')

        current_level = config
        i = 0
        while i < len(key_parts):
            # Find the longest key in current_level that is a prefix of the remaining key_parts
            best_match_len = 0
            matched_key = None

            for config_key in current_level.keys():
                config_key_parts_from_key = config_key.split('_')
                if key_parts[i : i + len(config_key_parts_from_key)] == config_key_parts_from_key:
                    if len(config_key_parts_from_key) > best_match_len:
                        best_match_len = len(config_key_parts_from_key)
                        matched_key = config_key

            if matched_key:
                if i + best_match_len == len(key_parts):
                    if isinstance(current_level[matched_key], dict):
                        # Whole sections cannot be replaced from the environment
                        break
                    current_level[matched_key] = _coerce_env_value(env_key, value, current_level[matched_key])
                    break

                if isinstance(current_level[matched_key], dict):
                    current_level = current_level[matched_key]
                    i += best_match_len
                else:
                    # Path conflict, e.g., env var is longer but we found a non-dict value
                    break
            else:
                break

    return config


def _string_list(config: Dict[str, Any], key: str) -> Tuple[str, ...]:
    value = config.get(key) or []
    if isinstance(value, str):
        # MIRRORPULL_PROVIDER=github,gitlab
        value = [v.strip() for v in value.split(',') if v.strip()]
    if not isinstance(value, list):
        raise ConfigError(f"'{key}' must be a list")
    return tuple(str(v) for v in value)


@dataclass(frozen=True)
class SmtpSettings:
    host: str = "localhost"
    port: int = 25
    username: str = ""
    password: str = ""
    use_tls: bool = False


@dataclass(frozen=True)
class MailSettings:
    """Notification mail settings."""
    sender: str = ""
    receiver: str = ""
    subject: str = "Gitlab Mirror Pull"
    send_on_error: bool = True
    send_report: bool = False
    transport: str = "sendmail"
    sendmail_path: str = "/usr/sbin/sendmail"
    smtp: SmtpSettings = field(default_factory=SmtpSettings)

    @property
    def enabled(self) -> bool:
        return bool(self.sender and self.receiver)


@dataclass(frozen=True)
class MirrorSettings:
    """
    Immutable view of the configuration consumed by one mirror run.

    Built once from the loaded config dict and handed to every component,
    so nothing reads the raw document after startup.
    """
    repos_root: str
    git_binary: str = "git"
    git_timeout: int = 300
    providers: Tuple[str, ...] = ()
    ignore: Tuple[str, ...] = ()
    triggers: Tuple[TriggerRule, ...] = ()
    api_url: str = ""
    api_token: str = ""
    api_timeout: int = 30
    mail: MailSettings = field(default_factory=MailSettings)
    log_level: str = "ERROR"
    log_format: str = "%(levelname)s: %(message)s"
    server_host: str = "127.0.0.1"
    server_port: int = 8088

    @property
    def pipeline_enabled(self) -> bool:
        """Triggering needs both rules and an API endpoint."""
        return bool(self.triggers and self.api_url)

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> 'MirrorSettings':
        """
        Validate a loaded config dict and freeze it.

        Raises:
            ConfigError: If required keys are missing or malformed
        """
        git = config.get('git') or {}
        repos_root = git.get('repos')
        if not repos_root:
            raise ConfigError("'git.repos' (repository root directory) is required")

        rules = []
        for i, raw in enumerate((config.get('pipeline') or {}).get('trigger') or []):
            if not isinstance(raw, dict) or 'repo' not in raw or 'branch' not in raw:
                raise ConfigError(f"pipeline.trigger[{i}] needs 'repo' and 'branch'")
            rules.append(TriggerRule(repo_match=str(raw['repo']), branch=str(raw['branch'])))

        api = config.get('api') or {}
        mail = config.get('mail') or {}
        smtp = mail.get('smtp') or {}
        log = config.get('logging') or {}
        server = config.get('server') or {}

        try:
            return cls(
                repos_root=os.path.abspath(os.path.expanduser(str(repos_root))),
                git_binary=str(git.get('path') or 'git'),
                git_timeout=int(git.get('timeout', 300)),
                providers=_string_list(config, 'provider'),
                ignore=_string_list(config, 'ignore'),
                triggers=tuple(rules),
                api_url=str(api.get('url') or '').rstrip('/'),
                api_token=str(api.get('token') or ''),
                api_timeout=int(api.get('timeout', 30)),
                mail=MailSettings(
                    sender=str(mail.get('sender') or ''),
                    receiver=str(mail.get('receiver') or ''),
                    subject=str(mail.get('subject') or 'Gitlab Mirror Pull'),
                    send_on_error=bool(mail.get('send_on_error', True)),
                    send_report=bool(mail.get('send_report', False)),
                    transport=str(mail.get('transport') or 'sendmail'),
                    sendmail_path=str(mail.get('sendmail_path') or '/usr/sbin/sendmail'),
                    smtp=SmtpSettings(
                        host=str(smtp.get('host') or 'localhost'),
                        port=int(smtp.get('port', 25)),
                        username=str(smtp.get('username') or ''),
                        password=str(smtp.get('password') or ''),
                        use_tls=bool(smtp.get('use_tls', False)),
                    ),
                ),
                log_level=str(log.get('level') or 'ERROR'),
                log_format=str(log.get('format') or '%(levelname)s: %(message)s'),
                server_host=str(server.get('host') or '127.0.0.1'),
                server_port=int(server.get('port', 8088)),
            )
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Invalid configuration value: {e}") from e


def load_settings(path: Optional[str] = None) -> MirrorSettings:
    """Load the config document and freeze it into MirrorSettings."""
    return MirrorSettings.from_config(load_config(path))
