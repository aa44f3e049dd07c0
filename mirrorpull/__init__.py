"""
mirrorpull - Keep a local set of bare git mirrors in sync.

mirrorpull walks a GitLab-style repository root (<namespace>/<name>.git),
fetches each mirror from the remotes on the provider allow list, triggers
a CI pipeline for repositories that received new refs, and mails a report.

Quick Start:
    from mirrorpull import MirrorRunner, load_settings

    runner = MirrorRunner(load_settings("/etc/mirrorpull/config.yml"))
    report = runner.run()
    print(report.updated_repos, report.failures)

    # Resolve a webhook payload to its mirror
    path = runner.resolve_webhook({"project": {"namespace": "group", "name": "app"}})

Domain Objects:
    FetchOutcome - Result of fetching one remote of one mirror
    MirrorReport - Outcomes of a run
    TriggerRule - Namespace substring -> pipeline branch

Services:
    RepositorySelector - Discovery and ignore filtering
    FetchOrchestrator - Per-remote fetch with isolated failures
    PipelineTrigger - Pipeline trigger decisions
    WebhookPathResolver - Webhook payload to mirror path
"""

__version__ = "0.3.0"

from .domain import (
    FetchOutcome,
    MirrorReport,
    TriggerRule,
    TriggerResult,
    GitLabPayload,
    GitHubPayload,
    parse_payload,
)

from .services import (
    RepositorySelector,
    FetchOrchestrator,
    PipelineTrigger,
    WebhookPathResolver,
    MirrorRunner,
    RunOptions,
)

from .config import MirrorSettings, load_config, load_settings
from .exit_codes import (
    MirrorPullError,
    ConfigError,
    DiscoveryError,
    MalformedPayload,
    TriggerError,
)

__all__ = [
    "__version__",
    # Domain objects
    "FetchOutcome",
    "MirrorReport",
    "TriggerRule",
    "TriggerResult",
    "GitLabPayload",
    "GitHubPayload",
    "parse_payload",
    # Services
    "RepositorySelector",
    "FetchOrchestrator",
    "PipelineTrigger",
    "WebhookPathResolver",
    "MirrorRunner",
    "RunOptions",
    # Configuration
    "MirrorSettings",
    "load_config",
    "load_settings",
    # Errors
    "MirrorPullError",
    "ConfigError",
    "DiscoveryError",
    "MalformedPayload",
    "TriggerError",
]
