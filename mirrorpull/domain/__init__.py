"""
Domain layer for mirrorpull.

Contains pure domain objects with no I/O or side effects:
- FetchOutcome: Result of fetching one remote of one mirror
- MirrorReport: Outcomes of one run, handed to the notifier
- TriggerRule / TriggerResult: Pipeline trigger configuration and results
- GitLabPayload / GitHubPayload: Parsed webhook payload variants
"""

from .fetch import FetchOutcome
from .report import MirrorReport
from .trigger import TriggerRule, TriggerResult
from .payload import GitLabPayload, GitHubPayload, WebhookPayload, parse_payload

__all__ = [
    'FetchOutcome',
    'MirrorReport',
    'TriggerRule',
    'TriggerResult',
    'GitLabPayload',
    'GitHubPayload',
    'WebhookPayload',
    'parse_payload',
]
