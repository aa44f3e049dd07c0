"""
Service layer for mirrorpull.

Contains the mirror orchestration logic:
- RepositorySelector: Mirror discovery and ignore filtering
- FetchOrchestrator: Per-remote fetch with isolated failures
- PipelineTrigger: Pipeline trigger decisions
- WebhookPathResolver: Webhook payload to mirror path
- MirrorRunner: One full run (select, fetch, trigger, notify)

Services are the primary API for commands to use.
"""

from .selector import RepositorySelector, select_repositories
from .fetch_service import FetchOrchestrator
from .pipeline_service import PipelineTrigger, decide, maybe_trigger, namespace_for
from .webhook_service import WebhookPathResolver, resolve
from .mirror_service import MirrorRunner, RunOptions

__all__ = [
    'RepositorySelector',
    'select_repositories',
    'FetchOrchestrator',
    'PipelineTrigger',
    'decide',
    'maybe_trigger',
    'namespace_for',
    'WebhookPathResolver',
    'resolve',
    'MirrorRunner',
    'RunOptions',
]
