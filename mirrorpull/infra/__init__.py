"""
Infrastructure layer for mirrorpull.

Contains abstractions for external systems:
- GitClient: Git command execution against bare mirrors
- GitLabClient: GitLab API access (pipeline triggers)
- Notifier: Report mail delivery

These provide clean interfaces that can be mocked for testing.
"""

from .git_client import GitClient, GitCommandError
from .gitlab_client import GitLabClient, PipelineInfo
from .notifier import Notifier

__all__ = [
    'GitClient',
    'GitCommandError',
    'GitLabClient',
    'PipelineInfo',
    'Notifier',
]
