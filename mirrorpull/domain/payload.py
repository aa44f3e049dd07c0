"""
Webhook payload variants for mirrorpull.

Inbound notifications arrive in one of two provider shapes:

    GitLab:  {"project": {"namespace": "...", "name": "..."}}
    GitHub:  {"repository": {"owner": {"login": "..."}, "name": "..."}}

parse_payload() turns the raw document into one of the two variants at the
boundary, so nothing downstream inspects dictionary keys.
"""

from dataclasses import dataclass
from typing import Any, Mapping, Union

from ..exit_codes import MalformedPayload


@dataclass(frozen=True)
class GitLabPayload:
    """GitLab system/project hook payload."""
    namespace: str
    name: str

    provider = "gitlab"


@dataclass(frozen=True)
class GitHubPayload:
    """GitHub repository webhook payload."""
    owner_login: str
    name: str

    provider = "github"

    @property
    def namespace(self) -> str:
        return self.owner_login


WebhookPayload = Union[GitLabPayload, GitHubPayload]


def _require_str(container: Any, key: str, where: str) -> str:
    if not isinstance(container, Mapping):
        raise MalformedPayload(f"Webhook payload field '{where}' is not an object")
    value = container.get(key)
    if not isinstance(value, str) or not value:
        raise MalformedPayload(f"Webhook payload is missing '{where}.{key}'")
    return value


def _require_segment(value: str, where: str, nested: bool = False) -> str:
    """Reject path components that would leave the repository root.

    GitLab namespaces may contain subgroups (group/sub), so nested allows
    '/' between segments; every segment must still be a plain name.
    """
    segments = value.split('/') if nested else [value]
    for segment in segments:
        if segment in ('', '.', '..') or '\\' in segment or '\x00' in segment:
            raise MalformedPayload(f"Webhook payload field '{where}' is not a valid path name: {value!r}")
        if not nested and '/' in segment:
            raise MalformedPayload(f"Webhook payload field '{where}' must not contain '/': {value!r}")
    return value


def parse_payload(payload: Any) -> WebhookPayload:
    """
    Parse a decoded webhook document into a payload variant.

    A document with a 'project' key is read as GitLab; anything else must
    have the GitHub shape.

    Raises:
        MalformedPayload: If the document matches neither shape or names
            a path outside the repository root
    """
    if not isinstance(payload, Mapping):
        raise MalformedPayload("Webhook payload must be a JSON object")

    if 'project' in payload:
        project = payload['project']
        return GitLabPayload(
            namespace=_require_segment(_require_str(project, 'namespace', 'project'), 'project.namespace', nested=True),
            name=_require_segment(_require_str(project, 'name', 'project'), 'project.name'),
        )

    if 'repository' not in payload:
        raise MalformedPayload("Webhook payload has neither 'project' nor 'repository'")

    repository = payload['repository']
    owner = repository.get('owner') if isinstance(repository, Mapping) else None
    return GitHubPayload(
        owner_login=_require_segment(_require_str(owner, 'login', 'repository.owner'), 'repository.owner.login'),
        name=_require_segment(_require_str(repository, 'name', 'repository'), 'repository.name'),
    )
