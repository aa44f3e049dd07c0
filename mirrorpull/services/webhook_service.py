"""
Webhook path resolution for mirrorpull.
"""

import os
from typing import Any, Mapping, Union

from ..domain.payload import GitHubPayload, GitLabPayload, WebhookPayload, parse_payload
from ..exit_codes import MalformedPayload


def resolve(payload: Union[WebhookPayload, Mapping[str, Any]], root_dir: str) -> str:
    """
    Compute the local mirror path a webhook payload refers to.

    Args:
        payload: Raw decoded payload or an already parsed variant
        root_dir: Repository root directory

    Returns:
        root_dir/<namespace>/<name>.git

    Raises:
        MalformedPayload: If a raw payload matches neither provider shape,
            or the resulting path is not inside root_dir
    """
    if not isinstance(payload, (GitLabPayload, GitHubPayload)):
        payload = parse_payload(payload)
    path = os.path.join(root_dir, payload.namespace, payload.name + '.git')

    root = os.path.normpath(os.path.abspath(root_dir))
    if not os.path.normpath(os.path.abspath(path)).startswith(root.rstrip(os.sep) + os.sep):
        raise MalformedPayload(f"Webhook payload points outside the repository root: {path}")
    return path


class WebhookPathResolver:
    """Resolves webhook payloads against one repository root."""

    def __init__(self, root_dir: str):
        self.root_dir = root_dir

    def resolve(self, payload: Union[WebhookPayload, Mapping[str, Any]]) -> str:
        return resolve(payload, self.root_dir)
