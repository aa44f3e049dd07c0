"""
Pipeline trigger decisions for mirrorpull.
"""

import logging
import os
from typing import Optional, Sequence
from urllib.parse import quote

from ..domain.trigger import TriggerRule, TriggerResult
from ..infra.gitlab_client import GitLabClient

logger = logging.getLogger(__name__)


def decide(namespace: str, rules: Sequence[TriggerRule]) -> Optional[str]:
    """Return the branch of the first rule matching namespace, or None."""
    for rule in rules:
        if rule.matches(namespace):
            return rule.branch
    return None


def namespace_for(repo_path: str, root_dir: str) -> str:
    """
    Derive the project namespace from a mirror path.

    /srv/mirrors/group/project.git -> group/project
    """
    rel = os.path.relpath(os.path.abspath(repo_path), os.path.abspath(root_dir))
    if rel.endswith('.git'):
        rel = rel[:-len('.git')]
    return rel.replace(os.sep, '/')


def maybe_trigger(
    changed: bool,
    namespace: str,
    rules: Sequence[TriggerRule],
    client: GitLabClient,
    repo_path: str = ""
) -> Optional[TriggerResult]:
    """
    Trigger a pipeline if the fetch brought new refs and a rule matches.

    Raises:
        TriggerError: If the pipeline API call fails
    """
    if not changed:
        return None

    branch = decide(namespace, rules)
    if branch is None:
        return None

    info = client.create_pipeline(quote(namespace, safe=''), branch)
    logger.info(f"Triggered pipeline for {namespace} on {branch}")
    return TriggerResult(
        repo_path=repo_path,
        namespace=namespace,
        branch=branch,
        pipeline_id=info.id,
        web_url=info.web_url,
    )


class PipelineTrigger:
    """
    Pipeline triggering bound to one rule set and API client.

    Example:
        trigger = PipelineTrigger(rules, GitLabClient(url, token))
        trigger.maybe_trigger(True, "group/project")
    """

    def __init__(self, rules: Sequence[TriggerRule], client: GitLabClient):
        self.rules = tuple(rules)
        self.client = client

    def decide(self, namespace: str) -> Optional[str]:
        return decide(namespace, self.rules)

    def maybe_trigger(self, changed: bool, namespace: str, repo_path: str = "") -> Optional[TriggerResult]:
        return maybe_trigger(changed, namespace, self.rules, self.client, repo_path=repo_path)
