"""
Pipeline trigger domain objects for mirrorpull.
"""

from dataclasses import dataclass
from typing import Dict, Any, Optional


@dataclass(frozen=True)
class TriggerRule:
    """
    A configured pipeline trigger.

    repo_match is compared as a substring of the repository namespace;
    rules are evaluated in configured order and the first match wins.
    """
    repo_match: str
    branch: str

    def matches(self, namespace: str) -> bool:
        return self.repo_match in namespace

    def to_dict(self) -> Dict[str, Any]:
        return {'repo': self.repo_match, 'branch': self.branch}


@dataclass(frozen=True)
class TriggerResult:
    """A pipeline that was requested for a mirrored repository."""
    repo_path: str
    namespace: str
    branch: str
    pipeline_id: Optional[int] = None
    web_url: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        result = {
            'path': self.repo_path,
            'namespace': self.namespace,
            'branch': self.branch,
        }
        if self.pipeline_id is not None:
            result['pipeline_id'] = self.pipeline_id
        if self.web_url:
            result['web_url'] = self.web_url
        return result
