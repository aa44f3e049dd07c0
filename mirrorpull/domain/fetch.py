"""
Fetch outcome domain object for mirrorpull.
"""

import re
from dataclasses import dataclass
from typing import Dict, Any, Optional

# One line per ref in `git fetch` output: " <flag> <summary> <from> -> <to>".
# Flags ' ' (fast-forward), '+' (forced), 't' (tag), '*' (new) and '-'
# (pruned) mean the local ref moved; '!' (rejected) and '=' (up to date) do not.
REF_UPDATE_RE = re.compile(r'^ [ +t*\-] \S.* -> ', re.MULTILINE)


def has_ref_updates(output: str) -> bool:
    """True if git fetch output contains at least one updated ref line."""
    return bool(REF_UPDATE_RE.search(output or ""))


@dataclass(frozen=True)
class FetchOutcome:
    """
    Result of fetching one remote of one repository.

    Produced exactly once per (repository, remote) attempt.
    """
    repo_path: str
    remote: str
    success: bool
    error_message: Optional[str] = None
    output: str = ""

    @property
    def changed(self) -> bool:
        """True when the fetch reported updated references.

        Warnings and the "From <url>" header alone do not count.
        """
        return self.success and has_ref_updates(self.output)

    def to_dict(self) -> Dict[str, Any]:
        result = {
            'type': 'fetch',
            'path': self.repo_path,
            'remote': self.remote,
            'status': 'success' if self.success else 'failed',
            'changed': self.changed,
        }
        if self.error_message:
            result['error'] = self.error_message
        return result
