"""
Mirror run report for mirrorpull.

Collects what happened to each (repository, remote) pair during one run
and is handed to the notifier once the run is over.
"""

import threading
from dataclasses import dataclass, field
from typing import Dict, Any, List

from ..exit_codes import FetchError
from .fetch import FetchOutcome
from .trigger import TriggerResult


@dataclass
class MirrorReport:
    """
    Outcomes of one mirror run.

    successes holds one repository path per successful remote fetch, so a
    repository fetched from two remotes appears twice. failures holds
    formatted (HTML) error entries. Both are append-only.
    """
    successes: List[str] = field(default_factory=list)
    failures: List[str] = field(default_factory=list)
    outcomes: List[FetchOutcome] = field(default_factory=list)
    triggers: List[TriggerResult] = field(default_factory=list)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    @property
    def success(self) -> bool:
        """True if no failures occurred."""
        return not self.failures

    @property
    def updated_repos(self) -> List[str]:
        """Repositories with at least one successful fetch, in first-seen order."""
        return list(dict.fromkeys(self.successes))

    @property
    def changed_repos(self) -> List[str]:
        """Repositories where a fetch brought in new references."""
        return list(dict.fromkeys(o.repo_path for o in self.outcomes if o.changed))

    def add_outcome(self, outcome: FetchOutcome) -> None:
        """Record a fetch outcome and update the success/failure lists."""
        with self._lock:
            self.outcomes.append(outcome)
            if outcome.success:
                self.successes.append(outcome.repo_path)
            else:
                error = FetchError(outcome.repo_path, outcome.remote, outcome.error_message or "")
                self.failures.append(error.format_entry())

    def add_failure(self, entry: str) -> None:
        """Record a failure that is not tied to a fetch (e.g. a pipeline trigger)."""
        with self._lock:
            self.failures.append(entry)

    def add_trigger(self, trigger: TriggerResult) -> None:
        with self._lock:
            self.triggers.append(trigger)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            'type': 'summary',
            'fetched': len(self.outcomes),
            'successful': len(self.successes),
            'failed': len(self.failures),
            'updated': self.updated_repos,
            'changed': self.changed_repos,
            'triggered': [t.to_dict() for t in self.triggers],
            'errors': list(self.failures),
        }
