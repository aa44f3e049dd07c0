"""
Fetch orchestration for mirrorpull.

Fetches every allowed remote of every selected mirror, one at a time.
A failing remote is recorded in the report and never stops the remotes
or repositories after it.
"""

import logging
import os
from typing import Optional, Sequence

from ..domain.fetch import FetchOutcome
from ..domain.report import MirrorReport
from ..infra.git_client import GitClient

logger = logging.getLogger(__name__)

ALL_REMOTES = '*'


class FetchOrchestrator:
    """
    Runs git fetch across mirrors.

    Example:
        orchestrator = FetchOrchestrator(GitClient())
        report = orchestrator.run(repos, allow_list=["github"])
        print(report.updated_repos)
    """

    def __init__(self, git_client: Optional[GitClient] = None):
        self.git = git_client or GitClient()

    def fetch_remote(self, repo_path: str, remote: str) -> FetchOutcome:
        """Fetch one remote, converting any failure into a failed outcome."""
        logger.info(f"Fetching remote {remote} in {repo_path}")
        try:
            output = self.git.fetch(repo_path, remote)
        except Exception as e:
            logger.error(f"Failed to fetch remote {remote} in {repo_path}: {e}")
            return FetchOutcome(repo_path=repo_path, remote=remote, success=False, error_message=str(e))
        return FetchOutcome(repo_path=repo_path, remote=remote, success=True, output=output or "")

    def fetch_repository(self, repo_path: str, allow_list: Sequence[str], report: MirrorReport) -> None:
        """Fetch every allowed remote of one repository into report."""
        try:
            remotes = self.git.remotes(repo_path)
        except Exception as e:
            logger.error(f"Failed to list remotes in {repo_path}: {e}")
            report.add_outcome(FetchOutcome(
                repo_path=repo_path, remote=ALL_REMOTES, success=False, error_message=str(e)
            ))
            return

        for remote in remotes:
            if remote not in allow_list:
                logger.debug(f"Skipping remote {remote} in {repo_path} (not an allowed provider)")
                continue
            report.add_outcome(self.fetch_remote(repo_path, remote))

    def run(
        self,
        repos: Sequence[str],
        allow_list: Sequence[str],
        report: Optional[MirrorReport] = None
    ) -> MirrorReport:
        """
        Fetch all repositories.

        Args:
            repos: Repository paths; entries that are no longer directories are skipped
            allow_list: Remote names eligible for fetch
            report: Report to accumulate into (a new one if None)

        Returns:
            The populated report
        """
        report = report if report is not None else MirrorReport()
        for repo_path in repos:
            if not os.path.isdir(repo_path):
                logger.debug(f"Skipping {repo_path} (not a directory)")
                continue
            self.fetch_repository(repo_path, allow_list, report)
        return report
