"""
Mirror run service for mirrorpull.

Wires selection, fetching, pipeline triggers and notification into a
single run. Used by the `run` and `webhook` commands and by the webhook
receiver.
"""

import logging
from dataclasses import dataclass
from typing import Any, List, Mapping, Optional, Sequence

from ..config import MirrorSettings
from ..domain.report import MirrorReport
from ..exit_codes import DiscoveryError, NotificationError, TriggerError
from ..infra.git_client import GitClient
from ..infra.gitlab_client import GitLabClient
from ..infra.notifier import Notifier
from .fetch_service import FetchOrchestrator
from .pipeline_service import PipelineTrigger, namespace_for
from .selector import RepositorySelector
from .webhook_service import WebhookPathResolver

logger = logging.getLogger(__name__)


@dataclass
class RunOptions:
    """Options for one mirror run."""
    trigger: bool = True
    notify: bool = True


class MirrorRunner:
    """
    Runs one mirror pass: select, fetch, trigger, notify.

    Example:
        runner = MirrorRunner(load_settings())
        report = runner.run()
        if not report.success:
            print("\\n".join(report.failures))
    """

    def __init__(
        self,
        settings: MirrorSettings,
        git_client: Optional[GitClient] = None,
        pipeline_client: Optional[GitLabClient] = None,
        notifier: Optional[Notifier] = None
    ):
        """
        Initialize MirrorRunner.

        Args:
            settings: Frozen configuration for the run
            git_client: GitClient instance (built from settings if None)
            pipeline_client: GitLab client (built from settings when triggers are configured)
            notifier: Notifier instance (built from settings if None)
        """
        self.settings = settings
        self.git = git_client or GitClient(binary=settings.git_binary, timeout=settings.git_timeout)
        if pipeline_client is None and settings.pipeline_enabled:
            pipeline_client = GitLabClient(
                settings.api_url, token=settings.api_token, timeout=settings.api_timeout
            )
        self.pipeline = PipelineTrigger(settings.triggers, pipeline_client) if pipeline_client else None
        self.notifier = notifier or Notifier(settings.mail)
        self.selector = RepositorySelector(settings.repos_root, settings.ignore)
        self.fetcher = FetchOrchestrator(self.git)
        self.resolver = WebhookPathResolver(settings.repos_root)

    def select(self) -> List[str]:
        """Repositories a full run would fetch."""
        return self.selector.select()

    def trigger_pipelines(self, report: MirrorReport) -> None:
        """Trigger pipelines for updated repositories; failures go into the report."""
        if self.pipeline is None:
            return

        changed = set(report.changed_repos)
        for repo_path in report.updated_repos:
            namespace = namespace_for(repo_path, self.settings.repos_root)
            try:
                result = self.pipeline.maybe_trigger(repo_path in changed, namespace, repo_path=repo_path)
            except TriggerError as e:
                logger.warning(f"Failed to trigger pipeline for {namespace}: {e}")
                report.add_failure(
                    f"<b>Failed to trigger pipeline for {namespace}</b>\n<pre>{e}</pre>"
                )
                continue
            except Exception as e:
                logger.error(f"Unexpected error triggering pipeline for {namespace}: {e}")
                report.add_failure(
                    f"<b>Failed to trigger pipeline for {namespace}</b>\n<pre>{type(e).__name__}: {e}</pre>"
                )
                continue
            if result is not None:
                report.add_trigger(result)

    def notify(self, report: MirrorReport) -> None:
        """Hand the finished report to the notifier."""
        if not self.settings.mail.enabled:
            logger.debug("Mail not configured, skipping notification")
            return
        try:
            self.notifier.notify(report)
        except NotificationError as e:
            logger.error(f"Could not send report mail: {e}")

    def run(self, repos: Optional[Sequence[str]] = None, options: Optional[RunOptions] = None) -> MirrorReport:
        """
        Run a mirror pass.

        Args:
            repos: Repositories to fetch (all selected mirrors if None)
            options: Trigger/notify switches

        Returns:
            The run's report
        """
        options = options or RunOptions()
        report = MirrorReport()
        if repos is None:
            try:
                repos = self.select()
            except DiscoveryError as e:
                logger.error(f"{e}; nothing to fetch")
                report.add_failure(
                    f"<b>Failed to read repository root {self.settings.repos_root}</b>\n<pre>{e}</pre>"
                )
                repos = []

        self.fetcher.run(repos, self.settings.providers, report=report)
        logger.info(
            f"Fetched {len(report.outcomes)} remotes: "
            f"{len(report.successes)} ok, {len(report.failures)} failed"
        )

        if options.trigger:
            self.trigger_pipelines(report)
        if options.notify:
            self.notify(report)
        return report

    def resolve_webhook(self, payload: Mapping[str, Any]) -> str:
        """
        Resolve the mirror path a webhook refers to.

        Raises:
            MalformedPayload: If the payload shape is not recognized
        """
        return self.resolver.resolve(payload)

    def run_webhook(self, payload: Mapping[str, Any], options: Optional[RunOptions] = None) -> MirrorReport:
        """Resolve a webhook payload and run a pass over that single mirror."""
        repo_path = self.resolve_webhook(payload)
        logger.info(f"Webhook for {repo_path}")
        return self.run([repo_path], options)
