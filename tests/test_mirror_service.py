"""
Tests for MirrorRunner: a full pass over a fake git client.
"""

import os
from unittest.mock import MagicMock

import pytest

from mirrorpull.config import MailSettings
from mirrorpull.exit_codes import DiscoveryError, NotificationError, TriggerError
from mirrorpull.infra.gitlab_client import GitLabClient
from mirrorpull.services.mirror_service import MirrorRunner, RunOptions

from conftest import REF_UPDATE_OUTPUT, FakeGitClient, FakePipelineClient


def paths(root, *rels):
    return [os.path.join(root, rel) for rel in rels]


def make_runner(settings, git, pipeline=None, notifier=None):
    return MirrorRunner(
        settings,
        git_client=git,
        pipeline_client=pipeline,
        notifier=notifier or MagicMock(),
    )


class TestRun:

    def test_fetches_selected_mirrors(self, mirror_root, make_settings):
        app, tool = paths(mirror_root, "group/app.git", "other/tool.git")
        git = FakeGitClient(remotes={app: ["github", "origin"], tool: ["github"]})
        runner = make_runner(make_settings(ignore=("group/archived",)), git)

        report = runner.run()

        assert git.fetch_calls == [(app, "github"), (tool, "github")]
        assert report.successes == [app, tool]
        assert report.success

    def test_wiki_and_ignored_never_fetched(self, mirror_root, make_settings):
        git = FakeGitClient()
        runner = make_runner(make_settings(ignore=("group/archived",)), git)

        runner.run()

        fetched = set(git.remote_calls)
        assert not any(p.endswith(".wiki.git") for p in fetched)
        assert not any("archived" in p for p in fetched)

    def test_explicit_repos(self, mirror_root, make_settings):
        (tool,) = paths(mirror_root, "other/tool.git")
        git = FakeGitClient(remotes={tool: ["github"]})

        report = make_runner(make_settings(), git).run([tool])

        assert git.remote_calls == [tool]
        assert report.successes == [tool]

    def test_partial_failure_reported(self, mirror_root, make_settings):
        app, tool = paths(mirror_root, "group/app.git", "other/tool.git")
        git = FakeGitClient(
            remotes={app: ["github"], tool: ["github"]},
            failures={(app, "github"): "fatal: unable to access"},
        )

        report = make_runner(make_settings(), git).run([app, tool])

        assert report.successes == [tool]
        assert report.failures == [
            f"<b>Failed to fetch remote github in {app}</b>\n<pre>fatal: unable to access</pre>"
        ]
        assert not report.success

    def test_select_matches_run_scope(self, mirror_root, make_settings):
        runner = make_runner(make_settings(ignore=("other",)), FakeGitClient())
        assert runner.select() == paths(
            mirror_root, "group/app.git", "group/archived-2.git", "group/archived.git"
        )


class TestPipelineTriggers:

    def test_changed_matching_repo_triggers(self, mirror_root, make_settings):
        (app,) = paths(mirror_root, "group/app.git")
        git = FakeGitClient(remotes={app: ["github"]}, outputs={(app, "github"): REF_UPDATE_OUTPUT})
        pipeline = FakePipelineClient()

        report = make_runner(make_settings(), git, pipeline).run([app])

        assert pipeline.calls == [("group%2Fapp", "master")]
        assert [t.namespace for t in report.triggers] == ["group/app"]

    def test_unchanged_repo_not_triggered(self, mirror_root, make_settings):
        (app,) = paths(mirror_root, "group/app.git")
        git = FakeGitClient(remotes={app: ["github"]})
        pipeline = FakePipelineClient()

        make_runner(make_settings(), git, pipeline).run([app])

        assert pipeline.calls == []

    def test_one_trigger_per_repo(self, mirror_root, make_settings):
        (app,) = paths(mirror_root, "group/app.git")
        git = FakeGitClient(
            remotes={app: ["github", "gitlab"]},
            outputs={(app, "github"): REF_UPDATE_OUTPUT, (app, "gitlab"): REF_UPDATE_OUTPUT},
        )
        pipeline = FakePipelineClient()

        make_runner(make_settings(providers=("github", "gitlab")), git, pipeline).run([app])

        assert len(pipeline.calls) == 1

    def test_unmatched_repo_not_triggered(self, mirror_root, make_settings):
        (tool,) = paths(mirror_root, "other/tool.git")
        git = FakeGitClient(remotes={tool: ["github"]}, outputs={(tool, "github"): REF_UPDATE_OUTPUT})
        pipeline = FakePipelineClient()

        make_runner(make_settings(), git, pipeline).run([tool])

        assert pipeline.calls == []

    def test_trigger_failure_recorded_not_raised(self, mirror_root, make_settings):
        (app,) = paths(mirror_root, "group/app.git")
        git = FakeGitClient(remotes={app: ["github"]}, outputs={(app, "github"): REF_UPDATE_OUTPUT})
        pipeline = FakePipelineClient(error=TriggerError("GitLab API error 403"))

        report = make_runner(make_settings(), git, pipeline).run([app])

        assert report.successes == [app]
        assert len(report.failures) == 1
        assert "Failed to trigger pipeline for group/app" in report.failures[0]

    def test_unexpected_client_error_recorded_not_raised(self, mirror_root, make_settings):
        (app,) = paths(mirror_root, "group/app.git")
        git = FakeGitClient(remotes={app: ["github"]}, outputs={(app, "github"): REF_UPDATE_OUTPUT})
        pipeline = FakePipelineClient(error=AttributeError("'list' object has no attribute 'get'"))
        notifier = MagicMock()
        settings = make_settings(mail=MailSettings(sender="a@example.com", receiver="b@example.com"))

        report = make_runner(settings, git, pipeline, notifier=notifier).run([app])

        assert report.successes == [app]
        assert "AttributeError" in report.failures[0]
        notifier.notify.assert_called_once_with(report)

    def test_gitlab_error_with_list_body(self, mirror_root, make_settings):
        (app,) = paths(mirror_root, "group/app.git")
        git = FakeGitClient(remotes={app: ["github"]}, outputs={(app, "github"): REF_UPDATE_OUTPUT})
        response = MagicMock(status_code=400, text='["bad"]')
        response.json.return_value = ["bad"]
        session = MagicMock()
        session.post.return_value = response
        client = GitLabClient("https://gitlab.example.com", token="t", session=session)

        report = make_runner(make_settings(), git, client).run([app])

        assert len(report.failures) == 1
        assert "GitLab API error 400" in report.failures[0]
        assert report.triggers == []

    def test_no_trigger_option(self, mirror_root, make_settings):
        (app,) = paths(mirror_root, "group/app.git")
        git = FakeGitClient(remotes={app: ["github"]}, outputs={(app, "github"): REF_UPDATE_OUTPUT})
        pipeline = FakePipelineClient()

        make_runner(make_settings(), git, pipeline).run([app], RunOptions(trigger=False))

        assert pipeline.calls == []

    def test_no_api_url_disables_triggers(self, mirror_root, make_settings):
        runner = make_runner(make_settings(api_url=""), FakeGitClient())
        assert runner.pipeline is None


class TestNotification:

    MAIL = MailSettings(sender="a@example.com", receiver="b@example.com")

    def test_notifier_gets_report(self, mirror_root, make_settings):
        notifier = MagicMock()
        runner = make_runner(make_settings(mail=self.MAIL), FakeGitClient(), notifier=notifier)

        report = runner.run([])

        notifier.notify.assert_called_once_with(report)

    def test_unconfigured_mail_skipped(self, mirror_root, make_settings):
        notifier = MagicMock()
        make_runner(make_settings(), FakeGitClient(), notifier=notifier).run([])
        notifier.notify.assert_not_called()

    def test_no_mail_option(self, mirror_root, make_settings):
        notifier = MagicMock()
        runner = make_runner(make_settings(mail=self.MAIL), FakeGitClient(), notifier=notifier)
        runner.run([], RunOptions(notify=False))
        notifier.notify.assert_not_called()

    def test_delivery_failure_does_not_raise(self, mirror_root, make_settings):
        notifier = MagicMock()
        notifier.notify.side_effect = NotificationError("sendmail exited with 1")
        runner = make_runner(make_settings(mail=self.MAIL), FakeGitClient(), notifier=notifier)

        report = runner.run([])

        assert report.success


class TestWebhook:

    def test_run_webhook_fetches_one_mirror(self, mirror_root, make_settings):
        app, tool = paths(mirror_root, "group/app.git", "other/tool.git")
        git = FakeGitClient(remotes={app: ["github"], tool: ["github"]})

        report = make_runner(make_settings(), git).run_webhook(
            {"project": {"namespace": "group", "name": "app"}}
        )

        assert git.fetch_calls == [(app, "github")]
        assert report.successes == [app]

    def test_resolve_webhook_github(self, mirror_root, make_settings):
        runner = make_runner(make_settings(), FakeGitClient())
        path = runner.resolve_webhook({"repository": {"owner": {"login": "other"}, "name": "tool"}})
        assert path == os.path.join(mirror_root, "other", "tool.git")

    def test_webhook_for_unknown_mirror_fetches_nothing(self, mirror_root, make_settings):
        git = FakeGitClient()
        report = make_runner(make_settings(), git).run_webhook(
            {"project": {"namespace": "nobody", "name": "nothing"}}
        )
        assert git.remote_calls == []
        assert report.outcomes == []


class TestUnreadableRoot:

    def test_run_records_failure_and_still_notifies(self, mirror_root, make_settings):
        notifier = MagicMock()
        settings = make_settings(mail=MailSettings(sender="a@example.com", receiver="b@example.com"))
        git = FakeGitClient()
        runner = make_runner(settings, git, notifier=notifier)
        runner.selector.select = MagicMock(side_effect=DiscoveryError("Permission denied", root=mirror_root))

        report = runner.run()

        assert git.remote_calls == []
        assert report.successes == []
        assert report.failures[0].startswith(f"<b>Failed to read repository root {mirror_root}</b>")
        notifier.notify.assert_called_once_with(report)

    def test_list_still_surfaces_error(self, mirror_root, make_settings):
        runner = make_runner(make_settings(), FakeGitClient())
        runner.selector.select = MagicMock(side_effect=DiscoveryError("Permission denied"))

        with pytest.raises(DiscoveryError):
            runner.select()
