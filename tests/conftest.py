"""
Shared fixtures for mirrorpull tests.
"""

import pytest

from mirrorpull.config import MailSettings, MirrorSettings
from mirrorpull.domain.trigger import TriggerRule
from mirrorpull.infra.git_client import GitCommandError
from mirrorpull.infra.gitlab_client import PipelineInfo

# What git fetch prints when a branch moved
REF_UPDATE_OUTPUT = (
    "From github.com:group/app\n"
    "   1a2b3c4..5d6e7f8  master     -> github/master"
)


class FakeGitClient:
    """
    Stand-in for GitClient that records every call.

    remotes: repo path -> remote names
    failures: (repo path, remote) -> error message raised from fetch
    outputs: (repo path, remote) -> fetch output (non-empty means refs changed)
    """

    def __init__(self, remotes=None, failures=None, outputs=None, broken_repos=()):
        self.remotes_by_repo = remotes or {}
        self.failures = failures or {}
        self.outputs = outputs or {}
        self.broken_repos = set(broken_repos)
        self.fetch_calls = []
        self.remote_calls = []

    def remotes(self, path):
        self.remote_calls.append(path)
        if path in self.broken_repos:
            raise GitCommandError(["git", "remote"], 128, "fatal: not a git repository")
        return list(self.remotes_by_repo.get(path, []))

    def fetch(self, path, remote):
        self.fetch_calls.append((path, remote))
        if (path, remote) in self.failures:
            raise GitCommandError(["git", "fetch", remote], 128, self.failures[(path, remote)])
        return self.outputs.get((path, remote), "")


class FakePipelineClient:
    """Records create_pipeline calls; raises `error` if set."""

    def __init__(self, error=None):
        self.calls = []
        self.error = error

    def create_pipeline(self, project_id, ref):
        self.calls.append((project_id, ref))
        if self.error is not None:
            raise self.error
        return PipelineInfo(id=len(self.calls), status="created", ref=ref,
                            web_url=f"https://gitlab.example.com/-/pipelines/{len(self.calls)}")


@pytest.fixture
def mirror_root(tmp_path):
    """
    A repository root laid out like GitLab's:

        group/app.git, group/app.wiki.git, group/archived.git,
        group/archived-2.git, other/tool.git, other/notes.txt, .hidden/x.git
    """
    root = tmp_path / "repositories"
    for rel in [
        "group/app.git",
        "group/app.wiki.git",
        "group/archived.git",
        "group/archived-2.git",
        "other/tool.git",
        ".hidden/x.git",
    ]:
        (root / rel).mkdir(parents=True)
    (root / "other" / "notes.txt").write_text("not a repo")
    return str(root)


@pytest.fixture
def make_settings(mirror_root):
    """Build MirrorSettings over mirror_root with overridable fields."""
    def _make(**overrides):
        values = dict(
            repos_root=mirror_root,
            providers=("github",),
            ignore=(),
            triggers=(TriggerRule("group/app", "master"),),
            api_url="https://gitlab.example.com",
            api_token="token",
            mail=MailSettings(),
        )
        values.update(overrides)
        return MirrorSettings(**values)
    return _make


@pytest.fixture
def fake_git():
    return FakeGitClient()


@pytest.fixture
def fake_pipeline():
    return FakePipelineClient()
