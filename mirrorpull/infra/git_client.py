"""
Git client infrastructure for mirrorpull.

Provides a clean abstraction over git command execution.
All git operations go through this client, making them:
- Easy to mock for testing
- Consistent in error handling
- Isolated from business logic
"""

import subprocess
from typing import List
import logging

from ..exit_codes import MirrorPullError

logger = logging.getLogger(__name__)


class GitCommandError(MirrorPullError):
    """A git command exited non-zero or timed out."""

    def __init__(self, args: List[str], returncode: int, stderr: str = ""):
        self.args_list = args
        self.returncode = returncode
        self.stderr = stderr.strip()
        message = self.stderr or f"git exited with status {returncode}"
        super().__init__(message)


class GitClient:
    """
    Abstraction over git commands for bare mirror repositories.

    Example:
        client = GitClient()
        for remote in client.remotes("/srv/mirrors/group/project.git"):
            output = client.fetch("/srv/mirrors/group/project.git", remote)
    """

    def __init__(self, binary: str = "git", timeout: int = 300):
        """
        Initialize GitClient.

        Args:
            binary: Path to the git executable
            timeout: Command timeout in seconds (default: 300)
        """
        self.binary = binary
        self.timeout = timeout

    def _run(self, args: List[str], cwd: str) -> subprocess.CompletedProcess:
        """
        Run a git command.

        Args:
            args: git arguments (without the binary)
            cwd: Working directory (the repository)

        Returns:
            The completed process

        Raises:
            GitCommandError: On non-zero exit, timeout or a missing binary
        """
        cmd = [self.binary, *args]
        logger.debug(f"Running in '{cwd}': {' '.join(cmd)}")
        try:
            result = subprocess.run(
                cmd,
                cwd=cwd,
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except subprocess.TimeoutExpired:
            raise GitCommandError(cmd, -1, f"git command timed out after {self.timeout}s: {' '.join(args)}")
        except OSError as e:
            raise GitCommandError(cmd, -1, str(e))

        if result.returncode != 0:
            raise GitCommandError(cmd, result.returncode, result.stderr or result.stdout or "")
        return result

    def remotes(self, path: str) -> List[str]:
        """
        List the remotes configured on a repository.

        Args:
            path: Path to git repository

        Returns:
            Remote names in the order git reports them
        """
        result = self._run(["remote"], cwd=path)
        return [line.strip() for line in result.stdout.splitlines() if line.strip()]

    def fetch(self, path: str, remote: str) -> str:
        """
        Fetch from a remote.

        git writes one line per updated ref to stderr and stays silent when
        nothing changed. Leading whitespace is kept since it carries the
        ref flag column.

        Returns:
            Combined stdout and stderr of git fetch

        Raises:
            GitCommandError: If the fetch fails
        """
        result = self._run(["fetch", remote], cwd=path)
        return ((result.stdout or "") + (result.stderr or "")).rstrip()
