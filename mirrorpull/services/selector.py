"""
Repository discovery for mirrorpull.

Mirrors live exactly two levels below the repository root, in the
<namespace>/<name>.git layout GitLab uses for its bare repositories.
"""

import logging
import os
from typing import Iterable, List, Sequence

from ..exit_codes import DiscoveryError

logger = logging.getLogger(__name__)

GIT_SUFFIX = '.git'
WIKI_SUFFIX = '.wiki.git'


def is_mirror_name(name: str) -> bool:
    """Check if a directory name is a mirrored (non-wiki) bare repository."""
    return (
        name.endswith(GIT_SUFFIX)
        and not name.endswith(WIKI_SUFFIX)
        and not name.startswith('.')
    )


def _list_dir(path: str) -> List[str]:
    return sorted(os.listdir(path))


def discover_repositories(root_dir: str) -> List[str]:
    """
    Find every <namespace>/<name>.git directory under root_dir.

    Args:
        root_dir: Repository root directory

    Returns:
        Absolute repository paths; empty if root_dir is missing or empty

    Raises:
        DiscoveryError: If root_dir exists but cannot be read
    """
    root_dir = os.path.abspath(os.path.expanduser(root_dir))
    try:
        namespaces = _list_dir(root_dir)
    except (FileNotFoundError, NotADirectoryError):
        logger.warning(f"Repository root not found: {root_dir}")
        return []
    except PermissionError as e:
        raise DiscoveryError(f"Cannot read repository root {root_dir}: {e}", root=root_dir) from e

    repos = []
    for namespace in namespaces:
        if namespace.startswith('.'):
            continue
        namespace_path = os.path.join(root_dir, namespace)
        if not os.path.isdir(namespace_path):
            continue
        try:
            names = _list_dir(namespace_path)
        except OSError as e:
            logger.warning(f"Skipping unreadable namespace {namespace_path}: {e}")
            continue
        for name in names:
            repo_path = os.path.join(namespace_path, name)
            if is_mirror_name(name) and os.path.isdir(repo_path):
                repos.append(repo_path)
    return repos


def apply_ignore_list(repos: Iterable[str], root_dir: str, ignore_list: Sequence[str]) -> List[str]:
    """
    Drop every repository whose path starts with root_dir/<ignore entry>.

    The match is a plain prefix match, so an entry also excludes everything
    nested below it. Duplicates are removed, order is otherwise kept.
    """
    root_dir = os.path.abspath(os.path.expanduser(root_dir))
    prefixes = tuple(os.path.join(root_dir, entry.strip('/')) for entry in ignore_list if entry.strip('/'))

    selected = []
    for repo in dict.fromkeys(repos):
        if prefixes and repo.startswith(prefixes):
            logger.debug(f"Ignoring {repo}")
            continue
        selected.append(repo)
    return selected


def select_repositories(root_dir: str, ignore_list: Sequence[str] = ()) -> List[str]:
    """Discover mirrors under root_dir and apply the ignore list."""
    return apply_ignore_list(discover_repositories(root_dir), root_dir, ignore_list)


class RepositorySelector:
    """
    Selects the mirrors a run should fetch.

    Example:
        selector = RepositorySelector("/srv/mirrors", ignore=["group/archived"])
        for path in selector.select():
            print(path)
    """

    def __init__(self, root_dir: str, ignore: Sequence[str] = ()):
        self.root_dir = root_dir
        self.ignore = tuple(ignore)

    def select(self) -> List[str]:
        repos = select_repositories(self.root_dir, self.ignore)
        logger.info(f"Selected {len(repos)} repositories under {self.root_dir}")
        return repos
