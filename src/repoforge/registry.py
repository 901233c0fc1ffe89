"""Snapshot of repository names that already exist in the org."""

from __future__ import annotations

import structlog

from repoforge.github import GitHubClient

log = structlog.get_logger()


async def load_known_repo_names(github: GitHubClient, org: str) -> set[str]:
    names = set(await github.list_org_repos(org))
    log.info("registry_loaded", org=org, count=len(names))
    return names


def is_known_name(names: set[str], name: str) -> bool:
    return name in names


class RepoRegistry:
    """Point-in-time set of taken names.

    Loaded once at startup. Names provisioned by this process are added as they
    are created; repositories created elsewhere stay invisible until restart,
    which is why the provisioner can re-check the host before generating.
    """

    def __init__(self, names: set[str] | None = None):
        self._names: set[str] = set(names or ())

    @classmethod
    async def load(cls, github: GitHubClient, org: str) -> RepoRegistry:
        return cls(await load_known_repo_names(github, org))

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and is_known_name(self._names, name)

    def __len__(self) -> int:
        return len(self._names)

    def add(self, name: str) -> None:
        self._names.add(name)
