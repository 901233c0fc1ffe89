"""Ordered repository provisioning against GitHub."""

from __future__ import annotations

from typing import Any

import structlog

from repoforge.auth import GitHubAuthError
from repoforge.config import RepoforgeConfig
from repoforge.github import GitHubClient, GitHubError
from repoforge.models import ProvisionResult, ProvisionStep, RepoRequest, RequestState
from repoforge.registry import RepoRegistry
from repoforge.settings import load_repo_settings

log = structlog.get_logger()


class Provisioner:
    """Generate, share and configure a repository for an approved request.

    Steps run in order and the first failure stops the sequence. Nothing is
    rolled back: a repository that was generated stays in place and the
    result says which step needs manual follow-up.
    """

    def __init__(
        self,
        config: RepoforgeConfig,
        github: GitHubClient,
        registry: RepoRegistry,
        *,
        repo_settings: dict[str, Any] | None = None,
    ):
        self.config = config
        self.github = github
        self.registry = registry
        if repo_settings is None:
            repo_settings = load_repo_settings(config)
        self.repo_settings = repo_settings

    async def provision(self, request: RepoRequest) -> ProvisionResult:
        if request.state != RequestState.APPROVED:
            raise ValueError(f"Request {request.name!r} is {request.state}, not approved")

        org = self.config.github_org
        result = ProvisionResult(repo_name=request.name)
        step = ProvisionStep.RECHECK
        try:
            if self.config.recheck_before_create:
                if await self.github.repo_exists(org, request.name):
                    self.registry.add(request.name)
                    raise GitHubError(f"Repository {org}/{request.name} already exists")
                result.completed.append(step)

            step = ProvisionStep.GENERATE
            data = await self.github.generate_from_template(
                self.config.template_owner,
                self.config.github_template_repo,
                org,
                request.name,
                request.display_description,
                private=self.config.github_private,
            )
            result.repo_url = data.get("html_url") or f"https://github.com/{org}/{request.name}"
            self.registry.add(request.name)
            result.completed.append(step)

            step = ProvisionStep.ADD_COLLABORATOR
            await self.github.add_collaborator(
                org,
                request.name,
                request.owner,
                self.config.github_collaborator_permission,
            )
            result.completed.append(step)

            step = ProvisionStep.UPDATE_SETTINGS
            await self.github.update_repo(org, request.name, self.repo_settings)
            result.completed.append(step)
        except (GitHubError, GitHubAuthError) as e:
            result.failed_step = step
            result.error = str(e)
            log.exception("provision_failed", repo=request.name, step=step.value)
            return result

        log.info("provision_complete", repo=request.name, url=result.repo_url)
        return result
