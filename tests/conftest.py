from __future__ import annotations

from unittest.mock import AsyncMock

import pytest
from slack_sdk.web.async_client import AsyncWebClient

from repoforge.config import RepoforgeConfig
from repoforge.github import GitHubClient
from repoforge.models import RepoRequest, RequestState
from repoforge.provisioner import Provisioner
from repoforge.registry import RepoRegistry
from repoforge.settings import DEFAULT_REPO_SETTINGS
from repoforge.workflow import Workflow

CREATION_CHANNEL = "C_CREATE"
APPROVALS_CHANNEL = "C_APPROVE"


@pytest.fixture
def config() -> RepoforgeConfig:
    return RepoforgeConfig(
        slack_bot_token="xoxb-test",
        creation_channel=CREATION_CHANNEL,
        approvals_channel=APPROVALS_CHANNEL,
        github_org="testorg",
        github_template_repo="project-template",
        github_team_id=42,
        recheck_before_create=True,
    )


@pytest.fixture
def mock_github() -> AsyncMock:
    gh = AsyncMock(spec=GitHubClient)
    gh.list_org_repos = AsyncMock(return_value=["existing-repo", "website"])
    gh.repo_exists = AsyncMock(return_value=False)
    gh.generate_from_template = AsyncMock(
        return_value={"html_url": "https://github.com/testorg/hack-tools"}
    )
    gh.add_collaborator = AsyncMock(return_value=None)
    gh.update_repo = AsyncMock(return_value={})
    return gh


@pytest.fixture
def registry() -> RepoRegistry:
    return RepoRegistry({"existing-repo", "website"})


@pytest.fixture
def provisioner(config, mock_github, registry) -> Provisioner:
    settings = dict(DEFAULT_REPO_SETTINGS, team_id=config.github_team_id)
    return Provisioner(config, mock_github, registry, repo_settings=settings)


@pytest.fixture
def workflow(config, registry, provisioner) -> Workflow:
    return Workflow(config, registry, provisioner)


@pytest.fixture
def mock_slack() -> AsyncMock:
    client = AsyncMock(spec=AsyncWebClient)
    client.chat_postMessage = AsyncMock(
        return_value={"ok": True, "channel": APPROVALS_CHANNEL, "ts": "1700000000.000100"}
    )
    client.chat_postEphemeral = AsyncMock(return_value={"ok": True})
    client.chat_update = AsyncMock(return_value={"ok": True})
    client.views_open = AsyncMock(return_value={"ok": True})
    client.conversations_open = AsyncMock(return_value={"ok": True, "channel": {"id": "D_REQ"}})
    return client


@pytest.fixture
def sample_request() -> RepoRequest:
    return RepoRequest(
        name="hack-tools",
        description="Useful scripts",
        owner="octocat",
        requester_id="U_REQ",
        state=RequestState.PENDING_APPROVAL,
        correlation_id="corr-1",
    )
