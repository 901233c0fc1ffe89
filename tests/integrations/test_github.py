from __future__ import annotations

import json
from unittest.mock import AsyncMock, patch

import pytest

from repoforge.auth import StaticToken
from repoforge.github import GitHubClient, GitHubError


@pytest.fixture
def github():
    return GitHubClient()


def _gh_result(stdout: str, returncode: int = 0, stderr: str = ""):
    proc = AsyncMock()
    proc.returncode = returncode
    proc.communicate = AsyncMock(return_value=(stdout.encode(), stderr.encode()))
    return proc


class TestListOrgRepos:
    @pytest.mark.asyncio
    async def test_returns_names(self, github):
        with patch(
            "asyncio.create_subprocess_exec", return_value=_gh_result("website\nhack-tools\n\n")
        ) as mock_exec:
            result = await github.list_org_repos("testorg")
        assert result == ["website", "hack-tools"]
        args = mock_exec.call_args[0]
        assert "orgs/testorg/repos" in args
        assert "--paginate" in args

    @pytest.mark.asyncio
    async def test_returns_empty_on_error(self, github):
        with patch("asyncio.create_subprocess_exec", return_value=_gh_result("", returncode=1)):
            assert await github.list_org_repos("testorg") == []


class TestRepoExists:
    @pytest.mark.asyncio
    async def test_exists(self, github):
        with patch("asyncio.create_subprocess_exec", return_value=_gh_result("website\n")):
            assert await github.repo_exists("testorg", "website") is True

    @pytest.mark.asyncio
    async def test_missing(self, github):
        with patch("asyncio.create_subprocess_exec", return_value=_gh_result("", returncode=1)):
            assert await github.repo_exists("testorg", "nope") is False


class TestGenerateFromTemplate:
    @pytest.mark.asyncio
    async def test_posts_body_and_parses_response(self, github):
        response = {"name": "hack-tools", "html_url": "https://github.com/testorg/hack-tools"}
        proc = _gh_result(json.dumps(response))
        with patch("asyncio.create_subprocess_exec", return_value=proc) as mock_exec:
            data = await github.generate_from_template(
                "testorg", "project-template", "testorg", "hack-tools", "Useful scripts"
            )

        assert data["html_url"] == "https://github.com/testorg/hack-tools"
        args = mock_exec.call_args[0]
        assert "repos/testorg/project-template/generate" in args
        assert args[args.index("--method") + 1] == "POST"
        sent = json.loads(proc.communicate.call_args[0][0])
        assert sent == {
            "owner": "testorg",
            "name": "hack-tools",
            "description": "Useful scripts",
            "private": False,
        }

    @pytest.mark.asyncio
    async def test_raises_on_failure(self, github):
        proc = _gh_result("", returncode=1, stderr="Name already exists on this account")
        with patch("asyncio.create_subprocess_exec", return_value=proc):
            with pytest.raises(GitHubError) as exc_info:
                await github.generate_from_template("o", "t", "o", "dup", "d")
        assert "already exists" in exc_info.value.stderr


class TestAddCollaborator:
    @pytest.mark.asyncio
    async def test_puts_permission(self, github):
        proc = _gh_result("")
        with patch("asyncio.create_subprocess_exec", return_value=proc) as mock_exec:
            await github.add_collaborator("testorg", "hack-tools", "octocat", "write")
        args = mock_exec.call_args[0]
        assert "repos/testorg/hack-tools/collaborators/octocat" in args
        assert args[args.index("--method") + 1] == "PUT"
        assert json.loads(proc.communicate.call_args[0][0]) == {"permission": "write"}


class TestUpdateRepo:
    @pytest.mark.asyncio
    async def test_patches_settings(self, github):
        proc = _gh_result("{}")
        with patch("asyncio.create_subprocess_exec", return_value=proc) as mock_exec:
            await github.update_repo("testorg", "hack-tools", {"has_wiki": True, "team_id": 1})
        args = mock_exec.call_args[0]
        assert args[args.index("--method") + 1] == "PATCH"
        assert json.loads(proc.communicate.call_args[0][0]) == {"has_wiki": True, "team_id": 1}

    @pytest.mark.asyncio
    async def test_raises_on_failure(self, github):
        with patch("asyncio.create_subprocess_exec", return_value=_gh_result("", returncode=1)):
            with pytest.raises(GitHubError):
                await github.update_repo("testorg", "hack-tools", {})


class TestAuthEnv:
    @pytest.mark.asyncio
    async def test_token_passed_as_gh_token(self):
        github = GitHubClient(StaticToken("ghs_secret"))
        with patch("asyncio.create_subprocess_exec", return_value=_gh_result("")) as mock_exec:
            await github.list_org_repos("testorg")
        assert mock_exec.call_args.kwargs["env"]["GH_TOKEN"] == "ghs_secret"

    @pytest.mark.asyncio
    async def test_no_auth_inherits_environment(self, github):
        with patch("asyncio.create_subprocess_exec", return_value=_gh_result("")) as mock_exec:
            await github.list_org_repos("testorg")
        assert mock_exec.call_args.kwargs["env"] is None
