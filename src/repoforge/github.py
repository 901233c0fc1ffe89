"""GitHub integration via gh CLI."""

from __future__ import annotations

import asyncio
import json
import os
from typing import Any, Protocol

import structlog

log = structlog.get_logger()

API_VERSION_HEADER = "X-GitHub-Api-Version: 2022-11-28"


class TokenProvider(Protocol):
    async def token(self) -> str: ...


class GitHubError(RuntimeError):
    """A mutating gh call failed."""

    def __init__(self, message: str, stderr: str = ""):
        super().__init__(message)
        self.stderr = stderr


class GitHubClient:
    def __init__(self, auth: TokenProvider | None = None):
        self.auth = auth

    # -- Repository listing --

    async def list_org_repos(self, org: str) -> list[str]:
        """Names of every repository in the org."""
        stdout = await self._gh(
            "api",
            f"orgs/{org}/repos",
            "--paginate",
            "--jq",
            ".[].name",
        )
        if not stdout:
            return []
        return [line.strip() for line in stdout.splitlines() if line.strip()]

    async def repo_exists(self, owner: str, repo: str) -> bool:
        stdout = await self._gh(
            "api",
            f"repos/{owner}/{repo}",
            "--jq",
            ".name",
        )
        return bool(stdout.strip())

    # -- Provisioning --

    async def generate_from_template(
        self,
        template_owner: str,
        template_repo: str,
        owner: str,
        name: str,
        description: str,
        *,
        private: bool = False,
    ) -> dict:
        body = {
            "owner": owner,
            "name": name,
            "description": description,
            "private": private,
        }
        stdout = await self._gh_json(
            "POST",
            f"repos/{template_owner}/{template_repo}/generate",
            body,
        )
        data = json.loads(stdout) if stdout else {}
        log.info("repo_generated", owner=owner, repo=name, url=data.get("html_url"))
        return data

    async def add_collaborator(
        self, owner: str, repo: str, username: str, permission: str = "write"
    ) -> None:
        await self._gh_json(
            "PUT",
            f"repos/{owner}/{repo}/collaborators/{username}",
            {"permission": permission},
        )
        log.info("collaborator_added", repo=f"{owner}/{repo}", user=username, permission=permission)

    async def update_repo(self, owner: str, repo: str, settings: dict[str, Any]) -> dict:
        stdout = await self._gh_json("PATCH", f"repos/{owner}/{repo}", settings)
        log.info("repo_settings_updated", repo=f"{owner}/{repo}", keys=sorted(settings))
        return json.loads(stdout) if stdout else {}

    # -- Internal --

    async def _env(self) -> dict[str, str] | None:
        if self.auth is None:
            return None
        env = dict(os.environ)
        env["GH_TOKEN"] = await self.auth.token()
        return env

    async def _gh(self, *args: str) -> str:
        proc = await asyncio.create_subprocess_exec(
            "gh",
            *args,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            env=await self._env(),
        )
        stdout, stderr = await proc.communicate()
        if proc.returncode != 0:
            log.warning("gh_error", args=args, stderr=stderr.decode())
            return ""
        return stdout.decode()

    async def _gh_json(self, method: str, path: str, body: dict[str, Any]) -> str:
        """Send a JSON body through ``gh api``. Raises GitHubError on failure."""
        proc = await asyncio.create_subprocess_exec(
            "gh",
            "api",
            path,
            "--method",
            method,
            "-H",
            "Accept: application/vnd.github+json",
            "-H",
            API_VERSION_HEADER,
            "--input",
            "-",
            stdin=asyncio.subprocess.PIPE,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            env=await self._env(),
        )
        stdout, stderr = await proc.communicate(json.dumps(body).encode())
        if proc.returncode != 0:
            raise GitHubError(
                f"gh api {method} {path} failed: {stderr.decode().strip()}",
                stderr=stderr.decode(),
            )
        return stdout.decode()
