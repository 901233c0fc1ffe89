"""GitHub App installation tokens for the gh CLI."""

from __future__ import annotations

import time
from datetime import datetime

import httpx
import jwt
import structlog

log = structlog.get_logger()

# GitHub rejects app JWTs living longer than ten minutes.
JWT_TTL_S = 540
CLOCK_DRIFT_S = 60
REFRESH_MARGIN_S = 300


class GitHubAuthError(RuntimeError):
    """Raised when an installation token cannot be obtained."""


class StaticToken:
    """Token provider for a personal or pre-minted token."""

    def __init__(self, token: str):
        self._token = token

    async def token(self) -> str:
        return self._token


class GitHubAppAuth:
    """Mints and caches installation tokens for a GitHub App."""

    def __init__(
        self,
        app_id: str,
        private_key: str,
        installation_id: str,
        *,
        api_url: str = "https://api.github.com",
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.app_id = app_id
        # Keys passed through env vars often arrive with escaped newlines.
        self.private_key = private_key.replace("\\n", "\n")
        self.installation_id = installation_id
        self.api_url = api_url.rstrip("/")
        self._transport = transport
        self._token: str | None = None
        self._expires_at: float = 0.0

    def app_jwt(self, now: float | None = None) -> str:
        issued = int(now if now is not None else time.time()) - CLOCK_DRIFT_S
        claims = {"iat": issued, "exp": issued + JWT_TTL_S, "iss": self.app_id}
        return jwt.encode(claims, self.private_key, algorithm="RS256")

    async def token(self) -> str:
        if self._token and time.time() < self._expires_at - REFRESH_MARGIN_S:
            return self._token

        url = f"{self.api_url}/app/installations/{self.installation_id}/access_tokens"
        headers = {
            "Authorization": f"Bearer {self.app_jwt()}",
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        }
        async with httpx.AsyncClient(transport=self._transport, timeout=30.0) as client:
            try:
                response = await client.post(url, headers=headers)
            except httpx.HTTPError as e:
                raise GitHubAuthError(f"Installation token request failed: {e}") from e

        if response.status_code != 201:
            raise GitHubAuthError(
                f"Installation token request returned {response.status_code}: {response.text}"
            )

        data = response.json()
        self._token = data["token"]
        self._expires_at = _parse_expiry(data.get("expires_at", ""))
        log.info("installation_token_minted", installation=self.installation_id)
        return self._token


def _parse_expiry(value: str) -> float:
    """Parse GitHub's ISO-8601 ``expires_at``; default to one hour from now."""
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00")).timestamp()
    except ValueError:
        return time.time() + 3600
