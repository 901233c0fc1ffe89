"""Configuration via Pydantic settings."""

from __future__ import annotations

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class RepoforgeConfig(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="REPOFORGE_", env_file=".env", extra="ignore")

    # Slack
    slack_bot_token: str = ""
    slack_signing_secret: str = ""
    slack_app_token: str = ""
    port: int = 3000
    command: str = "/repo-create"

    # Channels
    creation_channel: str = "C0643HAAE87"
    approvals_channel: str = "C064QCFNNBE"

    # GitHub
    github_org: str = "hacksnowbound"
    github_template_owner: str = ""
    github_template_repo: str = "project-template"
    github_team_id: int = 8886814
    github_collaborator_permission: str = "write"
    github_private: bool = False
    github_api_url: str = "https://api.github.com"

    # GitHub auth: app credentials win over a static token
    github_app_id: str = ""
    github_private_key: str = ""
    github_installation_id: str = ""
    github_token: str = ""

    # Provisioning
    repo_settings_file: Path | None = None
    recheck_before_create: bool = True

    @property
    def template_owner(self) -> str:
        return self.github_template_owner or self.github_org

    @property
    def has_app_credentials(self) -> bool:
        return bool(self.github_app_id and self.github_private_key and self.github_installation_id)
