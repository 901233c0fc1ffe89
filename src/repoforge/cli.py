"""CLI entry points for repoforge."""

from __future__ import annotations

import asyncio

import click
import structlog

from repoforge.config import RepoforgeConfig

structlog.configure(
    processors=[
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.add_log_level,
        structlog.dev.ConsoleRenderer(),
    ],
)


def _get_config() -> RepoforgeConfig:
    return RepoforgeConfig()


@click.group()
def main() -> None:
    """Repoforge: request, approve and provision GitHub repos from Slack."""


@main.command()
def run() -> None:
    """Start the Slack listener."""
    from repoforge.slack_app import serve

    config = _get_config()
    if not config.slack_bot_token:
        raise click.UsageError("REPOFORGE_SLACK_BOT_TOKEN is not set")
    try:
        asyncio.run(serve(config))
    except KeyboardInterrupt:
        click.echo("Shutting down...")


@main.command()
@click.option("--yes", is_flag=True, help="Skip the confirmation prompt.")
def cleanup(yes: bool) -> None:
    """Delete all messages in the creation and approvals channels."""
    from slack_sdk.web.async_client import AsyncWebClient

    from repoforge.cleanup import clear_channels

    config = _get_config()
    channels = [config.creation_channel, config.approvals_channel]
    if not yes:
        click.confirm(f"Delete every message in {', '.join(channels)}?", abort=True)

    client = AsyncWebClient(token=config.slack_bot_token)
    counts = asyncio.run(clear_channels(client, channels))
    for channel, deleted in counts.items():
        click.echo(f"{channel}: deleted {deleted} message(s)")


@main.command()
@click.argument("name")
@click.option("--owner", default=None, help="GitHub username to validate as the repo owner.")
@click.option("--offline", is_flag=True, help="Only check the name format, not GitHub.")
def check(name: str, owner: str | None, offline: bool) -> None:
    """Check whether NAME would be accepted as a new repo name."""
    from repoforge.validation import is_valid_handle, is_valid_slug, normalize_handle

    ok = True
    if not is_valid_slug(name):
        click.echo(f"Invalid: {name!r} is not a valid repo name")
        ok = False
    else:
        click.echo(f"OK: {name!r} is a valid repo name")

    if owner is not None:
        handle = normalize_handle(owner)
        if is_valid_handle(handle):
            click.echo(f"OK: {handle!r} is a valid GitHub username")
        else:
            click.echo(f"Invalid: {handle!r} is not a valid GitHub username")
            ok = False

    if ok and not offline:
        from repoforge.slack_app import build_github

        config = _get_config()
        github = build_github(config)
        if asyncio.run(github.repo_exists(config.github_org, name)):
            click.echo(f"Taken: {config.github_org}/{name} already exists")
            ok = False
        else:
            click.echo(f"OK: {config.github_org}/{name} is available")

    if not ok:
        raise SystemExit(1)
