"""Slack Bolt wiring and service startup."""

from __future__ import annotations

import asyncio

import structlog
from aiohttp import web
from slack_bolt.adapter.socket_mode.async_handler import AsyncSocketModeHandler
from slack_bolt.async_app import AsyncApp

from repoforge.auth import GitHubAppAuth, StaticToken
from repoforge.blocks import APPROVE_ACTION_ID, DENY_ACTION_ID, MODAL_CALLBACK_ID
from repoforge.config import RepoforgeConfig
from repoforge.github import GitHubClient
from repoforge.provisioner import Provisioner
from repoforge.registry import RepoRegistry
from repoforge.workflow import Workflow

log = structlog.get_logger()


def build_github(config: RepoforgeConfig) -> GitHubClient:
    if config.has_app_credentials:
        auth = GitHubAppAuth(
            config.github_app_id,
            config.github_private_key,
            config.github_installation_id,
            api_url=config.github_api_url,
        )
        return GitHubClient(auth)
    if config.github_token:
        return GitHubClient(StaticToken(config.github_token))
    # Fall back to whatever the gh CLI is already logged in as.
    return GitHubClient()


def register_handlers(app: AsyncApp, workflow: Workflow, config: RepoforgeConfig) -> None:
    @app.command(config.command)
    async def handle_command(ack, body, client):
        await ack()
        await workflow.open_request(body, client)

    @app.view(MODAL_CALLBACK_ID)
    async def handle_submission(ack, body, view, client):
        request, errors = workflow.check_submission(view, body["user"]["id"])
        if errors:
            await ack(response_action="errors", errors=errors)
            return
        await ack(response_action="clear")
        await workflow.post_request(request, client)

    @app.action(APPROVE_ACTION_ID)
    async def handle_approve(ack, body, client):
        await ack()
        await workflow.approve(body, client)

    @app.action(DENY_ACTION_ID)
    async def handle_deny(ack, body, client):
        await ack()
        await workflow.deny(body, client)


def create_app(config: RepoforgeConfig, workflow: Workflow) -> AsyncApp:
    app = AsyncApp(token=config.slack_bot_token, signing_secret=config.slack_signing_secret)
    register_handlers(app, workflow, config)
    return app


async def build_workflow(config: RepoforgeConfig) -> Workflow:
    github = build_github(config)
    registry = await RepoRegistry.load(github, config.github_org)
    provisioner = Provisioner(config, github, registry)
    return Workflow(config, registry, provisioner)


async def serve(config: RepoforgeConfig) -> None:
    """Run until cancelled: socket mode when an app token is set, HTTP otherwise."""
    workflow = await build_workflow(config)
    app = create_app(config, workflow)

    if config.slack_app_token:
        handler = AsyncSocketModeHandler(app, config.slack_app_token)
        log.info("service_started", mode="socket", command=config.command)
        await handler.start_async()
        return

    runner = web.AppRunner(app.web_app(port=config.port))
    await runner.setup()
    site = web.TCPSite(runner, port=config.port)
    await site.start()
    log.info("service_started", mode="http", port=config.port, command=config.command)
    try:
        await asyncio.Event().wait()
    finally:
        await runner.cleanup()
