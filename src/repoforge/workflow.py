"""Approval workflow: command -> modal -> approval card -> approve or deny."""

from __future__ import annotations

import uuid
from typing import Any

import structlog
from slack_sdk.errors import SlackApiError
from slack_sdk.web.async_client import AsyncWebClient

from repoforge import blocks
from repoforge.config import RepoforgeConfig
from repoforge.models import (
    MessageRef,
    ModalContext,
    PayloadError,
    ProvisionResult,
    RepoRequest,
    RequestPayload,
)
from repoforge.provisioner import Provisioner
from repoforge.registry import RepoRegistry
from repoforge.validation import (
    DESCRIPTION_FIELD,
    DESCRIPTION_TOO_LONG_MSG,
    normalize_handle,
    validate_submission,
)

log = structlog.get_logger()


class Workflow:
    def __init__(
        self,
        config: RepoforgeConfig,
        registry: RepoRegistry,
        provisioner: Provisioner,
    ):
        self.config = config
        self.registry = registry
        self.provisioner = provisioner
        self._in_flight: set[str] = set()

    # -- Draft --

    async def open_request(self, body: dict, client: AsyncWebClient) -> bool:
        """Handle the creation command. Returns True when the form was opened."""
        channel_id = body.get("channel_id", "")
        user_id = body.get("user_id", "")

        if channel_id != self.config.creation_channel:
            log.info("command_wrong_channel", channel=channel_id, user=user_id)
            await self._attempt(
                "wrong_channel_notice_failed",
                client.chat_postEphemeral(
                    channel=channel_id,
                    user=user_id,
                    text=blocks.wrong_channel_text(self.config.creation_channel),
                ),
            )
            return False

        context = ModalContext(
            requester_id=user_id,
            channel_id=channel_id,
            correlation_id=uuid.uuid4().hex,
        )
        opened = await self._attempt(
            "modal_open_failed",
            client.views_open(trigger_id=body["trigger_id"], view=blocks.request_modal(context)),
        )
        if opened is None:
            return False
        log.info("request_form_opened", user=user_id, correlation=context.correlation_id)
        return True

    # -- Draft -> PendingApproval --

    def check_submission(
        self, view: dict, user_id: str
    ) -> tuple[RepoRequest | None, dict[str, str]]:
        """Validate a submitted form. Returns the draft request or field errors."""
        values = blocks.submission_values(view)
        name = values["repo_name"]
        description = values["repo_description"]
        owner = normalize_handle(values["repo_owner"] or "")

        errors = validate_submission(name, description, owner, self.registry)
        if errors:
            log.info("submission_rejected", user=user_id, name=name, fields=sorted(errors))
            return None, errors

        try:
            context = ModalContext.decode(view.get("private_metadata"))
            requester_id, correlation_id = context.requester_id, context.correlation_id
        except PayloadError:
            log.warning("modal_metadata_missing", user=user_id)
            requester_id, correlation_id = user_id, uuid.uuid4().hex

        request = RepoRequest(
            name=name,
            description=description.strip(),
            owner=owner,
            requester_id=requester_id,
            correlation_id=correlation_id,
        )
        if not blocks.fits_button_value(request):
            log.info("submission_rejected", user=user_id, name=name, fields=[DESCRIPTION_FIELD])
            return None, {DESCRIPTION_FIELD: DESCRIPTION_TOO_LONG_MSG}
        return request, {}

    async def post_request(self, request: RepoRequest, client: AsyncWebClient) -> bool:
        """Post the approval card and confirm to the requester."""
        response = await self._attempt(
            "approval_card_failed",
            client.chat_postMessage(
                channel=self.config.approvals_channel,
                text=blocks.card_fallback_text(request),
                blocks=blocks.approval_card(request),
            ),
        )
        if response is None:
            await self._attempt(
                "card_failure_notice_failed",
                client.chat_postEphemeral(
                    channel=self.config.creation_channel,
                    user=request.requester_id,
                    text=blocks.card_failed_text(request),
                ),
            )
            return False

        request.submit(MessageRef(channel=response["channel"], ts=response["ts"]))
        log.info(
            "request_pending",
            name=request.name,
            requester=request.requester_id,
            correlation=request.correlation_id,
        )

        await self._attempt(
            "request_confirmation_failed",
            client.chat_postEphemeral(
                channel=self.config.creation_channel,
                user=request.requester_id,
                text=blocks.requested_text(request),
            ),
        )
        return True

    # -- PendingApproval -> Approved | Denied --

    async def approve(self, body: dict, client: AsyncWebClient) -> ProvisionResult | None:
        request = await self._load_request(body, client)
        if request is None:
            return None

        self._in_flight.add(request.correlation_id)
        try:
            request.approve(body["user"]["id"])
            log.info("request_approved", name=request.name, reviewer=request.decided_by)
            result = await self.provisioner.provision(request)
            await self._notify_approved(request, result, client)
            return result
        finally:
            self._in_flight.discard(request.correlation_id)

    async def deny(self, body: dict, client: AsyncWebClient) -> RepoRequest | None:
        request = await self._load_request(body, client)
        if request is None:
            return None

        self._in_flight.add(request.correlation_id)
        try:
            request.deny(body["user"]["id"])
            log.info("request_denied", name=request.name, reviewer=request.decided_by)

            await self._direct_message(client, request.requester_id, blocks.denied_text(request))
            await self._update_card(client, request, blocks.decision_status(request))
            return request
        finally:
            self._in_flight.discard(request.correlation_id)

    # -- Internal --

    async def _load_request(self, body: dict, client: AsyncWebClient) -> RepoRequest | None:
        """Rebuild a pending request from the payload on the pressed button."""
        actions = body.get("actions") or [{}]
        reviewer = body.get("user", {}).get("id", "")
        channel = (body.get("channel") or {}).get("id") or self.config.approvals_channel
        ts = (body.get("message") or {}).get("ts", "")

        try:
            payload = RequestPayload.decode(actions[0].get("value"))
        except PayloadError:
            log.exception("approval_payload_invalid", reviewer=reviewer, ts=ts)
            await self._attempt(
                "payload_notice_failed",
                client.chat_postEphemeral(
                    channel=channel, user=reviewer, text=blocks.bad_payload_text()
                ),
            )
            return None

        if payload.correlation_id in self._in_flight:
            log.info("decision_in_flight", name=payload.name, reviewer=reviewer)
            return None

        return RepoRequest.from_payload(payload, approval_message=MessageRef(channel, ts))

    async def _notify_approved(
        self, request: RepoRequest, result: ProvisionResult, client: AsyncWebClient
    ) -> None:
        if result.ok:
            await self._direct_message(
                client,
                request.requester_id,
                blocks.ready_text(result.repo_url),
                blocks.ready_message(request, result.repo_url, self.config.creation_channel),
            )
        elif result.repo_created:
            await self._direct_message(
                client, request.requester_id, blocks.incomplete_text(request, result)
            )
        else:
            await self._direct_message(client, request.requester_id, blocks.failed_text(request))

        await self._update_card(client, request, blocks.decision_status(request, result))

        if result.ok:
            await self._attempt(
                "announcement_failed",
                client.chat_postMessage(
                    channel=self.config.creation_channel,
                    text=blocks.announcement_text(request, result.repo_url),
                ),
            )

    async def _direct_message(
        self,
        client: AsyncWebClient,
        user_id: str,
        text: str,
        message_blocks: list[dict] | None = None,
    ) -> None:
        conv = await self._attempt("dm_open_failed", client.conversations_open(users=user_id))
        if conv is None:
            return
        kwargs: dict[str, Any] = {"channel": conv["channel"]["id"], "text": text}
        if message_blocks:
            kwargs["blocks"] = message_blocks
        await self._attempt("dm_failed", client.chat_postMessage(**kwargs))

    async def _update_card(self, client: AsyncWebClient, request: RepoRequest, status: str) -> None:
        ref = request.approval_message
        if ref is None or not ref.ts:
            log.warning("approval_card_unknown", name=request.name)
            return
        await self._attempt(
            "approval_card_update_failed",
            client.chat_update(
                channel=ref.channel,
                ts=ref.ts,
                text=blocks.card_fallback_text(request),
                blocks=blocks.decided_card(request, status),
            ),
        )

    async def _attempt(self, event: str, call) -> Any:
        """Await a Slack call; log and return None when it fails."""
        try:
            return await call
        except SlackApiError as e:
            log.exception(event, error=e.response.get("error") if e.response else str(e))
            return None
