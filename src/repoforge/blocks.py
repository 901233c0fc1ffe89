"""Block Kit payloads for the request modal, the approval card and notifications."""

from __future__ import annotations

from repoforge.models import ModalContext, ProvisionResult, RepoRequest, RequestState
from repoforge.validation import DESCRIPTION_FIELD, NAME_FIELD, OWNER_FIELD

MODAL_CALLBACK_ID = "create_repo_modal"
APPROVE_ACTION_ID = "approve_repo"
DENY_ACTION_ID = "deny_repo"

# Button values carry the whole encoded request; Slack caps them at 2000 characters.
MAX_BUTTON_VALUE_LENGTH = 2000
MAX_DESCRIPTION_LENGTH = 1000


def _plain(text: str) -> dict:
    return {"type": "plain_text", "text": text}


def _mrkdwn_section(text: str) -> dict:
    return {"type": "section", "text": {"type": "mrkdwn", "text": text}}


def _input(block_id: str, label: str, placeholder: str, **element_opts) -> dict:
    return {
        "type": "input",
        "block_id": block_id,
        "element": {
            "type": "plain_text_input",
            "action_id": block_id,
            "placeholder": _plain(placeholder),
            **element_opts,
        },
        "label": _plain(label),
    }


def request_modal(context: ModalContext) -> dict:
    return {
        "type": "modal",
        "callback_id": MODAL_CALLBACK_ID,
        "private_metadata": context.encode(),
        "title": _plain("Create a new GitHub repo"),
        "submit": _plain("Submit"),
        "blocks": [
            _input(
                NAME_FIELD,
                "Repo Name",
                "Enter the name of your repo (no spaces, but dashes are ok!)",
            ),
            _input(
                DESCRIPTION_FIELD,
                "Repo Description",
                "Enter a description for your repo. Please be short and descriptive!",
                multiline=True,
                max_length=MAX_DESCRIPTION_LENGTH,
            ),
            _input(OWNER_FIELD, "Repo Owner", "Enter your GitHub username."),
        ],
    }


def submission_values(view: dict) -> dict[str, str | None]:
    """Pull the three text inputs out of a submitted modal's state."""
    values = view.get("state", {}).get("values", {})
    return {
        field_id: (values.get(field_id, {}).get(field_id) or {}).get("value")
        for field_id in (NAME_FIELD, DESCRIPTION_FIELD, OWNER_FIELD)
    }


def _request_sections(request: RepoRequest) -> list[dict]:
    return [
        _mrkdwn_section(f"A new repo has been requested by <@{request.requester_id}>! :tada:"),
        _mrkdwn_section(
            f"*Repo Name:* {request.name}\n"
            f"*Repo Description:* {request.display_description}\n"
            f"*Repo Owner:* {request.owner_url}"
        ),
    ]


def fits_button_value(request: RepoRequest) -> bool:
    return len(request.to_payload().encode()) <= MAX_BUTTON_VALUE_LENGTH


def approval_card(request: RepoRequest) -> list[dict]:
    payload = request.to_payload().encode()
    return [
        *_request_sections(request),
        {
            "type": "actions",
            "block_id": f"decision_{request.correlation_id}",
            "elements": [
                {
                    "type": "button",
                    "text": _plain("Approve"),
                    "style": "primary",
                    "value": payload,
                    "action_id": APPROVE_ACTION_ID,
                },
                {
                    "type": "button",
                    "text": _plain("Deny"),
                    "style": "danger",
                    "value": payload,
                    "action_id": DENY_ACTION_ID,
                },
            ],
        },
    ]


def decided_card(request: RepoRequest, status: str) -> list[dict]:
    """The approval card with its buttons replaced by a status line."""
    return [
        *_request_sections(request),
        {"type": "context", "elements": [{"type": "mrkdwn", "text": status}]},
    ]


def decision_status(request: RepoRequest, result: ProvisionResult | None = None) -> str:
    actor = f"<@{request.decided_by}>"
    if request.state == RequestState.DENIED:
        return f"This repo has been *denied* by {actor}."
    if result is None or result.ok:
        return f"This repo has been _approved_ by {actor}."
    if result.repo_created:
        return (
            f"This repo has been _approved_ by {actor}, but setup stopped at "
            f"`{result.failed_step}` and needs attention: {result.error}"
        )
    return (
        f"This repo was _approved_ by {actor}, but creation failed at "
        f"`{result.failed_step}`: {result.error}"
    )


def card_fallback_text(request: RepoRequest) -> str:
    if request.state == RequestState.DENIED:
        return "Repo Creation Request (Denied)"
    if request.state == RequestState.APPROVED:
        return "Repo Creation Request (Approved)"
    return f"Repo Creation Request: {request.name}"


def ready_message(request: RepoRequest, repo_url: str, creation_channel: str) -> list[dict]:
    return [
        _mrkdwn_section(
            f"Your repo is ready! :tada: You can find it at {repo_url}. Happy creating!"
        ),
        _mrkdwn_section(
            f"*Repo Name:* {request.name}\n"
            f"*Repo Description:* {request.display_description}\n"
            f"*Repo Owner:* {request.owner}"
        ),
        {
            "type": "context",
            "elements": [
                {
                    "type": "mrkdwn",
                    "text": (
                        "If you need to add more people to your repo, or have any other "
                        f"questions, please ask in the <#{creation_channel}> channel."
                    ),
                }
            ],
        },
    ]


def wrong_channel_text(creation_channel: str) -> str:
    return f"Sorry, you can only use this command in the <#{creation_channel}> channel."


def requested_text(request: RepoRequest) -> str:
    return (
        f"Your repo {request.name} has been requested. "
        "Please wait for an admin to approve it."
    )


def denied_text(request: RepoRequest) -> str:
    return (
        f"Your repo {request.name} has been denied. "
        "Please contact an admin for more information."
    )


def ready_text(repo_url: str) -> str:
    return f"Your repo is ready! :tada: You can find it at {repo_url}. Happy creating!"


def incomplete_text(request: RepoRequest, result: ProvisionResult) -> str:
    return (
        f"Your repo {request.name} was created at {result.repo_url}, but its setup "
        "did not finish. An admin has been notified and will complete it."
    )


def failed_text(request: RepoRequest) -> str:
    return (
        f"Your repo {request.name} was approved, but it could not be created. "
        "An admin has been notified."
    )


def announcement_text(request: RepoRequest, repo_url: str) -> str:
    return (
        f"The repo {request.name} has been created by <@{request.requester_id}>. "
        f"Go check it out at {repo_url}! :rocket:"
    )


def card_failed_text(request: RepoRequest) -> str:
    return (
        f"Sorry, your request for {request.name} could not be sent for approval. "
        "Please try again or contact an admin."
    )


def bad_payload_text() -> str:
    return "Sorry, this request card could not be read. Please ask the requester to resubmit."
