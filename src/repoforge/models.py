"""Data models and enums for repoforge."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from enum import StrEnum

from pydantic import BaseModel, ValidationError


class RequestState(StrEnum):
    """Lifecycle of a repository request. DENIED and APPROVED are terminal."""

    DRAFT = "draft"
    PENDING_APPROVAL = "pending_approval"
    APPROVED = "approved"
    DENIED = "denied"


TERMINAL_STATES = {RequestState.APPROVED, RequestState.DENIED}

TRANSITIONS: dict[RequestState, set[RequestState]] = {
    RequestState.DRAFT: {RequestState.PENDING_APPROVAL},
    RequestState.PENDING_APPROVAL: {RequestState.APPROVED, RequestState.DENIED},
    RequestState.APPROVED: set(),
    RequestState.DENIED: set(),
}


class ProvisionStep(StrEnum):
    """Ordered side effects against the repository host."""

    RECHECK = "recheck"
    GENERATE = "generate"
    ADD_COLLABORATOR = "add_collaborator"
    UPDATE_SETTINGS = "update_settings"


class InvalidTransitionError(ValueError):
    """Raised when a request is moved to a state its current state does not allow."""


class PayloadError(ValueError):
    """Raised when a modal or approval card carries a missing or malformed payload."""


@dataclass(frozen=True)
class MessageRef:
    """Location of a posted chat message, used to update it in place."""

    channel: str
    ts: str


@dataclass
class RepoRequest:
    """A request for a new repository, driven through the approval workflow."""

    name: str
    description: str
    owner: str
    requester_id: str
    state: RequestState = RequestState.DRAFT
    correlation_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    approval_message: MessageRef | None = None
    decided_by: str | None = None

    @property
    def is_terminal(self) -> bool:
        return self.state in TERMINAL_STATES

    @property
    def display_description(self) -> str:
        return escape_newlines(self.description)

    @property
    def owner_url(self) -> str:
        return f"https://github.com/{self.owner}"

    def submit(self, approval_message: MessageRef | None = None) -> None:
        self._transition(RequestState.PENDING_APPROVAL)
        self.approval_message = approval_message

    def approve(self, actor: str) -> None:
        self._transition(RequestState.APPROVED)
        self.decided_by = actor

    def deny(self, actor: str) -> None:
        self._transition(RequestState.DENIED)
        self.decided_by = actor

    def _transition(self, target: RequestState) -> None:
        if target not in TRANSITIONS[self.state]:
            raise InvalidTransitionError(
                f"Cannot move request {self.name!r} from {self.state} to {target}"
            )
        self.state = target

    def to_payload(self) -> RequestPayload:
        return RequestPayload(
            name=self.name,
            description=self.description,
            owner=self.owner,
            requester_id=self.requester_id,
            correlation_id=self.correlation_id,
        )

    @classmethod
    def from_payload(
        cls,
        payload: RequestPayload,
        *,
        state: RequestState = RequestState.PENDING_APPROVAL,
        approval_message: MessageRef | None = None,
    ) -> RepoRequest:
        return cls(
            name=payload.name,
            description=payload.description,
            owner=payload.owner,
            requester_id=payload.requester_id,
            state=state,
            correlation_id=payload.correlation_id,
            approval_message=approval_message,
        )


class RequestPayload(BaseModel):
    """Structured copy of a pending request, carried on the approval card's buttons."""

    name: str
    description: str
    owner: str
    requester_id: str
    correlation_id: str

    def encode(self) -> str:
        return self.model_dump_json()

    @classmethod
    def decode(cls, raw: str | None) -> RequestPayload:
        if not raw:
            raise PayloadError("Approval card carries no request payload")
        try:
            return cls.model_validate_json(raw)
        except ValidationError as e:
            raise PayloadError(f"Malformed request payload: {e}") from e


class ModalContext(BaseModel):
    """Correlation data round-tripped through a modal's private metadata."""

    requester_id: str
    channel_id: str
    correlation_id: str

    def encode(self) -> str:
        return self.model_dump_json()

    @classmethod
    def decode(cls, raw: str | None) -> ModalContext:
        if not raw:
            raise PayloadError("Modal carries no private metadata")
        try:
            return cls.model_validate_json(raw)
        except ValidationError as e:
            raise PayloadError(f"Malformed modal metadata: {e}") from e


@dataclass
class ProvisionResult:
    repo_name: str
    repo_url: str | None = None
    completed: list[ProvisionStep] = field(default_factory=list)
    failed_step: ProvisionStep | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.failed_step is None

    @property
    def repo_created(self) -> bool:
        return ProvisionStep.GENERATE in self.completed


def escape_newlines(text: str) -> str:
    return text.strip().replace("\n", "\\n")
