from __future__ import annotations

import pytest

from repoforge.models import (
    InvalidTransitionError,
    MessageRef,
    ModalContext,
    PayloadError,
    ProvisionResult,
    ProvisionStep,
    RepoRequest,
    RequestPayload,
    RequestState,
    escape_newlines,
)


def _draft() -> RepoRequest:
    return RepoRequest(name="hack-tools", description="Useful", owner="octocat", requester_id="U1")


class TestRepoRequestTransitions:
    def test_starts_in_draft(self):
        request = _draft()
        assert request.state == RequestState.DRAFT
        assert not request.is_terminal

    def test_submit_then_approve(self):
        request = _draft()
        request.submit(MessageRef("C1", "123.456"))
        assert request.state == RequestState.PENDING_APPROVAL
        assert request.approval_message == MessageRef("C1", "123.456")

        request.approve("U_REVIEWER")
        assert request.state == RequestState.APPROVED
        assert request.decided_by == "U_REVIEWER"
        assert request.is_terminal

    def test_submit_then_deny(self):
        request = _draft()
        request.submit()
        request.deny("U_REVIEWER")
        assert request.state == RequestState.DENIED
        assert request.is_terminal

    def test_cannot_approve_draft(self):
        with pytest.raises(InvalidTransitionError):
            _draft().approve("U_REVIEWER")

    def test_cannot_submit_twice(self):
        request = _draft()
        request.submit()
        with pytest.raises(InvalidTransitionError):
            request.submit()

    @pytest.mark.parametrize("decide", ["approve", "deny"])
    def test_terminal_states_are_final(self, decide):
        request = _draft()
        request.submit()
        request.deny("U1")
        with pytest.raises(InvalidTransitionError):
            getattr(request, decide)("U2")

    def test_correlation_ids_are_unique(self):
        assert _draft().correlation_id != _draft().correlation_id


class TestRepoRequestDisplay:
    def test_description_newlines_escaped(self):
        request = _draft()
        request.description = "line one\nline two\n"
        assert request.display_description == "line one\\nline two"

    def test_owner_url(self):
        assert _draft().owner_url == "https://github.com/octocat"

    def test_escape_newlines(self):
        assert escape_newlines(" a\nb ") == "a\\nb"


class TestRequestPayload:
    def test_rebuilds_pending_request(self):
        request = _draft()
        raw = request.to_payload().encode()

        rebuilt = RepoRequest.from_payload(
            RequestPayload.decode(raw), approval_message=MessageRef("C1", "1.2")
        )

        assert rebuilt.name == "hack-tools"
        assert rebuilt.owner == "octocat"
        assert rebuilt.requester_id == "U1"
        assert rebuilt.correlation_id == request.correlation_id
        assert rebuilt.state == RequestState.PENDING_APPROVAL

    def test_description_with_delimiters_survives(self):
        request = _draft()
        request.description = "uses *bold* and a/b paths"
        rebuilt = RequestPayload.decode(request.to_payload().encode())
        assert rebuilt.description == "uses *bold* and a/b paths"

    @pytest.mark.parametrize("raw", [None, "", "approve", '{"name": "x"}'])
    def test_rejects_bad_payloads(self, raw):
        with pytest.raises(PayloadError):
            RequestPayload.decode(raw)


class TestModalContext:
    def test_decode(self):
        ctx = ModalContext(requester_id="U1", channel_id="C1", correlation_id="abc")
        assert ModalContext.decode(ctx.encode()) == ctx

    @pytest.mark.parametrize("raw", [None, "", "not json", "{}"])
    def test_rejects_bad_metadata(self, raw):
        with pytest.raises(PayloadError):
            ModalContext.decode(raw)


class TestProvisionResult:
    def test_ok_when_no_failure(self):
        result = ProvisionResult(repo_name="r", completed=[ProvisionStep.GENERATE])
        assert result.ok
        assert result.repo_created

    def test_failed_before_generate(self):
        result = ProvisionResult(repo_name="r", failed_step=ProvisionStep.GENERATE, error="boom")
        assert not result.ok
        assert not result.repo_created
