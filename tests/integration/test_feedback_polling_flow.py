"""
Integration tests for the feedback polling flow.

Runs the real InterviewFeedbackClient, FeedbackPoller and FeedbackTracker
against an in-process backend built on httpx.MockTransport.
"""
import pytest
import httpx
from unittest.mock import AsyncMock

from feedback_client.exceptions import BudgetExhaustedError, ResourceNotFoundError
from feedback_client.models import FeedbackStatus, PollRequest, PollState
from feedback_client.services.feedback_poller import FeedbackPoller
from feedback_client.services.feedback_tracker import FeedbackTracker
from feedback_client.services.interview_client import InterviewFeedbackClient

BASE_URL = "http://backend.test/api"


class FakeInterviewBackend:
    """Scripted stand-in for the interview routes."""

    def __init__(self, feedback_script=None, default=None):
        self.feedback_script = list(feedback_script or [])
        self.default = default or (202, {"status": "pending", "message": "Evaluation is still being processed"})
        self.feedback_calls = []
        self.answers = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        if path.endswith("/feedback") and request.method == "GET":
            self.feedback_calls.append(dict(request.url.params))
            status, body = self.feedback_script.pop(0) if self.feedback_script else self.default
            return httpx.Response(status, json=body)
        if path.endswith("/answer") and request.method == "POST":
            self.answers.append(request.content)
            return httpx.Response(201, json={"answerId": "a1", "evaluationPending": True})
        return httpx.Response(404, json={"error": "Not found"})


@pytest.fixture
def build():
    def _build(backend, max_attempts=60):
        http_client = httpx.AsyncClient(transport=httpx.MockTransport(backend.handler))
        client = InterviewFeedbackClient(base_url=BASE_URL, token="t0ken", http_client=http_client)
        sleep = AsyncMock(return_value=None)
        poller = FeedbackPoller(client, max_attempts=max_attempts, poll_interval=1.0, error_backoff=2.0, sleep=sleep)
        return client, poller, sleep

    return _build


class TestFeedbackPollingFlow:
    """End-to-end polling against a fake backend."""

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_pending_three_times_then_ready(self, build, updates):
        """Three pending responses then score 8: one Pending, one Ready, four calls."""
        backend = FakeInterviewBackend([
            (200, {"status": "pending"}),
            (202, {"status": "pending", "message": "Evaluation is still being processed"}),
            (200, {"status": "pending"}),
            (200, {"evaluation": {"score": 8, "feedback": "Solid STAR structure", "strengths": ["Clarity"]}}),
        ])
        client, poller, sleep = build(backend)

        handle = poller.start(PollRequest(session_id="s1", question_id="q1"), updates)
        result = await handle.wait()

        assert updates.statuses == [FeedbackStatus.PENDING, FeedbackStatus.READY]
        assert result.evaluation.score == 8
        assert result.evaluation.strengths == ["Clarity"]
        assert len(backend.feedback_calls) == 4
        assert backend.feedback_calls[0] == {"questionId": "q1"}
        assert [call.args[0] for call in sleep.await_args_list] == [1.0, 1.0, 1.0]

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_server_errors_exhaust_budget(self, build, updates):
        """5xx on every call: 60 calls, then Failed(timeout)."""
        backend = FakeInterviewBackend(default=(503, {"error": "Service unavailable"}))
        client, poller, sleep = build(backend)

        handle = poller.start(PollRequest(session_id="s1", question_id="q1"), updates)
        result = await handle.wait()

        assert len(backend.feedback_calls) == 60
        assert updates.statuses == [FeedbackStatus.FAILED]
        assert isinstance(result.error, BudgetExhaustedError)
        assert handle.state == PollState.FAILED
        assert set(call.args[0] for call in sleep.await_args_list) == {2.0}

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_missing_session_fails_fast(self, build, updates):
        """404 from the backend ends polling after one call."""
        backend = FakeInterviewBackend([(404, {"error": "Interview session not found"})])
        client, poller, sleep = build(backend)

        result = await poller.start(PollRequest(session_id="nope", question_id="q1"), updates).wait()

        assert len(backend.feedback_calls) == 1
        assert isinstance(result.error, ResourceNotFoundError)
        assert result.message == "Interview session not found"

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_submit_then_poll(self, build, updates):
        """Submitting an answer with async evaluation polls until ready."""
        backend = FakeInterviewBackend([
            (202, {"status": "pending"}),
            (200, {"evaluation": {"score": 7, "improvements": ["Quantify impact"]}}),
        ])
        client, poller, sleep = build(backend)
        tracker = FeedbackTracker(client, poller=poller)

        handle = await tracker.submit_answer("s1", "q1", "I reduced latency by 40%", updates)
        result = await handle.wait()

        assert len(backend.answers) == 1
        assert result.evaluation.improvements == ["Quantify impact"]
        assert updates.statuses == [FeedbackStatus.PENDING, FeedbackStatus.READY]


    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_evaluation_with_json_text_lists_is_ready_on_first_call(self, build, updates):
        """An evaluation whose lists arrive as JSON text ends polling at once."""
        backend = FakeInterviewBackend(default=(200, {
            "evaluation": {"score": "7.50", "strengths": "[\"Clear structure\"]", "improvements": "[]"}
        }))
        client, poller, sleep = build(backend)

        handle = poller.start(PollRequest(session_id="s1", question_id="q1"), updates)
        result = await handle.wait()

        assert len(backend.feedback_calls) == 1
        assert updates.statuses == [FeedbackStatus.READY]
        assert handle.state == PollState.READY
        assert result.evaluation.score == 7.5
        assert result.evaluation.strengths == ["Clear structure"]
        assert result.evaluation.improvements == []
        sleep.assert_not_awaited()
