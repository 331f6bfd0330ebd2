"""
Feedback Tracker Service.

Keeps at most one active poll sequence per (session, question) pair and
ties answer submission to feedback polling: when the backend evaluates an
answer asynchronously the tracker starts polling for it, otherwise the
inline evaluation is delivered straight to the caller.
"""
from typing import Dict, Optional, Tuple

from feedback_client.models import FeedbackResult, PollRequest
from feedback_client.services.feedback_poller import FeedbackPoller, PollHandle, UpdateCallback
from feedback_client.services.interview_client import InterviewFeedbackClient
from feedback_client.utils.logger import get_logger

logger = get_logger(__name__)


class FeedbackTracker:
    """Registry of active poll handles keyed by (session_id, question_id)."""

    def __init__(self, client: InterviewFeedbackClient, poller: Optional[FeedbackPoller] = None):
        self.client = client
        self.poller = poller or FeedbackPoller(client)
        self._handles: Dict[Tuple[str, str], PollHandle] = {}

    @property
    def active_count(self) -> int:
        return len(self._handles)

    def active(self, session_id: str, question_id: str) -> Optional[PollHandle]:
        return self._handles.get((session_id, question_id))

    def track(self, request: PollRequest, on_update: UpdateCallback) -> PollHandle:
        """Start polling for ``request``, cancelling any older sequence for the same pair."""
        previous = self._handles.pop(request.key, None)
        if previous is not None and previous.cancel():
            logger.info(
                f"Replaced active poll for session {request.session_id}, "
                f"question {request.question_id}"
            )

        handle = self.poller.start(request, on_update)
        self._handles[request.key] = handle
        handle.add_done_callback(self._release)
        return handle

    async def submit_answer(
        self,
        session_id: str,
        question_id: str,
        answer: str,
        on_update: UpdateCallback,
    ) -> Optional[PollHandle]:
        """
        Submit an answer and start polling if its evaluation is pending.

        Returns the poll handle, or None when the backend answered with the
        evaluation inline (already delivered through ``on_update``).
        Submission errors propagate to the caller.
        """
        request = PollRequest(session_id=session_id, question_id=question_id)
        submission = await self.client.submit_answer(request.session_id, request.question_id, answer)

        if submission.evaluationPending:
            return self.track(request, on_update)

        if submission.evaluation is not None:
            self.cancel(request.session_id, request.question_id)
            on_update(FeedbackResult.ready(submission.evaluation))
            return None

        logger.warning(
            f"Answer for question {request.question_id} accepted without evaluation; polling for it"
        )
        return self.track(request, on_update)

    def cancel(self, session_id: str, question_id: str) -> bool:
        handle = self._handles.pop((session_id, question_id), None)
        if handle is None:
            return False
        return handle.cancel()

    def cancel_all(self) -> int:
        """Cancel every active sequence; returns how many were still running."""
        handles = list(self._handles.values())
        self._handles.clear()
        return sum(1 for handle in handles if handle.cancel())

    def _release(self, handle: PollHandle) -> None:
        key = handle.request.key
        if self._handles.get(key) is handle:
            del self._handles[key]
