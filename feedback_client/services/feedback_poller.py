"""
Feedback Poller Service.

Polls the interview backend for the evaluation of a submitted answer until
the evaluation is ready, the retry budget is spent, or the caller cancels.
Each call to ``FeedbackPoller.start`` creates an independent ``PollSession``
driven by a single asyncio task; the caller controls it through the
returned ``PollHandle``.
"""
import asyncio
from typing import Awaitable, Callable, Optional

from feedback_client.config import get_settings, validate_poll_config
from feedback_client.exceptions import (
    BudgetExhaustedError,
    FeedbackError,
    ResourceNotFoundError,
    TransientNetworkError,
)
from feedback_client.models import (
    FeedbackResult,
    PollRequest,
    PollState,
    TIMEOUT_MESSAGE,
)
from feedback_client.utils.logger import get_logger

logger = get_logger(__name__)

UpdateCallback = Callable[[FeedbackResult], None]
SleepFunc = Callable[[float], Awaitable[None]]


class PollSession:
    """State of one poll sequence for a single (session, question) pair."""

    def __init__(
        self,
        request: PollRequest,
        client,
        on_update: UpdateCallback,
        max_attempts: int,
        poll_interval: float,
        error_backoff: float,
        sleep: SleepFunc,
    ):
        self.request = request
        self.client = client
        self.on_update = on_update
        self.max_attempts = max_attempts
        self.poll_interval = poll_interval
        self.error_backoff = error_backoff
        self._sleep = sleep

        self.state = PollState.IDLE
        self.attempts = 0
        self.pending_notified = False
        self.result: Optional[FeedbackResult] = None
        self.last_error: Optional[Exception] = None

    async def run(self) -> Optional[FeedbackResult]:
        """Drive the sequence to a terminal state and return the terminal result."""
        if self.state.is_terminal:
            return self.result

        self.state = PollState.POLLING
        logger.info(
            f"Polling feedback for session {self.request.session_id}, "
            f"question {self.request.question_id}"
        )

        try:
            while self.attempts < self.max_attempts:
                delay = await self._attempt()
                if self.state.is_terminal:
                    return self.result
                if self.attempts >= self.max_attempts:
                    break
                await self._sleep(delay)
                if self.state.is_terminal:
                    return self.result

            self._finish(
                PollState.FAILED,
                FeedbackResult.failed(BudgetExhaustedError(TIMEOUT_MESSAGE, attempts=self.attempts)),
            )
            logger.warning(
                f"Feedback for question {self.request.question_id} not ready "
                f"after {self.attempts} attempts"
            )
            return self.result
        except asyncio.CancelledError:
            if not self.state.is_terminal:
                self.state = PollState.CANCELLED
            logger.info(f"Polling cancelled for question {self.request.question_id}")
            raise

    def cancel(self) -> bool:
        """Mark the session cancelled. Returns False if it already finished."""
        if self.state.is_terminal:
            return False
        self.state = PollState.CANCELLED
        return True

    async def _attempt(self) -> float:
        """Perform one network round-trip and return the delay before the next one."""
        self.attempts += 1
        try:
            response = await self.client.get_feedback(
                self.request.session_id, self.request.question_id
            )
        except ResourceNotFoundError as e:
            logger.warning(f"Feedback resource not found for question {self.request.question_id}: {e}")
            self.last_error = e
            self._finish(PollState.FAILED, FeedbackResult.failed(e))
            return 0.0
        except Exception as e:
            # Anything else is retryable under the shared budget
            error = e if isinstance(e, FeedbackError) else TransientNetworkError(str(e) or type(e).__name__)
            self.last_error = error
            logger.warning(
                f"Failed to get feedback (attempt {self.attempts}/{self.max_attempts}): {error}"
            )
            return self.error_backoff

        if self.state.is_terminal:
            return 0.0

        if response.is_ready:
            logger.info(f"Feedback received for question {self.request.question_id}")
            self._finish(PollState.READY, FeedbackResult.ready(response.evaluation))
            return 0.0

        if not self.pending_notified:
            self.pending_notified = True
            if response.message:
                self._notify(FeedbackResult.pending(response.message))
            else:
                self._notify(FeedbackResult.pending())
        return self.poll_interval

    def _finish(self, state: PollState, result: FeedbackResult) -> None:
        if self.state.is_terminal:
            return
        self.state = state
        self.result = result
        self._notify(result, terminal=True)

    def _notify(self, result: FeedbackResult, terminal: bool = False) -> None:
        if self.state == PollState.CANCELLED:
            return
        if not terminal and self.state.is_terminal:
            return
        try:
            self.on_update(result)
        except Exception:
            logger.exception(f"Feedback update callback failed for question {self.request.question_id}")


class PollHandle:
    """Caller-side control for a running poll sequence."""

    def __init__(self, session: PollSession, task: "asyncio.Task"):
        self._session = session
        self._task = task

    @property
    def request(self) -> PollRequest:
        return self._session.request

    @property
    def state(self) -> PollState:
        return self._session.state

    @property
    def attempts(self) -> int:
        return self._session.attempts

    @property
    def result(self) -> Optional[FeedbackResult]:
        return self._session.result

    @property
    def last_error(self) -> Optional[Exception]:
        """Most recent error seen by the sequence, retried or terminal."""
        return self._session.last_error

    @property
    def done(self) -> bool:
        return self._session.state.is_terminal

    def cancel(self) -> bool:
        """Stop all future attempts. No update is delivered after this returns True."""
        if not self._session.cancel():
            return False
        self._task.cancel()
        return True

    async def wait(self) -> Optional[FeedbackResult]:
        """Wait for the terminal result; None if the sequence was cancelled."""
        try:
            return await asyncio.shield(self._task)
        except asyncio.CancelledError:
            if self._task.cancelled():
                return None
            raise

    def add_done_callback(self, fn: Callable[["PollHandle"], None]) -> None:
        self._task.add_done_callback(lambda _task: fn(self))


class FeedbackPoller:
    """Starts bounded-retry poll sequences against the feedback endpoint."""

    def __init__(
        self,
        client,
        max_attempts: int = None,
        poll_interval: float = None,
        error_backoff: float = None,
        sleep: SleepFunc = None,
    ):
        settings = get_settings()
        settings.validate()

        config = settings.poll_config
        overrides = {"max_attempts": max_attempts, "poll_interval": poll_interval, "error_backoff": error_backoff}
        config.update({key: value for key, value in overrides.items() if value is not None})
        validate_poll_config(**config)

        self.client = client
        self.max_attempts = config["max_attempts"]
        self.poll_interval = config["poll_interval"]
        self.error_backoff = config["error_backoff"]
        self.sleep = sleep or asyncio.sleep

    def start(self, request: PollRequest, on_update: UpdateCallback) -> PollHandle:
        """
        Start polling for ``request`` and return a handle to control it.

        Must be called with a running event loop. The first attempt runs as
        soon as the loop regains control.
        """
        session = PollSession(
            request=request,
            client=self.client,
            on_update=on_update,
            max_attempts=self.max_attempts,
            poll_interval=self.poll_interval,
            error_backoff=self.error_backoff,
            sleep=self.sleep,
        )
        task = asyncio.get_running_loop().create_task(session.run())
        return PollHandle(session, task)
