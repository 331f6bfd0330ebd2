"""
Interview API Client

Async HTTP client for the interview endpoints of the evaluation backend:
fetching answer feedback, submitting answers and reading sessions.
Responses are mapped onto typed models; failures are raised as
FeedbackClientException subclasses so callers can decide what is retryable.
"""

from feedback_client.utils.logger import get_logger
from feedback_client.config import get_settings
from feedback_client.exceptions import (
    InvalidRequestError,
    ResourceNotFoundError,
    TransientNetworkError,
)
from feedback_client.models import AnswerSubmission, Evaluation, FeedbackResponse, FeedbackStatus
from typing import Dict, Any, Optional
import httpx

logger = get_logger(__name__)


class InterviewFeedbackClient:
    """HTTP client for the interview feedback endpoints."""

    def __init__(
        self,
        base_url: str = None,
        token: str = None,
        timeout: float = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        settings = get_settings()
        self.base_url = (base_url or settings.FEEDBACK_API_BASE_URL).rstrip("/")
        self.token = token if token is not None else settings.FEEDBACK_API_TOKEN
        self.timeout = timeout if timeout is not None else settings.FEEDBACK_HTTP_TIMEOUT

        headers = {"Content-Type": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"

        self.client = http_client or httpx.AsyncClient(timeout=self.timeout, headers=headers)
        self._owns_client = http_client is None

        logger.info(f"Interview client initialized: {self.base_url}")

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()

    async def aclose(self) -> None:
        """Close the underlying HTTP client if this instance created it."""
        if self._owns_client:
            await self.client.aclose()

    async def get_feedback(self, session_id: str, question_id: str) -> FeedbackResponse:
        """
        Fetch the evaluation for one answered question.

        Args:
            session_id: Interview session ID
            question_id: Question ID within the session

        Returns:
            FeedbackResponse with status READY (and the evaluation) or PENDING

        Raises:
            ResourceNotFoundError: the session or question does not exist
            TransientNetworkError: network failure or any other unexpected response
        """
        url = f"{self.base_url}/interviews/{session_id}/feedback"
        response = await self._request("GET", url, params={"questionId": question_id})

        if response.status_code == 202:
            body = self._safe_json(response)
            message = body.get("message") if isinstance(body, dict) else None
            return FeedbackResponse(
                status=FeedbackStatus.PENDING,
                message=message if isinstance(message, str) else None,
            )

        if response.status_code == 200:
            body = self._safe_json(response)
            if isinstance(body, dict):
                if isinstance(body.get("evaluation"), dict):
                    return FeedbackResponse(
                        status=FeedbackStatus.READY,
                        evaluation=Evaluation.from_payload(body["evaluation"]),
                    )
                if body.get("status") == "pending":
                    message = body.get("message")
                    return FeedbackResponse(
                        status=FeedbackStatus.PENDING,
                        message=message if isinstance(message, str) else None,
                    )
            raise TransientNetworkError(
                "Unexpected feedback response body",
                status_code=200,
                context={"session_id": session_id, "question_id": question_id},
            )

        self._raise_for_status(response, context={"session_id": session_id, "question_id": question_id})

    async def submit_answer(self, session_id: str, question_id: str, answer: str) -> AnswerSubmission:
        """
        Submit an answer for evaluation.

        The backend either evaluates inline and returns ``evaluation`` or
        reports ``evaluationPending`` and evaluates in the background.
        """
        url = f"{self.base_url}/interviews/{session_id}/answer"
        logger.info(f"Submitting answer for session {session_id}, question {question_id}")
        response = await self._request("POST", url, json={"questionId": question_id, "answer": answer})

        if 200 <= response.status_code < 300:
            body = self._safe_json(response)
            if not isinstance(body, dict):
                raise TransientNetworkError("Unexpected answer submission response", status_code=response.status_code)
            evaluation = body.get("evaluation")
            return AnswerSubmission(
                evaluationPending=bool(body.get("evaluationPending", False)),
                evaluation=Evaluation.from_payload(evaluation) if isinstance(evaluation, dict) else None,
                payload=body,
            )

        self._raise_for_status(response, context={"session_id": session_id, "question_id": question_id})

    async def get_interview(self, session_id: str) -> Dict[str, Any]:
        """Fetch an interview session with its questions."""
        url = f"{self.base_url}/interviews/{session_id}"
        response = await self._request("GET", url)

        if response.status_code == 200:
            body = self._safe_json(response)
            if isinstance(body, dict):
                return body
            raise TransientNetworkError("Unexpected interview response body", status_code=200)

        self._raise_for_status(response, context={"session_id": session_id})

    async def _request(self, method: str, url: str, **kwargs) -> httpx.Response:
        try:
            return await self.client.request(method, url, **kwargs)
        except httpx.RequestError as e:
            logger.warning(f"Failed to reach interview backend at {url}: {e}")
            raise TransientNetworkError(f"Interview backend unavailable: {e}") from e

    def _raise_for_status(self, response: httpx.Response, context: Dict[str, Any]) -> None:
        body = self._safe_json(response)
        detail = body.get("error") if isinstance(body, dict) else None
        if not isinstance(detail, str):
            detail = None
        status = response.status_code

        if status == 404:
            raise ResourceNotFoundError(detail or "Interview session or question not found", context=context)
        if status == 400:
            raise InvalidRequestError(detail or "Request rejected by interview backend", context=context)

        logger.error(f"Interview backend returned {status}")
        raise TransientNetworkError(
            detail or f"Interview backend returned {status}",
            status_code=status,
            context=context,
        )

    @staticmethod
    def _safe_json(response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError:
            return None
