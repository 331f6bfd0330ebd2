"""
Feedback Polling Models

Pydantic models for the evaluation payloads returned by the interview
backend, plus the result values delivered to poll subscribers.
"""
import json
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Dict, Any, Tuple
from pydantic import BaseModel, Field, ValidationError, validator

from feedback_client.exceptions import FeedbackError
from feedback_client.utils.logger import get_logger

logger = get_logger(__name__)

PENDING_MESSAGE = "Evaluating your answer... This usually takes 5-15 seconds."
TIMEOUT_MESSAGE = (
    "Feedback is taking longer than expected. The AI evaluation may still be processing. "
    "Please check back in a moment or refresh the page."
)

class PollRequest(BaseModel):
    """Identifies the evaluation a poll sequence is waiting for."""
    session_id: str = Field(..., min_length=1, description="Interview session ID")
    question_id: str = Field(..., min_length=1, description="Question ID within the session")

    @validator('session_id', 'question_id', pre=True)
    def validate_ids(cls, v):
        if v is None:
            raise ValueError('ID cannot be empty')
        v = str(v).strip()
        if not v:
            raise ValueError('ID cannot be empty')
        return v

    @property
    def key(self) -> Tuple[str, str]:
        return (self.session_id, self.question_id)

    class Config:
        frozen = True

class Evaluation(BaseModel):
    """Scored feedback for one answer. Unknown keys from the backend are kept."""
    score: Optional[float] = Field(default=None, description="Overall score")
    clarityScore: Optional[float] = None
    structureScore: Optional[float] = None
    relevanceScore: Optional[float] = None
    confidenceScore: Optional[float] = None
    feedback: Optional[str] = Field(default=None, description="Free-text feedback")
    strengths: List[Any] = Field(default_factory=list, description="Identified strengths")
    improvements: List[Any] = Field(default_factory=list, description="Suggested improvements")
    createdAt: Optional[str] = None

    @validator('strengths', 'improvements', pre=True)
    def decode_lists(cls, v):
        # The backend stores these columns as JSON text
        if v is None:
            return []
        if isinstance(v, str):
            if not v.strip():
                return []
            try:
                decoded = json.loads(v)
            except ValueError:
                return [v]
            if decoded is None:
                return []
            return decoded if isinstance(decoded, list) else [decoded]
        return v

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "Evaluation":
        """Build an Evaluation, keeping the raw payload if it does not validate."""
        try:
            return cls(**payload)
        except ValidationError as e:
            logger.warning(f"Evaluation payload did not validate, keeping raw fields: {e}")
            return cls.model_construct(**payload)

    class Config:
        extra = "allow"

class FeedbackStatus(str, Enum):
    READY = "ready"
    PENDING = "pending"
    FAILED = "failed"

class PollState(str, Enum):
    IDLE = "idle"
    POLLING = "polling"
    READY = "ready"
    FAILED = "failed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in (PollState.READY, PollState.FAILED, PollState.CANCELLED)

@dataclass(frozen=True)
class FeedbackResult:
    """Value delivered to poll subscribers on each state transition."""
    status: FeedbackStatus
    evaluation: Optional[Evaluation] = None
    error: Optional[FeedbackError] = None
    message: Optional[str] = None

    @classmethod
    def ready(cls, evaluation: Evaluation) -> "FeedbackResult":
        return cls(status=FeedbackStatus.READY, evaluation=evaluation)

    @classmethod
    def pending(cls, message: str = PENDING_MESSAGE) -> "FeedbackResult":
        return cls(status=FeedbackStatus.PENDING, message=message)

    @classmethod
    def failed(cls, error: FeedbackError) -> "FeedbackResult":
        return cls(status=FeedbackStatus.FAILED, error=error, message=str(error))

    @property
    def is_terminal(self) -> bool:
        return self.status != FeedbackStatus.PENDING

# Client-level response models
class FeedbackResponse(BaseModel):
    """One parsed response from the feedback endpoint."""
    status: FeedbackStatus
    evaluation: Optional[Evaluation] = None
    message: Optional[str] = None

    @property
    def is_ready(self) -> bool:
        return self.status == FeedbackStatus.READY

class AnswerSubmission(BaseModel):
    """Parsed response from submitting an answer."""
    evaluationPending: bool = False
    evaluation: Optional[Evaluation] = None
    payload: Dict[str, Any] = Field(default_factory=dict, description="Raw response body")
