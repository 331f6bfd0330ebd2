# Models package for feedback polling

from .feedback_models import (
    PollRequest, Evaluation, FeedbackStatus, PollState, FeedbackResult,
    FeedbackResponse, AnswerSubmission, PENDING_MESSAGE, TIMEOUT_MESSAGE
)

__all__ = [
    "PollRequest", "Evaluation", "FeedbackStatus", "PollState", "FeedbackResult",
    "FeedbackResponse", "AnswerSubmission", "PENDING_MESSAGE", "TIMEOUT_MESSAGE"
]
