# Client package for interview answer feedback

from .models import PollRequest, Evaluation, FeedbackResult, FeedbackStatus, PollState
from .services.feedback_poller import FeedbackPoller, PollHandle
from .services.feedback_tracker import FeedbackTracker
from .services.interview_client import InterviewFeedbackClient

__all__ = [
    "PollRequest", "Evaluation", "FeedbackResult", "FeedbackStatus", "PollState",
    "FeedbackPoller", "PollHandle", "FeedbackTracker", "InterviewFeedbackClient"
]
