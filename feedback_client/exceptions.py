"""
Custom exception hierarchy for the feedback client.
"""

from typing import Dict, Any, Optional

class FeedbackClientException(Exception):
    """Base exception for the feedback client."""
    def __init__(self, message: str, context: Dict[str, Any] = None):
        super().__init__(message)
        self.context = context or {}

class ConfigurationError(FeedbackClientException):
    """Raised when there are configuration issues."""
    pass

class InvalidRequestError(FeedbackClientException):
    """Raised when the backend rejects a request as malformed (HTTP 400)."""
    pass

class FeedbackError(FeedbackClientException):
    """Base exception for errors reported while fetching feedback."""
    kind = "error"

class TransientNetworkError(FeedbackError):
    """Raised for retryable failures: network errors, 5xx, unexpected responses."""
    kind = "transient"

    def __init__(self, message: str, status_code: Optional[int] = None, context: Dict[str, Any] = None):
        super().__init__(message, context)
        self.status_code = status_code
        if status_code is not None:
            self.context.setdefault("status_code", status_code)

class ResourceNotFoundError(FeedbackError):
    """Raised when the interview session or question does not exist (HTTP 404)."""
    kind = "not_found"

class BudgetExhaustedError(FeedbackError):
    """Reported when the retry budget runs out before the evaluation is ready."""
    kind = "timeout"

    def __init__(self, message: str, attempts: int, context: Dict[str, Any] = None):
        super().__init__(message, context)
        self.attempts = attempts
        self.context.setdefault("attempts", attempts)
