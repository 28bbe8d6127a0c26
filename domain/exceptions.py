"""
Animation error taxonomy.

Failures that end a run (cancellation, frame limit, initial post) and
failures that are only reported (message edits) share one base class so
callers can catch everything raised by the core in one place.
"""

from typing import Optional


class AnimationError(Exception):
    """Base exception for animation errors"""
    pass


class OperationCancelled(AnimationError):
    """Raised when the run's cancellation token was cancelled"""

    def __init__(self, message: str = "operation cancelled"):
        super().__init__(message)


class DeadlineExceeded(OperationCancelled):
    """Raised when the run's cancellation token hit its deadline"""

    def __init__(self, message: str = "deadline exceeded"):
        super().__init__(message)


class MaxFramesExceeded(AnimationError):
    """Raised when looping input provides more lines than the frame limit"""

    def __init__(self, limit: int):
        self.limit = limit
        super().__init__(f"maximum number of frames exceeded ({limit})")


class MessagingError(AnimationError):
    """Raised by messaging endpoints when a post or edit fails"""
    pass


class SlackApiError(MessagingError):
    """Slack Web API answered with ok=false"""

    def __init__(self, method: str, error: str):
        self.method = method
        self.error = error
        super().__init__(f"{method} failed: {error}")


class InitialPostError(AnimationError):
    """The first frame could not be posted, so there is nothing to animate"""

    def __init__(self, destination: str, cause: Optional[BaseException] = None):
        self.destination = destination
        self.cause = cause
        super().__init__(f"could not post initial frame to {destination}: {cause}")
