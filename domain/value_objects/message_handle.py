from dataclasses import dataclass


@dataclass(frozen=True)
class MessageHandle:
    """Value object identifying the single message being animated.

    Returned by the first successful post and shared read-only by every
    subsequent edit of the same run.
    """

    channel: str
    message_id: str

    def __post_init__(self):
        if not self.channel:
            raise ValueError("MessageHandle channel cannot be empty")
        if not self.message_id:
            raise ValueError("MessageHandle message_id cannot be empty")

    def __str__(self) -> str:
        return f"{self.channel}/{self.message_id}"
