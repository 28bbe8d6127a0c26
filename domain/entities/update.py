from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class UpdateOutcome:
    """Result of a single frame update, handed to the update observer"""

    destination: str  # channel the animated message lives in
    message_id: str
    frame: str  # text sent as message payload
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.error is None
