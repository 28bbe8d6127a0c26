"""Domain services"""

from domain.services.line_reader import ILineReader
from domain.services.messaging_service import IMessagingEndpoint

__all__ = [
    "ILineReader",
    "IMessagingEndpoint",
]
