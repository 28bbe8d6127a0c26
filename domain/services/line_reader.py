from abc import ABC, abstractmethod
from typing import Optional


class ILineReader(ABC):
    """Interface for a sequential, line-oriented input source"""

    @abstractmethod
    async def readline(self) -> Optional[str]:
        """Return the next line without its line ending, or None at end of data"""
        pass
