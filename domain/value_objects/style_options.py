"""Sender styling overrides value object"""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class StyleOptions:
    """
    Optional overrides for how the animated message is presented.

    All fields are independently optional. When none is set the endpoint
    defaults are used.
    """

    display_name: Optional[str] = None  # overrides the sender name
    icon_emoji: Optional[str] = None  # overrides sender icon via emoji code, e.g. ":cat:"
    icon_url: Optional[str] = None  # overrides sender icon via image URL

    def is_default(self) -> bool:
        """True when no override is configured"""
        return not (self.display_name or self.icon_emoji or self.icon_url)
