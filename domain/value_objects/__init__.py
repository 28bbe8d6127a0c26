"""Domain value objects"""

from domain.value_objects.message_handle import MessageHandle
from domain.value_objects.style_options import StyleOptions

__all__ = [
    "MessageHandle",
    "StyleOptions",
]
