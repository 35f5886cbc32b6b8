from .base import TimestampModel

__all__ = [
    "TimestampModel",
]
