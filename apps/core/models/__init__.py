"""
Core abstract models package.
"""

from .base import (
    AppendOnlyModel,
    TimeStampedModel,
    UUIDModel,
)

__all__ = [
    'AppendOnlyModel',
    'TimeStampedModel',
    'UUIDModel',
]
