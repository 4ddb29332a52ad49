"""
Models package.
"""
from studywithme.models.enums import QuestionType, Difficulty
from studywithme.models.snapshot import Snapshot

__all__ = [
    'QuestionType',
    'Difficulty',
    'Snapshot',
]
