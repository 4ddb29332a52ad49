"""
Flashcard and deck schemas.
"""
from pydantic import BaseModel, Field, StrictInt
from typing import List, Optional


class Flashcard(BaseModel):
    """A single learnable fact together with its SM-2 scheduling state."""
    id: str
    front: str
    back: str
    topic: str
    created_at: int  # epoch ms
    next_review_at: int  # epoch ms, card is due once this has passed
    interval: int = 1  # days
    ease_factor: float = 2.5
    repetitions: int = 0  # consecutive passes since the last failure
    last_reviewed_at: Optional[int] = None


class FlashcardDeck(BaseModel):
    """Named, colored container that exclusively owns its cards."""
    id: str
    name: str
    description: Optional[str] = None
    color: str
    cards: List[Flashcard] = Field(default_factory=list)
    created_at: int


class CreateDeckRequest(BaseModel):
    """Request schema for creating a deck."""
    name: str
    description: Optional[str] = None
    color: Optional[str] = None


class CreateCardRequest(BaseModel):
    """Request schema for adding a card to a deck."""
    front: str
    back: str
    topic: Optional[str] = None


class ReviewCardRequest(BaseModel):
    """Request schema for reviewing a card."""
    quality: StrictInt = Field(..., description="Recall quality from 0 (total failure) to 5 (perfect recall)")

    class Config:
        json_schema_extra = {
            "example": {
                "quality": 4
            }
        }


class GenerateDeckRequest(BaseModel):
    """Request schema for turning a tutoring reply into a deck."""
    topic: str = Field(..., description="Deck name and card topic")
    content: str = Field(..., description="Chat content; **bold** terms become card fronts")


class DecksResponse(BaseModel):
    """Response schema for deck list."""
    decks: List[FlashcardDeck]


class DueCardsResponse(BaseModel):
    """Due cards, most overdue first."""
    cards: List[Flashcard]
    count: int


class DueCountResponse(BaseModel):
    """Number of due cards across all decks."""
    count: int
