"""
Flashcard deck and review endpoints.
"""
from fastapi import APIRouter, Depends, status
from typing import Optional

from studywithme.api.v1.dependencies import get_flashcard_service
from studywithme.core.exceptions import NotFoundError
from studywithme.schemas.common import OperationResult
from studywithme.schemas.flashcard import (
    Flashcard,
    FlashcardDeck,
    CreateDeckRequest,
    CreateCardRequest,
    ReviewCardRequest,
    GenerateDeckRequest,
    DecksResponse,
    DueCardsResponse,
    DueCountResponse,
)
from studywithme.services.flashcard_service import FlashcardService

router = APIRouter(prefix="/decks", tags=["flashcards"])


@router.get("", response_model=DecksResponse)
async def get_decks(service: FlashcardService = Depends(get_flashcard_service)):
    """Get all decks with their cards, in creation order."""
    return DecksResponse(decks=service.get_decks())


@router.post("", response_model=FlashcardDeck, status_code=status.HTTP_201_CREATED)
async def create_deck(
    request: CreateDeckRequest,
    service: FlashcardService = Depends(get_flashcard_service)
):
    """Create an empty deck. A color is picked when none is given."""
    return service.create_deck(request.name, request.description, request.color)


@router.post("/generate", response_model=FlashcardDeck, status_code=status.HTTP_201_CREATED)
async def generate_deck(
    request: GenerateDeckRequest,
    service: FlashcardService = Depends(get_flashcard_service)
):
    """Create a deck from a tutoring reply, one card per **bold** term."""
    return service.generate_from_conversation(request.topic, request.content)


@router.get("/due", response_model=DueCardsResponse)
async def get_due_cards(
    deck_id: Optional[str] = None,
    service: FlashcardService = Depends(get_flashcard_service)
):
    """
    Get cards due for review, most overdue first.

    Args:
        deck_id: Optional deck ID. If not provided, cards from all decks are considered.
    """
    cards = service.get_due_cards(deck_id)
    return DueCardsResponse(cards=cards, count=len(cards))


@router.get("/due/count", response_model=DueCountResponse)
async def get_due_count(service: FlashcardService = Depends(get_flashcard_service)):
    """Count cards due for review across all decks."""
    return DueCountResponse(count=service.get_due_count())


@router.get("/{deck_id}", response_model=FlashcardDeck)
async def get_deck(
    deck_id: str,
    service: FlashcardService = Depends(get_flashcard_service)
):
    """Get a deck by ID."""
    deck = service.get_deck(deck_id)
    if deck is None:
        raise NotFoundError(f"Deck {deck_id} not found")
    return deck


@router.delete("/{deck_id}", response_model=OperationResult)
async def delete_deck(
    deck_id: str,
    service: FlashcardService = Depends(get_flashcard_service)
):
    """Delete a deck and all of its cards."""
    service.delete_deck(deck_id)
    return OperationResult(success=True, message=f"Deck {deck_id} deleted")


@router.post("/{deck_id}/cards", response_model=Flashcard, status_code=status.HTTP_201_CREATED)
async def add_card(
    deck_id: str,
    request: CreateCardRequest,
    service: FlashcardService = Depends(get_flashcard_service)
):
    """Add a card to a deck. New cards are due immediately."""
    return service.add_card(deck_id, request.front, request.back, request.topic)


@router.delete("/{deck_id}/cards/{card_id}", response_model=OperationResult)
async def delete_card(
    deck_id: str,
    card_id: str,
    service: FlashcardService = Depends(get_flashcard_service)
):
    """Remove a card from a deck."""
    service.delete_card(deck_id, card_id)
    return OperationResult(success=True, message=f"Card {card_id} deleted")


@router.post("/{deck_id}/cards/{card_id}/review", response_model=Flashcard)
async def review_card(
    deck_id: str,
    card_id: str,
    request: ReviewCardRequest,
    service: FlashcardService = Depends(get_flashcard_service)
):
    """
    Review a card and reschedule it.

    Quality 0-2 counts as a failure and restarts the card's interval
    progression; 3-5 is a pass.
    """
    return service.review_card(deck_id, card_id, request.quality)
