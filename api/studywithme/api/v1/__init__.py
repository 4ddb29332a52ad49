"""
API v1 router aggregation.
"""
from fastapi import APIRouter
from studywithme.api.v1.endpoints import flashcards, quizzes, progress

api_router = APIRouter()

# Include all endpoint routers
# Note: Each router already defines its own prefix, so we don't add another one here
api_router.include_router(flashcards.router)
api_router.include_router(quizzes.router)
api_router.include_router(progress.router)
