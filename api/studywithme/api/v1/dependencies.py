"""
Dependencies handing the application's engines to endpoints.

The engines are built once in create_app and kept on app.state.
"""
from fastapi import Request

from studywithme.services.flashcard_service import FlashcardService
from studywithme.services.quiz_service import QuizService
from studywithme.services.reward_service import RewardService


def get_flashcard_service(request: Request) -> FlashcardService:
    return request.app.state.flashcard_service


def get_quiz_service(request: Request) -> QuizService:
    return request.app.state.quiz_service


def get_reward_service(request: Request) -> RewardService:
    return request.app.state.reward_service
