"""
Quiz registry, attempt and statistics endpoints.
"""
from fastapi import APIRouter, Depends, status
from typing import Optional

from studywithme.api.v1.dependencies import get_quiz_service
from studywithme.core.exceptions import NotFoundError
from studywithme.schemas.common import OperationResult
from studywithme.schemas.quiz import (
    Quiz,
    CreateQuizRequest,
    SubmitAttemptRequest,
    SubmitAttemptResponse,
    QuizzesResponse,
    AttemptsResponse,
    QuizStatsResponse,
)
from studywithme.services.quiz_service import QuizService

router = APIRouter(prefix="/quizzes", tags=["quizzes"])


@router.get("", response_model=QuizzesResponse)
async def get_quizzes(service: QuizService = Depends(get_quiz_service)):
    """Get all registered quizzes."""
    return QuizzesResponse(quizzes=service.get_quizzes())


@router.post("", response_model=Quiz, status_code=status.HTTP_201_CREATED)
async def create_quiz(
    request: CreateQuizRequest,
    service: QuizService = Depends(get_quiz_service)
):
    """Create a quiz with a server-assigned ID."""
    return service.create_quiz(request.title, request.topic, request.questions, request.time_limit)


@router.put("/register", response_model=Quiz)
async def register_quiz(
    quiz: Quiz,
    service: QuizService = Depends(get_quiz_service)
):
    """
    Register a quiz so attempts can be scored against it.

    A quiz without an ID gets one; registering an existing ID replaces the stored quiz.
    """
    return service.register_quiz(quiz)


@router.get("/attempts", response_model=AttemptsResponse)
async def get_attempts(
    quiz_id: Optional[str] = None,
    service: QuizService = Depends(get_quiz_service)
):
    """Get attempts in submission order, optionally for one quiz."""
    return AttemptsResponse(attempts=service.get_attempts(quiz_id))


@router.get("/stats", response_model=QuizStatsResponse)
async def get_overall_stats(service: QuizService = Depends(get_quiz_service)):
    """Average score over all attempts."""
    return QuizStatsResponse(
        average_score=service.get_average_score(),
        attempts_count=service.get_total_quizzes_completed(),
    )


@router.get("/{quiz_id}", response_model=Quiz)
async def get_quiz(
    quiz_id: str,
    service: QuizService = Depends(get_quiz_service)
):
    """Get a quiz by ID."""
    quiz = service.get_quiz(quiz_id)
    if quiz is None:
        raise NotFoundError(f"Quiz {quiz_id} not found")
    return quiz


@router.delete("/{quiz_id}", response_model=OperationResult)
async def delete_quiz(
    quiz_id: str,
    service: QuizService = Depends(get_quiz_service)
):
    """Delete a quiz together with its attempts."""
    if not service.delete_quiz(quiz_id):
        raise NotFoundError(f"Quiz {quiz_id} not found")
    return OperationResult(success=True, message=f"Quiz {quiz_id} deleted")


@router.post("/{quiz_id}/attempts", response_model=SubmitAttemptResponse, status_code=status.HTTP_201_CREATED)
async def submit_attempt(
    quiz_id: str,
    request: SubmitAttemptRequest,
    service: QuizService = Depends(get_quiz_service)
):
    """
    Grade and record an attempt.

    Answers are compared ignoring case, extra whitespace and punctuation.
    Unanswered questions count as incorrect.
    """
    attempt, results = service.submit_attempt(quiz_id, request.answers, request.time_taken)
    return SubmitAttemptResponse(attempt=attempt, results=results, percentage=attempt.percentage)


@router.get("/{quiz_id}/stats", response_model=QuizStatsResponse)
async def get_quiz_stats(
    quiz_id: str,
    service: QuizService = Depends(get_quiz_service)
):
    """Best and average score for one quiz."""
    if service.get_quiz(quiz_id) is None:
        raise NotFoundError(f"Quiz {quiz_id} not found")
    return QuizStatsResponse(
        quiz_id=quiz_id,
        best_score=service.get_best_score(quiz_id),
        average_score=service.get_average_score(quiz_id),
        attempts_count=len(service.get_attempts(quiz_id)),
    )
