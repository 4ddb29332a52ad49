"""
Quiz schemas.
"""
from pydantic import BaseModel, Field
from typing import Dict, List, Optional
from studywithme.models.enums import QuestionType, Difficulty


class QuizQuestion(BaseModel):
    """A quiz question. Immutable once created."""
    id: str
    type: QuestionType
    question: str
    options: Optional[List[str]] = None
    correct_answer: str
    explanation: Optional[str] = None
    difficulty: Difficulty = Difficulty.MEDIUM
    topic: str = ""

    class Config:
        frozen = True


class Quiz(BaseModel):
    """Quiz definition. The id and created_at are assigned on registration when missing."""
    id: Optional[str] = None
    title: str
    topic: str
    questions: List[QuizQuestion] = Field(default_factory=list)
    time_limit: Optional[int] = Field(None, description="Time limit in seconds")
    created_at: Optional[int] = None

    class Config:
        json_schema_extra = {
            "example": {
                "title": "Capitals",
                "topic": "geography",
                "questions": [
                    {
                        "id": "q1",
                        "type": "short-answer",
                        "question": "Capital of France?",
                        "correct_answer": "Paris",
                        "difficulty": "easy",
                        "topic": "geography"
                    }
                ],
                "time_limit": 300
            }
        }


class QuizAttempt(BaseModel):
    """Scored submission against a registered quiz. Never mutated after creation."""
    quiz_id: str
    answers: Dict[str, str]
    score: int
    total_questions: int
    time_taken: float  # seconds, as reported by the client
    completed_at: int  # epoch ms

    class Config:
        frozen = True

    @property
    def percentage(self) -> float:
        if self.total_questions == 0:
            return 0.0
        return self.score / self.total_questions * 100


class QuestionResult(BaseModel):
    """Grading outcome for one question of an attempt."""
    question_id: str
    correct: bool
    user_answer: str
    correct_answer: str


class CreateQuizRequest(BaseModel):
    """Request schema for creating a quiz with a server-assigned id."""
    title: str
    topic: str
    questions: List[QuizQuestion] = Field(default_factory=list)
    time_limit: Optional[int] = None


class SubmitAttemptRequest(BaseModel):
    """Request schema for submitting answers to a quiz."""
    answers: Dict[str, str] = Field(default_factory=dict, description="Question id to submitted answer")
    time_taken: float = Field(0, description="Elapsed seconds reported by the client")

    class Config:
        json_schema_extra = {
            "example": {
                "answers": {"q1": "paris"},
                "time_taken": 42
            }
        }


class SubmitAttemptResponse(BaseModel):
    """A stored attempt with its per-question breakdown."""
    attempt: QuizAttempt
    results: List[QuestionResult]
    percentage: float


class QuizzesResponse(BaseModel):
    """Response schema for quiz list."""
    quizzes: List[Quiz]


class AttemptsResponse(BaseModel):
    """Attempts in submission order."""
    attempts: List[QuizAttempt]


class QuizStatsResponse(BaseModel):
    """Aggregate score statistics, as percentages."""
    quiz_id: Optional[str] = None
    best_score: Optional[float] = None  # only reported for a single quiz
    average_score: float
    attempts_count: int
