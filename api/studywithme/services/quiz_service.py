"""
Quiz service: quiz registry, answer grading, attempt log and score statistics.
"""
import logging
import math
import uuid
from threading import Lock
from typing import Callable, Dict, List, Mapping, Optional, Tuple

from pydantic import TypeAdapter

from studywithme.core.exceptions import NotFoundError, ValidationError
from studywithme.schemas.quiz import QuestionResult, Quiz, QuizAttempt, QuizQuestion
from studywithme.services import reward_service
from studywithme.services.event_service import EventEmitter, Listener
from studywithme.services.reward_service import RewardService
from studywithme.services.storage_service import (
    QUIZ_ATTEMPTS_KEY,
    QUIZZES_KEY,
    SnapshotStorage,
    load_collection,
    save_collection,
)
from studywithme.utils.text_utils import answers_match, require_text
from studywithme.utils.time_utils import now_ms

logger = logging.getLogger(__name__)


_quizzes_adapter = TypeAdapter(List[Quiz])
_attempts_adapter = TypeAdapter(List[QuizAttempt])


def grade_answers(
    questions: List[QuizQuestion],
    answers: Mapping[str, str]
) -> Tuple[int, List[QuestionResult]]:
    """
    Grade submitted answers against a question set.

    Questions without a submitted answer are graded as incorrect; they still
    count towards the total.

    Returns:
        (number correct, per-question results in question order)
    """
    correct_count = 0
    results = []
    for question in questions:
        user_answer = answers.get(question.id) or ""
        is_correct = answers_match(user_answer, question.correct_answer)
        if is_correct:
            correct_count += 1
        results.append(QuestionResult(
            question_id=question.id,
            correct=is_correct,
            user_answer=user_answer,
            correct_answer=question.correct_answer,
        ))
    return correct_count, results


class QuizService:
    """
    Owns quiz definitions (by id) and the append-only attempt log.

    Attempts can only be scored against a registered quiz, so the canonical
    answers always come from the registry and never from the submission.
    """

    def __init__(
        self,
        storage: Optional[SnapshotStorage] = None,
        events: Optional[EventEmitter] = None,
        rewards: Optional[RewardService] = None,
        clock: Callable[[], int] = now_ms,
    ):
        self.storage = storage
        self.events = events or EventEmitter("quizzes")
        self.rewards = rewards
        self.clock = clock
        self._lock = Lock()
        self._quizzes: Dict[str, Quiz] = {}
        self._attempts: List[QuizAttempt] = []
        if storage is not None:
            for quiz in load_collection(storage, QUIZZES_KEY, _quizzes_adapter, list):
                if quiz.id:
                    self._quizzes[quiz.id] = quiz
            self._attempts = load_collection(storage, QUIZ_ATTEMPTS_KEY, _attempts_adapter, list)
        logger.info(f"Quiz service ready with {len(self._quizzes)} quiz(zes) and {len(self._attempts)} attempt(s)")

    # ============ SUBSCRIPTIONS ============

    def subscribe(self, listener: Listener) -> Callable[[], bool]:
        return self.events.subscribe(listener)

    # ============ QUIZ MANAGEMENT ============

    def get_quizzes(self) -> List[Quiz]:
        with self._lock:
            return [quiz.model_copy(deep=True) for quiz in self._quizzes.values()]

    def get_quiz(self, quiz_id: str) -> Optional[Quiz]:
        with self._lock:
            quiz = self._quizzes.get(quiz_id)
            return quiz.model_copy(deep=True) if quiz else None

    def register_quiz(self, quiz: Quiz) -> Quiz:
        """
        Make a quiz resolvable for grading. Registering an existing id replaces it.

        A missing id or created_at is filled in.

        Raises:
            ValidationError: If two questions share an id
        """
        question_ids = [question.id for question in quiz.questions]
        if len(set(question_ids)) != len(question_ids):
            raise ValidationError("Question ids must be unique within a quiz")

        with self._lock:
            stored = quiz.model_copy(deep=True, update={
                "id": quiz.id or self._new_quiz_id(),
                "created_at": quiz.created_at if quiz.created_at is not None else self.clock(),
            })
            replaced = stored.id in self._quizzes
            self._quizzes[stored.id] = stored
            self._save_quizzes()
            registered = stored.model_copy(deep=True)

        self.events.emit()
        logger.info(
            f"{'Replaced' if replaced else 'Registered'} quiz {registered.id} "
            f"'{registered.title}' ({len(registered.questions)} question(s))"
        )
        return registered

    def create_quiz(
        self,
        title: str,
        topic: str,
        questions: List[QuizQuestion],
        time_limit: Optional[int] = None
    ) -> Quiz:
        """
        Build a quiz with a fresh id and register it.

        Raises:
            ValidationError: If title is blank or question ids repeat
        """
        title = require_text(title, "Quiz title")
        quiz = Quiz(
            id=self._new_quiz_id(),
            title=title,
            topic=topic,
            questions=list(questions),
            time_limit=time_limit,
            created_at=self.clock(),
        )
        return self.register_quiz(quiz)

    def delete_quiz(self, quiz_id: str) -> bool:
        """Remove a quiz and its attempts. Returns whether the quiz existed."""
        with self._lock:
            if quiz_id not in self._quizzes:
                return False
            del self._quizzes[quiz_id]
            removed_attempts = len(self._attempts)
            self._attempts = [a for a in self._attempts if a.quiz_id != quiz_id]
            removed_attempts -= len(self._attempts)
            self._save_quizzes()
            self._save_attempts()

        self.events.emit()
        logger.info(f"Deleted quiz {quiz_id} and {removed_attempts} attempt(s)")
        return True

    # ============ QUIZ ATTEMPTS ============

    def submit_attempt(
        self,
        quiz_id: str,
        answers: Mapping[str, str],
        time_taken: float
    ) -> Tuple[QuizAttempt, List[QuestionResult]]:
        """
        Grade and record an attempt.

        Args:
            quiz_id: Id of a registered quiz
            answers: Question id to submitted text; omitted questions are incorrect
            time_taken: Elapsed seconds reported by the client. Stored for
                display only, it never affects the score.

        Returns:
            (stored attempt, per-question results)

        Raises:
            NotFoundError: If the quiz was never registered; nothing is recorded
            ValidationError: If time_taken is not a finite, non-negative number
        """
        if (
            isinstance(time_taken, bool)
            or not isinstance(time_taken, (int, float))
            or not math.isfinite(time_taken)
            or time_taken < 0
        ):
            raise ValidationError(f"time_taken must be a finite, non-negative number of seconds, got {time_taken!r}")
        answers = dict(answers or {})
        if not all(isinstance(k, str) and isinstance(v, str) for k, v in answers.items()):
            raise ValidationError("answers must map question ids to answer text")

        with self._lock:
            quiz = self._quizzes.get(quiz_id)
            if quiz is None:
                logger.error(f"Quiz {quiz_id} not found, attempt rejected")
                raise NotFoundError(f"Quiz not found. Quiz ID: {quiz_id}")

            score, results = grade_answers(quiz.questions, answers)
            attempt = QuizAttempt(
                quiz_id=quiz_id,
                answers=answers,
                score=score,
                total_questions=len(quiz.questions),
                time_taken=time_taken,
                completed_at=self.clock(),
            )
            self._attempts.append(attempt)
            self._save_attempts()

        self.events.emit()

        percentage = attempt.percentage
        xp = reward_service.quiz_xp(percentage)
        logger.info(
            f"Attempt submitted for quiz {quiz_id}. Score: {score}/{attempt.total_questions} "
            f"({percentage:.1f}%). XP: +{xp}"
        )
        self._award(xp, reward_service.QUIZ_COMPLETED)
        return attempt.model_copy(deep=True), results

    def get_attempts(self, quiz_id: Optional[str] = None) -> List[QuizAttempt]:
        """Attempts in submission order, optionally for one quiz."""
        with self._lock:
            return [
                attempt.model_copy(deep=True)
                for attempt in self._attempts
                if quiz_id is None or attempt.quiz_id == quiz_id
            ]

    # ============ STATISTICS ============

    def get_best_score(self, quiz_id: str) -> float:
        """Best percentage over a quiz's attempts, 0 if there are none."""
        percentages = [a.percentage for a in self.get_attempts(quiz_id)]
        return max(percentages) if percentages else 0.0

    def get_average_score(self, quiz_id: Optional[str] = None) -> float:
        """Mean percentage over one quiz's attempts, or over all attempts."""
        percentages = [a.percentage for a in self.get_attempts(quiz_id)]
        if not percentages:
            return 0.0
        return sum(percentages) / len(percentages)

    def get_total_quizzes_completed(self) -> int:
        with self._lock:
            return len(self._attempts)

    # ============ INTERNALS ============

    def _new_quiz_id(self) -> str:
        return f"quiz_{uuid.uuid4().hex}"

    def _save_quizzes(self) -> None:
        if self.storage is not None:
            save_collection(self.storage, QUIZZES_KEY, _quizzes_adapter, list(self._quizzes.values()))

    def _save_attempts(self) -> None:
        if self.storage is not None:
            save_collection(self.storage, QUIZ_ATTEMPTS_KEY, _attempts_adapter, self._attempts)

    def _award(self, amount: int, reason: str) -> None:
        if self.rewards is None:
            return
        try:
            self.rewards.award_points(amount, reason)
        except Exception as e:
            logger.error(f"Failed to award {amount} XP ({reason}): {e}", exc_info=True)
