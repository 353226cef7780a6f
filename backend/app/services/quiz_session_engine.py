"""Quiz-taking state machine: LOADING -> IN_PROGRESS -> SUBMITTED.

An attempt is an explicit object owned by exactly one user. It keeps the quiz
definition (correct answers included) and a last-write-wins answer map keyed
by question id. SUBMITTED is terminal: a new attempt needs a new load.

Result persistence on submit is best effort. The score is computed and the
attempt moves to SUBMITTED first; a failed write is logged and reported on
the outcome, never raised.
"""

from __future__ import annotations

import enum
import logging
import threading
import uuid
from dataclasses import dataclass, field
from typing import Any

from app.core.errors import InvalidStateError, NotFoundError, StorageError, ValidationError
from app.infra.storage_gateway import EntityKind, StorageGateway
from app.services.identity_service import UserContext
from app.services.quiz_authoring_service import QuizDefinition, load_quiz_definition, quiz_to_dict


logger = logging.getLogger(__name__)


class SessionState(str, enum.Enum):
    LOADING = "loading"
    IN_PROGRESS = "in_progress"
    SUBMITTED = "submitted"


@dataclass
class SubmissionOutcome:
    attempt_id: str
    quiz_id: Any
    score: int
    total_questions: int
    percentage: int
    persisted: bool
    result_id: Any = None

    def as_dict(self) -> dict[str, Any]:
        return {
            "attempt_id": self.attempt_id,
            "quiz_id": self.quiz_id,
            "score": self.score,
            "total_questions": self.total_questions,
            "percentage": self.percentage,
            "result_id": self.result_id,
            "persisted": self.persisted,
        }


@dataclass
class QuizAttempt:
    quiz_id: Any
    user: UserContext
    attempt_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    state: SessionState = SessionState.LOADING
    quiz: QuizDefinition | None = None
    answers: dict[str, Any] = field(default_factory=dict)
    outcome: SubmissionOutcome | None = None

    @property
    def total_questions(self) -> int:
        return len(self.quiz.questions) if self.quiz else 0

    @property
    def answered_count(self) -> int:
        if not self.quiz:
            return 0
        return sum(1 for q in self.quiz.questions if self.answers.get(str(q.id)) is not None)

    def unanswered(self) -> list[Any]:
        if not self.quiz:
            return []
        return [q.id for q in self.quiz.questions if self.answers.get(str(q.id)) is None]

    def require_state(self, expected: SessionState, action: str) -> None:
        if self.state != expected:
            raise InvalidStateError(f"Cannot {action}: attempt is {self.state.value}")


def percentage(score: int, total: int) -> int:
    """Whole percent, rounding halves up (1/8 -> 13, 5/8 -> 63)."""
    if total <= 0:
        return 0
    return (score * 200 + total) // (2 * total)


def score_answers(quiz: QuizDefinition, answers: dict[str, Any]) -> int:
    """Count questions whose selected option is flagged correct.

    The option is looked up inside that question's own options, so an id from
    another question simply counts as wrong.
    """
    score = 0
    for q in quiz.questions:
        selected = answers.get(str(q.id))
        if selected is None:
            continue
        option = q.option(selected)
        if option is not None and option.is_correct:
            score += 1
    return score


def load_quiz(gateway: StorageGateway, quiz_id: Any, user: UserContext) -> QuizAttempt:
    attempt = QuizAttempt(quiz_id=quiz_id, user=user)
    attempt.quiz = load_quiz_definition(gateway, quiz_id)
    attempt.quiz_id = attempt.quiz.id
    attempt.state = SessionState.IN_PROGRESS
    logger.info(
        "Attempt %s started quiz=%s user=%s questions=%d",
        attempt.attempt_id, attempt.quiz_id, user.user_id, attempt.total_questions,
    )
    return attempt


def select_answer(attempt: QuizAttempt, question_id: Any, option_id: Any) -> None:
    attempt.require_state(SessionState.IN_PROGRESS, "select an answer")
    if option_id is None or (isinstance(option_id, str) and not option_id.strip()):
        raise ValidationError("Select an option for the question.")
    question = attempt.quiz.question(question_id) if attempt.quiz else None
    if question is None:
        raise NotFoundError(f"Question {question_id} is not part of this quiz")
    attempt.answers[str(question.id)] = option_id


def submit(gateway: StorageGateway, attempt: QuizAttempt) -> SubmissionOutcome:
    attempt.require_state(SessionState.IN_PROGRESS, "submit")
    missing = attempt.unanswered()
    if missing:
        raise ValidationError(f"Answer every question before submitting ({len(missing)} unanswered).")

    score = score_answers(attempt.quiz, attempt.answers)
    total = attempt.total_questions
    outcome = SubmissionOutcome(
        attempt_id=attempt.attempt_id,
        quiz_id=attempt.quiz_id,
        score=score,
        total_questions=total,
        percentage=percentage(score, total),
        persisted=False,
    )
    attempt.outcome = outcome
    attempt.state = SessionState.SUBMITTED

    try:
        outcome.result_id = gateway.insert(
            EntityKind.RESULT,
            {
                "quiz_id": attempt.quiz_id,
                "user_id": attempt.user.user_id,
                "score": score,
                "total_questions": total,
            },
        )
        outcome.persisted = True
    except StorageError as e:
        logger.warning("Attempt %s: result not saved (score %d/%d): %s", attempt.attempt_id, score, total, e)

    logger.info("Attempt %s submitted score=%d/%d persisted=%s", attempt.attempt_id, score, total, outcome.persisted)
    return outcome


def attempt_to_dict(attempt: QuizAttempt) -> dict[str, Any]:
    quiz = quiz_to_dict(attempt.quiz, include_answers=False) if attempt.quiz else {}
    total = attempt.total_questions
    return {
        "attempt_id": attempt.attempt_id,
        "quiz_id": attempt.quiz_id,
        "title": quiz.get("title", ""),
        "description": quiz.get("description", ""),
        "state": attempt.state.value,
        "answers": dict(attempt.answers),
        "answered_count": attempt.answered_count,
        "total_questions": total,
        "progress_percent": percentage(attempt.answered_count, total),
        "questions": quiz.get("questions", []),
        "result": attempt.outcome.as_dict() if attempt.outcome else None,
    }


class AttemptRegistry:
    """In-process lookup of attempts by id, so one attempt can span several requests.

    Each attempt is only ever touched by the user who started it; the lock only
    guards the dict itself.
    """

    def __init__(self, max_attempts: int = 10_000):
        self._attempts: dict[str, QuizAttempt] = {}
        self._lock = threading.Lock()
        self.max_attempts = max_attempts

    def add(self, attempt: QuizAttempt) -> QuizAttempt:
        with self._lock:
            if len(self._attempts) >= self.max_attempts:
                # Evict the oldest entry (dicts keep insertion order).
                self._attempts.pop(next(iter(self._attempts)))
            self._attempts[attempt.attempt_id] = attempt
        return attempt

    def get(self, attempt_id: str, user: UserContext) -> QuizAttempt:
        with self._lock:
            attempt = self._attempts.get(str(attempt_id))
        if attempt is None or str(attempt.user.user_id) != str(user.user_id):
            raise NotFoundError(f"Attempt {attempt_id} not found")
        return attempt

    def __len__(self) -> int:
        with self._lock:
            return len(self._attempts)


attempts = AttemptRegistry()
