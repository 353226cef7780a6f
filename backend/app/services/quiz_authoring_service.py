"""Quiz authoring: validate a definition, then persist it in one unit of work.

Rules are checked before any write and the first violation wins, in this
order: title, question list, then per question (in order) prompt, option
count, single correct option, blank option text. The order decides which
message the author sees, so keep it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, List, Sequence

from app.core.errors import ValidationError
from app.infra.storage_gateway import EntityKind, StorageGateway
from app.schemas.quiz import QuestionIn


logger = logging.getLogger(__name__)

MSG_TITLE_REQUIRED = "Quiz title is required."
MSG_NO_QUESTIONS = "Add at least one question."
MSG_PROMPT_REQUIRED = "Every question needs prompt text."
MSG_TOO_FEW_OPTIONS = "Every question needs at least 2 options."
MSG_ONE_CORRECT = "Every question needs exactly one option marked as correct."
MSG_BLANK_OPTION = "Option text cannot be blank."

MIN_OPTIONS = 2


@dataclass
class OptionDef:
    id: Any
    text: str
    is_correct: bool


@dataclass
class QuestionDef:
    id: Any
    prompt: str
    options: List[OptionDef] = field(default_factory=list)

    def option(self, option_id: Any) -> OptionDef | None:
        key = str(option_id)
        for o in self.options:
            if str(o.id) == key:
                return o
        return None


@dataclass
class QuizDefinition:
    id: Any
    title: str
    description: str
    created_at: Any
    questions: List[QuestionDef] = field(default_factory=list)

    def question(self, question_id: Any) -> QuestionDef | None:
        key = str(question_id)
        for q in self.questions:
            if str(q.id) == key:
                return q
        return None


def _blank(text: str | None) -> bool:
    return not (text or "").strip()


def _coerce_questions(questions: Sequence[Any] | None) -> list[QuestionIn]:
    return [q if isinstance(q, QuestionIn) else QuestionIn.model_validate(q) for q in (questions or [])]


def validate_quiz_definition(title: str | None, questions: Sequence[Any] | None) -> list[QuestionIn]:
    """Raise ValidationError for the first broken rule; return the parsed questions."""
    if _blank(title):
        raise ValidationError(MSG_TITLE_REQUIRED)

    parsed = _coerce_questions(questions)
    if not parsed:
        raise ValidationError(MSG_NO_QUESTIONS)

    for q in parsed:
        if _blank(q.prompt):
            raise ValidationError(MSG_PROMPT_REQUIRED)
        if len(q.options) < MIN_OPTIONS:
            raise ValidationError(MSG_TOO_FEW_OPTIONS)
        if sum(1 for o in q.options if o.is_correct) != 1:
            raise ValidationError(MSG_ONE_CORRECT)
        for o in q.options:
            if _blank(o.text):
                raise ValidationError(MSG_BLANK_OPTION)
    return parsed


def create_quiz(
    gateway: StorageGateway,
    *,
    title: str | None,
    description: str | None,
    questions: Sequence[Any] | None,
) -> QuizDefinition:
    parsed = validate_quiz_definition(title, questions)

    # Quiz, questions and options land together or not at all.
    try:
        with gateway.atomic(EntityKind.QUIZ):
            quiz_id = gateway.insert(
                EntityKind.QUIZ,
                {"title": (title or "").strip(), "description": (description or "").strip()},
            )
            for q_pos, q in enumerate(parsed):
                question_id = gateway.insert(
                    EntityKind.QUESTION,
                    {"quiz_id": quiz_id, "prompt": (q.prompt or "").strip(), "position": q_pos},
                )
                gateway.insert_many(
                    EntityKind.OPTION,
                    [
                        {
                            "question_id": question_id,
                            "text": (o.text or "").strip(),
                            "is_correct": bool(o.is_correct),
                            "position": o_pos,
                        }
                        for o_pos, o in enumerate(q.options)
                    ],
                )
    except Exception:
        logger.exception("Quiz authoring failed, writes rolled back (title=%r)", (title or "").strip())
        raise

    logger.info("Quiz created id=%s questions=%d", quiz_id, len(parsed))
    return load_quiz_definition(gateway, quiz_id)


def list_quizzes(gateway: StorageGateway) -> list[dict[str, Any]]:
    """Newest first."""
    rows = gateway.query(EntityKind.QUIZ, order=["-created_at", "-id"])
    return [
        {
            "id": r.get("id"),
            "title": r.get("title") or "",
            "description": r.get("description") or "",
            "created_at": r.get("created_at"),
        }
        for r in rows
    ]


def load_quiz_definition(gateway: StorageGateway, quiz_id: Any) -> QuizDefinition:
    """Quiz with ordered questions and options, correctness flags included.

    Raises NotFoundError when the quiz id does not resolve.
    """
    quiz = gateway.get_by_id(EntityKind.QUIZ, quiz_id)
    q_rows = gateway.query(EntityKind.QUESTION, filters={"quiz_id": quiz["id"]}, order=["position", "id"])
    o_rows = gateway.query(
        EntityKind.OPTION,
        filters={"question_id": [q["id"] for q in q_rows]},
        order=["position", "id"],
    )

    by_question: dict[str, list[OptionDef]] = {}
    for o in o_rows:
        by_question.setdefault(str(o["question_id"]), []).append(
            OptionDef(id=o["id"], text=o.get("text") or "", is_correct=bool(o.get("is_correct")))
        )

    return QuizDefinition(
        id=quiz["id"],
        title=quiz.get("title") or "",
        description=quiz.get("description") or "",
        created_at=quiz.get("created_at"),
        questions=[
            QuestionDef(id=q["id"], prompt=q.get("prompt") or "", options=by_question.get(str(q["id"]), []))
            for q in q_rows
        ],
    )


def quiz_to_dict(quiz: QuizDefinition, *, include_answers: bool = True) -> dict[str, Any]:
    return {
        "id": quiz.id,
        "title": quiz.title,
        "description": quiz.description,
        "created_at": quiz.created_at,
        "questions": [
            {
                "id": q.id,
                "prompt": q.prompt,
                "options": [
                    {"id": o.id, "text": o.text, "is_correct": (o.is_correct if include_answers else None)}
                    for o in q.options
                ],
            }
            for q in quiz.questions
        ],
    }
