from __future__ import annotations

import pytest

from app.core.errors import NotFoundError, StorageError, ValidationError
from app.infra.sql_store import SqlAlchemyAdapter
from app.infra.storage_gateway import EntityKind, StorageGateway
from app.services import quiz_authoring_service as svc


def _q(prompt, *options):
    return {"prompt": prompt, "options": [{"text": t, "is_correct": c} for t, c in options]}


class _FailingOptionsAdapter(SqlAlchemyAdapter):
    """Lets the first N option batches through, then fails like a dropped connection."""

    def __init__(self, db, ok_batches):
        super().__init__(db)
        self.ok_batches = ok_batches

    def insert_many(self, kind, rows):
        if kind == EntityKind.OPTION:
            if self.ok_batches <= 0:
                raise StorageError("connection reset")
            self.ok_batches -= 1
        return super().insert_many(kind, rows)


def test_create_quiz_round_trips_structure(gateway):
    quiz = svc.create_quiz(
        gateway,
        title="  Safety 101 ",
        description=" Basics ",
        questions=[
            _q("Wear a helmet?", ("Yes", True), ("No", False)),
            _q("Exit sign colour?", ("Red", False), ("Blue", False), ("Green", True)),
        ],
    )

    reloaded = svc.load_quiz_definition(gateway, quiz.id)
    assert reloaded.title == "Safety 101"
    assert reloaded.description == "Basics"
    assert [q.prompt for q in reloaded.questions] == ["Wear a helmet?", "Exit sign colour?"]
    assert [len(q.options) for q in reloaded.questions] == [2, 3]
    correct = [[o.text for o in q.options if o.is_correct] for q in reloaded.questions]
    assert correct == [["Yes"], ["Green"]]
    assert [o.text for o in reloaded.questions[1].options] == ["Red", "Blue", "Green"]


def test_description_is_optional(gateway):
    quiz = svc.create_quiz(gateway, title="Quiz", description=None, questions=[_q("Q", ("a", True), ("b", False))])
    assert quiz.description == ""


def test_rejected_quiz_writes_nothing(gateway):
    with pytest.raises(ValidationError) as exc:
        svc.create_quiz(gateway, title="", description="", questions=[])
    assert exc.value.message == svc.MSG_TITLE_REQUIRED
    assert gateway.query(EntityKind.QUIZ) == []


def test_two_correct_options_rejected_before_any_write(gateway):
    with pytest.raises(ValidationError) as exc:
        svc.create_quiz(
            gateway,
            title="Doubles",
            description="",
            questions=[
                _q("Fine question", ("a", True), ("b", False)),
                _q("Broken question", ("a", True), ("b", True)),
            ],
        )
    assert exc.value.message == svc.MSG_ONE_CORRECT
    assert gateway.query(EntityKind.QUIZ) == []
    assert gateway.query(EntityKind.QUESTION) == []
    assert gateway.query(EntityKind.OPTION) == []


def test_storage_failure_mid_authoring_leaves_no_rows(db):
    adapter = _FailingOptionsAdapter(db, ok_batches=1)
    gateway = StorageGateway.from_stores(catalog=adapter, quiz=adapter)

    with pytest.raises(StorageError):
        svc.create_quiz(
            gateway,
            title="Half written",
            description="",
            questions=[_q("One", ("a", True), ("b", False)), _q("Two", ("a", True), ("b", False))],
        )

    assert gateway.query(EntityKind.QUIZ) == []
    assert gateway.query(EntityKind.QUESTION) == []
    assert gateway.query(EntityKind.OPTION) == []


def test_list_quizzes_newest_first(gateway):
    for title in ["First", "Second", "Third"]:
        svc.create_quiz(gateway, title=title, description="", questions=[_q("Q", ("a", True), ("b", False))])

    titles = [q["title"] for q in svc.list_quizzes(gateway)]
    assert titles == ["Third", "Second", "First"]


def test_load_unknown_quiz_raises_not_found(gateway):
    with pytest.raises(NotFoundError):
        svc.load_quiz_definition(gateway, 404)


def test_quiz_to_dict_can_hide_answers(gateway):
    quiz = svc.create_quiz(gateway, title="Quiz", description="", questions=[_q("Q", ("a", True), ("b", False))])
    hidden = svc.quiz_to_dict(quiz, include_answers=False)
    assert all(o["is_correct"] is None for o in hidden["questions"][0]["options"])
    shown = svc.quiz_to_dict(quiz)
    assert [o["is_correct"] for o in shown["questions"][0]["options"]] == [True, False]
