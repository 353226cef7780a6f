from __future__ import annotations

import pytest

from app.core.errors import ValidationError
from app.services import quiz_authoring_service as svc


def _q(prompt="What is 2 + 2?", options=None):
    if options is None:
        options = [{"text": "4", "is_correct": True}, {"text": "5", "is_correct": False}]
    return {"prompt": prompt, "options": options}


def _opts(*pairs):
    return [{"text": t, "is_correct": c} for t, c in pairs]


def test_valid_definition_is_parsed():
    parsed = svc.validate_quiz_definition("Safety 101", [_q(), _q(prompt="Second")])
    assert [q.prompt for q in parsed] == ["What is 2 + 2?", "Second"]
    assert [o.is_correct for o in parsed[0].options] == [True, False]


@pytest.mark.parametrize(
    "title, questions, message",
    [
        ("", [], svc.MSG_TITLE_REQUIRED),
        (None, [_q()], svc.MSG_TITLE_REQUIRED),
        ("   ", [_q()], svc.MSG_TITLE_REQUIRED),
        ("Quiz", [], svc.MSG_NO_QUESTIONS),
        ("Quiz", None, svc.MSG_NO_QUESTIONS),
        ("Quiz", [_q(prompt=" \t ")], svc.MSG_PROMPT_REQUIRED),
        ("Quiz", [_q(options=_opts(("only", True)))], svc.MSG_TOO_FEW_OPTIONS),
        ("Quiz", [_q(options=_opts(("a", False), ("b", False)))], svc.MSG_ONE_CORRECT),
        ("Quiz", [_q(options=_opts(("a", True), ("b", True)))], svc.MSG_ONE_CORRECT),
        ("Quiz", [_q(options=_opts(("a", True), ("   ", False)))], svc.MSG_BLANK_OPTION),
    ],
)
def test_single_rule_violation_reports_that_rule(title, questions, message):
    with pytest.raises(ValidationError) as exc:
        svc.validate_quiz_definition(title, questions)
    assert exc.value.message == message


def test_blank_prompt_wins_over_missing_options():
    with pytest.raises(ValidationError) as exc:
        svc.validate_quiz_definition("Quiz", [_q(prompt="", options=[])])
    assert exc.value.message == svc.MSG_PROMPT_REQUIRED


def test_option_count_wins_over_correctness_and_blank_text():
    with pytest.raises(ValidationError) as exc:
        svc.validate_quiz_definition("Quiz", [_q(options=_opts(("", False)))])
    assert exc.value.message == svc.MSG_TOO_FEW_OPTIONS


def test_correctness_wins_over_blank_option_text():
    with pytest.raises(ValidationError) as exc:
        svc.validate_quiz_definition("Quiz", [_q(options=_opts(("", False), ("b", False)))])
    assert exc.value.message == svc.MSG_ONE_CORRECT


def test_questions_are_checked_in_order():
    first_has_blank_option = _q(options=_opts(("a", True), ("", False)))
    second_has_no_prompt = _q(prompt="")
    with pytest.raises(ValidationError) as exc:
        svc.validate_quiz_definition("Quiz", [first_has_blank_option, second_has_no_prompt])
    assert exc.value.message == svc.MSG_BLANK_OPTION


def test_validation_error_is_a_value_error():
    with pytest.raises(ValueError):
        svc.validate_quiz_definition("", [])
