from __future__ import annotations

from datetime import datetime
from typing import Any, List, Optional, Union

from pydantic import BaseModel, Field

# Blank or missing values pass through; quiz_authoring_service validates them.


class OptionIn(BaseModel):
    text: Optional[str] = None
    is_correct: bool = False


class QuestionIn(BaseModel):
    prompt: Optional[str] = None
    options: List[OptionIn] = Field(default_factory=list)


class QuizCreateRequest(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    questions: List[QuestionIn] = Field(default_factory=list)


class QuizSummaryOut(BaseModel):
    id: Any
    title: str
    description: str = ""
    created_at: Optional[datetime] = None


class OptionOut(BaseModel):
    id: Any
    text: str
    is_correct: Optional[bool] = None


class QuestionOut(BaseModel):
    id: Any
    prompt: str
    options: List[OptionOut]


class QuizOut(QuizSummaryOut):
    questions: List[QuestionOut]


class SelectAnswerRequest(BaseModel):
    question_id: Union[int, str]
    option_id: Union[int, str]


class AttemptOut(BaseModel):
    attempt_id: str
    quiz_id: Any
    title: str
    description: str = ""
    state: str
    answers: dict[str, Any] = Field(default_factory=dict)
    answered_count: int
    total_questions: int
    progress_percent: int
    questions: List[QuestionOut]
    result: Optional["AttemptResultOut"] = None


class AttemptResultOut(BaseModel):
    attempt_id: str
    quiz_id: Any
    score: int
    total_questions: int
    percentage: int
    result_id: Any = None
    persisted: bool


AttemptOut.model_rebuild()
