from __future__ import annotations

from fastapi import APIRouter, Depends, Request

from app.api.deps import get_gateway, require_user
from app.infra.storage_gateway import StorageGateway
from app.schemas.quiz import AttemptOut, AttemptResultOut, QuizCreateRequest, QuizOut, QuizSummaryOut, SelectAnswerRequest
from app.services import quiz_session_engine as engine
from app.services.identity_service import UserContext
from app.services.quiz_authoring_service import create_quiz, list_quizzes, load_quiz_definition, quiz_to_dict

router = APIRouter(tags=['quiz'])


def _wrap(request: Request, data):
    return {'request_id': request.state.request_id, 'data': data, 'error': None}


@router.get('/quizzes')
def quiz_list(request: Request, gateway: StorageGateway = Depends(get_gateway)):
    data = [QuizSummaryOut(**q).model_dump(mode='json') for q in list_quizzes(gateway)]
    return _wrap(request, data)


@router.post('/quizzes')
def quiz_create(request: Request, payload: QuizCreateRequest, gateway: StorageGateway = Depends(get_gateway)):
    quiz = create_quiz(gateway, title=payload.title, description=payload.description, questions=payload.questions)
    return _wrap(request, QuizOut(**quiz_to_dict(quiz)).model_dump(mode='json'))


@router.get('/quizzes/{quiz_id}')
def quiz_get(request: Request, quiz_id: str, gateway: StorageGateway = Depends(get_gateway)):
    """Full definition, correct options included (authoring view)."""
    quiz = load_quiz_definition(gateway, quiz_id)
    return _wrap(request, QuizOut(**quiz_to_dict(quiz)).model_dump(mode='json'))


@router.post('/quizzes/{quiz_id}/attempts')
def attempt_start(
    request: Request,
    quiz_id: str,
    gateway: StorageGateway = Depends(get_gateway),
    user: UserContext = Depends(require_user),
):
    attempt = engine.attempts.add(engine.load_quiz(gateway, quiz_id, user))
    return _wrap(request, AttemptOut(**engine.attempt_to_dict(attempt)).model_dump(mode='json'))


@router.get('/attempts/{attempt_id}')
def attempt_get(request: Request, attempt_id: str, user: UserContext = Depends(require_user)):
    attempt = engine.attempts.get(attempt_id, user)
    return _wrap(request, AttemptOut(**engine.attempt_to_dict(attempt)).model_dump(mode='json'))


@router.put('/attempts/{attempt_id}/answers')
def attempt_answer(
    request: Request,
    attempt_id: str,
    payload: SelectAnswerRequest,
    user: UserContext = Depends(require_user),
):
    attempt = engine.attempts.get(attempt_id, user)
    engine.select_answer(attempt, payload.question_id, payload.option_id)
    return _wrap(request, AttemptOut(**engine.attempt_to_dict(attempt)).model_dump(mode='json'))


@router.post('/attempts/{attempt_id}/submit')
def attempt_submit(
    request: Request,
    attempt_id: str,
    gateway: StorageGateway = Depends(get_gateway),
    user: UserContext = Depends(require_user),
):
    attempt = engine.attempts.get(attempt_id, user)
    outcome = engine.submit(gateway, attempt)
    return _wrap(request, AttemptResultOut(**outcome.as_dict()).model_dump(mode='json'))
