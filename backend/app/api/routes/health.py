from fastapi import APIRouter

from app.core.config import settings


router = APIRouter(tags=["health"])


@router.get("/health")
def health():
    return {"status": "ok", "env": settings.ENV, "quiz_store": settings.QUIZ_STORE}
