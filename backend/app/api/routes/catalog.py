"""Course catalog and lesson progress.

These four endpoints keep the plain JSON shapes the course player already
consumes (bare arrays/objects, no envelope).
"""

from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends

from app.api.deps import get_gateway
from app.infra.storage_gateway import StorageGateway
from app.schemas.catalog import CourseDetailOut, CourseOut, ProgressOut, ProgressUpdate
from app.services.catalog_service import get_course, list_courses
from app.services.progress_service import get_progress, set_progress

router = APIRouter(tags=["catalog"])


@router.get("/courses", response_model=List[CourseOut])
def courses_list(gateway: StorageGateway = Depends(get_gateway)):
    return list_courses(gateway)


@router.get("/courses/{course_id}", response_model=CourseDetailOut)
def courses_get(course_id: int, gateway: StorageGateway = Depends(get_gateway)):
    return get_course(gateway, course_id)


@router.get("/progress/{user_id}", response_model=List[ProgressOut])
def progress_get(user_id: str, gateway: StorageGateway = Depends(get_gateway)):
    return get_progress(gateway, user_id)


@router.post("/progress")
def progress_set(payload: ProgressUpdate, gateway: StorageGateway = Depends(get_gateway)):
    set_progress(gateway, user_id=payload.user_id, lesson_id=payload.lesson_id, completed=payload.completed)
    return {"success": True}
