from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class LessonOut(BaseModel):
    id: int
    course_id: int
    title: str
    content: Optional[str] = None
    video_url: Optional[str] = None
    order_index: int


class CourseOut(BaseModel):
    id: int
    title: str
    description: Optional[str] = None
    thumbnail: Optional[str] = None
    category: Optional[str] = None
    instructor: Optional[str] = None
    duration: Optional[str] = None


class CourseDetailOut(CourseOut):
    lessons: List[LessonOut] = Field(default_factory=list)


class ProgressOut(BaseModel):
    lesson_id: int
    completed: bool


class ProgressUpdate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    user_id: str = Field(alias="userId", min_length=1)
    lesson_id: int = Field(alias="lessonId")
    completed: bool = False
