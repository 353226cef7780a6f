from __future__ import annotations

import logging
from typing import Any

from app.infra.storage_gateway import EntityKind, StorageGateway


logger = logging.getLogger(__name__)

DEMO_CATALOG: list[dict[str, Any]] = [
    {
        "course": {
            "title": "Mastering Modern UI Design",
            "description": "Learn the principles of professional UI design using modern tools and techniques.",
            "thumbnail": "https://picsum.photos/seed/ui/800/450",
            "category": "Design",
            "instructor": "Alex Rivera",
            "duration": "6h 30m",
        },
        "lessons": [
            {
                "title": "Introduction to Visual Hierarchy",
                "content": "Visual hierarchy is the arrangement or presentation of elements in a way that implies importance.",
                "video_url": "https://example.com/video1",
            },
            {
                "title": "Color Theory for Interfaces",
                "content": "Understanding how color affects user perception and accessibility.",
                "video_url": "https://example.com/video2",
            },
            {
                "title": "Typography and Readability",
                "content": "Choosing the right fonts and setting up a modular scale.",
                "video_url": "https://example.com/video3",
            },
        ],
    },
    {
        "course": {
            "title": "Full-Stack Development with React",
            "description": "Build scalable applications from scratch using the latest web technologies.",
            "thumbnail": "https://picsum.photos/seed/code/800/450",
            "category": "Development",
            "instructor": "Sarah Chen",
            "duration": "12h 45m",
        },
        "lessons": [
            {
                "title": "React 19 Fundamentals",
                "content": "Getting started with the new features in React 19.",
                "video_url": "https://example.com/video4",
            },
        ],
    },
]


def list_courses(gateway: StorageGateway) -> list[dict[str, Any]]:
    return gateway.query(EntityKind.COURSE, order=["id"])


def get_course(gateway: StorageGateway, course_id: Any) -> dict[str, Any]:
    """Course with its lessons in ``order_index`` order. NotFoundError if missing."""
    course = gateway.get_by_id(EntityKind.COURSE, course_id)
    lessons = gateway.query(EntityKind.LESSON, filters={"course_id": course["id"]}, order=["order_index", "id"])
    return {**course, "lessons": lessons}


def seed_demo_catalog(gateway: StorageGateway) -> bool:
    """Insert the demo courses when the catalog is empty. Safe to run repeatedly."""
    if gateway.query(EntityKind.COURSE, limit=1):
        return False

    with gateway.atomic(EntityKind.COURSE):
        for entry in DEMO_CATALOG:
            course_id = gateway.insert(EntityKind.COURSE, entry["course"])
            gateway.insert_many(
                EntityKind.LESSON,
                [{**lesson, "course_id": course_id, "order_index": i} for i, lesson in enumerate(entry["lessons"], start=1)],
            )
    logger.info("Seeded demo catalog (%d courses)", len(DEMO_CATALOG))
    return True
