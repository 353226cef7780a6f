from __future__ import annotations

import pytest

from app.core.errors import NotFoundError, StorageError
from app.infra.storage_gateway import EntityKind, StorageGateway


def _course(gateway, title):
    return gateway.insert(EntityKind.COURSE, {"title": title})


def test_insert_and_get_by_id(gateway):
    course_id = _course(gateway, "Fire Safety")
    row = gateway.get_by_id(EntityKind.COURSE, course_id)
    assert row["id"] == course_id
    assert row["title"] == "Fire Safety"
    # path params arrive as strings
    assert gateway.get_by_id(EntityKind.COURSE, str(course_id))["title"] == "Fire Safety"


@pytest.mark.parametrize("bad_id", [999, "999", "abc"])
def test_get_by_id_miss(gateway, bad_id):
    with pytest.raises(NotFoundError):
        gateway.get_by_id(EntityKind.COURSE, bad_id)


def test_query_filters_and_orders(gateway):
    course_id = _course(gateway, "Ergonomics")
    ids = gateway.insert_many(
        EntityKind.LESSON,
        [
            {"course_id": course_id, "title": "Third", "order_index": 3},
            {"course_id": course_id, "title": "First", "order_index": 1},
            {"course_id": course_id, "title": "Second", "order_index": 2},
        ],
    )
    assert len(ids) == 3

    rows = gateway.query(EntityKind.LESSON, filters={"course_id": course_id}, order=["order_index"])
    assert [r["title"] for r in rows] == ["First", "Second", "Third"]

    rows = gateway.query(EntityKind.LESSON, filters={"id": ids[:2]}, order=["-order_index"])
    assert [r["title"] for r in rows] == ["Third", "First"]

    assert gateway.query(EntityKind.LESSON, filters={"id": []}) == []
    assert len(gateway.query(EntityKind.LESSON, limit=1)) == 1


def test_unknown_field_is_a_storage_error(gateway):
    with pytest.raises(StorageError):
        gateway.query(EntityKind.COURSE, filters={"colour": "red"})
    with pytest.raises(StorageError):
        gateway.insert(EntityKind.COURSE, {"title": "x", "colour": "red"})


def test_constraint_violation_is_a_storage_error(gateway):
    with pytest.raises(StorageError):
        gateway.insert(EntityKind.LESSON, {"course_id": 4242, "title": "Orphan", "order_index": 1})
    # session still usable afterwards
    assert _course(gateway, "After failure")


def test_upsert_keeps_one_row_per_key(gateway):
    key = ("user_id", "lesson_id")
    gateway.upsert(EntityKind.PROGRESS, {"user_id": "u1", "lesson_id": 1, "completed": True}, key=key)
    gateway.upsert(EntityKind.PROGRESS, {"user_id": "u1", "lesson_id": 1, "completed": False}, key=key)
    gateway.upsert(EntityKind.PROGRESS, {"user_id": "u1", "lesson_id": 2, "completed": True}, key=key)

    rows = gateway.query(EntityKind.PROGRESS, filters={"user_id": "u1"}, order=["lesson_id"])
    assert [(r["lesson_id"], r["completed"]) for r in rows] == [(1, False), (2, True)]


def test_atomic_rolls_back_every_write(gateway):
    with pytest.raises(RuntimeError):
        with gateway.atomic(EntityKind.COURSE):
            _course(gateway, "Never")
            _course(gateway, "Saved")
            raise RuntimeError("abort")
    assert gateway.query(EntityKind.COURSE) == []

    with gateway.atomic(EntityKind.COURSE):
        _course(gateway, "Kept")
    assert [r["title"] for r in gateway.query(EntityKind.COURSE)] == ["Kept"]


def test_delete(gateway):
    course_id = _course(gateway, "Temp")
    gateway.delete(EntityKind.COURSE, course_id)
    with pytest.raises(NotFoundError):
        gateway.delete(EntityKind.COURSE, course_id)


def test_gateway_without_route_for_kind(gateway):
    partial = StorageGateway({EntityKind.COURSE: gateway.adapter_for(EntityKind.COURSE)})
    with pytest.raises(StorageError):
        partial.query(EntityKind.QUIZ)
