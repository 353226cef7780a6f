"""Common FastAPI dependencies.

Identity comes from request headers (``X-User-Id``, optional ``X-User-Name``)
that the frontend sets after the name + CPF lookup. This is identification
only, not authentication.
"""

from __future__ import annotations

from typing import Optional

from fastapi import Depends, Header, HTTPException
from sqlalchemy.orm import Session

from app.core.config import settings
from app.db.session import get_db
from app.infra.remote_store import RemoteApiAdapter, get_remote_client
from app.infra.sql_store import SqlAlchemyAdapter
from app.infra.storage_gateway import StorageGateway
from app.services.identity_service import UserContext


def get_gateway(db: Session = Depends(get_db)) -> StorageGateway:
    local = SqlAlchemyAdapter(db)
    if settings.QUIZ_STORE == "remote":
        quiz_store = RemoteApiAdapter(get_remote_client(settings), schema=settings.REMOTE_API_SCHEMA)
    else:
        quiz_store = local
    return StorageGateway.from_stores(catalog=local, quiz=quiz_store)


def get_current_user_optional(
    x_user_id: Optional[str] = Header(default=None, alias="X-User-Id"),
    x_user_name: Optional[str] = Header(default=None, alias="X-User-Name"),
) -> Optional[UserContext]:
    uid = (x_user_id or "").strip()
    if not uid:
        return None
    return UserContext(user_id=uid, full_name=(x_user_name or "").strip() or None)


def require_user(user: Optional[UserContext] = Depends(get_current_user_optional)) -> UserContext:
    if not user:
        raise HTTPException(status_code=401, detail="Not identified")
    return user
