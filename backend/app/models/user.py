from __future__ import annotations

import uuid

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base_class import Base


class User(Base):
    """Employee directory row used by the name + CPF lookup (not an auth store)."""

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=lambda: uuid.uuid4().hex)
    full_name: Mapped[str] = mapped_column(String(255), index=True, nullable=False)
    # Stored masked: 000.000.000-00
    cpf: Mapped[str] = mapped_column(String(14), index=True, nullable=False)
    role: Mapped[str | None] = mapped_column(String(100), nullable=True)
