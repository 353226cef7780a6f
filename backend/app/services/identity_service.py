"""Who is taking the quiz.

The lookup below matches a full name and a CPF (Brazilian taxpayer number)
against the employee directory. It identifies, it does not authenticate:
anyone who knows both values passes. Identity travels as an explicit
``UserContext`` value; nothing here keeps a current user.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any

from app.core.errors import NotFoundError, ValidationError
from app.infra.storage_gateway import EntityKind, StorageGateway


CPF_DIGITS = 11


@dataclass(frozen=True)
class UserContext:
    user_id: str
    full_name: str | None = None
    role: str | None = None

    def as_dict(self) -> dict[str, Any]:
        return {"id": self.user_id, "full_name": self.full_name, "role": self.role}


def normalize_name(name: str | None) -> str:
    return re.sub(r"\s+", " ", (name or "").strip()).upper()


def normalize_cpf(raw: str | None) -> str:
    """Apply the 000.000.000-00 mask to whatever digits were typed (max 11).

    Partial input is masked progressively, the same way the login field does.
    """
    digits = re.sub(r"\D", "", raw or "")[:CPF_DIGITS]
    if len(digits) > 9:
        return f"{digits[:3]}.{digits[3:6]}.{digits[6:9]}-{digits[9:]}"
    if len(digits) > 6:
        return f"{digits[:3]}.{digits[3:6]}.{digits[6:]}"
    if len(digits) > 3:
        return f"{digits[:3]}.{digits[3:]}"
    return digits


def identify(gateway: StorageGateway, *, full_name: str | None, cpf: str | None) -> UserContext:
    if not (full_name or "").strip() or not (cpf or "").strip():
        raise ValidationError("Fill in both full name and CPF.")

    rows = gateway.query(
        EntityKind.USER,
        filters={"full_name": normalize_name(full_name), "cpf": normalize_cpf(cpf)},
        limit=1,
    )
    if not rows:
        raise NotFoundError("Employee not found or details incorrect.")

    row = rows[0]
    return UserContext(user_id=str(row["id"]), full_name=row.get("full_name"), role=row.get("role"))
