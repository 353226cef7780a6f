from __future__ import annotations

from typing import Optional

from pydantic import BaseModel


class IdentifyRequest(BaseModel):
    full_name: Optional[str] = None
    cpf: Optional[str] = None


class UserOut(BaseModel):
    id: str
    full_name: Optional[str] = None
    role: Optional[str] = None
