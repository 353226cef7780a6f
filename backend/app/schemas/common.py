from __future__ import annotations

from typing import Any, Dict, Optional

from pydantic import BaseModel


class ErrorOut(BaseModel):
    code: str
    message: str
    details: Optional[Dict[str, Any]] = None


class Envelope(BaseModel):
    request_id: str
    data: Optional[Any] = None
    error: Optional[ErrorOut] = None


def envelope(request_id: str, data: Any = None, error: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    out = Envelope(request_id=request_id, data=data, error=ErrorOut(**error) if error else None)
    return out.model_dump(mode="json", exclude_none=False)
