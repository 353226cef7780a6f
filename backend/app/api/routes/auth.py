from __future__ import annotations

from fastapi import APIRouter, Depends, Request

from app.api.deps import get_gateway
from app.infra.storage_gateway import StorageGateway
from app.schemas.auth import IdentifyRequest, UserOut
from app.services.identity_service import identify


router = APIRouter(tags=["auth"])


@router.post("/identify")
def identify_user(request: Request, payload: IdentifyRequest, gateway: StorageGateway = Depends(get_gateway)):
    """Look an employee up by full name + CPF. Identification only, not a login."""
    user = identify(gateway, full_name=payload.full_name, cpf=payload.cpf)
    out = UserOut(id=user.user_id, full_name=user.full_name, role=user.role).model_dump()
    return {"request_id": request.state.request_id, "data": out, "error": None}
