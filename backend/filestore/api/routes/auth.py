"""Admin gate routes — PIN login / logout."""

import logging

from fastapi import APIRouter, Depends

from filestore.api.deps import admin_gate_dep
from filestore.exceptions import AuthDeniedError
from filestore.schemas.auth import GateStatus, LoginRequest
from filestore.schemas.files import Notice
from filestore.services.admin_gate import AdminGate

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/login", response_model=Notice)
async def login(body: LoginRequest, gate: AdminGate = Depends(admin_gate_dep)):
    """Open the admin gate when the PIN matches."""
    if not gate.authenticate(body.pin):
        raise AuthDeniedError()
    return Notice(message="Welcome Admin! Access Granted.")


@router.post("/logout", response_model=Notice)
async def logout(gate: AdminGate = Depends(admin_gate_dep)):
    gate.logout()
    return Notice(message="Logged out of Admin Panel")


@router.get("/status", response_model=GateStatus)
async def gate_status(gate: AdminGate = Depends(admin_gate_dep)):
    return GateStatus(is_admin=gate.is_admin, state=gate.state.value, since=gate.since)
