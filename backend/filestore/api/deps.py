"""FastAPI dependency injection — services & admin gate."""

from __future__ import annotations

import logging

from fastapi import Depends

from filestore.exceptions import AdminRequiredError
from filestore.services import get_admin_gate, get_registry, get_view_model
from filestore.services.admin_gate import AdminGate
from filestore.services.file_registry import FileRegistryViewModel
from filestore.services.registry import SqlFileRegistry

logger = logging.getLogger(__name__)


def registry_dep() -> SqlFileRegistry:
    return get_registry()


def view_model_dep() -> FileRegistryViewModel:
    return get_view_model()


def admin_gate_dep() -> AdminGate:
    return get_admin_gate()


async def require_admin(gate: AdminGate = Depends(admin_gate_dep)) -> AdminGate:
    """Reject mutation intents unless the admin gate is open."""
    if not gate.is_admin:
        logger.info("Mutation attempt without admin access")
        raise AdminRequiredError()
    return gate
