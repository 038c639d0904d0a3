"""Business logic services — singleton registry."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from filestore.config import settings

if TYPE_CHECKING:
    from filestore.services.admin_gate import AdminGate
    from filestore.services.file_registry import FileRegistryViewModel
    from filestore.services.registry import SqlFileRegistry, SubscriptionHandle
    from filestore.services.scheduler import RegistryPoller

logger = logging.getLogger(__name__)

_registry: SqlFileRegistry | None = None
_view_model: FileRegistryViewModel | None = None
_admin_gate: AdminGate | None = None
_subscription: SubscriptionHandle | None = None
_poller: RegistryPoller | None = None


async def init_services(session_factory: async_sessionmaker[AsyncSession]) -> None:
    """Create and wire up all service singletons."""
    global _registry, _view_model, _admin_gate, _subscription, _poller

    from filestore.services.admin_gate import AdminGate
    from filestore.services.file_registry import FileRegistryViewModel
    from filestore.services.registry import SqlFileRegistry
    from filestore.services.scheduler import RegistryPoller

    _registry = SqlFileRegistry(session_factory, app_id=settings.app_id)
    _view_model = FileRegistryViewModel(
        _registry, max_upload_bytes=settings.max_upload_bytes
    )
    _admin_gate = AdminGate(admin_secret=settings.admin_pin)

    _subscription = await _view_model.subscribe()
    logger.info(
        "File registry subscribed (app_id=%s, %d files)",
        settings.app_id, len(_view_model.files),
    )

    if settings.registry_poll_seconds > 0:
        _poller = RegistryPoller(_registry, settings.registry_poll_seconds)
        _poller.start()
    else:
        logger.info("Registry polling disabled (FILESTORE_REGISTRY_POLL_SECONDS=0)")


async def shutdown_services() -> None:
    """Stop polling, drop the subscription, and forget the singletons."""
    global _registry, _view_model, _admin_gate, _subscription, _poller
    if _poller:
        await _poller.stop()
        _poller = None
    if _subscription:
        _subscription.unsubscribe()
        _subscription = None
    _registry = None
    _view_model = None
    _admin_gate = None


def get_registry() -> SqlFileRegistry:
    if _registry is None:
        raise RuntimeError("Services not initialized — call init_services() first")
    return _registry


def get_view_model() -> FileRegistryViewModel:
    if _view_model is None:
        raise RuntimeError("Services not initialized — call init_services() first")
    return _view_model


def get_admin_gate() -> AdminGate:
    if _admin_gate is None:
        raise RuntimeError("Services not initialized — call init_services() first")
    return _admin_gate
