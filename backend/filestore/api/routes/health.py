"""Health check."""

from fastapi import APIRouter

from filestore import __version__
from filestore.schemas.system import HealthResponse
from filestore.services import get_view_model

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def health_check():
    """Connectivity check, with the size of the mirrored file list."""
    try:
        view_model = get_view_model()
    except RuntimeError:
        return HealthResponse(version=__version__)
    return HealthResponse(
        version=__version__,
        files=len(view_model.files),
        subscribed=view_model.last_error is None,
    )


@router.get("/ping")
async def ping():
    """Ultra-lightweight ping."""
    return {"status": "ok"}
