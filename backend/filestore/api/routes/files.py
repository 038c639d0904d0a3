"""File API routes — live listing, upload, delete, download."""

from __future__ import annotations

import asyncio
import logging
from typing import AsyncIterator
from urllib.parse import quote

from fastapi import APIRouter, Depends, File, HTTPException, Request, UploadFile, status
from fastapi.responses import Response, StreamingResponse

from filestore.api.deps import registry_dep, require_admin, view_model_dep
from filestore.exceptions import SubscriptionError, TooLargeError
from filestore.schemas.files import FileListing, Notice, RawFileInput
from filestore.services.file_registry import FileRegistryViewModel
from filestore.services.registry import SqlFileRegistry
from filestore.utils import codec

logger = logging.getLogger(__name__)
router = APIRouter()

KEEPALIVE_SECONDS = 15.0


@router.get("", response_model=FileListing)
async def list_files(view_model: FileRegistryViewModel = Depends(view_model_dep)):
    """Current mirrored list, newest first. ``stale`` if the last update failed."""
    return FileListing.from_records(
        view_model.files, stale=view_model.last_error is not None
    )


@router.get("/events")
async def file_events(request: Request, registry: SqlFileRegistry = Depends(registry_dep)):
    """Server-Sent Events: one ``snapshot`` event per registry change."""
    return StreamingResponse(
        listing_events(request, registry),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
    )


async def listing_events(
    request: Request, registry: SqlFileRegistry, keepalive: float = KEEPALIVE_SECONDS
) -> AsyncIterator[str]:
    """Yield SSE frames for every snapshot until the client disconnects."""
    # Only the newest undelivered snapshot matters
    pending: asyncio.Queue[str] = asyncio.Queue(maxsize=1)

    def _offer(frame: str) -> None:
        if pending.full():
            pending.get_nowait()
        pending.put_nowait(frame)

    def _on_snapshot(records) -> None:
        listing = FileListing.from_records(records)
        _offer(f"event: snapshot\ndata: {listing.model_dump_json()}\n\n")

    def _on_error(exc: Exception) -> None:
        notice = Notice(message=SubscriptionError.notice, type="error")
        _offer(f"event: error\ndata: {notice.model_dump_json()}\n\n")

    handle = await registry.subscribe(_on_snapshot, _on_error)
    try:
        while not await request.is_disconnected():
            try:
                yield await asyncio.wait_for(pending.get(), timeout=keepalive)
            except asyncio.TimeoutError:
                yield ": keep-alive\n\n"
    finally:
        handle.unsubscribe()


@router.post("/upload", response_model=Notice, dependencies=[Depends(require_admin)])
async def upload_file(
    file: UploadFile = File(...),
    view_model: FileRegistryViewModel = Depends(view_model_dep),
):
    """Store an uploaded file inline in the registry (admin only)."""
    limit = view_model.max_upload_bytes
    if file.size is not None and file.size > limit:
        raise TooLargeError(file.size, limit)

    # One byte past the ceiling is enough for add() to reject it
    data = await file.read(limit + 1)
    raw = RawFileInput(
        name=file.filename or "untitled",
        mime_type=file.content_type or "",
        data=data,
        size_bytes=len(data),
    )
    await view_model.add(raw)
    return Notice(message="File uploaded successfully!")


@router.delete("/{file_id}", response_model=Notice, dependencies=[Depends(require_admin)])
async def delete_file(
    file_id: str,
    view_model: FileRegistryViewModel = Depends(view_model_dep),
):
    """Delete a file (admin only). Confirmation is the client's job."""
    await view_model.remove(file_id)
    return Notice(message="File removed.")


@router.get("/{file_id}/download")
async def download_file(
    file_id: str,
    view_model: FileRegistryViewModel = Depends(view_model_dep),
):
    """Decode the mirrored payload and send it as an attachment."""
    record = view_model.get(file_id)
    if record is None:
        raise HTTPException(status.HTTP_404_NOT_FOUND, "File not found")

    data = codec.decode(record.payload)
    media_type = (
        record.mime_type
        or codec.payload_mime_type(record.payload)
        or codec.DEFAULT_MIME_TYPE
    )
    logger.info("Downloading %s (%d bytes)", record.name, len(data))
    return Response(
        content=data,
        media_type=media_type,
        headers={"Content-Disposition": _content_disposition(record.name)},
    )


def _content_disposition(filename: str) -> str:
    quoted = quote(filename)
    if quoted != filename:
        return f"attachment; filename*=utf-8''{quoted}"
    return f'attachment; filename="{filename}"'
