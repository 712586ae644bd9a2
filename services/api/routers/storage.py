# services/api/routers/storage.py
from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status
from typing import Annotated

from core.storage_usage import (
    file_doc_counts,
    file_stats,
    format_storage_size,
    has_protected_extension,
    preserve_extension_name,
    project_stats,
    total_storage_bytes,
)
from schemas import (
    FileCountsOut,
    ProjectCountsOut,
    RenamePreview,
    RenamePreviewOut,
    StorageUsageOut,
)

# DI
def get_storage():
    from main import get_storage_adapter
    return get_storage_adapter()

Storage = Annotated[object, Depends(get_storage)]

router = APIRouter(prefix="/storage", tags=["storage"])


@router.get("/usage", response_model=StorageUsageOut)
async def storage_usage(storage: Storage):
    """Bytes used across every uploaded document, plus dashboard counters."""
    files = storage.list_files()
    used = total_storage_bytes(files)
    return StorageUsageOut(bytes=used, formatted=format_storage_size(used), **file_stats(files))


@router.get("/files/{file_id}/counts", response_model=FileCountsOut)
async def file_counts(storage: Storage, file_id: str):
    """Docs / images / videos in one file, and folders / files / images per project."""
    client_file = storage.get_file(file_id)
    if client_file is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="FILE_NOT_FOUND")
    return FileCountsOut(
        file_id=client_file.id,
        **file_doc_counts(client_file),
        projects=[
            ProjectCountsOut(id=p.id, name=p.name, **project_stats(p))
            for p in client_file.projects
        ],
    )


@router.post("/rename-preview", response_model=RenamePreviewOut)
async def rename_preview(body: RenamePreview):
    """Show the name a rename would actually store, before saving it."""
    return RenamePreviewOut(
        name=preserve_extension_name(body.original_name, body.user_input),
        extension_preserved=has_protected_extension(body.original_name),
    )
