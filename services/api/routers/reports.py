from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Body
from fastapi.responses import StreamingResponse
from typing import Annotated, Dict
import io
import logging

from core.errors import friendly_message
from core.report_pdf import generate_file_pdf
from schemas import ReportRequest
from settings import get_settings

# Set up logger
logger = logging.getLogger(__name__)

# DI
def get_storage():
    # pulls the global adapter from main.py
    from main import get_storage_adapter
    return get_storage_adapter()

router = APIRouter(prefix="/reports", tags=["reports"])


@router.post("/files/{file_id}/pdf")
async def export_file_pdf(
    file_id: str,
    body: Annotated[ReportRequest, Body()] = ReportRequest(),
    storage = Depends(get_storage),
):
    """
    Export a client file as a paginated PDF report and send it back as a
    download. `project_ids` selects and orders the projects; unknown ids are
    skipped.
    """
    client_file = storage.get_file(file_id)
    if client_file is None:
        raise HTTPException(status_code=404, detail="FILE_NOT_FOUND")

    settings = get_settings()
    saved: Dict[str, bytes] = {}

    async def save(filename: str, data: bytes) -> None:
        saved[filename] = data

    try:
        filename = await generate_file_pdf(
            client_file,
            save,
            project_ids=body.project_ids,
            business_name=body.business_name,
            brand=settings.brand_name,
            attribution=settings.report_attribution,
        )
    except Exception as e:
        logger.exception(f"PDF export failed for file {file_id}: {e}")
        raise HTTPException(status_code=500, detail=friendly_message(e))

    logger.info(f"Exported {filename} ({len(saved[filename])} bytes)")
    return StreamingResponse(
        io.BytesIO(saved[filename]),
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
