# services/api/routers/view_shares.py
from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import JSONResponse
from cachetools import TTLCache
from datetime import datetime, timedelta, timezone
from typing import Annotated
import logging

from core.view_share import (
    MAX_CODE_ATTEMPTS,
    AwaitingCode,
    Granted,
    InvalidShare,
    Loading,
    Locked,
    NotFound,
    ViewShareGate,
    build_share_link,
    generate_share_token,
    generate_view_code,
)
from models import ViewShare
from schemas import CodeSubmit, GateResult, ViewShareCreate, ViewShareCreated
from settings import get_settings

logger = logging.getLogger(__name__)

# DI
def get_storage():
    from main import get_storage_adapter
    return get_storage_adapter()

Storage = Annotated[object, Depends(get_storage)]

router = APIRouter(prefix="/view-shares", tags=["view-shares"])

_settings = get_settings()

# Per-process cache of open gates, one per token. The wrong-code count and
# lock flag live on the share row, so a gate rebuilt after eviction or a
# restart resumes where it was. Granted / missing / invalid gates are evicted.
gate_cache: TTLCache = TTLCache(
    maxsize=_settings.share_attempts_max_tokens,
    ttl=_settings.share_attempts_ttl_seconds,
)


def _log_redirect(path: str, replace: bool = True) -> None:
    logger.info(f"View share granted, redirecting to {path} (replace={replace})")


def _gate_response(state) -> JSONResponse:
    if isinstance(state, Granted):
        code, result = status.HTTP_200_OK, GateResult(
            status="granted",
            type=state.share.type,
            redirect=state.target.path,
            replace=state.target.replace,
        )
    elif isinstance(state, AwaitingCode):
        code = status.HTTP_401_UNAUTHORIZED if state.attempts else status.HTTP_200_OK
        result = GateResult(
            status="awaiting_code",
            type=state.share.type,
            message=state.message,
            attempts_remaining=MAX_CODE_ATTEMPTS - state.attempts,
        )
    elif isinstance(state, Locked):
        code, result = status.HTTP_423_LOCKED, GateResult(
            status="locked", type=state.share.type, message=state.message, attempts_remaining=0,
        )
    elif isinstance(state, InvalidShare):
        code, result = 422, GateResult(
            status="invalid_share", type=state.share.type, message=state.message,
        )
    elif isinstance(state, NotFound):
        code, result = status.HTTP_404_NOT_FOUND, GateResult(
            status="not_found",
            message="This view link is not valid or has expired. "
                    "Please ask the sender for a new link and code.",
        )
    else:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid link")
    return JSONResponse(status_code=code, content=result.model_dump())


async def _open_gate(storage, token: str) -> ViewShareGate:
    gate = gate_cache.get(token)
    if gate is None:
        gate = ViewShareGate(storage, navigate=_log_redirect, record=storage.record_code_attempt)
        gate_cache[token] = gate
    await gate.open(token)
    if isinstance(gate.state, Loading):
        # another request is still resolving this token
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Please try again.")
    return gate


def _evict_if_done(token: str, gate: ViewShareGate) -> None:
    if isinstance(gate.state, (Granted, NotFound, InvalidShare)):
        gate_cache.pop(token, None)


@router.post("", response_model=ViewShareCreated, status_code=status.HTTP_201_CREATED)
async def create_view_share(storage: Storage, body: ViewShareCreate):
    """
    Create a share link for one folder file or one note. The code is returned
    once and must be sent to the recipient separately from the link.
    """
    client_file = storage.get_file(body.file_id)
    if client_file is None or not any(p.id == body.project_id for p in client_file.projects):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="PROJECT_NOT_FOUND")

    expires_at = None
    if body.expires_in_hours:
        expires_at = datetime.now(timezone.utc) + timedelta(hours=body.expires_in_hours)

    share = ViewShare(
        token=generate_share_token(),
        code=generate_view_code(),
        type=body.type,
        file_id=body.file_id,
        project_id=body.project_id,
        folder_id=body.folder_id if body.type == "file" else None,
        folder_file_id=body.folder_file_id if body.type == "file" else None,
        note_id=body.note_id if body.type == "note" else None,
        expires_at=expires_at,
    )
    storage.create_view_share(share)
    logger.info(f"Created {share.type} view share for file {share.file_id}")
    return ViewShareCreated(
        token=share.token,
        code=share.code,
        link=build_share_link(get_settings().public_base_url, share.token),
    )


@router.get("/{token}", response_model=GateResult)
async def open_view_share(storage: Storage, token: str):
    """Resolve a share link: tells the viewer whether to ask for the code."""
    gate = await _open_gate(storage, token)
    _evict_if_done(token, gate)
    return _gate_response(gate.state)


@router.post("/{token}/verify", response_model=GateResult)
async def verify_view_share(storage: Storage, token: str, body: CodeSubmit):
    """
    Check the access code. Wrong codes answer 401 until the third one, which
    locks the link (423) for good; the sender has to issue a new link. A
    correct code answers with the deep link to replace the current page with.
    """
    if not body.code.strip():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Enter the access code.")
    gate = await _open_gate(storage, token)
    await gate.submit_code(body.code)
    _evict_if_done(token, gate)
    return _gate_response(gate.state)
