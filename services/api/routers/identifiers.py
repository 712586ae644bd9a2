# services/api/routers/identifiers.py
from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from typing import Annotated, Optional

from core.identifiers import (
    all_project_numbers,
    is_duplicate_project_number,
    is_duplicate_reference,
    next_reference,
    parse_reference_format,
)
from schemas import IdentifierCheck, IdentifierCheckOut, NextIdentifierOut
from settings import get_settings

# DI
def get_storage():
    from main import get_storage_adapter
    return get_storage_adapter()

Storage = Annotated[object, Depends(get_storage)]

router = APIRouter(prefix="/identifiers", tags=["identifiers"])


def _suggest(existing, example: str) -> NextIdentifierOut:
    prefix, pad = parse_reference_format(example)
    return NextIdentifierOut(value=next_reference(existing, example), prefix=prefix, pad=pad)


@router.get("/next-reference", response_model=NextIdentifierOut)
async def suggest_reference(
    storage: Storage,
    format: Annotated[Optional[str], Query(max_length=100)] = None,
):
    """Next free client reference for a format example such as REF-001."""
    example = format or get_settings().reference_format_example
    return _suggest([f.reference for f in storage.list_files()], example)


@router.get("/next-project-number", response_model=NextIdentifierOut)
async def suggest_project_number(
    storage: Storage,
    format: Annotated[Optional[str], Query(max_length=100)] = None,
):
    """Next free project number, scanning projects in every file."""
    example = format or get_settings().project_number_format_example
    return _suggest(all_project_numbers(storage.list_files()), example)


@router.post("/check-reference", response_model=IdentifierCheckOut)
async def check_reference(storage: Storage, body: IdentifierCheck):
    duplicate = is_duplicate_reference(storage.list_files(), body.value, body.exclude_id)
    return IdentifierCheckOut(value=body.value.strip(), duplicate=duplicate)


@router.post("/check-project-number", response_model=IdentifierCheckOut)
async def check_project_number(storage: Storage, body: IdentifierCheck):
    duplicate = is_duplicate_project_number(storage.list_files(), body.value, body.exclude_id)
    return IdentifierCheckOut(value=body.value.strip(), duplicate=duplicate)
