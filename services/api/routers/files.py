# services/api/routers/files.py
from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status
from typing import Annotated, List
import logging

from core.identifiers import generate_unique_id, next_project_number, next_reference
from core.storage_usage import format_storage_size, preserve_extension_name
from core.validation import (
    clean_optional,
    ensure_project_editable,
    ensure_unique_project_number,
    ensure_unique_reference,
)
from models import ClientFile, Field, Folder, Project
from schemas import FileCreate, FileUpdate, FolderFileRename, ProjectCreate
from settings import get_settings

logger = logging.getLogger(__name__)

# DI
def get_storage():
    # pulls the global adapter from main.py
    from main import get_storage_adapter
    return get_storage_adapter()

Storage = Annotated[object, Depends(get_storage)]

router = APIRouter(prefix="/files", tags=["files"])


def _get_file_or_404(storage, file_id: str) -> ClientFile:
    client_file = storage.get_file(file_id)
    if client_file is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="FILE_NOT_FOUND")
    return client_file


def _find_project(client_file: ClientFile, project_id: str) -> Project:
    project = next((p for p in client_file.projects if p.id == project_id), None)
    if project is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="PROJECT_NOT_FOUND")
    return project


@router.get("", response_model=List[ClientFile])
async def list_files(storage: Storage):
    return storage.list_files()


@router.get("/{file_id}", response_model=ClientFile)
async def get_file(storage: Storage, file_id: str):
    return _get_file_or_404(storage, file_id)


@router.post("", response_model=ClientFile, status_code=status.HTTP_201_CREATED)
async def create_file(storage: Storage, body: FileCreate):
    """
    Create a client file.

    When no reference is supplied (and auto_reference is on) the next
    reference is allocated from the configured format example. The reference
    is re-checked for uniqueness right before saving; a 409 tells the client
    to fetch a fresh suggestion and retry.
    """
    files = storage.list_files()
    reference = clean_optional(body.reference)
    if reference is None and body.auto_reference:
        example = body.reference_format or get_settings().reference_format_example
        reference = next_reference([f.reference for f in files], example)
    ensure_unique_reference(files, reference)

    client_file = ClientFile(
        id=generate_unique_id("file"),
        name=body.name.strip(),
        type=body.type,
        phone=clean_optional(body.phone),
        email=clean_optional(body.email),
        id_number=clean_optional(body.id_number),
        reference=reference,
    )
    stored = storage.save_file(client_file)
    logger.info(f"Created client file {stored.id} (reference={stored.reference})")
    return stored


@router.patch("/{file_id}", response_model=ClientFile)
async def update_file(storage: Storage, file_id: str, body: FileUpdate):
    client_file = _get_file_or_404(storage, file_id)
    updates = body.model_dump(exclude_unset=True)

    if "reference" in updates:
        updates["reference"] = clean_optional(updates["reference"])
        ensure_unique_reference(storage.list_files(), updates["reference"], exclude_file_id=file_id)
    for key in ("phone", "email", "id_number"):
        if key in updates:
            updates[key] = clean_optional(updates[key])
    if "name" in updates and updates["name"] is not None:
        updates["name"] = updates["name"].strip()

    return storage.save_file(ClientFile.model_validate({**client_file.model_dump(), **updates}))


@router.delete("/{file_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_file(storage: Storage, file_id: str):
    if not storage.delete_file(file_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="FILE_NOT_FOUND")
    logger.info(f"Deleted client file {file_id}")


@router.post("/{file_id}/projects", response_model=Project, status_code=status.HTTP_201_CREATED)
async def add_project(storage: Storage, file_id: str, body: ProjectCreate):
    """
    Add a project. Project numbers are unique across every file, so the
    allocation scans the whole population, not just this file.
    """
    files = storage.list_files()
    client_file = next((f for f in files if f.id == file_id), None)
    if client_file is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="FILE_NOT_FOUND")

    project_number = clean_optional(body.project_number)
    if project_number is None:
        example = body.project_number_format or get_settings().project_number_format_example
        project_number = next_project_number(files, example)
    ensure_unique_project_number(files, project_number)

    project = Project(
        id=generate_unique_id("project"),
        project_number=project_number,
        name=body.name.strip(),
        status=body.status,
        description=clean_optional(body.description),
        fields=[Field(id=generate_unique_id("field"), name=f.name, value=f.value) for f in body.fields],
        folders=[Folder(id=generate_unique_id("folder"), name=f.name, type=f.type) for f in body.folders],
    )
    storage.save_file(client_file.model_copy(update={"projects": [*client_file.projects, project]}))
    logger.info(f"Added project {project.id} ({project_number}) to file {file_id}")
    return project


@router.patch("/{file_id}/projects/{project_id}/folders/{folder_id}/files/{folder_file_id}")
async def rename_folder_file(
    storage: Storage,
    file_id: str,
    project_id: str,
    folder_id: str,
    folder_file_id: str,
    body: FolderFileRename,
):
    """
    Rename a document's display name. Known document/media extensions are
    always kept, whatever extension the user typed.
    """
    client_file = _get_file_or_404(storage, file_id)
    project = _find_project(client_file, project_id)
    ensure_project_editable(project.status)

    folder = next((f for f in project.folders if f.id == folder_id), None)
    if folder is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="FOLDER_NOT_FOUND")
    item = next((x for x in folder.files if x.id == folder_file_id), None)
    if item is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="FOLDER_FILE_NOT_FOUND")

    item.name = preserve_extension_name(item.name, body.name)
    storage.save_file(client_file)
    return {
        "id": item.id,
        "name": item.name,
        "size": item.size or (format_storage_size(item.size_in_bytes) if item.size_in_bytes else ""),
    }
