"""
Validation utilities for the client file API.
Turns the pure identifier checks into clear HTTP errors at write time.
"""
from typing import Iterable, Optional

from fastapi import HTTPException

from core.identifiers import is_duplicate_project_number, is_duplicate_reference
from models import ClientFile


def ensure_unique_reference(
    files: Iterable[ClientFile],
    reference: Optional[str],
    exclude_file_id: Optional[str] = None,
) -> None:
    """
    Ensure no other client file already uses this reference.

    Comparison ignores case and surrounding whitespace; blank references are
    always accepted (the field is optional).

    Raises:
        HTTPException: 409 if the reference is taken
    """
    if is_duplicate_reference(files, reference, exclude_file_id):
        raise HTTPException(
            status_code=409,
            detail=f"Reference '{(reference or '').strip()}' is already used by another file"
        )


def ensure_unique_project_number(
    files: Iterable[ClientFile],
    project_number: Optional[str],
    exclude_project_id: Optional[str] = None,
) -> None:
    """
    Ensure no other project, in any file, already uses this project number.

    Raises:
        HTTPException: 409 if the project number is taken
    """
    if is_duplicate_project_number(files, project_number, exclude_project_id):
        raise HTTPException(
            status_code=409,
            detail=f"Project number '{(project_number or '').strip()}' is already in use"
        )


def ensure_project_editable(status: str) -> None:
    """
    Completed projects are read-only.

    Raises:
        HTTPException: 409 if the project is completed
    """
    if status == "Completed":
        raise HTTPException(
            status_code=409,
            detail="Completed projects cannot be edited"
        )


def clean_optional(value: Optional[str]) -> Optional[str]:
    """
    Trim an optional text field; blank values become None.

    Args:
        value: Raw value from the request

    Returns:
        Trimmed value or None
    """
    if value is None:
        return None
    value = value.strip()
    return value or None
