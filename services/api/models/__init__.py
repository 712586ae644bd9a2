from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Literal, Optional

from pydantic import BaseModel, Field as PydanticField, field_validator

FileKind = Literal["Business", "Individual"]
ProjectStatus = Literal["Live", "Pending", "Completed"]
FolderType = Literal["documents", "photos", "videos", "general"]
FolderFileType = Literal["pdf", "word", "excel", "image", "video", "other"]
ViewShareType = Literal["file", "note"]


class FolderFile(BaseModel):
    """
    A single uploaded document inside a folder.

    `storage_path` is the durable identity of the bytes in object storage;
    `url` is a signed preview link that expires and may need a refresh.
    """
    id: str
    name: str
    file_type: FolderFileType = "other"
    size: str = ""
    size_in_bytes: Optional[int] = None
    upload_date: str = ""
    url: Optional[str] = None
    storage_path: Optional[str] = None


class Folder(BaseModel):
    id: str
    name: str
    type: FolderType = "general"
    files: List[FolderFile] = PydanticField(default_factory=list)


class Field(BaseModel):
    """Name/value pair shown in a project's field table."""
    id: str
    name: str
    value: str = ""


class NoteEntry(BaseModel):
    """Structured daily note: date, heading, subheading, HTML content."""
    id: str
    date: str = ""  # YYYY-MM-DD
    heading: str = ""
    subheading: str = ""
    content: str = ""


class Project(BaseModel):
    id: str
    project_number: Optional[str] = None
    name: str
    status: ProjectStatus = "Live"
    date_created: str = ""
    completed_date: Optional[str] = None
    description: Optional[str] = None
    fields: List[Field] = PydanticField(default_factory=list)
    folders: List[Folder] = PydanticField(default_factory=list)
    # Deprecated free-text notes; superseded by note_entries when those have text.
    notes: str = ""
    note_entries: List[NoteEntry] = PydanticField(default_factory=list)


class ClientFile(BaseModel):
    """
    Domain model for a client file (the top of the ownership tree).
    """
    id: str
    name: str
    type: FileKind = "Individual"
    phone: Optional[str] = None
    email: Optional[str] = None
    id_number: Optional[str] = None
    reference: Optional[str] = None
    date_created: str = ""
    last_updated: str = ""
    projects: List[Project] = PydanticField(default_factory=list)
    shared: bool = False


class ViewShare(BaseModel):
    """
    Domain model for a row of the `view_shares` table.

    File shares carry folder_id + folder_file_id, note shares carry note_id.
    `code_attempts` and `locked` persist the wrong-code budget so a lockout
    outlives any in-memory gate.
    """
    token: str
    type: ViewShareType
    file_id: str
    project_id: str
    folder_id: Optional[str] = None
    folder_file_id: Optional[str] = None
    note_id: Optional[str] = None
    code: str
    expires_at: Optional[datetime] = None
    code_attempts: int = 0
    locked: bool = False

    @field_validator("expires_at")
    @classmethod
    def _expires_at_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        # naive timestamps are stored as UTC
        if v is not None and v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v


__all__ = [
    "ClientFile",
    "Field",
    "Folder",
    "FolderFile",
    "NoteEntry",
    "Project",
    "ViewShare",
]
