"""
Pydantic schemas for client files, projects and identifiers.
"""
from typing import List, Optional

from pydantic import BaseModel, Field, model_validator

from models import FileKind, FolderType, ProjectStatus


class FileCreate(BaseModel):
    """Create a client file. A reference is allocated when none is given."""
    name: str = Field(..., min_length=1, max_length=200)
    type: FileKind = "Individual"
    phone: Optional[str] = Field(None, max_length=50)
    email: Optional[str] = Field(None, max_length=200)
    id_number: Optional[str] = Field(None, max_length=50)
    reference: Optional[str] = Field(None, max_length=100)
    auto_reference: bool = Field(True, description="Allocate the next reference when none is given")
    reference_format: Optional[str] = Field(
        None,
        max_length=100,
        description="Example reference (e.g. REF-001) used for auto numbering",
    )


class FileUpdate(BaseModel):
    """Partial update for client file fields."""
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    type: Optional[FileKind] = None
    phone: Optional[str] = Field(None, max_length=50)
    email: Optional[str] = Field(None, max_length=200)
    id_number: Optional[str] = Field(None, max_length=50)
    reference: Optional[str] = Field(None, max_length=100)

    @model_validator(mode="after")
    def reject_null_required(self) -> "FileUpdate":
        # name and type may be omitted, never cleared
        for key in ("name", "type"):
            if key in self.model_fields_set and getattr(self, key) is None:
                raise ValueError(f"{key} cannot be null")
        return self


class FieldIn(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    value: str = ""


class FolderIn(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    type: FolderType = "general"


class ProjectCreate(BaseModel):
    """Add a project to a file. A project number is allocated when none is given."""
    name: str = Field(..., min_length=1, max_length=200)
    project_number: Optional[str] = Field(None, max_length=100)
    status: ProjectStatus = "Live"
    description: Optional[str] = Field(None, max_length=2000)
    project_number_format: Optional[str] = Field(None, max_length=100)
    fields: List[FieldIn] = Field(default_factory=list)
    folders: List[FolderIn] = Field(default_factory=list)


class FolderFileRename(BaseModel):
    name: str = Field(..., max_length=255)


class IdentifierCheck(BaseModel):
    value: str = Field("", max_length=100)
    exclude_id: Optional[str] = Field(None, description="Id of the file/project being edited")


class IdentifierCheckOut(BaseModel):
    value: str
    duplicate: bool


class NextIdentifierOut(BaseModel):
    value: str
    prefix: str
    pad: int


class RenamePreview(BaseModel):
    original_name: str = Field(..., min_length=1, max_length=255)
    user_input: str = Field("", max_length=255)


class RenamePreviewOut(BaseModel):
    name: str
    extension_preserved: bool


class StorageUsageOut(BaseModel):
    bytes: int
    formatted: str
    total_docs: int
    live: int
    pending: int
    completed: int


class ProjectCountsOut(BaseModel):
    id: str
    name: str
    folders: int
    files: int
    images: int


class FileCountsOut(BaseModel):
    """Document counters for one client file, plus one row per project."""
    file_id: str
    docs: int
    images: int
    videos: int
    projects: List[ProjectCountsOut] = Field(default_factory=list)
