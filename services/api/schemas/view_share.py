"""
Pydantic schemas for view shares (token + access code links).
"""
from typing import Literal, Optional

from pydantic import BaseModel, Field, model_validator

from models import ViewShareType


class ViewShareCreate(BaseModel):
    """Share one folder file or one note entry of a project."""
    type: ViewShareType
    file_id: str = Field(..., min_length=1)
    project_id: str = Field(..., min_length=1)
    folder_id: Optional[str] = None
    folder_file_id: Optional[str] = None
    note_id: Optional[str] = None
    expires_in_hours: Optional[int] = Field(
        None,
        gt=0,
        le=24 * 365,
        description="Optional lifetime; shares without it never expire",
    )

    @model_validator(mode="after")
    def validate_target(self) -> "ViewShareCreate":
        if self.type == "file" and not (self.folder_id and self.folder_file_id):
            raise ValueError("File shares need folder_id and folder_file_id")
        if self.type == "note" and not self.note_id:
            raise ValueError("Note shares need note_id")
        return self


class ViewShareCreated(BaseModel):
    token: str
    code: str
    link: str


class CodeSubmit(BaseModel):
    code: str = Field("", max_length=50)


GateStatus = Literal["awaiting_code", "not_found", "locked", "granted", "invalid_share"]


class GateResult(BaseModel):
    """Outcome of opening a share link or submitting its access code."""
    status: GateStatus
    type: Optional[ViewShareType] = None
    message: str = ""
    attempts_remaining: Optional[int] = None
    redirect: Optional[str] = None
    replace: bool = False
