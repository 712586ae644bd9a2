"""
Pydantic schemas for API request/response validation.
"""
from typing import List, Optional

from pydantic import BaseModel, Field

from .file import (
    FieldIn,
    FileCountsOut,
    FileCreate,
    FileUpdate,
    FolderFileRename,
    FolderIn,
    IdentifierCheck,
    IdentifierCheckOut,
    NextIdentifierOut,
    ProjectCountsOut,
    ProjectCreate,
    RenamePreview,
    RenamePreviewOut,
    StorageUsageOut,
)
from .view_share import CodeSubmit, GateResult, ViewShareCreate, ViewShareCreated


# ============ Report Schemas ============


class ReportRequest(BaseModel):
    """Export a client file (or a subset of its projects) as a PDF report."""
    project_ids: Optional[List[str]] = Field(
        None,
        description="Projects to include, in report order. Omit for all projects.",
    )
    business_name: Optional[str] = Field(None, max_length=200)


# ============ Health Check ============


class HealthCheck(BaseModel):
    """Health check response."""
    ok: bool = True
    backend: Optional[str] = None


# Re-export all
__all__ = [
    "CodeSubmit",
    "FieldIn",
    "FileCountsOut",
    "FileCreate",
    "FileUpdate",
    "FolderFileRename",
    "FolderIn",
    "GateResult",
    "HealthCheck",
    "IdentifierCheck",
    "IdentifierCheckOut",
    "NextIdentifierOut",
    "ProjectCountsOut",
    "ProjectCreate",
    "RenamePreview",
    "RenamePreviewOut",
    "ReportRequest",
    "StorageUsageOut",
    "ViewShareCreate",
    "ViewShareCreated",
]
