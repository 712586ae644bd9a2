from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from . import ViewShare


def _opt_str(v: Any) -> Optional[str]:
    """Empty cells / None become None, everything else a trimmed string."""
    if v is None:
        return None
    s = str(v).strip()
    return s or None


def _int_from_row(v: Any) -> int:
    try:
        return max(0, int(v))
    except (TypeError, ValueError):
        return 0


def _bool_from_row(v: Any) -> bool:
    if isinstance(v, str):
        return v.strip().lower() in ("true", "1", "yes", "y")
    return bool(v)


def _parse_timestamp(v: Any) -> Optional[datetime]:
    """
    Parse an ISO timestamp from a stored row.
    Naive values are treated as UTC; unparseable values are dropped.
    """
    if not v:
        return None
    if isinstance(v, datetime):
        dt = v
    else:
        try:
            dt = datetime.fromisoformat(str(v).strip().replace("Z", "+00:00"))
        except ValueError:
            return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def view_share_from_row(row: Dict[str, Any]) -> ViewShare:
    """
    Convert a raw `view_shares` row (hosted-store column names) into a ViewShare.
    """
    return ViewShare(
        token=str(row.get("token", "")),
        type=row.get("type", "file"),
        file_id=str(row.get("client_file_id", "")),
        project_id=str(row.get("project_id", "")),
        folder_id=_opt_str(row.get("folder_id")),
        folder_file_id=_opt_str(row.get("folder_file_id")),
        note_id=_opt_str(row.get("note_entry_id")),
        code=str(row.get("code", "")),
        expires_at=_parse_timestamp(row.get("expires_at")),
        code_attempts=_int_from_row(row.get("code_attempts")),
        locked=_bool_from_row(row.get("locked")),
    )


def view_share_to_row(share: ViewShare) -> Dict[str, Any]:
    return {
        "token": share.token,
        "code": share.code,
        "type": share.type,
        "client_file_id": share.file_id,
        "project_id": share.project_id,
        "folder_id": share.folder_id,
        "folder_file_id": share.folder_file_id,
        "note_entry_id": share.note_id,
        "expires_at": share.expires_at.isoformat() if share.expires_at else None,
        "code_attempts": share.code_attempts,
        "locked": share.locked,
    }
