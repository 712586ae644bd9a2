"""
JSON file storage adapter for the client file service.
Simple file-based storage for local development and tests.
Not production-ready (no proper locking, not suitable for concurrent access).
"""
import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from core.view_share import is_expired
from models import ClientFile, ViewShare
from models.converters import view_share_from_row, view_share_to_row

logger = logging.getLogger(__name__)


class JsonAdapter:
    """
    JSON file-based storage adapter.
    Stores client files and view shares in separate JSON files under the data directory.
    Uses atomic file operations for basic consistency.
    """

    def __init__(self, data_dir: str = "data"):
        """
        Initialize the JSON adapter.

        Args:
            data_dir: Directory to store JSON files
        """
        self.data_dir = Path(data_dir)
        self.data_dir.mkdir(parents=True, exist_ok=True)

        # File paths
        self.files_file = self.data_dir / "files.json"
        self.view_shares_file = self.data_dir / "view_shares.json"

        # Initialize files if they don't exist
        for file in [self.files_file, self.view_shares_file]:
            if not file.exists():
                self._write_file(file, [])

    def _read_file(self, filepath: Path) -> List[Dict[str, Any]]:
        """Read and parse a JSON file."""
        try:
            with open(filepath, "r", encoding="utf-8") as f:
                return json.load(f)
        except FileNotFoundError:
            return []
        except json.JSONDecodeError as e:
            logger.error(f"Corrupt JSON store {filepath.name}: {e}")
            raise

    def _write_file(self, filepath: Path, data: List[Dict[str, Any]]) -> None:
        """Write data to a JSON file atomically."""
        # Write to temporary file first
        tmp_file = filepath.with_suffix(".tmp")
        with open(tmp_file, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, ensure_ascii=False, default=str)

        # Atomic rename
        tmp_file.replace(filepath)

    # ========== Client files ==========

    def list_files(self) -> List[ClientFile]:
        return [ClientFile.model_validate(row) for row in self._read_file(self.files_file)]

    def get_file(self, file_id: str) -> Optional[ClientFile]:
        row = next((r for r in self._read_file(self.files_file) if r.get("id") == file_id), None)
        return ClientFile.model_validate(row) if row else None

    def save_file(self, client_file: ClientFile) -> ClientFile:
        now = datetime.now(timezone.utc).isoformat()
        stored = client_file.model_copy(
            update={
                "date_created": client_file.date_created or now,
                "last_updated": now,
            }
        )

        rows = self._read_file(self.files_file)
        row = stored.model_dump(mode="json")
        for i, existing in enumerate(rows):
            if existing.get("id") == stored.id:
                rows[i] = row
                break
        else:
            rows.append(row)
        self._write_file(self.files_file, rows)
        return stored

    def delete_file(self, file_id: str) -> bool:
        rows = self._read_file(self.files_file)
        kept = [r for r in rows if r.get("id") != file_id]
        if len(kept) == len(rows):
            return False
        self._write_file(self.files_file, kept)

        # shares pointing into the deleted file are dead links now
        shares = self._read_file(self.view_shares_file)
        self._write_file(
            self.view_shares_file,
            [s for s in shares if s.get("client_file_id") != file_id],
        )
        return True

    # ========== View shares ==========

    def create_view_share(self, share: ViewShare) -> ViewShare:
        shares = self._read_file(self.view_shares_file)
        if any(s.get("token") == share.token for s in shares):
            raise ValueError("VIEW_SHARE_TOKEN_EXISTS")
        shares.append(view_share_to_row(share))
        self._write_file(self.view_shares_file, shares)
        return share

    def get_view_share(self, token: str) -> Optional[ViewShare]:
        row = next(
            (s for s in self._read_file(self.view_shares_file) if s.get("token") == token),
            None,
        )
        return view_share_from_row(row) if row else None

    def record_code_attempt(self, token: str, attempts: int, locked: bool) -> bool:
        shares = self._read_file(self.view_shares_file)
        for row in shares:
            if row.get("token") == token:
                row["code_attempts"] = attempts
                row["locked"] = locked
                self._write_file(self.view_shares_file, shares)
                return True
        return False

    async def resolve(self, token: str) -> Optional[ViewShare]:
        """
        Share lookup for the view gate; missing and expired shares are None.
        File reads block the event loop, acceptable for this local store only.
        """
        share = self.get_view_share(token)
        if share is None or is_expired(share):
            return None
        return share
