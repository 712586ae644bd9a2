"""
Storage adapter interface for the client file service.
Defines the contract that all storage backends must implement.
"""

from typing import List, Optional, Protocol

from models import ClientFile, ViewShare


class ClientFileStore(Protocol):
    """
    Protocol defining the interface for all storage adapters.

    Routers receive an adapter through dependency injection; the identifier,
    naming, gate and report modules never touch storage directly.
    """

    # ========== Client files ==========

    def list_files(self) -> List[ClientFile]:
        """
        Return every client file with its full project tree.
        Used as the population for reference / project-number checks.
        """
        ...

    def get_file(self, file_id: str) -> Optional[ClientFile]:
        """
        Fetch a client file by id.

        Returns:
            The ClientFile, or None if not found.
        """
        ...

    def save_file(self, client_file: ClientFile) -> ClientFile:
        """
        Insert or replace a client file (whole tree).

        Implementations should bump `last_updated` and return the stored copy.
        """
        ...

    def delete_file(self, file_id: str) -> bool:
        """
        Irreversibly delete a client file and everything it owns.

        Returns:
            True if a file was removed.
        """
        ...

    # ========== View shares ==========

    def create_view_share(self, share: ViewShare) -> ViewShare:
        """Persist a new share row (token + access code)."""
        ...

    def get_view_share(self, token: str) -> Optional[ViewShare]:
        """Raw lookup by token, including expired shares."""
        ...

    def record_code_attempt(self, token: str, attempts: int, locked: bool) -> bool:
        """
        Persist the wrong-code count and lock flag on a share.

        A locked share must stay locked for every later lookup, whichever
        process serves it.

        Returns:
            True if the share exists.
        """
        ...

    async def resolve(self, token: str) -> Optional[ViewShare]:
        """
        Share lookup used by the view gate.

        Returns None when the token is unknown or the share has expired.
        """
        ...
