"""
View-share gate: anonymous access to one shared file or note.

A recipient opens /view?token=..., the token is resolved to a ViewShare and the
recipient must then enter the access code sent alongside the link. Three wrong
codes lock the gate for good; the sender has to issue a new link.

The gate is a tagged union of states driven by a single `transition` function.
`ViewShareGate` is the async driver that performs the lookup and navigation.
"""
from __future__ import annotations

import logging
import secrets
import string
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Awaitable, Callable, Optional, Protocol, Union
from urllib.parse import quote

from models import ViewShare

logger = logging.getLogger(__name__)

MAX_CODE_ATTEMPTS = 3

MSG_INCORRECT_CODE = "Incorrect code. Please check and try again."
MSG_LOCKED = "Too many attempts. Please contact the person who sent you this link."
MSG_INVALID_SHARE = "Invalid share. Please use the link you were sent."

_TOKEN_ALPHABET = string.ascii_lowercase + string.digits
_TOKEN_LENGTH = 32


# ---------- states -----------------------------------------------------------

@dataclass(frozen=True)
class NavigationTarget:
    path: str
    replace: bool = True


@dataclass(frozen=True)
class Idle:
    """Gate created, link not opened yet."""


@dataclass(frozen=True)
class NoToken:
    """The link carried no token at all."""


@dataclass(frozen=True)
class Loading:
    token: str


@dataclass(frozen=True)
class NotFound:
    """Token invalid or expired. Never counts against the attempt budget."""
    token: str


@dataclass(frozen=True)
class AwaitingCode:
    share: ViewShare
    attempts: int = 0
    message: str = ""


@dataclass(frozen=True)
class Locked:
    share: ViewShare
    message: str = MSG_LOCKED


@dataclass(frozen=True)
class Granted:
    share: ViewShare
    target: NavigationTarget


@dataclass(frozen=True)
class InvalidShare:
    """Code matched but the share lacks the ids its type requires."""
    share: ViewShare
    message: str = MSG_INVALID_SHARE


GateState = Union[Idle, NoToken, Loading, NotFound, AwaitingCode, Locked, Granted, InvalidShare]

TERMINAL_STATES = (NoToken, NotFound, Locked, Granted, InvalidShare)


# ---------- events -----------------------------------------------------------

@dataclass(frozen=True)
class Opened:
    token: Optional[str]


@dataclass(frozen=True)
class LookupResolved:
    token: str
    share: Optional[ViewShare]


@dataclass(frozen=True)
class CodeSubmitted:
    code: str


GateEvent = Union[Opened, LookupResolved, CodeSubmitted]


def is_terminal(state: GateState) -> bool:
    return isinstance(state, TERMINAL_STATES)


# ---------- deep links -------------------------------------------------------

def build_navigation_target(share: ViewShare) -> Optional[NavigationTarget]:
    """
    Deep link into the shared project, or None when the share's ids don't
    match its type (a file share without folder/file ids, a note share
    without a note id).
    """
    base = f"/file/{share.file_id}/project/{share.project_id}"
    if share.type == "file" and share.folder_id and share.folder_file_id:
        return NavigationTarget(
            f"{base}?folder={quote(share.folder_id, safe='')}"
            f"&view={quote(share.folder_file_id, safe='')}"
        )
    if share.type == "note" and share.note_id:
        return NavigationTarget(f"{base}?note={quote(share.note_id, safe='')}")
    return None


def codes_match(entered: str, expected: str) -> bool:
    """Trimmed, case-insensitive full equality. No prefix or partial matches."""
    return entered.strip().upper() == (expected or "").strip().upper()


# ---------- transition function ---------------------------------------------

def resume_gate(share: ViewShare) -> GateState:
    """State for a freshly resolved share, picking up wrong codes already recorded on it."""
    if share.locked or share.code_attempts >= MAX_CODE_ATTEMPTS:
        return Locked(share)
    if share.code_attempts:
        return AwaitingCode(share, attempts=share.code_attempts, message=MSG_INCORRECT_CODE)
    return AwaitingCode(share, attempts=0)


def transition(state: GateState, event: GateEvent) -> GateState:
    """
    The only place gate state changes. Unknown (state, event) pairs and any
    event after a terminal state leave the state as it is.
    """
    if is_terminal(state):
        return state

    if isinstance(event, Opened):
        if not isinstance(state, Idle):
            return state
        return Loading(event.token) if event.token else NoToken()

    if isinstance(event, LookupResolved):
        if not isinstance(state, Loading) or state.token != event.token:
            # stale resolution for a token we no longer care about
            return state
        if event.share is None:
            return NotFound(event.token)
        return resume_gate(event.share)

    if isinstance(event, CodeSubmitted):
        if not isinstance(state, AwaitingCode) or not event.code.strip():
            return state
        share = state.share
        if not codes_match(event.code, share.code):
            attempts = state.attempts + 1
            if attempts >= MAX_CODE_ATTEMPTS:
                return Locked(share)
            return AwaitingCode(share, attempts=attempts, message=MSG_INCORRECT_CODE)
        target = build_navigation_target(share)
        if target is None:
            return InvalidShare(share)
        return Granted(share, target)

    return state


# ---------- async driver -----------------------------------------------------

class ShareLookup(Protocol):
    async def resolve(self, token: str) -> Optional[ViewShare]:
        ...


Navigate = Callable[..., Union[None, Awaitable[None]]]
RecordAttempts = Callable[[str, int, bool], Union[None, Awaitable[None]]]


async def _maybe_await(result) -> None:
    if result is not None:
        await result


class ViewShareGate:
    """
    Runs the gate for one viewer session.

    Exactly one lookup is made per distinct token. A lookup that finishes
    after `close()` or after the token changed is discarded.

    `record(token, attempts, locked)` is called whenever the wrong-code count
    changes, so the budget can be stored with the share. A grant after
    wrong codes resets it to (0, False).
    """

    def __init__(self, lookup: ShareLookup, navigate: Navigate, record: Optional[RecordAttempts] = None):
        self._lookup = lookup
        self._navigate = navigate
        self._record = record
        self._closed = False
        self.state: GateState = Idle()
        self._current_token: Optional[str] = None

    async def open(self, token: Optional[str]) -> GateState:
        if not isinstance(self.state, Idle) and token == self._current_token:
            return self.state
        self._current_token = token
        # each distinct token gets a fresh state machine
        self.state = transition(Idle(), Opened(token))
        if not token:
            return self.state

        share = await self._lookup.resolve(token)
        if self._closed or token != self._current_token:
            logger.debug("Discarding stale share lookup for token %s...", token[:6])
            return self.state
        self.state = transition(self.state, LookupResolved(token, share))
        if isinstance(self.state, NotFound):
            logger.info("View share not found or expired (token %s...)", token[:6])
        return self.state

    async def submit_code(self, code: str) -> GateState:
        before = self.state
        self.state = transition(self.state, CodeSubmitted(code))
        if self.state is before:
            return self.state

        token = self._current_token
        if isinstance(self.state, Locked):
            logger.warning("View share locked after %d wrong codes", MAX_CODE_ATTEMPTS)
            await self._store(token, MAX_CODE_ATTEMPTS, True)
        elif isinstance(self.state, AwaitingCode):
            await self._store(token, self.state.attempts, False)
        elif isinstance(self.state, Granted):
            if isinstance(before, AwaitingCode) and before.attempts:
                await self._store(token, 0, False)
            await _maybe_await(
                self._navigate(self.state.target.path, replace=self.state.target.replace)
            )
        return self.state

    async def _store(self, token: Optional[str], attempts: int, locked: bool) -> None:
        if self._record is not None and token:
            await _maybe_await(self._record(token, attempts, locked))

    def close(self) -> None:
        self._closed = True


# ---------- share creation helpers ------------------------------------------

def generate_share_token() -> str:
    return "".join(secrets.choice(_TOKEN_ALPHABET) for _ in range(_TOKEN_LENGTH))


def generate_view_code() -> str:
    return f"VIEW-{secrets.randbelow(9000) + 1000}"


def build_share_link(base_url: str, token: str) -> str:
    return f"{base_url.rstrip('/')}/view?token={quote(token, safe='')}"


def is_expired(share: ViewShare, now: Optional[datetime] = None) -> bool:
    if share.expires_at is None:
        return False
    return share.expires_at <= (now or datetime.now(timezone.utc))
