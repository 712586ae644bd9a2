# services/api/core/errors.py
from __future__ import annotations

import re

GENERIC_MESSAGE = "Something went wrong. Please try again."
CONNECTION_MESSAGE = "Connection problem. Please check your internet and try again."
PERMISSION_MESSAGE = "You do not have permission to do that."
CREDENTIALS_MESSAGE = "Incorrect email or password. Please try again."

_CREDENTIALS = re.compile(r"invalid.*credential|invalid login|email.*password", re.IGNORECASE)
_NETWORK = re.compile(
    r"network|failed to fetch|connection|getaddrinfo|enotfound|timed? ?out",
    re.IGNORECASE,
)
_PERMISSION = re.compile(
    r"permission|policy|row level security|\brls\b|forbidden|unauthorized",
    re.IGNORECASE,
)


def _is_user_facing(msg: str) -> bool:
    # upload messages are already written for users
    if msg.startswith("Failed to upload ") and msg.endswith("Please check your connection and try again."):
        return True
    return msg.startswith("File uploaded but preview link failed")


def friendly_message(err: object) -> str:
    """
    Map storage / auth / network errors to plain-English text for users.
    Raw error codes and messages are never passed through.
    """
    msg = str(err) if err is not None else ""
    if _is_user_facing(msg):
        return msg
    if isinstance(err, (ConnectionError, TimeoutError)):
        return CONNECTION_MESSAGE
    if isinstance(err, PermissionError):
        return PERMISSION_MESSAGE
    if _CREDENTIALS.search(msg):
        return CREDENTIALS_MESSAGE
    if _NETWORK.search(msg):
        return CONNECTION_MESSAGE
    if _PERMISSION.search(msg):
        return PERMISSION_MESSAGE
    return GENERIC_MESSAGE
