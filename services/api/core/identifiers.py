"""
Human-facing identifier helpers: client references and project numbers.
All functions are pure; callers fetch the population and persist the result.
"""
from __future__ import annotations

import re
import uuid
from typing import Iterable, List, NamedTuple, Optional

from models import ClientFile

DEFAULT_FORMAT_EXAMPLE = "REF-001"
FALLBACK_PREFIX = "REF-"
DEFAULT_PAD = 3

_TRAILING_DIGITS = re.compile(r"^(.*?)([0-9]+)$")
_UUID_RE = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[1-5][0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$",
    re.IGNORECASE,
)


class ReferenceFormat(NamedTuple):
    prefix: str
    pad: int


def generate_unique_id(prefix: str = "id") -> str:
    """Opaque id for a new file or project."""
    return f"{prefix}-{uuid.uuid4()}"


def is_valid_uuid(value: Optional[str]) -> bool:
    """True if value is a v1-v5 UUID string (safe for uuid-typed columns)."""
    return isinstance(value, str) and bool(_UUID_RE.match(value))


def parse_reference_format(example: Optional[str]) -> ReferenceFormat:
    """
    Split an example identifier into prefix and zero-padding width.

    "REF-001"       -> ("REF-", 3)
    "STU-2024-0001" -> ("STU-2024-", 4)
    "CLIENT"        -> ("CLIENT-", 3)
    ""              -> ("REF-", 3)   (falls back to the default example)
    """
    trimmed = (example or DEFAULT_FORMAT_EXAMPLE).strip()
    match = _TRAILING_DIGITS.match(trimmed)
    if match:
        return ReferenceFormat(match.group(1), max(1, len(match.group(2))))
    return ReferenceFormat(f"{trimmed}-" if trimmed else FALLBACK_PREFIX, DEFAULT_PAD)


def next_reference(existing: Iterable[Optional[str]], example: Optional[str]) -> str:
    """
    Next identifier after the highest numbered value sharing the prefix.

    Prefix matching is case-sensitive. Tails that are not all digits, or that
    are zero, are ignored. Gaps are never refilled: the result is always
    max + 1, so it is not safe against two callers holding stale snapshots.
    """
    prefix, pad = parse_reference_format(example)
    highest = 0
    for value in existing:
        if not value or not value.startswith(prefix):
            continue
        tail = value[len(prefix):]
        if tail.isdigit() and tail.isascii():
            highest = max(highest, int(tail))
    return prefix + str(highest + 1).zfill(pad)


def _normalize(value: Optional[str]) -> str:
    return (value or "").strip().lower()


def is_duplicate_reference(
    files: Iterable[ClientFile],
    value: Optional[str],
    exclude_file_id: Optional[str] = None,
) -> bool:
    """Case-insensitive, trimmed match against every other file's reference."""
    v = _normalize(value)
    if not v:
        return False
    return any(
        f.id != exclude_file_id and f.reference is not None and _normalize(f.reference) == v
        for f in files
    )


def all_project_numbers(files: Iterable[ClientFile]) -> List[str]:
    """Every non-empty project number across all files."""
    return [p.project_number for f in files for p in f.projects if p.project_number]


def is_duplicate_project_number(
    files: Iterable[ClientFile],
    value: Optional[str],
    exclude_project_id: Optional[str] = None,
) -> bool:
    """Project numbers are unique across all files, independent of references."""
    v = _normalize(value)
    if not v:
        return False
    for f in files:
        for p in f.projects:
            if exclude_project_id and p.id == exclude_project_id:
                continue
            if p.project_number is not None and _normalize(p.project_number) == v:
                return True
    return False


def next_project_number(files: Iterable[ClientFile], example: Optional[str]) -> str:
    return next_reference(all_project_numbers(files), example)
