"""
Filename safety and storage usage helpers for folder files.
"""
from __future__ import annotations

from typing import Dict, Iterable

from models import ClientFile, Project

# Extensions that must survive any display-name edit.
PROTECTED_EXTENSIONS = frozenset({
    ".png", ".jpg", ".jpeg", ".gif", ".webp", ".svg", ".bmp", ".ico",
    ".pdf",
    ".doc", ".docx",
    ".xls", ".xlsx", ".csv",
    ".mp4", ".webm", ".mov", ".avi", ".mkv", ".m4v",
    ".mp3", ".wav", ".ogg", ".m4a",
    ".zip", ".rar", ".7z",
})

KB = 1024
MB = 1024 * KB
GB = 1024 * MB


def get_extension(name: str) -> str:
    """Lowercase extension including the dot, or "" if there is none."""
    if not name or "." not in name:
        return ""
    return name[name.rindex("."):].lower()


def get_basename(name: str) -> str:
    """Part before the last dot; dotfiles and names without a dot are returned as-is."""
    if not name:
        return ""
    i = name.rfind(".")
    return name if i <= 0 else name[:i]


def has_protected_extension(name: str) -> bool:
    return get_extension(name) in PROTECTED_EXTENSIONS


def preserve_extension_name(original_name: str, user_input: str) -> str:
    """
    Name to store after a user edits a file's display name.

    Protected files keep their original extension whatever the user typed;
    other files are renamed freely. Blank input keeps the original name.
    """
    trimmed = (user_input or "").strip()
    if not trimmed:
        return original_name
    if not has_protected_extension(original_name):
        return trimmed
    base = get_basename(trimmed).strip()
    return base + get_extension(original_name) if base else original_name


def total_storage_bytes(files: Iterable[ClientFile]) -> int:
    total = 0
    for f in files:
        for p in f.projects:
            for folder in p.folders:
                for item in folder.files:
                    total += item.size_in_bytes or 0
    return total


def format_storage_size(num_bytes: int) -> str:
    """Human-readable size using binary thresholds: 500 B, 2.0 KB, 1.00 GB."""
    if num_bytes < KB:
        return f"{num_bytes} B"
    if num_bytes < MB:
        return f"{num_bytes / KB:.1f} KB"
    if num_bytes < GB:
        return f"{num_bytes / MB:.1f} MB"
    return f"{num_bytes / GB:.2f} GB"


# ---------- dashboard counters ----------

def file_stats(files: Iterable[ClientFile]) -> Dict[str, int]:
    """Totals for the dashboard: documents plus projects per status."""
    stats = {"total_docs": 0, "live": 0, "pending": 0, "completed": 0}
    for f in files:
        for p in f.projects:
            if p.status == "Live":
                stats["live"] += 1
            elif p.status == "Pending":
                stats["pending"] += 1
            else:
                stats["completed"] += 1
            stats["total_docs"] += sum(len(folder.files) for folder in p.folders)
    return stats


def project_stats(project: Project) -> Dict[str, int]:
    files = images = 0
    for folder in project.folders:
        for item in folder.files:
            if item.file_type == "image":
                images += 1
            else:
                files += 1
    return {"folders": len(project.folders), "files": files, "images": images}


def file_doc_counts(client_file: ClientFile) -> Dict[str, int]:
    counts = {"docs": 0, "images": 0, "videos": 0}
    for p in client_file.projects:
        for folder in p.folders:
            for item in folder.files:
                if item.file_type == "image":
                    counts["images"] += 1
                elif item.file_type == "video":
                    counts["videos"] += 1
                else:
                    counts["docs"] += 1
    return counts
