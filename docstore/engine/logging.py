"""
docstore Logging: Structured JSON-lines audit files.

Implements:
- FileLogger: Per-object-type, per-category log files (daily rotation)
- Log entry builders for sessions, document/file operations and denials
- A module-level sink (init_logging / log / shutdown_logging)

Files: {log_dir}/{object_type}/{category}/{YYYY-MM-DD}.jsonl

Audit entries are a side channel. Writing them never changes the result of
a store operation, so log() reports failures instead of raising.
"""

from __future__ import annotations

import json
import logging
import threading
from collections import defaultdict
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional

logger = logging.getLogger("docstore.engine.logging")

# Valid object types and their permitted categories
OBJECT_TYPE_CATEGORIES = {
    "documents": ["execution", "security"],
    "files": ["execution", "security"],
    "sessions": ["execution", "security"],
    "system": ["execution"],
}


class LogEntry:
    """A structured log entry destined for a specific file."""

    __slots__ = ("object_type", "category", "data")

    def __init__(self, object_type: str, category: str, data: Dict[str, Any]):
        self.object_type = object_type
        self.category = category
        self.data = data

    def to_json(self) -> str:
        return json.dumps(self.data, default=str, separators=(",", ":"))


class FileLogger:
    """
    Writes structured JSON log entries to per-object-type, per-category files.

    Thread-safe: uses a lock per file path.
    """

    def __init__(self, log_dir: str = ".docstore/logs"):
        self._log_dir = Path(log_dir)
        self._file_locks: Dict[str, threading.Lock] = defaultdict(threading.Lock)
        self._ensure_directories()

    def _ensure_directories(self) -> None:
        for obj_type, categories in OBJECT_TYPE_CATEGORIES.items():
            for cat in categories:
                (self._log_dir / obj_type / cat).mkdir(parents=True, exist_ok=True)

    def write(self, entry: LogEntry) -> None:
        """Write a single log entry to the appropriate file."""
        if entry.category not in OBJECT_TYPE_CATEGORIES.get(entry.object_type, ()):
            raise ValueError(
                f"Invalid log target {entry.object_type}/{entry.category}"
            )
        file_path = self._resolve_path(entry.object_type, entry.category)
        key = str(file_path)

        with self._file_locks[key]:
            with open(file_path, "a", encoding="utf-8") as f:
                f.write(entry.to_json())
                f.write("\n")

    def _resolve_path(self, object_type: str, category: str) -> Path:
        today = date.today().isoformat()
        return self._log_dir / object_type / category / f"{today}.jsonl"

    @property
    def log_dir(self) -> Path:
        return self._log_dir

    def query(
        self,
        object_type: str,
        category: str,
        *,
        filters: Optional[Dict[str, Any]] = None,
        limit: int = 500,
    ) -> List[Dict[str, Any]]:
        """
        Read back entries for one object_type/category, oldest first.

        Every day file is read in date order. Only entries whose top-level
        keys equal all of *filters* are returned, at most *limit* of them.
        """
        folder = self._log_dir / object_type / category
        if not folder.is_dir():
            return []

        results: List[Dict[str, Any]] = []
        for day_file in sorted(folder.glob("*.jsonl")):
            for data in self._entries(day_file):
                if filters and any(data.get(k) != v for k, v in filters.items()):
                    continue
                results.append(data)
                if len(results) >= limit:
                    return results
        return results

    @staticmethod
    def _entries(path: Path) -> Iterator[Dict[str, Any]]:
        try:
            lines = path.read_text(encoding="utf-8").splitlines()
        except OSError as exc:
            logger.warning("Could not read log file %s: %s", path, exc)
            return
        for line in lines:
            if not line.strip():
                continue
            try:
                yield json.loads(line)
            except json.JSONDecodeError:
                logger.debug("Skipping malformed log line in %s", path)


# ---------------------------------------------------------------------------
# Log Entry Builders
# ---------------------------------------------------------------------------

def _base_entry(
    event: str,
    level: str,
    object_ref: str,
    user_name: Optional[str] = None,
    **extra: Any,
) -> Dict[str, Any]:
    entry: Dict[str, Any] = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "level": level,
        "event": event,
        "object_ref": object_ref,
    }
    if user_name is not None:
        entry["user_name"] = user_name
    entry.update(extra)
    return entry


def log_session_event(
    event: str,
    user_name: str,
    user_groups: List[str],
    success: bool = True,
) -> LogEntry:
    """Build a connect/disconnect log entry."""
    data = _base_entry(
        event=event,
        level="INFO" if success else "WARNING",
        object_ref=f"sessions.{user_name}",
        user_name=user_name,
        user_groups=user_groups,
        success=success,
    )
    return LogEntry("sessions", "execution" if success else "security", data)


def log_document_operation(
    operation: str,
    document_name: str,
    user_name: str,
    outcome: str,
    file_name: Optional[str] = None,
    document_id: Optional[int] = None,
    duration_ms: Optional[float] = None,
    error: Optional[str] = None,
) -> LogEntry:
    """
    Build a document or file operation log entry.

    File-level operations (file_name given) land under files/, document-level
    ones under documents/.
    """
    success = outcome == "ok"
    object_ref = document_name if file_name is None else f"{document_name}/{file_name}"
    data = _base_entry(
        event=operation,
        level="INFO" if success else "ERROR",
        object_ref=object_ref,
        user_name=user_name,
        operation=operation,
        outcome=outcome,
        success=success,
    )
    if document_id is not None:
        data["document_id"] = document_id
    if duration_ms is not None:
        data["duration_ms"] = duration_ms
    if error:
        data["error"] = error
    object_type = "documents" if file_name is None else "files"
    return LogEntry(object_type, "execution", data)


def log_security_event(
    event: str,
    object_ref: str,
    object_type: str,
    capability_needed: Optional[str],
    user_name: str,
    user_groups: List[str],
    level: str = "WARNING",
) -> LogEntry:
    """Build a security event log entry (denied operation)."""
    data = _base_entry(
        event=event,
        level=level,
        object_ref=object_ref,
        user_name=user_name,
        object_type=object_type,
        capability_needed=capability_needed,
        user_groups=user_groups,
    )
    target = object_type if "security" in OBJECT_TYPE_CATEGORIES.get(object_type, ()) else "documents"
    return LogEntry(target, "security", data)


def log_system_event(
    event: str,
    level: str = "INFO",
    details: Optional[Dict[str, Any]] = None,
) -> LogEntry:
    """Build a system event log entry (engine startup, recovery)."""
    data = _base_entry(event=event, level=level, object_ref="system")
    if details:
        data["details"] = details
    return LogEntry("system", "execution", data)


# ---------------------------------------------------------------------------
# Convenience: Global File Logger
# ---------------------------------------------------------------------------

_file_logger: Optional[FileLogger] = None


def init_logging(log_dir: str = ".docstore/logs") -> FileLogger:
    """Initialize the global audit file logger."""
    global _file_logger
    _file_logger = FileLogger(log_dir=log_dir)
    return _file_logger


def get_file_logger() -> Optional[FileLogger]:
    return _file_logger


def log(entry: LogEntry) -> bool:
    """
    Write an entry through the global file logger.

    Returns:
        True if written, False if no logger is initialized or the write failed.
    """
    if _file_logger is None:
        logger.debug("Audit logging not initialized, entry dropped: %s", entry.data.get("event"))
        return False
    try:
        _file_logger.write(entry)
        return True
    except (OSError, ValueError) as e:
        logger.error(f"Audit log write failed: {e}")
        return False


def shutdown_logging() -> None:
    global _file_logger
    _file_logger = None
