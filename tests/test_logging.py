"""Unit tests for docstore.engine.logging: FileLogger, builders, global sink."""

import json

import pytest

from docstore.engine.logging import (
    OBJECT_TYPE_CATEGORIES,
    FileLogger,
    LogEntry,
    get_file_logger,
    init_logging,
    log,
    log_document_operation,
    log_security_event,
    log_session_event,
    log_system_event,
    shutdown_logging,
)


class TestObjectTypeCategories:
    def test_types(self):
        assert set(OBJECT_TYPE_CATEGORIES) == {"documents", "files", "sessions", "system"}

    def test_system_has_no_security_category(self):
        assert OBJECT_TYPE_CATEGORIES["system"] == ["execution"]


class TestLogEntry:
    def test_to_json(self):
        entry = LogEntry("documents", "execution", {"doc": "Doc1"})
        assert json.loads(entry.to_json()) == {"doc": "Doc1"}


class TestFileLogger:
    def test_creates_directory_tree(self, tmp_path):
        FileLogger(log_dir=str(tmp_path / "logs"))
        assert (tmp_path / "logs" / "sessions" / "security").is_dir()
        assert not (tmp_path / "logs" / "system" / "security").exists()

    def test_write_and_query(self, tmp_path):
        file_logger = FileLogger(log_dir=str(tmp_path / "logs"))
        file_logger.write(LogEntry("documents", "execution", {"n": 1}))
        file_logger.write(LogEntry("documents", "execution", {"n": 2}))

        files = list((tmp_path / "logs" / "documents" / "execution").glob("*.jsonl"))
        assert len(files) == 1
        assert [e["n"] for e in file_logger.query("documents", "execution")] == [1, 2]

    def test_query_filters_and_limit(self, tmp_path):
        file_logger = FileLogger(log_dir=str(tmp_path / "logs"))
        for i in range(5):
            file_logger.write(LogEntry("files", "execution", {"n": i, "even": i % 2 == 0}))
        assert [e["n"] for e in file_logger.query("files", "execution", filters={"even": True})] == [0, 2, 4]
        assert len(file_logger.query("files", "execution", limit=2)) == 2

    def test_query_reads_day_files_in_order(self, tmp_path):
        file_logger = FileLogger(log_dir=str(tmp_path / "logs"))
        folder = tmp_path / "logs" / "sessions" / "execution"
        (folder / "2026-01-02.jsonl").write_text('{"n":2}\n\nnot json\n', encoding="utf-8")
        (folder / "2026-01-01.jsonl").write_text('{"n":1}\n', encoding="utf-8")
        assert [e["n"] for e in file_logger.query("sessions", "execution")] == [1, 2]

    def test_query_unknown_type(self, tmp_path):
        file_logger = FileLogger(log_dir=str(tmp_path / "logs"))
        assert file_logger.query("nothing", "execution") == []

    def test_invalid_target(self, tmp_path):
        file_logger = FileLogger(log_dir=str(tmp_path / "logs"))
        with pytest.raises(ValueError):
            file_logger.write(LogEntry("system", "security", {}))


class TestLogBuilders:
    def test_session_event(self):
        entry = log_session_event("connect", "user1", ["Managers"])
        assert entry.object_type == "sessions"
        assert entry.category == "execution"
        assert entry.data["user_groups"] == ["Managers"]

    def test_refused_session_is_security(self):
        entry = log_session_event("connect", "user3", ["Guests"], success=False)
        assert entry.category == "security"
        assert entry.data["level"] == "WARNING"

    def test_file_operation(self):
        entry = log_document_operation(
            "insert_file", "Doc1", "user1", "ok", file_name="file1", document_id=3,
        )
        assert entry.object_type == "files"
        assert entry.data["object_ref"] == "Doc1/file1"
        assert entry.data["success"] is True
        assert entry.data["document_id"] == 3

    def test_document_operation_failure(self):
        entry = log_document_operation(
            "delete_document", "Doc2", "user2", "unauthorized", error="denied",
        )
        assert entry.object_type == "documents"
        assert entry.data["level"] == "ERROR"
        assert entry.data["error"] == "denied"

    def test_security_event(self):
        entry = log_security_event("access_denied", "Doc1", "documents", "delete", "u", [])
        assert entry.category == "security"
        assert entry.object_type == "documents"

    def test_system_event(self):
        entry = log_system_event("engine_started", details={"root": "/x"})
        assert entry.object_type == "system"
        assert entry.data["details"] == {"root": "/x"}


class TestGlobalSink:
    def test_log_without_init(self):
        assert log(log_system_event("x")) is False

    def test_init_log_shutdown(self, tmp_path):
        init_logging(str(tmp_path / "logs"))
        assert get_file_logger() is not None
        assert log(log_system_event("x")) is True
        shutdown_logging()
        assert get_file_logger() is None

    def test_write_failure_reported(self, tmp_path):
        init_logging(str(tmp_path / "logs"))
        assert log(LogEntry("system", "security", {})) is False
