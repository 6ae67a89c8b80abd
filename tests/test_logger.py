import logging


def test_logger_creates_command_log(tmp_path, monkeypatch):
    monkeypatch.setenv("BUCKETARR_LOGS_DIR", str(tmp_path))
    monkeypatch.setenv("BUCKETARR_COMMAND", "archive")
    monkeypatch.setenv("BUCKETARR_RUN_ID", "2026-01-02_03-04-05")

    from bucketarr.logger import get_logger, init_logging, log_file_path

    init_logging()
    get_logger("bucketarr.test").info("hello")

    logs = list(tmp_path.rglob("*.log"))
    assert [p.name for p in logs] == ["archive-2026-01-02_03-04-05.log"]
    assert logs[0].parent.name == "archive"
    assert log_file_path() == logs[0].resolve()

    text = logs[0].read_text(encoding="utf-8")
    assert "| [INFO] | 2026-01-02_03-04-05 | bucketarr.test | hello" in text


def test_handlers_attached_to_root_only(tmp_path, monkeypatch):
    monkeypatch.setenv("BUCKETARR_LOGS_DIR", str(tmp_path))
    monkeypatch.setenv("BUCKETARR_COMMAND", "cleanup")

    from bucketarr.logger import init_logging

    init_logging()
    init_logging()

    root = logging.getLogger()
    files = [h for h in root.handlers if isinstance(h, logging.FileHandler)]
    assert len(files) == 1
    assert logging.getLogger("bucketarr.pipeline").handlers == []


def test_quiet_drops_console_handler(tmp_path, monkeypatch):
    monkeypatch.setenv("BUCKETARR_LOGS_DIR", str(tmp_path))
    monkeypatch.setenv("BUCKETARR_QUIET", "1")

    from bucketarr.logger import init_logging

    init_logging()

    root = logging.getLogger()
    assert all(isinstance(h, logging.FileHandler) for h in root.handlers)


def test_verbose_forces_debug(tmp_path, monkeypatch):
    monkeypatch.setenv("BUCKETARR_LOGS_DIR", str(tmp_path))
    monkeypatch.setenv("BUCKETARR_VERBOSE", "1")
    monkeypatch.setenv("LOG_LEVEL", "WARNING")

    from bucketarr.logger import init_logging

    init_logging()
    assert logging.getLogger().level == logging.DEBUG
    assert logging.getLogger("minio").level == logging.WARNING


def test_retention_prunes_old_logs(tmp_path):
    from bucketarr.logger.retention import enforce_retention

    for i in range(5):
        (tmp_path / f"archive-2026-01-0{i + 1}_00-00-00.log").write_text("x")

    removed = enforce_retention(tmp_path, keep=2, prefix="archive-")

    remaining = sorted(p.name for p in tmp_path.glob("*.log"))
    assert remaining == [
        "archive-2026-01-04_00-00-00.log",
        "archive-2026-01-05_00-00-00.log",
    ]
    assert len(removed) == 3


def test_retention_ignores_other_commands(tmp_path):
    from bucketarr.logger.retention import enforce_retention

    (tmp_path / "cleanup-1.log").write_text("x")
    (tmp_path / "archive-1.log").write_text("x")
    (tmp_path / "archive-2.log").write_text("x")

    enforce_retention(tmp_path, keep=1, prefix="archive-")
    assert sorted(p.name for p in tmp_path.glob("*.log")) == ["archive-2.log", "cleanup-1.log"]


def test_retention_zero_keeps_everything(tmp_path):
    from bucketarr.logger.retention import enforce_retention

    for i in range(3):
        (tmp_path / f"{i}.log").write_text("x")

    assert enforce_retention(tmp_path, keep=0) == []
    assert len(list(tmp_path.glob("*.log"))) == 3


def test_reinit_for_another_command_retargets_single_file_handler(tmp_path, monkeypatch):
    monkeypatch.setenv("BUCKETARR_LOGS_DIR", str(tmp_path))
    monkeypatch.setenv("BUCKETARR_QUIET", "1")

    from bucketarr.logger import get_logger, init_logging, log_file_path

    monkeypatch.setenv("BUCKETARR_COMMAND", "bootstrap")
    init_logging()
    monkeypatch.setenv("BUCKETARR_COMMAND", "cleanup")
    init_logging()
    get_logger("bucketarr.test").info("after")

    files = [h for h in logging.getLogger().handlers if isinstance(h, logging.FileHandler)]
    assert len(files) == 1
    assert log_file_path().parent.name == "cleanup"
    assert "after" in log_file_path().read_text(encoding="utf-8")
