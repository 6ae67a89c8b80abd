import logging
import os

import pytest


@pytest.fixture(autouse=True)
def clean_env_and_logging(monkeypatch, tmp_path):
    """
    Ensure tests don't leak env, logger state, or cached environment views.
    """

    for k in list(os.environ):
        if k.startswith(("BUCKETARR_", "S3_")) or k in ("LOG_LEVEL", "LOG_RETENTION"):
            monkeypatch.delenv(k, raising=False)

    # Logs never land in the project tree
    monkeypatch.setenv("BUCKETARR_LOGS_DIR", str(tmp_path / "logs"))
    monkeypatch.setenv("BUCKETARR_ENV_FILE", str(tmp_path / "missing.env"))

    from bucketarr.env import reset_env_caches
    from bucketarr.logger import state

    state.reset()

    root = logging.getLogger()
    for h in list(root.handlers):
        root.removeHandler(h)
        h.close()

    reset_env_caches()
    yield

    # CLI handlers stamp os.environ directly; monkeypatch restores the rest
    for k in list(os.environ):
        if k.startswith(("BUCKETARR_", "S3_")):
            os.environ.pop(k, None)
    reset_env_caches()

    for h in list(root.handlers):
        root.removeHandler(h)
        h.close()


@pytest.fixture
def store_env(monkeypatch):
    monkeypatch.setenv("S3_ENDPOINT", "localhost:9000")
    monkeypatch.setenv("S3_ACCESS_KEY", "minioadmin")
    monkeypatch.setenv("S3_SECRET_KEY", "minioadmin-secret")
    monkeypatch.setenv("S3_BUCKET", "videos")
    monkeypatch.setenv("S3_SSL", "0")


@pytest.fixture
def archive_env(store_env, monkeypatch):
    monkeypatch.setenv("BUCKETARR_URL", "https://www.youtube.com/playlist?list=PL123")
