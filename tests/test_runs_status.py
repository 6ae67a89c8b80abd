import argparse
import os

import pytest

from bucketarr.cli.common import exit_code_for, infer_run_status, stamp_env
from bucketarr.pipeline.run_state import RunStatus


def _log(tmp_path, body):
    p = tmp_path / "archive-2026-01-01_00-00-00.log"
    p.write_text(body, encoding="utf-8")
    return p


def test_last_marker_wins(tmp_path):
    p = _log(tmp_path, "x | RUN_STATUS=failed\ny | RUN_STATUS=completed\n")
    assert infer_run_status(p) == "completed"


def test_interrupted_without_marker(tmp_path):
    p = _log(tmp_path, "Graceful shutdown initiated. Waiting for the current video...\n")
    assert infer_run_status(p) == "interrupted"


def test_unknown_without_any_signal(tmp_path):
    assert infer_run_status(_log(tmp_path, "hello\n")) == "unknown"
    assert infer_run_status(tmp_path / "missing.log") == "unknown"


@pytest.mark.parametrize(
    "status, code",
    [
        (RunStatus.COMPLETED, 0),
        (RunStatus.DRAINED, 0),
        (RunStatus.CONFIG_ERROR, 10),
        (RunStatus.STORE_UNAVAILABLE, 11),
        (RunStatus.ENUMERATION_FAILED, 12),
        (RunStatus.FAILED, 20),
    ],
)
def test_exit_codes(status, code):
    assert exit_code_for(status) == code


def test_stamp_env_skips_unset_flags(monkeypatch):
    monkeypatch.setenv("S3_BUCKET", "from-shell")
    stamp_env({"S3_BUCKET": None, "BUCKETARR_DRY_RUN": True, "BUCKETARR_PART_SIZE": 6})

    assert os.environ["S3_BUCKET"] == "from-shell"
    assert os.environ["BUCKETARR_DRY_RUN"] == "1"
    assert os.environ["BUCKETARR_PART_SIZE"] == "6"


def test_runs_list_reads_command_logs(tmp_path, capsys):
    from bucketarr.cli.cli_runs import handle_runs

    log_dir = tmp_path / "logs" / "cleanup"
    log_dir.mkdir(parents=True)
    (log_dir / "cleanup-2026-02-02_10-00-00.log").write_text("RUN_STATUS=completed\n")

    args = argparse.Namespace(runs_cmd="list", log_command="cleanup", dir=None)
    assert handle_runs(args) == 0

    out = capsys.readouterr().out
    assert "cleanup-2026-02-02_10-00-00" in out
    assert "completed" in out


def test_runs_latest_without_logs(tmp_path):
    from bucketarr.cli.cli_runs import handle_runs

    args = argparse.Namespace(runs_cmd="latest", log_command="archive", dir=str(tmp_path / "none"))
    assert handle_runs(args) == 1
