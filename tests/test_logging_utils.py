from pathlib import Path

from loguru import logger

from dialogbridge.utils import logging_utils


def test_ensure_rotating_log_file_adds_one_sink_per_path(tmp_path: Path):
    log_path = tmp_path / "logs" / "bridge.log"
    try:
        assert logging_utils.ensure_rotating_log_file(log_path) == log_path
        sink_id = logging_utils._SINK_IDS[str(log_path)]
        assert logging_utils.ensure_rotating_log_file(log_path) == log_path
        assert logging_utils._SINK_IDS[str(log_path)] == sink_id
        assert log_path.parent.is_dir()
        logger.info("written to file")
        logger.complete()
    finally:
        logger.remove(logging_utils._SINK_IDS.pop(str(log_path)))
    assert "written to file" in log_path.read_text(encoding="utf-8")
