import logging

import pytest

from image_engine.logging_config import setup_logging, ColoredFormatter, create_request_logger, LOG_FORMAT


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    for handler in root.handlers:
        handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


def test_setup_logging_writes_dated_files(tmp_path, restore_root_logger):
    setup_logging(level="DEBUG", log_to_file=True, log_to_console=False, logs_dir=tmp_path)
    logging.getLogger("image_engine.test").error("boom")
    for handler in logging.getLogger().handlers:
        handler.flush()

    app_logs = list(tmp_path.glob("app_*.log"))
    error_logs = list(tmp_path.glob("errors_*.log"))
    assert len(app_logs) == 1 and len(error_logs) == 1
    assert "boom" in error_logs[0].read_text(encoding="utf-8")
    assert logging.getLogger().level == logging.DEBUG


def test_colored_formatter_does_not_leak_color_into_record():
    record = logging.LogRecord("x", logging.WARNING, __file__, 1, "hello", None, None)
    text = ColoredFormatter(LOG_FORMAT).format(record)

    assert "\033[33m" in text
    assert record.levelname == "WARNING"


def test_request_logger_reports_duration(caplog):
    rl = create_request_logger("image_engine.test.request")
    with caplog.at_level(logging.INFO, logger="image_engine.test.request"):
        rl.start_request("req-1", "upscale", input_bytes=10)
        rl.log_step("decode", 3, dims="4x4")
        duration = rl.end_request(True, quality=0.95)

    assert duration >= 0
    assert "REQUEST START | ID: req-1" in caplog.text
    assert "STEP decode | 3ms | dims: 4x4" in caplog.text
    assert "Status: SUCCESS" in caplog.text
