import logging

from app.core import logging as app_logging
from app.core.config import _env_bool, _env_int


def test_env_bool(monkeypatch):
    monkeypatch.setenv("SEED_DEMO_DATA", " Yes ")
    assert _env_bool("SEED_DEMO_DATA", False) is True
    monkeypatch.setenv("SEED_DEMO_DATA", "off")
    assert _env_bool("SEED_DEMO_DATA", True) is False
    monkeypatch.delenv("SEED_DEMO_DATA")
    assert _env_bool("SEED_DEMO_DATA", True) is True


def test_env_int_falls_back_and_clamps(monkeypatch):
    monkeypatch.setenv("REPORT_MAX_DETAIL_ROWS", "abc")
    assert _env_int("REPORT_MAX_DETAIL_ROWS", 500, min_value=1) == 500
    monkeypatch.setenv("REPORT_MAX_DETAIL_ROWS", "-4")
    assert _env_int("REPORT_MAX_DETAIL_ROWS", 500, min_value=1) == 1
    monkeypatch.setenv("REPORT_MAX_DETAIL_ROWS", "25")
    assert _env_int("REPORT_MAX_DETAIL_ROWS", 500) == 25


def test_setup_logging_installs_handlers_once(tmp_path, monkeypatch):
    root = logging.getLogger()
    saved_handlers = list(root.handlers)
    saved_level = root.level
    monkeypatch.setattr(app_logging, "_configured", False)
    try:
        log_file = tmp_path / "logs" / "app.log"
        app_logging.setup_logging("debug", str(log_file))
        installed = len(root.handlers)
        app_logging.setup_logging("info", str(log_file))

        assert app_logging._configured is True
        assert len(root.handlers) == installed
        assert root.level == logging.INFO
        logging.getLogger("app.tests").info("hello")
        for handler in root.handlers:
            handler.flush()
        assert "hello" in log_file.read_text(encoding="utf-8")
    finally:
        for handler in root.handlers:
            if handler not in saved_handlers:
                handler.close()
        root.handlers[:] = saved_handlers
        root.setLevel(saved_level)
