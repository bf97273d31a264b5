# tests/test_logging_mods.py
import logging
import logging.handlers

import structlog
from config import NarrationEvalSettings
from rich.logging import RichHandler

import utils.logging as logging_utils


def _restore(root: logging.Logger, handlers: list[logging.Handler], level: int) -> None:
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers = handlers
    root.setLevel(level)
    structlog.reset_defaults()


def test_setup_logging_with_file_and_plain_console(tmp_path):
    root = logging.getLogger()
    saved_handlers, saved_level = list(root.handlers), root.level
    log_file = tmp_path / "logs" / "eval.log"
    cfg = NarrationEvalSettings(
        OPENAI_API_KEY="sk-x",
        LOG_FILE=str(log_file),
        ENABLE_RICH_LOGGING=False,
        EVAL_LOG_LEVEL="DEBUG",
    )
    try:
        logging_utils.setup_logging(cfg)
        kinds = {type(h) for h in root.handlers}
        assert logging.handlers.RotatingFileHandler in kinds
        assert logging.StreamHandler in kinds
        assert root.level == logging.DEBUG
        assert logging.getLogger("httpx").level == logging.WARNING
        assert log_file.parent.is_dir()
    finally:
        _restore(root, saved_handlers, saved_level)


def test_setup_logging_uses_rich_console(monkeypatch):
    root = logging.getLogger()
    saved_handlers, saved_level = list(root.handlers), root.level
    cfg = NarrationEvalSettings(OPENAI_API_KEY="sk-x", LOG_FILE=None)
    try:
        logging_utils.setup_logging(cfg)
        assert any(isinstance(h, RichHandler) for h in root.handlers)
    finally:
        _restore(root, saved_handlers, saved_level)
