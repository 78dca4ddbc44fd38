import logging

import config
from config import CFG, get_logger, setup_logging


def test_defaults():
    assert CFG.SPAWN_X == 4
    assert CFG.SPAWN_MARGIN == 2
    assert CFG.MAX_HEIGHT == 20
    assert CFG.MOVE_TYPE in ("softdrop", "harddrop")
    assert CFG.WORKERS == config.WORKERS


def test_module_logger_names():
    assert get_logger("aggregator").name == "pcfinder.aggregator"


def test_setup_logging_is_idempotent(tmp_path, monkeypatch):
    logger = logging.getLogger(CFG.LOGGER_NAME)
    monkeypatch.setattr(logger, "handlers", [])
    monkeypatch.setattr(logger, "propagate", logger.propagate)
    monkeypatch.setattr(logger, "level", logger.level)

    path = tmp_path / "pc.log"
    setup_logging("debug", str(path))
    setup_logging("info")
    assert len(logger.handlers) == 1
    assert logger.level == logging.DEBUG
    assert logger.propagate is False

    get_logger("test").debug("hello %s", "world")
    logger.handlers[0].flush()
    assert "hello world" in path.read_text(encoding="utf-8")
    logger.handlers[0].close()
