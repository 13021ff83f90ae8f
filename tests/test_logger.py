import logging

from contactscout.config import Settings
from contactscout.utils.logger import setup_logger


def test_setup_logger_adds_handlers_once(tmp_path):
    log_file = tmp_path / "logs" / "run.log"
    s = Settings(_env_file=None, log_level="warning", log_file=str(log_file))

    logger = setup_logger("contactscout.test_once", settings=s)
    again = setup_logger("contactscout.test_once", settings=s)

    assert again is logger
    assert logger.level == logging.WARNING
    assert len(logger.handlers) == 2
    assert log_file.parent.is_dir()
    for handler in logger.handlers:
        handler.close()
