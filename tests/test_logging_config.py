"""패키지 로거 설정 테스트"""

import logging
import logging.handlers

import pytest

from face_metrology.utils.config_loader import CONFIG_ENV_VAR, reset_config
from face_metrology.utils.logging_config import PACKAGE_LOGGER, get_logger, reset_logging, setup_logging


@pytest.fixture
def fresh_logging():
    reset_logging()
    yield logging.getLogger(PACKAGE_LOGGER)
    reset_logging()
    reset_config()
    setup_logging()


def test_module_loggers_share_package_handlers(fresh_logging):
    first = get_logger('face_metrology.core.metrology')
    second = get_logger('face_metrology.core.session')

    assert first.handlers == []
    assert second.handlers == []
    # 기본 설정: 콘솔 핸들러만
    assert len(fresh_logging.handlers) == 1
    assert isinstance(fresh_logging.handlers[0], logging.StreamHandler)


def test_handlers_are_not_duplicated(fresh_logging):
    for _ in range(3):
        setup_logging('face_metrology.core.calibrator')
    assert len(fresh_logging.handlers) == 1


def test_rotating_file_handler_from_config(fresh_logging, tmp_path, monkeypatch):
    config_path = tmp_path / "config.yaml"
    config_path.write_text(
        "logging:\n"
        "  level: DEBUG\n"
        "  format: \"%(levelname)s %(message)s\"\n"
        "  date_format: \"%H:%M:%S\"\n"
        "  console:\n"
        "    enabled: false\n"
        "    level: INFO\n"
        "  file:\n"
        "    enabled: true\n"
        "    level: DEBUG\n"
        f"    directory: \"{(tmp_path / 'logs').as_posix()}\"\n"
        "    filename: metrology.log\n"
        "    max_bytes: 1024\n"
        "    backup_count: 2\n",
        encoding='utf-8',
    )
    monkeypatch.setenv(CONFIG_ENV_VAR, str(config_path))
    reset_config()

    logger = get_logger('face_metrology.core.metrology')
    logger.debug("calibrated")

    handlers = fresh_logging.handlers
    assert len(handlers) == 1
    assert isinstance(handlers[0], logging.handlers.RotatingFileHandler)
    assert handlers[0].maxBytes == 1024
    handlers[0].flush()
    assert "calibrated" in (tmp_path / 'logs' / 'metrology.log').read_text(encoding='utf-8')
