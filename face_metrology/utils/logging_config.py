"""
측정 엔진 로깅 설정

핸들러는 패키지 로거(face_metrology) 한 곳에만 붙이고,
모듈 로거(face_metrology.core.metrology 등)는 propagate로 전달한다.
"""
import logging
import logging.handlers
from pathlib import Path
from typing import List

from .config_loader import get_config

PACKAGE_LOGGER = 'face_metrology'


def _level(name: str, default: int) -> int:
    return getattr(logging, str(name).upper(), default)


def _build_handlers(log_config) -> List[logging.Handler]:
    """logging 섹션으로부터 콘솔 / 회전 파일 핸들러 생성"""
    formatter = logging.Formatter(log_config.format, datefmt=log_config.date_format)
    handlers: List[logging.Handler] = []

    console = log_config.console
    if console.enabled:
        handler = logging.StreamHandler()
        handler.setLevel(_level(console.level, logging.INFO))
        handler.setFormatter(formatter)
        handlers.append(handler)

    file_config = log_config.file
    if file_config.enabled:
        log_dir = Path(file_config.directory)
        log_dir.mkdir(parents=True, exist_ok=True)
        handler = logging.handlers.RotatingFileHandler(
            log_dir / file_config.filename,
            maxBytes=file_config.max_bytes,
            backupCount=file_config.backup_count,
            encoding='utf-8'
        )
        handler.setLevel(_level(file_config.level, logging.DEBUG))
        handler.setFormatter(formatter)
        handlers.append(handler)

    return handlers


def setup_logging(name: str = None) -> logging.Logger:
    """
    패키지 로거를 (최초 1회) 설정하고 요청한 로거 반환

    Args:
        name: 로거 이름 (일반적으로 __name__ 사용, 생략 시 패키지 로거)

    Returns:
        logging.Logger
    """
    package_logger = logging.getLogger(PACKAGE_LOGGER)

    # 이미 핸들러가 설정되어 있으면 중복 설정 방지
    if not package_logger.handlers:
        log_config = get_config().logging
        package_logger.setLevel(_level(log_config.level, logging.INFO))
        for handler in _build_handlers(log_config):
            package_logger.addHandler(handler)
        # 루트 로거 핸들러와 중복 출력 방지
        package_logger.propagate = False

    return logging.getLogger(name or PACKAGE_LOGGER)


def reset_logging():
    """패키지 로거 핸들러 제거 (설정 변경 후 재구성용)"""
    package_logger = logging.getLogger(PACKAGE_LOGGER)
    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
        handler.close()


def get_logger(name: str = None) -> logging.Logger:
    """
    로거 가져오기 (간편 함수)

    Args:
        name: 로거 이름 (일반적으로 __name__ 사용)

    Returns:
        logging.Logger
    """
    return setup_logging(name)
