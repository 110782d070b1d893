"""
Utilities package.
"""
from .config_loader import get_config, reload_config, Config, ConfigSection
from .logging_config import get_logger, setup_logging, reset_logging
from .exceptions import (
    FacialMetrologyException,
    InsufficientLandmarksError,
    CalibrationFailedError,
    SessionStateMissingError,
    CaptureRefusedError,
    ReferenceCalibrationError,
    ConfigurationError,
)

__all__ = [
    'get_config', 'reload_config', 'Config', 'ConfigSection',
    'get_logger', 'setup_logging', 'reset_logging',
    'FacialMetrologyException',
    'InsufficientLandmarksError',
    'CalibrationFailedError',
    'SessionStateMissingError',
    'CaptureRefusedError',
    'ReferenceCalibrationError',
    'ConfigurationError',
]
