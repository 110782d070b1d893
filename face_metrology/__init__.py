"""
Face Metrology Engine
랜드마크 기반 얼굴 측정 (PD, NPD, 눈/동공 높이, 얼굴형) 엔진
"""

__version__ = "0.1.0"

from .models import (
    FaceShape,
    DistanceStatus,
    OrientationStatus,
    CalibrationMethod,
    ReferenceKind,
    ValidityIssue,
    UnavailableReason,
    Landmark,
    LandmarkSet,
    FrameContext,
    CalibrationReference,
    Calibration,
    MeasurementResult,
    MeasurementUnavailable,
)
from .core.metrology import MetrologyEngine, MetrologyParams
from .core.session import MeasurementSession
from .core.stabilizer import StabilizerState, ShapeStabilizer
from .core.reference_object import known_reference

__all__ = [
    'FaceShape', 'DistanceStatus', 'OrientationStatus', 'CalibrationMethod',
    'ReferenceKind', 'ValidityIssue', 'UnavailableReason',
    'Landmark', 'LandmarkSet', 'FrameContext', 'CalibrationReference',
    'Calibration', 'MeasurementResult', 'MeasurementUnavailable',
    'MetrologyEngine', 'MetrologyParams', 'MeasurementSession',
    'StabilizerState', 'ShapeStabilizer', 'known_reference',
]
