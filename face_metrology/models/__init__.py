"""
Models package: value objects exchanged with the caller.
"""
from .measurement_models import (
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
    SidePair,
    PupilHeight,
    BoundViolation,
    MeasurementResult,
    MeasurementUnavailable,
)

__all__ = [
    'FaceShape', 'DistanceStatus', 'OrientationStatus', 'CalibrationMethod',
    'ReferenceKind', 'ValidityIssue', 'UnavailableReason',
    'Landmark', 'LandmarkSet', 'FrameContext', 'CalibrationReference',
    'Calibration', 'SidePair', 'PupilHeight', 'BoundViolation',
    'MeasurementResult', 'MeasurementUnavailable',
]
