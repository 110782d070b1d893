"""측정 엔진 데이터 모델 정의"""

import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Tuple

import numpy as np

from ..core.constants import (
    GUIDANCE_MESSAGES,
    MIRROR_PAIRS,
    UNAVAILABLE_MESSAGES,
)
from ..utils.exceptions import InsufficientLandmarksError
from ..utils.validators import validate_frame_size


class FaceShape(Enum):
    """얼굴형 분류"""
    OVAL = "Oval"
    ROUND = "Round"
    LONG = "Long"
    SQUARE = "Square"
    HEART = "Heart"
    DIAMOND = "Diamond"
    TRIANGLE = "Triangle"


class DistanceStatus(Enum):
    """카메라 거리 상태"""
    CHECKING = "checking"
    TOO_CLOSE = "tooClose"
    TOO_FAR = "tooFar"
    OPTIMAL = "optimal"


class OrientationStatus(Enum):
    """머리 방향 상태"""
    CHECKING = "checking"
    STRAIGHT = "straight"
    TURN_LEFT = "turnLeft"
    TURN_RIGHT = "turnRight"
    TILTED = "tilted"


class CalibrationMethod(Enum):
    """픽셀→mm 스케일 산출 방식"""
    IRIS = "iris"
    PUPIL_DISTANCE = "pupil_distance"
    FACE_HEIGHT = "face_height"
    REFERENCE_OBJECT = "reference_object"


class ReferenceKind(Enum):
    """물리 기준 물체 종류"""
    CREDIT_CARD = "credit_card"
    COIN = "coin"
    CUSTOM = "custom"


class ValidityIssue(Enum):
    """캡처 불가 사유 (우선순위 순서대로 보고)"""
    PD_OUT_OF_RANGE = "pd_out_of_range"
    NPD_LEFT_OUT_OF_RANGE = "npd_left_out_of_range"
    NPD_RIGHT_OUT_OF_RANGE = "npd_right_out_of_range"
    DISTANCE_CHECKING = "distance_checking"
    TOO_CLOSE = "too_close"
    TOO_FAR = "too_far"
    ORIENTATION_CHECKING = "orientation_checking"
    TILTED = "tilted"
    TURNED_LEFT = "turned_left"
    TURNED_RIGHT = "turned_right"
    GLASSES = "glasses"

    @property
    def message(self) -> str:
        return GUIDANCE_MESSAGES[self.value]


class UnavailableReason(Enum):
    """측정 불가 사유"""
    INSUFFICIENT_LANDMARKS = "insufficient_landmarks"
    CALIBRATION_FAILED = "calibration_failed"


@dataclass(frozen=True)
class Landmark:
    """단일 랜드마크 포인트"""

    x: float  # 정규화 x 좌표 (0-1)
    y: float  # 정규화 y 좌표 (0-1)
    z: float = 0.0  # 깊이 정보 (상대적)

    def to_dict(self) -> Dict[str, float]:
        return {'x': self.x, 'y': self.y, 'z': self.z}


@dataclass(frozen=True)
class LandmarkSet:
    """한 얼굴의 랜드마크 집합 (인덱스 = 해부학적 의미)"""

    points: Tuple[Landmark, ...]

    def __len__(self) -> int:
        return len(self.points)

    def __getitem__(self, index: int) -> Landmark:
        return self.points[index]

    def __iter__(self):
        return iter(self.points)

    @classmethod
    def from_points(cls, points: Iterable[Any]) -> 'LandmarkSet':
        """
        다양한 포인트 표현으로부터 LandmarkSet 생성

        Args:
            points: (x, y[, z]) 튜플, .x/.y/.z 속성 객체(MediaPipe NormalizedLandmark),
                    또는 'x'/'y'/'z' 키를 가진 딕셔너리의 시퀀스

        Returns:
            LandmarkSet

        Raises:
            InsufficientLandmarksError: x/y 누락 또는 유한한 숫자가 아닌 포인트
        """
        if points is None:
            raise InsufficientLandmarksError("Landmark points are missing")
        try:
            iterator = iter(points)
        except TypeError:
            raise InsufficientLandmarksError(f"Landmark points must be a sequence, got {type(points)}")

        converted: List[Landmark] = []
        for index, point in enumerate(iterator):
            if isinstance(point, Landmark):
                x, y, z = point.x, point.y, point.z
            elif isinstance(point, dict):
                if 'x' not in point or 'y' not in point:
                    raise InsufficientLandmarksError(f"Landmark {index} is missing x/y: {point}")
                x, y, z = point['x'], point['y'], point.get('z', 0.0)
            elif hasattr(point, 'x') and hasattr(point, 'y'):
                x, y, z = point.x, point.y, getattr(point, 'z', 0.0)
            else:
                try:
                    values = tuple(point)
                except TypeError:
                    raise InsufficientLandmarksError(f"Landmark {index} is not a point: {point!r}")
                if len(values) < 2:
                    raise InsufficientLandmarksError(f"Landmark {index} needs at least x and y: {values}")
                x, y = values[0], values[1]
                z = values[2] if len(values) > 2 else 0.0
            converted.append(Landmark(
                x=_coordinate(x, index, 'x'),
                y=_coordinate(y, index, 'y'),
                z=_coordinate(0.0 if z is None else z, index, 'z'),
            ))
        return cls(points=tuple(converted))

    @classmethod
    def from_mediapipe(cls, result) -> 'LandmarkSet':
        """
        MediaPipe 결과에서 첫 번째 얼굴의 랜드마크 추출

        Tasks API (FaceLandmarkerResult.face_landmarks)와
        legacy FaceMesh (multi_face_landmarks) 모두 지원

        Raises:
            InsufficientLandmarksError: 얼굴이 검출되지 않은 경우
        """
        faces = getattr(result, 'face_landmarks', None)
        if faces is None:
            faces = getattr(result, 'multi_face_landmarks', None)
        if not faces:
            raise InsufficientLandmarksError("No face landmarks found in result")

        face = faces[0]
        # legacy FaceMesh는 NormalizedLandmarkList 래퍼 사용
        points = getattr(face, 'landmark', face)
        return cls.from_points(points)

    def as_array(self) -> np.ndarray:
        """(N, 3) numpy 배열로 변환"""
        return np.array([[p.x, p.y, p.z] for p in self.points], dtype=np.float64)

    def mirrored(self) -> 'LandmarkSet':
        """
        좌우 반전된 랜드마크 집합 반환 (x → 1 - x, 좌/우 인덱스 교환)

        셀피 미러링된 프레임에서 얻은 랜드마크를 원본 좌표계로 되돌릴 때 사용.
        인덱스 교환은 측정 엔진이 참조하는 MIRROR_PAIRS에만 적용된다.
        그 외 포인트는 x만 반전되고 원래 인덱스에 남으므로 (해부학적으로 반대쪽)
        엔진 외 용도로 쓰려면 전체 478-point 대칭 테이블이 필요하다.
        """
        flipped = [Landmark(x=1.0 - p.x, y=p.y, z=p.z) for p in self.points]
        result = list(flipped)
        count = len(flipped)
        for a, b in MIRROR_PAIRS:
            if a < count and b < count:
                result[a], result[b] = flipped[b], flipped[a]
        return LandmarkSet(points=tuple(result))


@dataclass(frozen=True)
class FrameContext:
    """랜드마크가 계산된 프레임의 픽셀 크기"""

    width: float
    height: float

    def __post_init__(self):
        validate_frame_size(self.width, self.height)

    def scaled(self, factor: float) -> 'FrameContext':
        return FrameContext(width=self.width * factor, height=self.height * factor)


@dataclass(frozen=True)
class CalibrationReference:
    """실제 크기를 알고 있는 물리 기준 물체"""

    kind: ReferenceKind
    width_mm: float

    def __post_init__(self):
        if self.width_mm <= 0:
            raise ValueError(f"Reference width must be positive, got {self.width_mm}")


@dataclass(frozen=True)
class Calibration:
    """픽셀→mm 스케일 결과"""

    px_to_mm: float
    method: CalibrationMethod
    rejected: Tuple[CalibrationMethod, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            'px_to_mm': round(self.px_to_mm, 4),
            'method': self.method.value,
            'rejected': [m.value for m in self.rejected],
        }


@dataclass(frozen=True)
class SidePair:
    """좌/우 측정값 (mm)"""

    left: float
    right: float

    def to_dict(self) -> Dict[str, float]:
        return {'left': round(self.left, 1), 'right': round(self.right, 1)}


@dataclass(frozen=True)
class PupilHeight:
    """동공 높이 (mm)"""

    left: float
    right: float
    combined: float

    def to_dict(self) -> Dict[str, float]:
        return {
            'left': round(self.left, 1),
            'right': round(self.right, 1),
            'combined': round(self.combined, 1),
        }


@dataclass(frozen=True)
class BoundViolation:
    """생리학적 범위를 벗어난 측정값"""

    name: str
    value: float
    minimum: float
    maximum: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'value': round(self.value, 1),
            'min': self.minimum,
            'max': self.maximum,
        }


@dataclass(frozen=True)
class MeasurementResult:
    """프레임별 측정 결과 (생성 후 변경 불가)"""

    pd: float
    npd: SidePair
    eye_opening_height: SidePair
    pupil_height: PupilHeight
    face_shape: FaceShape          # 시간축 안정화된 얼굴형
    raw_face_shape: FaceShape      # 현재 프레임 분류 결과
    face_width: float
    face_length: float
    distance_status: DistanceStatus
    orientation_status: OrientationStatus
    calibration: Calibration
    glasses_detected: Optional[bool] = None
    violations: Tuple[BoundViolation, ...] = ()
    issues: Tuple[ValidityIssue, ...] = ()

    @property
    def is_valid(self) -> bool:
        return not self.issues

    @property
    def guidance(self) -> Optional[str]:
        """첫 번째 캡처 불가 사유의 안내 문구 (유효하면 None)"""
        return self.issues[0].message if self.issues else None

    @property
    def available(self) -> bool:
        return True

    def to_dict(self) -> Dict[str, Any]:
        """딕셔너리로 변환 (표시용, 소수점 1자리)"""
        return {
            'available': True,
            'pd': round(self.pd, 1),
            'npd': self.npd.to_dict(),
            'eyeOpeningHeight': self.eye_opening_height.to_dict(),
            'pupilHeight': self.pupil_height.to_dict(),
            'faceShape': self.face_shape.value,
            'rawFaceShape': self.raw_face_shape.value,
            'faceWidth': round(self.face_width, 1),
            'faceLength': round(self.face_length, 1),
            'distanceStatus': self.distance_status.value,
            'orientationStatus': self.orientation_status.value,
            'glassesDetected': self.glasses_detected,
            'calibration': self.calibration.to_dict(),
            'violations': [v.to_dict() for v in self.violations],
            'issues': [issue.value for issue in self.issues],
            'isValid': self.is_valid,
        }


@dataclass(frozen=True)
class MeasurementUnavailable:
    """이번 프레임은 측정 불가 (0/기본값 결과와 구분되는 sentinel)"""

    reason: UnavailableReason
    detail: str = ""

    @property
    def is_valid(self) -> bool:
        return False

    @property
    def available(self) -> bool:
        return False

    @property
    def message(self) -> str:
        return UNAVAILABLE_MESSAGES[self.reason.value]

    def to_dict(self) -> Dict[str, Any]:
        return {
            'available': False,
            'reason': self.reason.value,
            'message': self.message,
        }


def _coordinate(value: Any, index: int, axis: str) -> float:
    """좌표값을 유한한 float로 변환 (변환 불가 시 InsufficientLandmarksError)"""
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise InsufficientLandmarksError(f"Landmark {index} has non-numeric {axis}: {value!r}")
    if not math.isfinite(number):
        raise InsufficientLandmarksError(f"Landmark {index} has non-finite {axis}: {value!r}")
    return number
