"""얼굴형 분류 (순서 있는 결정 테이블)"""

from dataclasses import dataclass
from typing import Optional

from ..models import FaceShape
from ..utils import get_config, get_logger
from ..utils.exceptions import ConfigurationError
from .constants import JAW_CONTOUR
from .geometry import FacePixels, GeometryCalculator

logger = get_logger(__name__)


@dataclass
class FaceShapeParams:
    """
    결정 테이블 임계값

    너비 간 비교는 상대 차이 |a-b| / ((a+b)/2) 기준 (얼굴 크기와 무관)
    """

    round_min_face_ratio: float = 0.85
    round_max_jaw_angle_deg: float = 75.0
    long_max_face_ratio: float = 0.75
    long_min_cheekbone_ratio: float = 0.80
    square_tolerance: float = 0.06
    heart_min_difference: float = 0.08
    heart_min_face_ratio: float = 0.75
    diamond_min_difference: float = 0.08
    diamond_max_face_ratio: float = 0.85
    triangle_min_difference: float = 0.05

    def __post_init__(self):
        for name, value in vars(self).items():
            if value < 0:
                raise ConfigurationError(f"{name} must be >= 0, got {value}")
        if not 0 < self.round_max_jaw_angle_deg <= 90:
            raise ConfigurationError("round_max_jaw_angle_deg must be in (0, 90]")

    @classmethod
    def from_config(cls, config=None) -> 'FaceShapeParams':
        config = config or get_config()
        section = config.section('face_shape')
        known = {k: float(v) for k, v in section.items() if k in cls.__dataclass_fields__}
        unknown = set(section) - set(known)
        if unknown:
            logger.warning(f"Ignoring unknown face_shape settings: {sorted(unknown)}")
        return cls(**known)


@dataclass(frozen=True)
class FaceShapeFeatures:
    """얼굴형 분류 입력 (너비/길이는 mm, 각도는 도)"""

    face_width: float
    face_length: float
    cheekbone_width: float
    forehead_width: float
    jawline_width: float
    jaw_angle_left: float
    jaw_angle_right: float

    @property
    def face_ratio(self) -> float:
        return self.face_width / self.face_length if self.face_length > 0 else 0.0

    @property
    def cheekbone_ratio(self) -> float:
        return self.cheekbone_width / self.face_width if self.face_width > 0 else 0.0

    @property
    def forehead_ratio(self) -> float:
        return self.forehead_width / self.face_width if self.face_width > 0 else 0.0

    def to_dict(self):
        return {
            'face_width': round(self.face_width, 1),
            'face_length': round(self.face_length, 1),
            'cheekbone_width': round(self.cheekbone_width, 1),
            'forehead_width': round(self.forehead_width, 1),
            'jawline_width': round(self.jawline_width, 1),
            'jaw_angle_left': round(self.jaw_angle_left, 1),
            'jaw_angle_right': round(self.jaw_angle_right, 1),
            'face_ratio': round(self.face_ratio, 3),
            'cheekbone_ratio': round(self.cheekbone_ratio, 3),
            'forehead_ratio': round(self.forehead_ratio, 3),
        }


class FaceShapeClassifier:
    """
    얼굴형 분류기

    규칙 순서 (첫 번째로 일치하는 규칙 적용):
        1. 너비/길이 비율 높음 + 양쪽 턱선 완만 → Round
        2. 비율 낮음 + 광대 비율 두드러짐 → Long
        3. 턱/광대/이마 너비 거의 동일 → Square
        4. 이마가 가장 넓음 + 비율 중간 이상 → Heart
        5. 광대가 가장 넓음 + 비율 중간 이하 → Diamond
        6. 턱이 가장 넓음 → Triangle
        7. 그 외 → Oval
    """

    def __init__(self, params: Optional[FaceShapeParams] = None):
        self.params = params or FaceShapeParams.from_config()

    def extract_features(self, face: FacePixels, px_to_mm: float) -> FaceShapeFeatures:
        """
        랜드마크 픽셀 좌표에서 분류 입력 계산

        Args:
            face: 프레임 픽셀 좌표
            px_to_mm: mm/px 스케일

        Returns:
            FaceShapeFeatures
        """
        angles = {}
        for side, (upper, lower) in JAW_CONTOUR.items():
            angles[side] = GeometryCalculator.segment_angle(face.point(upper), face.point(lower))

        return FaceShapeFeatures(
            face_width=face.face_width * px_to_mm,
            face_length=face.face_height * px_to_mm,
            cheekbone_width=face.width_between('cheekbone_left', 'cheekbone_right') * px_to_mm,
            forehead_width=face.width_between('forehead_left', 'forehead_right') * px_to_mm,
            jawline_width=face.width_between('jawline_left', 'jawline_right') * px_to_mm,
            jaw_angle_left=angles['left'],
            jaw_angle_right=angles['right'],
        )

    def classify(self, features: FaceShapeFeatures) -> FaceShape:
        """결정 테이블 적용 (부작용/무작위성 없음)"""
        p = self.params
        rel = GeometryCalculator.relative_difference

        ratio = features.face_ratio
        jaw = features.jawline_width
        cheek = features.cheekbone_width
        forehead = features.forehead_width

        if (
            ratio > p.round_min_face_ratio
            and features.jaw_angle_left < p.round_max_jaw_angle_deg
            and features.jaw_angle_right < p.round_max_jaw_angle_deg
        ):
            return FaceShape.ROUND

        if ratio < p.long_max_face_ratio and features.cheekbone_ratio > p.long_min_cheekbone_ratio:
            return FaceShape.LONG

        if (
            rel(jaw, cheek) <= p.square_tolerance
            and rel(jaw, forehead) <= p.square_tolerance
            and rel(cheek, forehead) <= p.square_tolerance
        ):
            return FaceShape.SQUARE

        if (
            forehead > cheek and forehead > jaw
            and rel(forehead, cheek) >= p.heart_min_difference
            and rel(forehead, jaw) >= p.heart_min_difference
            and ratio >= p.heart_min_face_ratio
        ):
            return FaceShape.HEART

        if (
            cheek > forehead and cheek > jaw
            and rel(cheek, forehead) >= p.diamond_min_difference
            and ratio <= p.diamond_max_face_ratio
        ):
            return FaceShape.DIAMOND

        if jaw > cheek and jaw > forehead and rel(jaw, max(cheek, forehead)) >= p.triangle_min_difference:
            return FaceShape.TRIANGLE

        return FaceShape.OVAL
