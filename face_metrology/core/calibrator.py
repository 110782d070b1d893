"""픽셀→mm 스케일 캘리브레이션

해부학적 기준 (홍채 지름 → 동공 간 거리 → 얼굴 높이) 순으로 시도하고,
각 후보 스케일은 얼굴 너비/높이/PD가 성인 범위에 드는지 교차 검증한다.
"""

import math
from dataclasses import dataclass
from typing import Optional

from ..models import Calibration, CalibrationMethod
from ..utils import get_config, get_logger
from ..utils.exceptions import CalibrationFailedError, ConfigurationError
from .geometry import FacePixels

logger = get_logger(__name__)


@dataclass
class CalibrationParams:
    """캘리브레이션 기준값 및 교차 검증 범위 (mm)"""

    iris_diameter_mm: float = 11.6
    pupil_distance_mm: float = 62.0
    face_height_mm: float = 190.0
    face_width_min: float = 100.0
    face_width_max: float = 200.0
    face_height_min: float = 150.0
    face_height_max: float = 250.0
    pd_min: float = 50.0
    pd_max: float = 80.0

    def __post_init__(self):
        """설정 값 검증"""
        for name in ('iris_diameter_mm', 'pupil_distance_mm', 'face_height_mm'):
            if getattr(self, name) <= 0:
                raise ConfigurationError(f"{name} must be positive")
        if self.face_width_min >= self.face_width_max:
            raise ConfigurationError("face_width_min must be < face_width_max")
        if self.face_height_min >= self.face_height_max:
            raise ConfigurationError("face_height_min must be < face_height_max")
        if self.pd_min >= self.pd_max:
            raise ConfigurationError("pd_min must be < pd_max")

    @classmethod
    def from_config(cls, config=None) -> 'CalibrationParams':
        config = config or get_config()
        return cls(
            iris_diameter_mm=config.get('calibration.iris_diameter_mm', 11.6),
            pupil_distance_mm=config.get('calibration.pupil_distance_mm', 62.0),
            face_height_mm=config.get('calibration.face_height_mm', 190.0),
            face_width_min=config.get('calibration.face_width_mm.min', 100.0),
            face_width_max=config.get('calibration.face_width_mm.max', 200.0),
            face_height_min=config.get('calibration.face_height_range_mm.min', 150.0),
            face_height_max=config.get('calibration.face_height_range_mm.max', 250.0),
            pd_min=config.get('bounds.pd_mm.min', 50.0),
            pd_max=config.get('bounds.pd_mm.max', 80.0),
        )


class Calibrator:
    """
    프레임별 px_to_mm 산출

    확정된 물리 기준 물체 스케일이 주어지면 해부학적 체인을 건너뛴다.
    """

    def __init__(self, params: Optional[CalibrationParams] = None):
        self.params = params or CalibrationParams.from_config()

    def calibrate(
        self,
        face: FacePixels,
        reference_px_to_mm: Optional[float] = None
    ) -> Calibration:
        """
        현재 프레임의 스케일 계산

        Args:
            face: 프레임 픽셀 좌표
            reference_px_to_mm: 세션에서 확정된 기준 물체 스케일 (선택)

        Returns:
            Calibration

        Raises:
            CalibrationFailedError: 모든 방식이 0 또는 비정상 스케일을 낸 경우
        """
        if reference_px_to_mm is not None:
            if not _is_usable(reference_px_to_mm):
                raise CalibrationFailedError(
                    f"Invalid reference scale: {reference_px_to_mm}"
                )
            return Calibration(reference_px_to_mm, CalibrationMethod.REFERENCE_OBJECT)

        rejected = []

        scale = self._iris_scale(face)
        if scale is not None and self.is_plausible(face, scale):
            return Calibration(scale, CalibrationMethod.IRIS)
        rejected.append(CalibrationMethod.IRIS)
        logger.debug(f"Iris calibration rejected (scale={scale})")

        scale = self._pupil_scale(face)
        if scale is not None and self.is_plausible(face, scale):
            return Calibration(scale, CalibrationMethod.PUPIL_DISTANCE, tuple(rejected))
        rejected.append(CalibrationMethod.PUPIL_DISTANCE)
        logger.debug(f"Pupil-distance calibration rejected (scale={scale})")

        # 얼굴 높이 기준은 항상 사용 가능 (교차 검증 없음)
        face_height_px = face.face_height
        if face_height_px <= 0:
            raise CalibrationFailedError("Face height is zero; no usable calibration reference")
        scale = self.params.face_height_mm / face_height_px
        if not _is_usable(scale):
            raise CalibrationFailedError(f"Face-height scale is not usable: {scale}")
        return Calibration(scale, CalibrationMethod.FACE_HEIGHT, tuple(rejected))

    def _iris_scale(self, face: FacePixels) -> Optional[float]:
        left = face.iris_diameter('left')
        right = face.iris_diameter('right')
        # 한쪽 홍채라도 붕괴되면 가려진 것으로 간주
        if left <= 0 or right <= 0:
            return None
        scale = self.params.iris_diameter_mm / ((left + right) / 2.0)
        return scale if _is_usable(scale) else None

    def _pupil_scale(self, face: FacePixels) -> Optional[float]:
        distance = face.pupil_distance
        if distance <= 0:
            return None
        scale = self.params.pupil_distance_mm / distance
        return scale if _is_usable(scale) else None

    def is_plausible(self, face: FacePixels, scale: float) -> bool:
        """후보 스케일로 환산한 얼굴 너비/높이/PD가 성인 범위인지 확인"""
        p = self.params
        width_mm = face.face_width * scale
        height_mm = face.face_height * scale
        pd_mm = face.pupil_distance * scale
        return (
            p.face_width_min <= width_mm <= p.face_width_max
            and p.face_height_min <= height_mm <= p.face_height_max
            and p.pd_min <= pd_mm <= p.pd_max
        )


def _is_usable(scale: float) -> bool:
    return scale is not None and math.isfinite(scale) and scale > 0
