"""
프레임별 측정 엔진

landmarks + frame → Calibrator → px_to_mm → 측정/분류/상태 판정 → 안정화 → MeasurementResult
엔진 자체는 루프나 대기 없이 한 번의 호출로 끝나며, 세션 상태는 호출자가 넘긴다.
"""

from dataclasses import dataclass
from typing import List, Optional, Tuple

import numpy as np

from ..models import (
    BoundViolation,
    DistanceStatus,
    FrameContext,
    LandmarkSet,
    MeasurementResult,
    OrientationStatus,
    PupilHeight,
    SidePair,
    ValidityIssue,
)
from ..utils import get_config, get_logger
from ..utils.exceptions import ConfigurationError, SessionStateMissingError
from .calibrator import Calibrator
from .eyewear import EyewearDetector
from .face_shape import FaceShapeClassifier
from .geometry import FacePixels, GeometryCalculator
from .stabilizer import ShapeStabilizer, StabilizerState

logger = get_logger(__name__)


@dataclass
class MetrologyParams:
    """유효 범위 및 거리/방향 판정 임계값"""

    pd_min: float = 50.0
    pd_max: float = 80.0
    npd_min: float = 20.0
    npd_max: float = 40.0
    optimal_face_height_ratio: float = 0.6
    too_close_factor: float = 1.2
    too_far_factor: float = 0.8
    roll_ratio: float = 0.05
    yaw_threshold_mm: float = 3.0
    eyewear_enabled: bool = True
    eyewear_blocks_capture: bool = False

    def __post_init__(self):
        """설정 값 검증"""
        if self.pd_min >= self.pd_max:
            raise ConfigurationError("pd_min must be < pd_max")
        if self.npd_min >= self.npd_max:
            raise ConfigurationError("npd_min must be < npd_max")
        if not 0 < self.optimal_face_height_ratio <= 1:
            raise ConfigurationError("optimal_face_height_ratio must be in (0, 1]")
        if not self.too_far_factor < 1.0 < self.too_close_factor:
            raise ConfigurationError("too_far_factor < 1 < too_close_factor required")
        if self.roll_ratio <= 0 or self.yaw_threshold_mm <= 0:
            raise ConfigurationError("orientation thresholds must be positive")

    @classmethod
    def from_config(cls, config=None) -> 'MetrologyParams':
        config = config or get_config()
        return cls(
            pd_min=config.get('bounds.pd_mm.min', 50.0),
            pd_max=config.get('bounds.pd_mm.max', 80.0),
            npd_min=config.get('bounds.npd_mm.min', 20.0),
            npd_max=config.get('bounds.npd_mm.max', 40.0),
            optimal_face_height_ratio=config.get('distance.optimal_face_height_ratio', 0.6),
            too_close_factor=config.get('distance.too_close_factor', 1.2),
            too_far_factor=config.get('distance.too_far_factor', 0.8),
            roll_ratio=config.get('orientation.roll_ratio', 0.05),
            yaw_threshold_mm=config.get('orientation.yaw_threshold_mm', 3.0),
            eyewear_enabled=config.get('eyewear.enabled', True),
            eyewear_blocks_capture=config.get('eyewear.block_capture', False),
        )


class MetrologyEngine:
    """
    얼굴 측정 엔진

    기능:
    - PD / NPD / 눈 뜬 높이 / 동공 높이 / 얼굴 너비·길이 (mm)
    - 얼굴형 분류 + 감쇠 투표 안정화
    - 카메라 거리, 머리 방향, 안경 착용 판정
    - 생리학적 범위 검증 (is_valid)
    """

    def __init__(
        self,
        calibrator: Optional[Calibrator] = None,
        classifier: Optional[FaceShapeClassifier] = None,
        stabilizer: Optional[ShapeStabilizer] = None,
        eyewear: Optional[EyewearDetector] = None,
        params: Optional[MetrologyParams] = None,
    ):
        self.calibrator = calibrator or Calibrator()
        self.classifier = classifier or FaceShapeClassifier()
        self.stabilizer = stabilizer or ShapeStabilizer()
        self.eyewear = eyewear or EyewearDetector()
        self.params = params or MetrologyParams.from_config()

    def process(
        self,
        landmarks: LandmarkSet,
        frame: FrameContext,
        state: StabilizerState,
        image: Optional[np.ndarray] = None,
        reference_px_to_mm: Optional[float] = None,
    ) -> MeasurementResult:
        """
        한 프레임 측정

        Args:
            landmarks: 한 얼굴의 랜드마크 집합 (또는 {x, y, z} 포인트 시퀀스)
            frame: 랜드마크가 계산된 프레임 크기
            state: 세션 상태 (stabilizer 가중치 + 거리 기준값, in-place 갱신)
            image: 안경 추정용 프레임 이미지 (선택)
            reference_px_to_mm: 확정된 물리 기준 물체 스케일 (선택)

        Returns:
            MeasurementResult

        Raises:
            SessionStateMissingError: state가 없는 경우
            InsufficientLandmarksError: 랜드마크 누락/부족
            CalibrationFailedError: 스케일 산출 실패
        """
        if state is None:
            raise SessionStateMissingError(
                "StabilizerState is required; start a measurement session first"
            )

        # 실패 시 세션 상태를 건드리지 않도록 상태 갱신 전에 모든 계산 수행
        face = FacePixels(landmarks, frame)
        calibration = self.calibrator.calibrate(face, reference_px_to_mm)
        scale = calibration.px_to_mm

        left_pupil = face.pupil('left')
        right_pupil = face.pupil('right')
        nose_tip = face.face_point('nose_tip')

        pd = GeometryCalculator.distance(left_pupil, right_pupil) * scale
        npd = SidePair(
            left=GeometryCalculator.distance(nose_tip, left_pupil) * scale,
            right=GeometryCalculator.distance(nose_tip, right_pupil) * scale,
        )
        eye_opening = SidePair(
            left=self._eye_opening(face, 'left') * scale,
            right=self._eye_opening(face, 'right') * scale,
        )
        left_ph = self._pupil_offset(face, 'left', left_pupil) * scale
        right_ph = self._pupil_offset(face, 'right', right_pupil) * scale
        pupil_height = PupilHeight(left=left_ph, right=right_ph, combined=(left_ph + right_ph) / 2.0)

        features = self.classifier.extract_features(face, scale)
        raw_shape = self.classifier.classify(features)

        orientation = self._orientation(face, left_pupil, right_pupil, npd)

        glasses = None
        if image is not None and self.params.eyewear_enabled:
            reading = self.eyewear.detect(image, face)
            glasses = reading.glasses_likely if reading is not None else None

        # 세션 상태 갱신
        face_shape = self.stabilizer.update(state, raw_shape)
        distance = self._distance(face, frame, state)

        violations = self._violations(pd, npd)
        issues = self._issues(violations, distance, orientation, glasses)

        logger.debug(
            f"[{calibration.method.value}] pd={pd:.1f} npd=({npd.left:.1f}, {npd.right:.1f}) "
            f"shape={raw_shape.value}->{face_shape.value} distance={distance.value} "
            f"orientation={orientation.value} issues={[i.value for i in issues]}"
        )

        return MeasurementResult(
            pd=pd,
            npd=npd,
            eye_opening_height=eye_opening,
            pupil_height=pupil_height,
            face_shape=face_shape,
            raw_face_shape=raw_shape,
            face_width=features.face_width,
            face_length=features.face_length,
            distance_status=distance,
            orientation_status=orientation,
            calibration=calibration,
            glasses_detected=glasses,
            violations=tuple(violations),
            issues=tuple(issues),
        )

    @staticmethod
    def _eye_opening(face: FacePixels, side: str) -> float:
        """윗/아랫 눈꺼풀 수직 거리 (px)"""
        top = face.eye_point(side, 'top_center')
        bottom = face.eye_point(side, 'bottom_center')
        return abs(top[1] - bottom[1])

    @staticmethod
    def _pupil_offset(face: FacePixels, side: str, pupil: Tuple[float, float]) -> float:
        """동공 중심과 내/외안각 중점의 수직 거리 (px)"""
        corners_mid = GeometryCalculator.midpoint(
            face.eye_point(side, 'inner_corner'),
            face.eye_point(side, 'outer_corner'),
        )
        return abs(pupil[1] - corners_mid[1])

    def _distance(self, face: FacePixels, frame: FrameContext, state: StabilizerState) -> DistanceStatus:
        """세션 기준값 대비 얼굴 높이(px)로 거리 판정"""
        p = self.params
        optimal = state.baseline.establish(frame.height, p.optimal_face_height_ratio)
        face_height_px = face.face_height

        if face_height_px > optimal * p.too_close_factor:
            return DistanceStatus.TOO_CLOSE
        if face_height_px < optimal * p.too_far_factor:
            return DistanceStatus.TOO_FAR
        return DistanceStatus.OPTIMAL

    def _orientation(self, face: FacePixels, left_pupil, right_pupil, npd: SidePair) -> OrientationStatus:
        """
        머리 방향 판정 (tilted > turnLeft/turnRight > straight)

        NPD가 작은 쪽 눈 방향으로 머리가 돌아간 것으로 판단
        """
        p = self.params
        roll_px = abs(left_pupil[1] - right_pupil[1])
        if roll_px > p.roll_ratio * face.face_height:
            return OrientationStatus.TILTED

        yaw_mm = npd.left - npd.right
        if abs(yaw_mm) > p.yaw_threshold_mm:
            return OrientationStatus.TURN_LEFT if yaw_mm < 0 else OrientationStatus.TURN_RIGHT

        return OrientationStatus.STRAIGHT

    def _violations(self, pd: float, npd: SidePair) -> List[BoundViolation]:
        p = self.params
        checks = (
            ('pd', pd, p.pd_min, p.pd_max),
            ('npd_left', npd.left, p.npd_min, p.npd_max),
            ('npd_right', npd.right, p.npd_min, p.npd_max),
        )
        return [
            BoundViolation(name, value, low, high)
            for name, value, low, high in checks
            if not low <= value <= high
        ]

    def _issues(self, violations, distance, orientation, glasses) -> List[ValidityIssue]:
        """캡처 불가 사유 (안내 우선순위 순서)"""
        by_name = {
            'pd': ValidityIssue.PD_OUT_OF_RANGE,
            'npd_left': ValidityIssue.NPD_LEFT_OUT_OF_RANGE,
            'npd_right': ValidityIssue.NPD_RIGHT_OUT_OF_RANGE,
        }
        issues = [by_name[v.name] for v in violations]

        distance_issue = {
            DistanceStatus.CHECKING: ValidityIssue.DISTANCE_CHECKING,
            DistanceStatus.TOO_CLOSE: ValidityIssue.TOO_CLOSE,
            DistanceStatus.TOO_FAR: ValidityIssue.TOO_FAR,
        }.get(distance)
        if distance_issue is not None:
            issues.append(distance_issue)

        orientation_issue = {
            OrientationStatus.CHECKING: ValidityIssue.ORIENTATION_CHECKING,
            OrientationStatus.TILTED: ValidityIssue.TILTED,
            OrientationStatus.TURN_LEFT: ValidityIssue.TURNED_LEFT,
            OrientationStatus.TURN_RIGHT: ValidityIssue.TURNED_RIGHT,
        }.get(orientation)
        if orientation_issue is not None:
            issues.append(orientation_issue)

        if glasses and self.params.eyewear_blocks_capture:
            issues.append(ValidityIssue.GLASSES)

        return issues
