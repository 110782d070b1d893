"""측정 세션 (카메라 on ~ off 동안의 상태 소유자)"""

from typing import Optional, Sequence, Union

import numpy as np

from ..models import (
    CalibrationReference,
    DistanceStatus,
    FrameContext,
    LandmarkSet,
    MeasurementResult,
    MeasurementUnavailable,
    OrientationStatus,
    UnavailableReason,
)
from ..utils import get_logger
from ..utils.exceptions import (
    CalibrationFailedError,
    CaptureRefusedError,
    InsufficientLandmarksError,
    ReferenceCalibrationError,
    SessionStateMissingError,
)
from .metrology import MetrologyEngine
from .reference_object import ReferenceObjectCalibration, ReferenceObjectDetector
from .stabilizer import StabilizerState

logger = get_logger(__name__)

FrameOutcome = Union[MeasurementResult, MeasurementUnavailable]


class MeasurementSession:
    """
    측정 세션

    Usage:
        session = MeasurementSession()
        session.start()
        outcome = session.process(landmarks, FrameContext(640, 480))
        if outcome.is_valid:
            snapshot = session.capture()
        session.end()
    """

    def __init__(
        self,
        engine: Optional[MetrologyEngine] = None,
        reference_detector: Optional[ReferenceObjectDetector] = None,
    ):
        self.engine = engine or MetrologyEngine()
        self.reference_detector = reference_detector
        self.reference = ReferenceObjectCalibration()
        self.state: Optional[StabilizerState] = None
        self.latest: Optional[FrameOutcome] = None
        self.captured: Optional[MeasurementResult] = None

    @property
    def active(self) -> bool:
        return self.state is not None

    def start(self):
        """세션 시작 (새 상태 생성)"""
        self.state = StabilizerState()
        self.latest = None
        self.captured = None
        logger.info("Measurement session started")

    def end(self):
        """세션 종료 (모든 상태 폐기)"""
        self.state = None
        self.latest = None
        self.captured = None
        self.reference.reset()
        logger.info("Measurement session ended")

    def restart(self):
        self.end()
        self.start()

    def process(
        self,
        landmarks: Optional[Union[LandmarkSet, Sequence]],
        frame: FrameContext,
        image: Optional[np.ndarray] = None,
    ) -> FrameOutcome:
        """
        한 프레임 처리

        측정 불가 프레임은 예외 대신 MeasurementUnavailable 반환
        (호출자는 다음 프레임에서 다시 시도)

        Args:
            landmarks: LandmarkSet 또는 {x, y, z} 딕셔너리 / (x, y, z) 튜플 시퀀스
            frame: 랜드마크가 계산된 프레임 크기
            image: 안경 추정용 프레임 이미지 (선택)

        Raises:
            SessionStateMissingError: start() 전 또는 end() 후 호출
        """
        if self.state is None:
            raise SessionStateMissingError("Session is not active; call start() first")

        try:
            outcome = self.engine.process(
                landmarks,
                frame,
                self.state,
                image=image,
                reference_px_to_mm=self.reference.px_to_mm,
            )
        except InsufficientLandmarksError as e:
            logger.debug(f"Frame unavailable: {e}")
            outcome = MeasurementUnavailable(UnavailableReason.INSUFFICIENT_LANDMARKS, str(e))
        except CalibrationFailedError as e:
            logger.info(f"Frame unavailable: {e}")
            outcome = MeasurementUnavailable(UnavailableReason.CALIBRATION_FAILED, str(e))

        self.latest = outcome
        return outcome

    def capture(self) -> MeasurementResult:
        """
        최신 측정값을 최종 결과로 고정

        Raises:
            CaptureRefusedError: 측정값이 없거나 유효하지 않은 경우
        """
        latest = self.latest
        if latest is None or isinstance(latest, MeasurementUnavailable):
            raise CaptureRefusedError("No measurement available to capture")
        if not latest.is_valid:
            raise CaptureRefusedError(latest.guidance, latest.issues)

        # 값 객체이므로 참조 보관으로 충분 (불변)
        self.captured = latest
        logger.info(f"Measurement captured: PD {latest.pd:.1f}mm, {latest.face_shape.value}")
        return latest

    def reset_capture(self):
        self.captured = None

    @property
    def distance_status(self) -> DistanceStatus:
        if isinstance(self.latest, MeasurementResult):
            return self.latest.distance_status
        return DistanceStatus.CHECKING

    @property
    def orientation_status(self) -> OrientationStatus:
        if isinstance(self.latest, MeasurementResult):
            return self.latest.orientation_status
        return OrientationStatus.CHECKING

    # ---- 물리 기준 물체 캘리브레이션 ----

    def propose_reference(self, image: np.ndarray, reference: CalibrationReference) -> float:
        """
        프레임에서 기준 물체를 찾아 후보 스케일 계산

        Returns:
            후보 px_to_mm (confirm_reference() 전까지 측정에 사용되지 않음)
        """
        if self.reference_detector is None:
            self.reference_detector = ReferenceObjectDetector()
        detected = self.reference_detector.detect(image)
        if detected is None:
            raise ReferenceCalibrationError("No reference object found in frame")
        return self.reference.propose(detected, reference)

    def confirm_reference(self) -> float:
        return self.reference.confirm()

    def reset_reference(self):
        self.reference.reset()
