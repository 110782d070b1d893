"""물리 기준 물체 (카드/동전) 캘리브레이션

프레임 → grayscale → Gaussian blur → Otsu 이진화 → 외곽 contour →
가장 큰 contour의 bounding rect 너비(px)를 기준 물체 크기로 사용한다.
사용자가 확인(confirm)한 스케일은 세션이 reset 될 때까지 유지된다.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

import cv2
import numpy as np

from ..models import CalibrationReference, ReferenceKind
from ..utils import get_config, get_logger
from ..utils.exceptions import ConfigurationError, ReferenceCalibrationError
from ..utils.validators import validate_image

logger = get_logger(__name__)

CREDIT_CARD_WIDTH_MM = 85.60  # ISO/IEC 7810 ID-1
COIN_DIAMETER_MM = 24.26


def known_reference(kind: ReferenceKind, width_mm: Optional[float] = None) -> CalibrationReference:
    """
    기준 물체 생성

    Args:
        kind: 물체 종류
        width_mm: CUSTOM일 때 실제 너비 (mm)
    """
    if kind is ReferenceKind.CUSTOM:
        if width_mm is None:
            raise ReferenceCalibrationError("Custom reference requires width_mm")
        return CalibrationReference(kind, float(width_mm))

    widths = get_config().get('reference_object.known_widths_mm', {}) or {}
    defaults = {
        ReferenceKind.CREDIT_CARD: CREDIT_CARD_WIDTH_MM,
        ReferenceKind.COIN: COIN_DIAMETER_MM,
    }
    return CalibrationReference(kind, float(widths.get(kind.value, defaults[kind])))


@dataclass(frozen=True)
class DetectedObject:
    """검출된 물체 bounding rect (px)"""

    x: int
    y: int
    width: int
    height: int
    area: float


class ReferenceObjectDetector:
    """프레임에서 가장 큰 물체 윤곽 검출"""

    def __init__(self, min_contour_area: Optional[float] = None, blur_kernel_size: Optional[int] = None):
        config = get_config()
        if min_contour_area is None:
            min_contour_area = config.get('reference_object.min_contour_area', 1000)
        if blur_kernel_size is None:
            blur_kernel_size = config.get('reference_object.blur_kernel_size', 5)
        if blur_kernel_size < 1 or blur_kernel_size % 2 == 0:
            raise ConfigurationError("blur_kernel_size must be a positive odd number")
        self.min_contour_area = float(min_contour_area)
        self.blur_kernel_size = int(blur_kernel_size)

    def detect(self, image: np.ndarray) -> Optional[DetectedObject]:
        """
        가장 큰 contour 검출

        Args:
            image: BGR, BGRA 또는 grayscale 프레임

        Returns:
            DetectedObject 또는 min_contour_area 이상인 contour가 없으면 None
        """
        validate_image(image)

        if image.ndim == 2:
            gray = image
        elif image.shape[2] == 4:
            gray = cv2.cvtColor(image, cv2.COLOR_BGRA2GRAY)
        elif image.shape[2] == 3:
            gray = cv2.cvtColor(image, cv2.COLOR_BGR2GRAY)
        else:
            gray = image[:, :, 0]

        k = self.blur_kernel_size
        blurred = cv2.GaussianBlur(gray, (k, k), 0)
        _, thresholded = cv2.threshold(blurred, 0, 255, cv2.THRESH_BINARY + cv2.THRESH_OTSU)

        contours, _ = cv2.findContours(thresholded, cv2.RETR_EXTERNAL, cv2.CHAIN_APPROX_SIMPLE)

        best = None
        best_area = 0.0
        for contour in contours:
            area = cv2.contourArea(contour)
            if area > best_area and area > self.min_contour_area:
                best_area = area
                best = contour

        if best is None:
            return None

        x, y, w, h = cv2.boundingRect(best)
        logger.debug(f"Reference object: {w}x{h}px at ({x}, {y}), area={best_area:.0f}")
        return DetectedObject(x=int(x), y=int(y), width=int(w), height=int(h), area=float(best_area))


class ReferenceState(Enum):
    IDLE = "idle"
    PENDING = "pending"
    CONFIRMED = "confirmed"


class ReferenceObjectCalibration:
    """
    기준 물체 스케일 상태 관리 (idle → pending → confirmed)

    pending 스케일은 사용자가 확인하기 전까지 측정에 사용되지 않는다.
    """

    def __init__(self):
        self.state = ReferenceState.IDLE
        self.reference: Optional[CalibrationReference] = None
        self.detected: Optional[DetectedObject] = None
        self._px_to_mm: Optional[float] = None

    def propose(self, detected: DetectedObject, reference: CalibrationReference) -> float:
        """
        검출 결과로 후보 스케일 계산 (확정 전)

        Returns:
            후보 px_to_mm
        """
        if self.state is ReferenceState.CONFIRMED:
            raise ReferenceCalibrationError("Reference already confirmed; reset before proposing")
        if detected is None or detected.width <= 0:
            raise ReferenceCalibrationError("Detected object has no width")

        self.reference = reference
        self.detected = detected
        self._px_to_mm = reference.width_mm / detected.width
        self.state = ReferenceState.PENDING
        logger.info(
            f"Reference proposed: {reference.kind.value} {reference.width_mm}mm "
            f"= {detected.width}px ({self._px_to_mm:.4f} mm/px)"
        )
        return self._px_to_mm

    def confirm(self) -> float:
        """후보 스케일 확정"""
        if self.state is not ReferenceState.PENDING:
            raise ReferenceCalibrationError(f"Nothing to confirm (state={self.state.value})")
        self.state = ReferenceState.CONFIRMED
        logger.info(f"Reference confirmed: {self._px_to_mm:.4f} mm/px")
        return self._px_to_mm

    def reset(self):
        self.state = ReferenceState.IDLE
        self.reference = None
        self.detected = None
        self._px_to_mm = None

    @property
    def pending_px_to_mm(self) -> Optional[float]:
        return self._px_to_mm if self.state is ReferenceState.PENDING else None

    @property
    def px_to_mm(self) -> Optional[float]:
        """확정된 스케일 (확정 전에는 None)"""
        return self._px_to_mm if self.state is ReferenceState.CONFIRMED else None
