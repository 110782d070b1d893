"""안경 착용 추정 (밝기 기반 휴리스틱)

콧등 위 작은 영역의 평균 밝기가 임계값보다 어두우면 안경 브릿지/프레임이
가리고 있다고 추정한다. 분류기가 아닌 best-effort 휴리스틱이며
조명이 고르지 않으면 false positive 가능성이 높다.
"""

from dataclasses import dataclass
from typing import Optional, Tuple

import cv2
import numpy as np

from ..utils import get_config, get_logger
from ..utils.exceptions import ConfigurationError
from ..utils.validators import validate_image
from .geometry import FacePixels

logger = get_logger(__name__)


@dataclass
class EyewearParams:
    region_width_ratio: float = 0.25
    region_height_ratio: float = 0.06
    darkness_threshold: float = 60.0

    def __post_init__(self):
        if not 0 < self.region_width_ratio <= 1 or not 0 < self.region_height_ratio <= 1:
            raise ConfigurationError("eyewear region ratios must be in (0, 1]")
        if not 0 <= self.darkness_threshold <= 255:
            raise ConfigurationError("darkness_threshold must be within 0-255")

    @classmethod
    def from_config(cls, config=None) -> 'EyewearParams':
        config = config or get_config()
        return cls(
            region_width_ratio=config.get('eyewear.region_width_ratio', 0.25),
            region_height_ratio=config.get('eyewear.region_height_ratio', 0.06),
            darkness_threshold=config.get('eyewear.darkness_threshold', 60.0),
        )


@dataclass(frozen=True)
class EyewearReading:
    mean_luminance: float
    glasses_likely: bool


class EyewearDetector:
    """콧등 위 영역 밝기 샘플링"""

    def __init__(self, params: Optional[EyewearParams] = None):
        self.params = params or EyewearParams.from_config()

    def sample_region(self, face: FacePixels, image_shape) -> Optional[Tuple[int, int, int, int]]:
        """
        샘플링 영역 계산 (이미지 픽셀 좌표)

        Returns:
            (x1, y1, x2, y2) 또는 영역이 이미지 밖이면 None
        """
        img_h, img_w = image_shape[:2]
        # 랜드마크 프레임과 이미지 해상도가 다를 수 있음
        sx = img_w / face.frame.width
        sy = img_h / face.frame.height

        bridge_x, bridge_y = face.face_point('nose_bridge')
        half_w = face.face_width * self.params.region_width_ratio / 2.0
        region_h = face.face_height * self.params.region_height_ratio

        x1 = int(round((bridge_x - half_w) * sx))
        x2 = int(round((bridge_x + half_w) * sx))
        y1 = int(round((bridge_y - region_h) * sy))
        y2 = int(round(bridge_y * sy))

        x1, x2 = max(0, x1), min(img_w, x2)
        y1, y2 = max(0, y1), min(img_h, y2)
        if x2 <= x1 or y2 <= y1:
            return None
        return (x1, y1, x2, y2)

    def detect(self, image: np.ndarray, face: FacePixels) -> Optional[EyewearReading]:
        """
        안경 착용 여부 추정

        Args:
            image: 랜드마크를 검출한 프레임 (BGR, BGRA 또는 grayscale)
            face: 프레임 픽셀 좌표

        Returns:
            EyewearReading 또는 샘플 영역이 없으면 None
        """
        validate_image(image)

        region = self.sample_region(face, image.shape)
        if region is None:
            logger.debug("Eyewear sample region is outside the image")
            return None

        if image.ndim == 2 or image.shape[2] == 1:
            gray = image if image.ndim == 2 else image[:, :, 0]
        elif image.shape[2] == 4:
            gray = cv2.cvtColor(image, cv2.COLOR_BGRA2GRAY)
        else:
            gray = cv2.cvtColor(image, cv2.COLOR_BGR2GRAY)

        x1, y1, x2, y2 = region
        patch = gray[y1:y2, x1:x2]
        mean_luminance = float(np.mean(patch))
        glasses_likely = mean_luminance < self.params.darkness_threshold

        logger.debug(f"Bridge luminance {mean_luminance:.1f} (glasses={glasses_likely})")
        return EyewearReading(mean_luminance=mean_luminance, glasses_likely=glasses_likely)
