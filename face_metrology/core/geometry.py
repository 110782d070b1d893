"""얼굴 기하학 계산 유틸리티"""

import math
from typing import Sequence, Tuple

import numpy as np

from ..models import FrameContext, Landmark, LandmarkSet
from ..utils.exceptions import InsufficientLandmarksError
from ..utils.validators import validate_landmark_indices
from .constants import EYE_LANDMARKS, FACE_LANDMARKS, IRIS_LANDMARKS, required_indices

Point = Tuple[float, float]


class GeometryCalculator:
    """정규화 랜드마크 → 픽셀 좌표 기하학 계산"""

    @staticmethod
    def to_pixels(landmark: Landmark, frame: FrameContext) -> Point:
        """정규화 좌표를 프레임 픽셀 좌표로 변환 (x, y 독립 스케일)"""
        return (landmark.x * frame.width, landmark.y * frame.height)

    @staticmethod
    def distance(p1: Point, p2: Point) -> float:
        """두 픽셀 좌표 간 유클리드 거리"""
        return math.hypot(p2[0] - p1[0], p2[1] - p1[1])

    @staticmethod
    def landmark_distance(lm1: Landmark, lm2: Landmark, frame: FrameContext) -> float:
        """
        두 landmark 간 픽셀 거리

        Args:
            lm1, lm2: 정규화 좌표 Landmark
            frame: 랜드마크가 계산된 프레임

        Returns:
            거리 (픽셀)
        """
        return GeometryCalculator.distance(
            GeometryCalculator.to_pixels(lm1, frame),
            GeometryCalculator.to_pixels(lm2, frame),
        )

    @staticmethod
    def midpoint(p1: Point, p2: Point) -> Point:
        return ((p1[0] + p2[0]) / 2.0, (p1[1] + p2[1]) / 2.0)

    @staticmethod
    def centroid(points: Sequence[Point]) -> Point:
        """픽셀 좌표들의 무게중심"""
        arr = np.asarray(points, dtype=np.float64)
        cx, cy = arr.mean(axis=0)
        return (float(cx), float(cy))

    @staticmethod
    def segment_angle(upper: Point, lower: Point) -> float:
        """
        선분의 수평선 대비 기울기 (도, 0 ~ 90)

        좌우 대칭 비교를 위해 dx 절대값 사용 (90 = 수직)
        """
        dx = abs(lower[0] - upper[0])
        dy = abs(lower[1] - upper[1])
        return math.degrees(math.atan2(dy, dx))

    @staticmethod
    def relative_difference(a: float, b: float) -> float:
        """스케일 불변 상대 차이 |a - b| / ((a + b) / 2)"""
        mean = (a + b) / 2.0
        if mean == 0:
            return 0.0
        return abs(a - b) / mean


class FacePixels:
    """
    한 프레임의 주요 랜드마크 픽셀 좌표 모음

    Calibrator와 MetrologyEngine이 같은 좌표를 공유하도록 한 번만 계산한다.
    """

    def __init__(self, landmarks, frame: FrameContext):
        if landmarks is None:
            raise InsufficientLandmarksError("Landmark set is missing or empty")
        # JSON 페이로드 등 원시 포인트 시퀀스 허용
        if not isinstance(landmarks, LandmarkSet):
            landmarks = LandmarkSet.from_points(landmarks)
        if len(landmarks) == 0:
            raise InsufficientLandmarksError("Landmark set is missing or empty")
        validate_landmark_indices(required_indices(), len(landmarks))

        self.frame = frame
        self._points = {
            index: GeometryCalculator.to_pixels(landmarks[index], frame)
            for index in required_indices()
        }
        self._eyes = EYE_LANDMARKS
        self._irises = IRIS_LANDMARKS
        self._face = FACE_LANDMARKS

    def point(self, index: int) -> Point:
        return self._points[index]

    def face_point(self, name: str) -> Point:
        return self._points[self._face[name]]

    def eye_point(self, side: str, name: str) -> Point:
        return self._points[self._eyes[f'{side}_eye'][name]]

    def pupil(self, side: str) -> Point:
        """홍채 중심 + 경계 4점의 평균 (단일 포인트보다 jitter 감소)"""
        iris = self._irises[f'{side}_iris']
        indices = (iris['center'],) + tuple(iris['horizontal']) + tuple(iris['vertical'])
        return GeometryCalculator.centroid([self._points[i] for i in indices])

    def iris_diameter(self, side: str) -> float:
        """홍채 수평 지름 (px)"""
        a, b = self._irises[f'{side}_iris']['horizontal']
        return abs(self._points[a][0] - self._points[b][0])

    @property
    def pupil_distance(self) -> float:
        return GeometryCalculator.distance(self.pupil('left'), self.pupil('right'))

    @property
    def face_height(self) -> float:
        """이마 중앙 ~ 턱 끝 (px)"""
        return GeometryCalculator.distance(
            self.face_point('forehead_center'), self.face_point('chin_center')
        )

    @property
    def face_width(self) -> float:
        return self.width_between('face_left', 'face_right')

    def width_between(self, left: str, right: str) -> float:
        return GeometryCalculator.distance(self.face_point(left), self.face_point(right))
