"""테스트용 합성 얼굴 랜드마크 생성기

얼굴을 mm 단위로 배치한 뒤 (눈 높이 = y 0, 얼굴 중심선 = x 0)
px_per_mm 스케일로 프레임 중앙에 투영하여 정규화 좌표를 만든다.
이미지 기준 왼쪽 눈이 'left' (x 음수).
"""

from dataclasses import dataclass

import pytest

from face_metrology.core.constants import NUM_LANDMARKS
from face_metrology.core.stabilizer import StabilizerState
from face_metrology.models import FrameContext, Landmark, LandmarkSet


@dataclass(frozen=True)
class FaceSpec:
    pd: float = 62.0
    iris_diameter: float = 11.6
    nose_tip_x: float = 0.0
    nose_tip_y: float = 18.0
    eye_opening: float = 10.0
    corner_drop: float = 2.0          # 안각 중점이 동공보다 아래로 내려간 거리
    right_eye_drop: float = 0.0       # 오른쪽 눈 전체를 아래로 (roll)
    face_width: float = 140.0
    forehead_y: float = -80.0
    chin_y: float = 110.0
    cheekbone_width: float = 110.0
    forehead_width: float = 112.0
    jawline_width: float = 100.0
    jaw_y: float = 75.0
    face_side_y: float = 5.0


FRAME = FrameContext(640, 480)


def face_points_mm(spec: FaceSpec):
    """인덱스 → (x, y) mm 좌표"""
    pts = {}
    half_pd = spec.pd / 2.0
    r = spec.iris_diameter / 2.0

    for side, cx, cy, iris, ring, eye in (
        ('left', -half_pd, 0.0, 468, (469, 471, 470, 472), (133, 33, 159, 145)),
        ('right', half_pd, spec.right_eye_drop, 473, (474, 476, 475, 477), (362, 263, 386, 374)),
    ):
        h_plus, h_minus, v_up, v_down = ring
        pts[iris] = (cx, cy)
        pts[h_plus] = (cx + r, cy)
        pts[h_minus] = (cx - r, cy)
        pts[v_up] = (cx, cy - r)
        pts[v_down] = (cx, cy + r)

        inner, outer, top, bottom = eye
        toward_nose = 1.0 if cx < 0 else -1.0
        pts[inner] = (cx + toward_nose * 14.0, cy + spec.corner_drop)
        pts[outer] = (cx - toward_nose * 14.0, cy + spec.corner_drop)
        pts[top] = (cx, cy - spec.eye_opening / 2.0)
        pts[bottom] = (cx, cy + spec.eye_opening / 2.0)

    pts[4] = (spec.nose_tip_x, spec.nose_tip_y)
    pts[168] = (0.0, -3.0)
    pts[10] = (0.0, spec.forehead_y)
    pts[152] = (0.0, spec.chin_y)

    for left, right, width, y in (
        (234, 454, spec.face_width, spec.face_side_y),
        (123, 352, spec.cheekbone_width, 20.0),
        (21, 251, spec.forehead_width, -55.0),
        (172, 397, spec.jawline_width, spec.jaw_y),
    ):
        pts[left] = (-width / 2.0, y)
        pts[right] = (width / 2.0, y)
    return pts


def build_landmarks(spec: FaceSpec = FaceSpec(), px_per_mm: float = 1.5, frame: FrameContext = FRAME,
                    overrides_px=None) -> LandmarkSet:
    """
    합성 LandmarkSet 생성

    Args:
        spec: mm 단위 얼굴 형상
        px_per_mm: 투영 스케일
        frame: 대상 프레임
        overrides_px: {index: (x_px, y_px)} 프레임 픽셀 좌표 직접 지정
    """
    pts = face_points_mm(spec)
    center_y_mm = (spec.forehead_y + spec.chin_y) / 2.0
    cx_px = frame.width / 2.0
    cy_px = frame.height / 2.0

    def to_norm(x_mm, y_mm):
        return ((cx_px + x_mm * px_per_mm) / frame.width,
                (cy_px + (y_mm - center_y_mm) * px_per_mm) / frame.height)

    filler = to_norm(*pts[4])
    points = [Landmark(filler[0], filler[1], 0.0) for _ in range(NUM_LANDMARKS)]
    for index, (x_mm, y_mm) in pts.items():
        nx, ny = to_norm(x_mm, y_mm)
        points[index] = Landmark(nx, ny, 0.0)

    for index, (x_px, y_px) in (overrides_px or {}).items():
        points[index] = Landmark(x_px / frame.width, y_px / frame.height, 0.0)

    return LandmarkSet(points=tuple(points))


def pixel_face(pupil_gap_px, iris_px, face_width_px, face_height_px, frame: FrameContext = FRAME) -> LandmarkSet:
    """픽셀 단위로 직접 지정한 얼굴 (캘리브레이션 시나리오용)"""
    scale = 1.0  # 1mm = 1px 로 배치 후 치수를 픽셀 값으로 사용
    spec = FaceSpec(
        pd=pupil_gap_px,
        iris_diameter=iris_px,
        face_width=face_width_px,
        forehead_y=-face_height_px * 0.42,
        chin_y=face_height_px * 0.58,
        nose_tip_y=pupil_gap_px * 0.3,
        cheekbone_width=face_width_px * 0.78,
        forehead_width=face_width_px * 0.8,
        jawline_width=face_width_px * 0.7,
        jaw_y=face_height_px * 0.4,
        eye_opening=iris_px * 0.8,
    )
    return build_landmarks(spec, px_per_mm=scale, frame=frame)


@pytest.fixture
def spec():
    return FaceSpec()


@pytest.fixture
def state():
    return StabilizerState()


@pytest.fixture
def frame():
    return FRAME
