"""얼굴 랜드마크 인덱스 및 시스템 상수 정의

MediaPipe FaceLandmarker (refine / iris 포함 478 points) 기준.
인덱스 테이블은 검출기 모델 버전과의 계약이므로 모델 변경 시 함께 갱신한다.
"""

from typing import Dict, Tuple

LANDMARK_MODEL_VERSION = "face_landmarker_v1_478"
NUM_LANDMARKS = 478

# 이미지 기준 좌/우 (셀피 미러링 전 프레임 좌표)
EYE_LANDMARKS: Dict[str, Dict[str, int]] = {
    'left_eye': {
        'inner_corner': 133,   # 내안각
        'outer_corner': 33,    # 외안각
        'top_center': 159,     # 윗눈꺼풀 중앙
        'bottom_center': 145,  # 아랫눈꺼풀 중앙
    },
    'right_eye': {
        'inner_corner': 362,
        'outer_corner': 263,
        'top_center': 386,
        'bottom_center': 374,
    },
}

IRIS_LANDMARKS: Dict[str, Dict[str, int]] = {
    'left_iris': {
        'center': 468,
        'horizontal': (469, 471),
        'vertical': (470, 472),
    },
    'right_iris': {
        'center': 473,
        'horizontal': (474, 476),
        'vertical': (475, 477),
    },
}

# 얼굴 치수 / 얼굴형 분석용 주요 포인트
FACE_LANDMARKS: Dict[str, int] = {
    'nose_tip': 4,
    'nose_bridge': 168,        # 미간 (안경 브릿지 위치)
    'forehead_center': 10,
    'chin_center': 152,

    'face_left': 234,          # 얼굴 너비 (좌)
    'face_right': 454,

    'cheekbone_left': 123,
    'cheekbone_right': 352,

    'forehead_left': 21,
    'forehead_right': 251,

    'jawline_left': 172,       # 하악각 부근
    'jawline_right': 397,
}

# 턱선 기울기 계산용 윤곽선 포인트 (위쪽, 아래쪽)
JAW_CONTOUR: Dict[str, Tuple[int, int]] = {
    'left': (234, 172),
    'right': (454, 397),
}

# 좌우 대칭 인덱스 쌍 (미러링 보정용)
MIRROR_PAIRS: Tuple[Tuple[int, int], ...] = (
    (468, 473), (469, 476), (471, 474), (470, 475), (472, 477),
    (33, 263), (133, 362), (159, 386), (145, 374),
    (234, 454), (123, 352), (21, 251), (172, 397),
)


def required_indices() -> Tuple[int, ...]:
    """엔진이 참조하는 모든 랜드마크 인덱스"""
    indices = set(FACE_LANDMARKS.values())
    for eye in EYE_LANDMARKS.values():
        indices.update(eye.values())
    for iris in IRIS_LANDMARKS.values():
        indices.add(iris['center'])
        indices.update(iris['horizontal'])
        indices.update(iris['vertical'])
    for upper, lower in JAW_CONTOUR.values():
        indices.update((upper, lower))
    return tuple(sorted(indices))


# 캡처 불가 사유별 사용자 안내 문구
GUIDANCE_MESSAGES: Dict[str, str] = {
    'pd_out_of_range': "Pupillary distance out of range. Hold still and look at the camera.",
    'npd_left_out_of_range': "Left naso-pupillary distance out of range. Face the camera directly.",
    'npd_right_out_of_range': "Right naso-pupillary distance out of range. Face the camera directly.",
    'distance_checking': "Checking distance...",
    'too_close': "Move further away from the camera.",
    'too_far': "Move closer to the camera.",
    'orientation_checking': "Checking head position...",
    'tilted': "Keep your head level.",
    'turned_left': "Turn your head slightly to the right.",
    'turned_right': "Turn your head slightly to the left.",
    'glasses': "Please remove your glasses.",
}

UNAVAILABLE_MESSAGES: Dict[str, str] = {
    'insufficient_landmarks': "No face detected. Please position your face in the frame and ensure good lighting.",
    'calibration_failed': "Unable to calibrate measurements for this frame.",
}
