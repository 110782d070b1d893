"""입력 검증 유틸리티 함수"""

from typing import Iterable

import numpy as np

from .exceptions import InsufficientLandmarksError


def validate_image(image: np.ndarray) -> None:
    """
    이미지 유효성 검증

    Args:
        image: 검증할 이미지 (numpy array, BGR 또는 grayscale)

    Raises:
        ValueError: 이미지가 유효하지 않은 경우
    """
    if image is None:
        raise ValueError("Image is None")

    if not isinstance(image, np.ndarray):
        raise ValueError(f"Image must be numpy.ndarray, got {type(image)}")

    if image.size == 0:
        raise ValueError("Image is empty")

    if len(image.shape) not in [2, 3]:
        raise ValueError(f"Image must be 2D or 3D, got shape {image.shape}")

    if len(image.shape) == 3 and image.shape[2] not in [1, 3, 4]:
        raise ValueError(f"Image channels must be 1, 3, or 4, got {image.shape[2]}")


def validate_frame_size(width: float, height: float) -> None:
    """프레임 크기 검증 (양수 픽셀)"""
    if width <= 0 or height <= 0:
        raise ValueError(f"Frame size must be positive, got {width}x{height}")


def validate_landmark_indices(indices: Iterable[int], num_landmarks: int) -> None:
    """
    필요한 랜드마크 인덱스가 모두 존재하는지 확인

    Raises:
        InsufficientLandmarksError: 인덱스가 범위를 벗어난 경우
    """
    needed = max(indices, default=-1)
    if needed >= num_landmarks:
        raise InsufficientLandmarksError(
            f"Landmark index {needed} out of range (got {num_landmarks} landmarks)"
        )
