"""시간축 안정화 (얼굴형 투표 히스토그램, 거리 기준값)"""

from dataclasses import dataclass, field
from typing import Dict, Optional

from ..models import FaceShape
from ..utils import get_config, get_logger
from ..utils.exceptions import ConfigurationError

logger = get_logger(__name__)

# 부동소수점 감쇠 잔여값 제거 기준
PRUNE_EPSILON = 1e-9


@dataclass
class DistanceBaseline:
    """세션 최초 프레임에서 한 번 확정되는 최적 얼굴 높이 (px)"""

    optimal_face_height_px: Optional[float] = None

    @property
    def established(self) -> bool:
        return self.optimal_face_height_px is not None

    def establish(self, frame_height: float, ratio: float) -> float:
        """기준값이 없을 때만 설정 (이후 프레임에서는 재계산하지 않음)"""
        if self.optimal_face_height_px is None:
            self.optimal_face_height_px = frame_height * ratio
            logger.debug(f"Optimal face height baseline: {self.optimal_face_height_px:.1f}px")
        return self.optimal_face_height_px

    def reset(self):
        self.optimal_face_height_px = None


@dataclass
class StabilizerState:
    """
    측정 세션 단위 가변 상태

    weights: 얼굴형 → 감쇠 투표 가중치 (삽입 순서 유지)
    baseline: 거리 판정 기준값
    """

    weights: Dict[FaceShape, float] = field(default_factory=dict)
    baseline: DistanceBaseline = field(default_factory=DistanceBaseline)
    frames: int = 0

    def reset(self):
        self.weights.clear()
        self.baseline.reset()
        self.frames = 0


class ShapeStabilizer:
    """
    감쇠 투표 필터

    매 프레임 새 분류 결과에 +1 (max_weight로 상한), 모든 가중치에서 decay를 빼고
    0 이하 항목은 제거. 라벨 교체에 필요한 프레임 수는 max_weight로 제한된다.
    최대 가중치 라벨을 출력하며 동점이면 먼저 삽입된 라벨이 우선한다.
    """

    def __init__(self, decay: Optional[float] = None, max_weight: Optional[float] = None):
        config = get_config()
        if decay is None:
            decay = float(config.get('stabilizer.decay', 0.2))
        if max_weight is None:
            max_weight = float(config.get('stabilizer.max_weight', 5.0))
        if not 0 < decay < 1:
            raise ConfigurationError(f"stabilizer decay must be in (0, 1), got {decay}")
        if max_weight < 1.0:
            raise ConfigurationError(f"stabilizer max_weight must be >= 1, got {max_weight}")
        self.decay = decay
        self.max_weight = max_weight

    def update(self, state: StabilizerState, label: FaceShape) -> FaceShape:
        """
        새 분류 결과 반영 후 안정화된 라벨 반환

        Args:
            state: 세션 상태 (in-place 갱신)
            label: 현재 프레임 분류 결과

        Returns:
            FaceShape: 현재 가장 가중치가 높은 라벨
        """
        weights = state.weights
        weights[label] = min(weights.get(label, 0.0) + 1.0, self.max_weight)

        for shape in list(weights):
            weights[shape] -= self.decay
            if weights[shape] <= PRUNE_EPSILON:
                del weights[shape]

        state.frames += 1

        # max()는 동점일 때 먼저 나온 항목 반환 (dict 삽입 순서)
        return max(weights, key=weights.get)

    @staticmethod
    def current(state: StabilizerState) -> Optional[FaceShape]:
        if not state.weights:
            return None
        return max(state.weights, key=state.weights.get)
