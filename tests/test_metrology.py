"""MetrologyEngine 프레임 측정 테스트"""

import numpy as np
import pytest

from conftest import FRAME, FaceSpec, build_landmarks

from face_metrology.core.metrology import MetrologyEngine, MetrologyParams
from face_metrology.core.stabilizer import StabilizerState
from face_metrology.models import (
    CalibrationMethod,
    DistanceStatus,
    FaceShape,
    FrameContext,
    Landmark,
    LandmarkSet,
    OrientationStatus,
    ValidityIssue,
)
from face_metrology.utils.exceptions import (
    CalibrationFailedError,
    ConfigurationError,
    InsufficientLandmarksError,
    SessionStateMissingError,
)


@pytest.fixture
def engine():
    return MetrologyEngine()


def measure(engine, spec=FaceSpec(), px_per_mm=1.5, frame=FRAME, state=None, **kwargs):
    landmarks = build_landmarks(spec, px_per_mm=px_per_mm, frame=frame)
    return engine.process(landmarks, frame, state or StabilizerState(), **kwargs)


class TestMeasurements:
    def test_reference_face(self, engine):
        result = measure(engine)

        assert result.calibration.method is CalibrationMethod.IRIS
        assert result.pd == pytest.approx(62.0)
        expected_npd = (31.0 ** 2 + 18.0 ** 2) ** 0.5
        assert result.npd.left == pytest.approx(expected_npd)
        assert result.npd.right == pytest.approx(expected_npd)
        assert result.eye_opening_height.left == pytest.approx(10.0)
        assert result.eye_opening_height.right == pytest.approx(10.0)
        assert result.pupil_height.left == pytest.approx(2.0)
        assert result.pupil_height.combined == pytest.approx(2.0)
        assert result.face_width == pytest.approx(140.0)
        assert result.face_length == pytest.approx(190.0)
        assert result.raw_face_shape is FaceShape.OVAL
        assert result.face_shape is FaceShape.OVAL

    def test_reference_face_is_valid(self, engine):
        result = measure(engine)

        assert result.distance_status is DistanceStatus.OPTIMAL
        assert result.orientation_status is OrientationStatus.STRAIGHT
        assert result.violations == ()
        assert result.is_valid
        assert result.guidance is None

    def test_pupil_distance_calibration_scenario(self, engine):
        # 동공 간 93px, 홍채 폭 0 → pupil 기준 스케일
        spec = FaceSpec(iris_diameter=0.0)
        result = measure(engine, spec=spec)

        assert result.calibration.method is CalibrationMethod.PUPIL_DISTANCE
        assert result.pd == pytest.approx(62.0)

    def test_scale_invariance(self, engine):
        landmarks = build_landmarks(FaceSpec(), px_per_mm=1.5)
        small = engine.process(landmarks, FRAME, StabilizerState())
        large = engine.process(landmarks, FRAME.scaled(2.0), StabilizerState())

        assert large.pd == pytest.approx(small.pd)
        assert large.npd.left == pytest.approx(small.npd.left)
        assert large.eye_opening_height.right == pytest.approx(small.eye_opening_height.right)
        assert large.face_width == pytest.approx(small.face_width)
        assert large.face_shape is small.face_shape
        assert large.distance_status is small.distance_status

    def test_mirror_symmetry(self, engine):
        landmarks = build_landmarks(FaceSpec(nose_tip_x=3.0))
        original = engine.process(landmarks, FRAME, StabilizerState())
        mirrored = engine.process(landmarks.mirrored(), FRAME, StabilizerState())

        assert mirrored.pd == pytest.approx(original.pd)
        assert mirrored.npd.left == pytest.approx(original.npd.right)
        assert mirrored.npd.right == pytest.approx(original.npd.left)
        assert mirrored.face_width == pytest.approx(original.face_width)
        assert mirrored.raw_face_shape is original.raw_face_shape

    def test_result_is_immutable(self, engine):
        result = measure(engine)
        with pytest.raises(AttributeError):
            result.pd = 70.0


class TestValidity:
    def test_pd_out_of_range_blocks_capture_regardless_of_status(self, engine):
        # iris/pupil 스케일 모두 교차 검증 실패 → 얼굴 높이 기준 → PD 45mm
        result = measure(engine, spec=FaceSpec(pd=45.0))

        assert result.calibration.method is CalibrationMethod.FACE_HEIGHT
        assert result.pd == pytest.approx(45.0)
        assert result.distance_status is DistanceStatus.OPTIMAL
        assert result.orientation_status is OrientationStatus.STRAIGHT
        assert not result.is_valid
        assert result.issues == (ValidityIssue.PD_OUT_OF_RANGE,)
        assert result.violations[0].name == 'pd'

    def test_reference_scale_exposes_out_of_range_pd(self, engine):
        landmarks = build_landmarks(FaceSpec())
        result = engine.process(landmarks, FRAME, StabilizerState(), reference_px_to_mm=0.5)

        assert result.calibration.method is CalibrationMethod.REFERENCE_OBJECT
        assert result.pd == pytest.approx(46.5)
        assert ValidityIssue.PD_OUT_OF_RANGE in result.issues

    def test_npd_bounds_are_configurable(self):
        engine = MetrologyEngine(params=MetrologyParams(npd_min=10.0, npd_max=30.0))
        result = measure(engine)

        assert result.issues[:2] == (
            ValidityIssue.NPD_LEFT_OUT_OF_RANGE,
            ValidityIssue.NPD_RIGHT_OUT_OF_RANGE,
        )

    def test_invalid_params(self):
        with pytest.raises(ConfigurationError):
            MetrologyParams(pd_min=80.0, pd_max=50.0)
        with pytest.raises(ConfigurationError):
            MetrologyParams(too_close_factor=0.9)


class TestDistance:
    @pytest.mark.parametrize("px_per_mm, expected", [
        (1.5, DistanceStatus.OPTIMAL),
        (2.0, DistanceStatus.TOO_CLOSE),
        (1.0, DistanceStatus.TOO_FAR),
    ])
    def test_first_frame_is_evaluated(self, engine, px_per_mm, expected):
        result = measure(engine, px_per_mm=px_per_mm)
        assert result.distance_status is expected

    def test_too_close_blocks_capture(self, engine):
        result = measure(engine, px_per_mm=2.0)
        assert ValidityIssue.TOO_CLOSE in result.issues
        assert not result.is_valid

    def test_baseline_is_fixed_for_the_session(self, engine):
        state = StabilizerState()
        landmarks = build_landmarks(FaceSpec())
        engine.process(landmarks, FRAME, state)
        assert state.baseline.optimal_face_height_px == pytest.approx(288.0)

        # 같은 세션에서 더 큰 프레임 → 기준값은 그대로, 얼굴 높이만 2배
        result = engine.process(landmarks, FrameContext(1280, 960), state)
        assert state.baseline.optimal_face_height_px == pytest.approx(288.0)
        assert result.distance_status is DistanceStatus.TOO_CLOSE


class TestOrientation:
    def test_tilted(self, engine):
        result = measure(engine, spec=FaceSpec(right_eye_drop=15.0))
        assert result.orientation_status is OrientationStatus.TILTED
        assert ValidityIssue.TILTED in result.issues

    def test_small_roll_is_straight(self, engine):
        result = measure(engine, spec=FaceSpec(right_eye_drop=2.0))
        assert result.orientation_status is OrientationStatus.STRAIGHT

    def test_turn_direction_follows_smaller_npd(self, engine):
        landmarks = build_landmarks(FaceSpec(nose_tip_x=3.0))
        turned = engine.process(landmarks, FRAME, StabilizerState())
        assert turned.npd.right < turned.npd.left
        assert turned.orientation_status is OrientationStatus.TURN_RIGHT

        mirrored = engine.process(landmarks.mirrored(), FRAME, StabilizerState())
        assert mirrored.orientation_status is OrientationStatus.TURN_LEFT

    def test_small_yaw_is_straight(self, engine):
        result = measure(engine, spec=FaceSpec(nose_tip_x=1.0))
        assert result.orientation_status is OrientationStatus.STRAIGHT


class TestEyewear:
    @staticmethod
    def frame_image(dark_bridge):
        image = np.full((480, 640, 3), 180, dtype=np.uint8)
        if dark_bridge:
            image[180:216, 280:361] = 20
        return image

    def test_dark_bridge_reports_glasses(self, engine):
        result = measure(engine, image=self.frame_image(dark_bridge=True))
        assert result.glasses_detected is True
        # 기본 설정에서는 캡처를 막지 않음
        assert ValidityIssue.GLASSES not in result.issues

    def test_bright_bridge(self, engine):
        result = measure(engine, image=self.frame_image(dark_bridge=False))
        assert result.glasses_detected is False

    def test_without_image(self, engine):
        assert measure(engine).glasses_detected is None

    def test_glasses_can_block_capture(self):
        engine = MetrologyEngine(params=MetrologyParams(eyewear_blocks_capture=True))
        result = measure(engine, image=self.frame_image(dark_bridge=True))
        assert result.issues == (ValidityIssue.GLASSES,)


class TestFailures:
    def test_missing_state(self, engine):
        with pytest.raises(SessionStateMissingError):
            engine.process(build_landmarks(), FRAME, None)

    def test_empty_landmarks(self, engine):
        with pytest.raises(InsufficientLandmarksError):
            engine.process(LandmarkSet(points=()), FRAME, StabilizerState())

    def test_missing_iris_landmarks(self, engine):
        # iris refinement 없는 468-point 결과
        points = build_landmarks().points[:468]
        with pytest.raises(InsufficientLandmarksError):
            engine.process(LandmarkSet(points=points), FRAME, StabilizerState())

    def test_failed_frame_does_not_touch_state(self, engine):
        state = StabilizerState()
        collapsed = LandmarkSet(points=tuple(Landmark(0.5, 0.5) for _ in range(478)))
        with pytest.raises(CalibrationFailedError):
            engine.process(collapsed, FRAME, state)
        assert state.weights == {}
        assert not state.baseline.established


class TestStabilizedShape:
    def test_single_outlier_frame_does_not_flip_label(self, engine):
        state = StabilizerState()
        oval = build_landmarks(FaceSpec())
        triangle = build_landmarks(FaceSpec(jawline_width=120.0, cheekbone_width=105.0, forehead_width=100.0))

        for _ in range(10):
            engine.process(oval, FRAME, state)
        result = engine.process(triangle, FRAME, state)

        assert result.raw_face_shape is FaceShape.TRIANGLE
        assert result.face_shape is FaceShape.OVAL


def test_engine_accepts_raw_point_dicts(engine):
    payload = [p.to_dict() for p in build_landmarks(FaceSpec())]
    result = engine.process(payload, FRAME, StabilizerState())
    assert result.pd == pytest.approx(62.0)
    assert result.is_valid
