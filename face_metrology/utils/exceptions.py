"""커스텀 예외 클래스 정의"""


class FacialMetrologyException(Exception):
    """기본 예외 클래스"""
    pass


class InsufficientLandmarksError(FacialMetrologyException):
    """랜드마크 누락/부족 예외 (해당 프레임은 측정 불가)"""
    pass


class CalibrationFailedError(FacialMetrologyException):
    """모든 캘리브레이션 방식이 실패한 경우"""
    pass


class SessionStateMissingError(FacialMetrologyException):
    """세션 상태(stabilizer/baseline)가 없는 상태에서 호출된 경우 (프로그래밍 오류)"""
    pass


class CaptureRefusedError(FacialMetrologyException):
    """유효하지 않은 측정값의 캡처 시도"""

    def __init__(self, message: str, issues=()):
        super().__init__(message)
        self.issues = tuple(issues)


class ReferenceCalibrationError(FacialMetrologyException):
    """물리 기준 물체 캘리브레이션 오류"""
    pass


class ConfigurationError(FacialMetrologyException):
    """설정 오류 예외"""
    pass
