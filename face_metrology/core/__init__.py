"""
Core metrology engine package.

models가 core.constants에 의존하므로 하위 모듈은 직접 import 한다.
    from face_metrology.core.metrology import MetrologyEngine
"""
