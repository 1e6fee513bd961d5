"""Subject Detection 모듈

사용법:
    from doodle_sticker.services.detection import get_ai_detection

    detector = get_ai_detection()  # GEMINI_API_KEY가 없으면 None
    if detector is not None:
        subject = detector.detect_subject(buffer)

PixelSubjectDetector는 외부 의존성이 없으므로 팩토리 없이 직접 생성한다.
"""

from doodle_sticker.config import get_settings
from doodle_sticker.services.detection.ai import AISubjectDetector
from doodle_sticker.services.detection.base import DetectionError, SubjectDetector
from doodle_sticker.services.detection.pixel import PixelSubjectDetector
from doodle_sticker.services.detection.vision_client import GeminiVisionClient

__all__ = [
    "DetectionError",
    "PixelSubjectDetector",
    "SubjectDetector",
    "get_ai_detection",
    "set_ai_detection",
]

_ai_detector: SubjectDetector | None = None


def get_ai_detection() -> SubjectDetector | None:
    """설정에 따라 AI detection 백엔드 반환 (API 키가 없으면 None)"""
    global _ai_detector
    if _ai_detector is None:
        settings = get_settings()
        if not settings.gemini_api_key:
            return None
        _ai_detector = AISubjectDetector(
            GeminiVisionClient(
                api_key=settings.gemini_api_key,
                model=settings.gemini_model,
                timeout=settings.vision_timeout,
                max_retries=settings.vision_max_retries,
            )
        )
    return _ai_detector


def set_ai_detection(detector: SubjectDetector | None) -> None:
    """AI detection 백엔드 설정 (테스트용)"""
    global _ai_detector
    _ai_detector = detector
