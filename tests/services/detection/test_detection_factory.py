"""AI Detection 팩토리 테스트"""

from unittest.mock import MagicMock, patch

from doodle_sticker.services.detection import get_ai_detection, set_ai_detection
from doodle_sticker.services.detection.ai import AISubjectDetector

SETTINGS = "doodle_sticker.services.detection.get_settings"


def _settings(api_key: str) -> MagicMock:
    settings = MagicMock()
    settings.gemini_api_key = api_key
    settings.gemini_model = "test-model"
    settings.vision_timeout = 5.0
    settings.vision_max_retries = 1
    return settings


class TestGetAIDetection:
    def setup_method(self) -> None:
        set_ai_detection(None)

    def teardown_method(self) -> None:
        set_ai_detection(None)

    def test_without_api_key_returns_none(self) -> None:
        with patch(SETTINGS, return_value=_settings("")):
            assert get_ai_detection() is None

    def test_with_api_key_returns_ai_detector(self) -> None:
        with patch(SETTINGS, return_value=_settings("test-key")):
            backend = get_ai_detection()
        assert isinstance(backend, AISubjectDetector)

    def test_cached_instance(self) -> None:
        with patch(SETTINGS, return_value=_settings("test-key")):
            assert get_ai_detection() is get_ai_detection()

    def test_set_ai_detection_overrides_factory(self) -> None:
        mock = MockDetector()
        set_ai_detection(mock)
        assert get_ai_detection() is mock


class MockDetector:
    def detect_subject(self, buffer: object) -> object:
        return None
