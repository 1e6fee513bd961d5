"""Subject Detection Protocol

교체 가능한 피사체 탐지 구현을 위한 인터페이스 정의.
모든 좌표는 입력 이미지 기준 절대 좌표(px).
"""

from typing import Protocol

import numpy as np

from doodle_sticker.schemas.pipeline import SubjectMask


class DetectionError(Exception):
    pass


class SubjectDetector(Protocol):
    """피사체 탐지 인터페이스

    구현체:
    - AISubjectDetector: Gemini Vision API (네트워크 필요, best-effort)
    - PixelSubjectDetector: flood fill + morphology (로컬, 항상 사용 가능)
    """

    def detect_subject(self, buffer: np.ndarray) -> SubjectMask:
        """이미지에서 주 피사체 마스크 생성

        Args:
            buffer: RGBA 이미지 (height, width, 4) uint8

        Returns:
            SubjectMask: 피사체 마스크 + 바운딩 박스

        Raises:
            DetectionError: AI 탐지 실패 시
            EmptyRegionError: 피사체 픽셀이 없을 때
        """
        ...
