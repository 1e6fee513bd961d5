"""Gemini Vision 기반 피사체 탐지

Vision API가 돌려준 바운딩 박스를 그대로 마스크로 사용한다 (픽셀 단위 분할 아님).
"""

import logging
import math

import numpy as np

from doodle_sticker.schemas.pipeline import DetectionMethod, SubjectMask
from doodle_sticker.services.bounding_box import compute_bounds_from_mask
from doodle_sticker.services.detection.base import DetectionError
from doodle_sticker.services.detection.vision_client import (
    GeminiVisionClient,
    VisionAnalysis,
    VisionServiceError,
)
from doodle_sticker.services.pixel_buffer import encode_png

logger = logging.getLogger(__name__)

SUBJECT_DETECTION_PROMPT = """Analyze this drawing and identify the main subject or doodle.
Provide the bounding box coordinates of the primary subject in the following format:
{"x": <number>, "y": <number>, "width": <number>, "height": <number>}

Where:
- x and y are the top-left corner coordinates (in pixels)
- width and height are the dimensions (in pixels)

Ignore any background elements and focus on the main drawing. \
If there are multiple subjects, select the largest or most central one."""


def clamp_box(
    analysis: VisionAnalysis, width: int, height: int
) -> tuple[float, float, float, float]:
    """박스를 이미지 경계 안으로 클램핑 → (x, y, w, h)

    음수 원점은 0으로, 크기는 [1, 남은 길이]로 제한.
    """
    x = max(0.0, min(analysis.x, width - 1))
    y = max(0.0, min(analysis.y, height - 1))
    w = max(1.0, min(analysis.width, width - x))
    h = max(1.0, min(analysis.height, height - y))
    return x, y, w, h


def rasterize_box(box: tuple[float, float, float, float], width: int, height: int) -> np.ndarray:
    """박스 내부 픽셀을 모두 1로 채운 마스크"""
    x, y, w, h = box
    x1, y1 = math.floor(x), math.floor(y)
    x2, y2 = min(width, math.ceil(x + w)), min(height, math.ceil(y + h))

    mask = np.zeros((height, width), dtype=np.uint8)
    mask[y1:y2, x1:x2] = 1
    return mask


class AISubjectDetector:
    """Gemini Vision API를 사용한 피사체 탐지"""

    def __init__(self, client: GeminiVisionClient) -> None:
        self._client = client

    def detect_subject(self, buffer: np.ndarray) -> SubjectMask:
        """Vision API 바운딩 박스를 이미지 경계로 클램핑한 사각형 마스크

        Raises:
            DetectionError: API 호출/파싱 실패
        """
        height, width = buffer.shape[:2]
        if width == 0 or height == 0:
            raise DetectionError("빈 이미지는 분석할 수 없습니다")

        try:
            analysis = self._client.analyze(encode_png(buffer), SUBJECT_DETECTION_PROMPT)
        except VisionServiceError as e:
            raise DetectionError(f"AI 피사체 탐지 실패: {e}") from e

        box = clamp_box(analysis, width, height)
        mask = rasterize_box(box, width, height)
        bounding_box = compute_bounds_from_mask(mask)

        logger.info(
            f"AI 탐지 완료: bbox=({bounding_box.x}, {bounding_box.y}, "
            f"{bounding_box.width}, {bounding_box.height}), confidence={analysis.confidence}"
        )

        return SubjectMask(
            mask=mask,
            bounding_box=bounding_box,
            confidence=analysis.confidence,
            method=DetectionMethod.AI,
        )
