"""픽셀 기반 피사체 탐지 (fallback)

alpha 이진화 → 가장 큰 4-연결 컴포넌트 → morphological close.
"""

import logging

import cv2
import numpy as np

from doodle_sticker.constants import Confidence, Limits
from doodle_sticker.schemas.pipeline import DetectionMethod, SubjectMask
from doodle_sticker.services.bounding_box import compute_bounds_from_mask

logger = logging.getLogger(__name__)

# 8-이웃 구조 요소
CLOSE_KERNEL = np.ones((3, 3), dtype=np.uint8)


def binarize(buffer: np.ndarray, threshold: int = Limits.ALPHA_THRESHOLD) -> np.ndarray:
    """alpha > threshold 인 픽셀을 1로 표시한 마스크"""
    return (buffer[:, :, 3] > threshold).astype(np.uint8)


def find_largest_component(mask: np.ndarray) -> np.ndarray:
    """가장 큰 4-연결 컴포넌트만 남긴 마스크

    크기가 같으면 래스터 순서로 먼저 나오는 컴포넌트가 이긴다.
    """
    count, labels, stats, _ = cv2.connectedComponentsWithStats(mask, connectivity=4)
    result = np.zeros_like(mask)
    if count <= 1:
        return result

    areas = stats[1:, cv2.CC_STAT_AREA]
    candidates = (np.flatnonzero(areas == areas.max()) + 1).tolist()
    largest = min(candidates, key=lambda label: _first_pixel(labels, stats, label))

    result[labels == largest] = 1
    return result


def _first_pixel(labels: np.ndarray, stats: np.ndarray, label: int) -> tuple[int, int]:
    """컴포넌트의 래스터 순서 첫 픽셀 (y, x)"""
    top = int(stats[label, cv2.CC_STAT_TOP])
    left = int(np.flatnonzero(labels[top] == label)[0])
    return top, left


def morphological_close(mask: np.ndarray) -> np.ndarray:
    """dilate → erode (3x3)

    이미지 경계 밖 픽셀은 팽창/침식 어느 쪽에도 영향을 주지 않는다.
    """
    dilated = cv2.dilate(mask, CLOSE_KERNEL, iterations=1)
    return cv2.erode(dilated, CLOSE_KERNEL, iterations=1)


class PixelSubjectDetector:
    """픽셀 분석 기반 피사체 탐지 (외부 의존성 없음)"""

    def __init__(self, alpha_threshold: int = Limits.ALPHA_THRESHOLD) -> None:
        self._alpha_threshold = alpha_threshold

    def detect_subject(self, buffer: np.ndarray) -> SubjectMask:
        """가장 큰 획 덩어리를 피사체로 선택

        Raises:
            EmptyRegionError: threshold를 넘는 픽셀이 하나도 없을 때
        """
        binary = binarize(buffer, self._alpha_threshold)
        largest = find_largest_component(binary)
        closed = morphological_close(largest)
        bounding_box = compute_bounds_from_mask(closed)

        logger.info(f"픽셀 탐지 완료: {int(largest.sum())}px 컴포넌트, bbox={bounding_box.to_tuple()}")

        return SubjectMask(
            mask=closed,
            bounding_box=bounding_box,
            confidence=Confidence.FALLBACK,
            method=DetectionMethod.FALLBACK,
        )
