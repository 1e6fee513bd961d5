"""바운딩 박스 계산 (순수 함수)"""

import numpy as np

from doodle_sticker.schemas.pipeline import BoundingBox


class EmptyRegionError(Exception):
    """감쌀 픽셀이 하나도 없음 (완전 투명 이미지 / 빈 마스크)"""


def compute_bounds_from_alpha(buffer: np.ndarray) -> BoundingBox:
    """alpha > 0 인 픽셀을 모두 감싸는 최소 사각형

    Raises:
        EmptyRegionError: 완전히 투명한 이미지
    """
    try:
        return _bounds(buffer[:, :, 3] > 0)
    except EmptyRegionError:
        raise EmptyRegionError("바운딩 박스 계산 불가: 완전히 투명한 이미지") from None


def compute_bounds_from_mask(mask: np.ndarray) -> BoundingBox:
    """마스크의 1 영역을 감싸는 최소 사각형

    Raises:
        EmptyRegionError: 마스크가 모두 0
    """
    try:
        return _bounds(mask != 0)
    except EmptyRegionError:
        raise EmptyRegionError("바운딩 박스 계산 불가: 빈 마스크") from None


def _bounds(occupied: np.ndarray) -> BoundingBox:
    rows = np.flatnonzero(occupied.any(axis=1))
    if rows.size == 0:
        raise EmptyRegionError()
    cols = np.flatnonzero(occupied.any(axis=0))

    y1, y2 = int(rows[0]), int(rows[-1])
    x1, x2 = int(cols[0]), int(cols[-1])
    return BoundingBox(x=x1, y=y1, width=x2 - x1 + 1, height=y2 - y1 + 1)
