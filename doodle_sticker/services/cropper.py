"""콘텐츠 기반 스마트 크롭"""

import logging

import numpy as np
from PIL import Image

from doodle_sticker.constants import Limits
from doodle_sticker.schemas.pipeline import BoundingBox, CroppedResult
from doodle_sticker.services.bounding_box import compute_bounds_from_alpha

logger = logging.getLogger(__name__)


def _grow_to_minimum(
    start: int, length: int, content: tuple[int, int], limit: int, minimum: int
) -> tuple[int, int]:
    """[start, start+length) 구간을 minimum 길이로 확장

    새 구간은 패딩 전 콘텐츠 구간 content=(start, length)의 중심에 맞추고
    [0, limit) 안으로 이동한다.
    """
    if length >= minimum:
        return start, length

    content_start, content_length = content
    new_length = min(limit, minimum)
    new_start = content_start - (minimum - content_length) // 2
    new_start = max(0, min(new_start, limit - new_length))
    return new_start, new_length


class SmartCropper:
    """투명하지 않은 영역 + 패딩으로 크롭하고 크기 제한 적용

    - 패딩: [5, 10]px로 클램핑
    - 최소 크기 64px (원본이 허용하는 한)
    - 최대 크기 2048px 초과 시 비율 유지 축소
    """

    def __init__(self, padding: int = Limits.DEFAULT_PADDING) -> None:
        self.padding = max(Limits.MIN_PADDING, min(Limits.MAX_PADDING, padding))

    def crop(self, buffer: np.ndarray) -> CroppedResult:
        """콘텐츠 영역 + 패딩으로 크롭

        Raises:
            EmptyRegionError: 남은 콘텐츠가 없을 때 (배경 제거로 모두 지워짐)
        """
        img_h, img_w = buffer.shape[:2]
        bbox = compute_bounds_from_alpha(buffer)

        region = self._calc_crop_region(bbox, img_w, img_h)
        scale = self._calc_scale(region)
        target_w = max(1, round(region.width * scale))
        target_h = max(1, round(region.height * scale))

        image = self._extract_region(buffer, region, (target_w, target_h))
        logger.info(
            f"크롭 완료: region=({region.x}, {region.y}, {region.width}, {region.height}), "
            f"scale={scale:.3f}, output={target_w}x{target_h}"
        )

        return CroppedResult(image=image, bounding_box=region, padding=self.padding, scale=scale)

    def _calc_crop_region(self, bbox: BoundingBox, img_w: int, img_h: int) -> BoundingBox:
        x = max(0, bbox.x - self.padding)
        y = max(0, bbox.y - self.padding)
        width = min(img_w, bbox.right + self.padding) - x
        height = min(img_h, bbox.bottom + self.padding) - y

        x, width = _grow_to_minimum(
            x, width, (bbox.x, bbox.width), img_w, Limits.MIN_DIMENSION
        )
        y, height = _grow_to_minimum(
            y, height, (bbox.y, bbox.height), img_h, Limits.MIN_DIMENSION
        )

        return BoundingBox(x=x, y=y, width=width, height=height)

    def _calc_scale(self, region: BoundingBox) -> float:
        if region.width <= Limits.MAX_DIMENSION and region.height <= Limits.MAX_DIMENSION:
            return 1.0
        return min(Limits.MAX_DIMENSION / region.width, Limits.MAX_DIMENSION / region.height)

    def _extract_region(
        self, buffer: np.ndarray, region: BoundingBox, size: tuple[int, int]
    ) -> np.ndarray:
        x1, y1, x2, y2 = region.to_tuple()
        cropped = buffer[y1:y2, x1:x2]

        if size == (region.width, region.height):
            return cropped.copy()

        img = Image.fromarray(np.ascontiguousarray(cropped))
        return np.array(img.resize(size, Image.Resampling.LANCZOS))
