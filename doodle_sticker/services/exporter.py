"""PNG / WebP 내보내기

- PNG: 무손실, 해상도 상한 초과 시에만 축소
- WebP: 512x512 정사각 캔버스에 맞춘 뒤 용량 제한을 만족하는 품질을 탐색
"""

import io
import logging

import numpy as np
from PIL import Image, features

from doodle_sticker.constants import Limits, LossyExport

logger = logging.getLogger(__name__)


def fit_to_square(buffer: np.ndarray, size: int = LossyExport.CANVAS_SIZE) -> Image.Image:
    """비율을 유지하며 size x size 투명 캔버스 중앙에 배치"""
    src_h, src_w = buffer.shape[:2]
    scale = min(size / src_w, size / src_h)
    new_w = max(1, round(src_w * scale))
    new_h = max(1, round(src_h * scale))

    resized = Image.fromarray(buffer).resize((new_w, new_h), Image.Resampling.LANCZOS)
    canvas = Image.new("RGBA", (size, size), (0, 0, 0, 0))
    canvas.paste(resized, ((size - new_w) // 2, (size - new_h) // 2))
    return canvas


def quality_levels() -> list[int]:
    """탐색할 WebP 품질 (높은 순)"""
    return list(
        range(
            LossyExport.QUALITY_START,
            LossyExport.QUALITY_FLOOR - 1,
            -LossyExport.QUALITY_STEP,
        )
    )


class FormatExporter:
    def __init__(self, max_resolution: int = Limits.MAX_RESOLUTION) -> None:
        self._max_resolution = max_resolution

    def supports_lossy(self) -> bool:
        """현재 Pillow 빌드가 WebP 인코딩을 지원하는지"""
        return bool(features.check("webp"))

    def export_lossless(self, buffer: np.ndarray) -> bytes:
        """PNG 인코딩 (해상도 상한 이하면 픽셀 그대로)"""
        img = Image.fromarray(buffer)

        scale = min(1.0, self._max_resolution / max(img.width, img.height))
        if scale < 1.0:
            size = (max(1, round(img.width * scale)), max(1, round(img.height * scale)))
            img = img.resize(size, Image.Resampling.LANCZOS)

        out = io.BytesIO()
        img.save(out, format="PNG")
        return out.getvalue()

    def export_lossy(
        self, buffer: np.ndarray, max_bytes: int = LossyExport.MAX_BYTES
    ) -> bytes | None:
        """용량 제한을 만족하는 WebP 인코딩

        Returns:
            max_bytes 이하인 첫 번째 인코딩, 어떤 품질로도 안 되거나 WebP 미지원이면 None
        """
        if not self.supports_lossy():
            logger.warning("WebP 인코딩 미지원 - WebP 내보내기 생략")
            return None

        canvas = fit_to_square(buffer)

        for quality in quality_levels():
            data = self._encode_webp(canvas, quality)
            if len(data) <= max_bytes:
                logger.info(f"WebP 내보내기 완료: quality={quality}, {len(data)} bytes")
                return data

        logger.info(f"WebP 용량 제한({max_bytes} bytes) 미충족 - WebP 생략")
        return None

    def _encode_webp(self, image: Image.Image, quality: int) -> bytes:
        out = io.BytesIO()
        image.save(out, format="WEBP", quality=quality)
        return out.getvalue()
