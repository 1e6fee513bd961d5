"""PixelBuffer 변환 유틸리티

PixelBuffer = (height, width, 4) uint8 RGBA numpy 배열.
각 단계는 입력 배열을 수정하지 않고 새 배열을 반환한다.
"""

import base64
import io

import numpy as np
from PIL import Image


class PixelBufferError(Exception):
    pass


def decode_image(data: bytes) -> np.ndarray:
    """인코딩된 이미지(PNG 등) → RGBA PixelBuffer

    Raises:
        PixelBufferError: 이미지 파싱 실패
    """
    try:
        with Image.open(io.BytesIO(data)) as img:
            return np.array(img.convert("RGBA"))
    except Exception as e:
        raise PixelBufferError(f"이미지 디코딩 실패: {e}") from e


def decode_base64_image(b64_str: str) -> np.ndarray:
    """base64 이미지 → RGBA PixelBuffer

    data URL 접두사(data:image/png;base64,)가 있으면 제거한다.
    """
    if b64_str.startswith("data:") and "," in b64_str:
        b64_str = b64_str.split(",", 1)[1]

    try:
        data = base64.b64decode(b64_str, validate=True)
    except ValueError as e:
        raise PixelBufferError("base64 디코딩 실패") from e

    return decode_image(data)


def is_rgba_buffer(buffer: np.ndarray) -> bool:
    return buffer.ndim == 3 and buffer.shape[2] == 4 and buffer.dtype == np.uint8


def has_content(buffer: np.ndarray) -> bool:
    """alpha > 0 인 픽셀이 하나라도 있는지"""
    return buffer.size > 0 and bool(np.any(buffer[:, :, 3] > 0))


def encode_png(buffer: np.ndarray) -> bytes:
    img = Image.fromarray(buffer)
    out = io.BytesIO()
    img.save(out, format="PNG")
    return out.getvalue()


def encode_png_base64(buffer: np.ndarray) -> str:
    return base64.b64encode(encode_png(buffer)).decode()
