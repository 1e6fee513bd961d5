"""Sticker 서비스: API 요청 ↔ 파이프라인 변환

FE 캔버스에서 받은 base64 이미지를 PixelBuffer로 디코딩하고
파이프라인 결과를 base64 응답 / 다운로드 파일로 변환한다.
"""

import base64
import logging

import numpy as np
from pydantic import BaseModel

from doodle_sticker.constants import ErrorCode
from doodle_sticker.schemas.base import BaseSchema
from doodle_sticker.schemas.pipeline import ExportFormat, StickerMetadata, StickerResult
from doodle_sticker.services.download import generate_filename
from doodle_sticker.services.pipeline import StickerCreationError, get_orchestrator
from doodle_sticker.services.pixel_buffer import (
    PixelBufferError,
    decode_base64_image,
    encode_png_base64,
)

logger = logging.getLogger(__name__)


class FormatUnavailableError(Exception):
    """요청한 형식으로 내보낼 수 없음 (WebP 용량 제한 미충족 / 미지원)"""

    code = ErrorCode.FORMAT_UNAVAILABLE

    def __init__(self, fmt: ExportFormat):
        self.format = fmt
        self.message = f"{fmt.value} 형식으로 내보낼 수 없습니다"
        super().__init__(self.message)


class StickerRequest(BaseSchema):
    """스티커 생성 요청"""

    image: str  # base64 PNG (data URL 허용)
    use_ai: bool | None = None  # None이면 서버 설정을 따름


class StickerResponse(BaseSchema):
    """스티커 생성 응답 (이미지는 모두 base64)"""

    preview_image: str
    lossless_image: str
    lossy_image: str | None = None
    metadata: StickerMetadata


class StickerDownload(BaseModel):
    content: bytes
    media_type: str
    filename: str


def _b64(data: bytes) -> str:
    return base64.b64encode(data).decode()


def load_drawing(b64_str: str) -> np.ndarray:
    """base64 이미지 → RGBA PixelBuffer

    Raises:
        StickerCreationError: CANVAS_CONTEXT_ERROR (디코딩 실패)
    """
    try:
        return decode_base64_image(b64_str)
    except PixelBufferError as e:
        raise StickerCreationError(
            ErrorCode.CANVAS_CONTEXT_ERROR, "캔버스 이미지를 읽을 수 없습니다"
        ) from e


def _run_pipeline(request: StickerRequest) -> StickerResult:
    buffer = load_drawing(request.image)
    return get_orchestrator().create_sticker(buffer, use_ai=request.use_ai)


def create_sticker(request: StickerRequest) -> StickerResponse:
    """드로잉 → 스티커 (미리보기 + PNG + WebP)

    동기 함수 - FastAPI가 threadpool에서 실행.

    Raises:
        StickerCreationError: 모든 에러 (code로 구분)
    """
    result = _run_pipeline(request)
    lossy = result.formats.lossy

    return StickerResponse(
        preview_image=encode_png_base64(result.preview),
        lossless_image=_b64(result.formats.lossless),
        lossy_image=_b64(lossy) if lossy is not None else None,
        metadata=result.metadata,
    )


def download_sticker(request: StickerRequest, fmt: ExportFormat) -> StickerDownload:
    """드로잉 → 요청한 형식의 스티커 파일

    Raises:
        StickerCreationError: 파이프라인 실패
        FormatUnavailableError: WebP를 만들 수 없을 때
    """
    result = _run_pipeline(request)
    content = result.formats.lossless if fmt == ExportFormat.PNG else result.formats.lossy
    if content is None:
        raise FormatUnavailableError(fmt)

    filename = generate_filename(fmt)
    logger.info(f"스티커 다운로드: {filename} ({len(content)} bytes)")

    return StickerDownload(content=content, media_type=fmt.media_type, filename=filename)
