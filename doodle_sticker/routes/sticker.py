"""Sticker API 라우트

캔버스 드로잉을 배경 제거 + 크롭된 스티커(PNG/WebP)로 변환하는 엔드포인트.
"""

from typing import Annotated

from fastapi import APIRouter, HTTPException, Query, Response, status

from doodle_sticker.schemas.pipeline import ExportFormat
from doodle_sticker.services import sticker as sticker_service
from doodle_sticker.services.download import content_disposition
from doodle_sticker.services.pipeline import StickerCreationError

router = APIRouter(prefix="/stickers", tags=["stickers"])


def _to_http_error(e: StickerCreationError) -> HTTPException:
    return HTTPException(
        status_code=e.status_code,
        detail={"code": e.code, "message": e.message},
    )


@router.post(
    "",
    response_model=sticker_service.StickerResponse,
    status_code=status.HTTP_200_OK,
)
def create_sticker(request: sticker_service.StickerRequest) -> sticker_service.StickerResponse:
    """스티커 생성

    동기 엔드포인트 - FastAPI가 threadpool에서 실행.
    """
    try:
        return sticker_service.create_sticker(request)
    except StickerCreationError as e:
        raise _to_http_error(e) from None


@router.post("/download", response_class=Response)
def download_sticker(
    request: sticker_service.StickerRequest,
    fmt: Annotated[ExportFormat, Query(alias="format")] = ExportFormat.PNG,
) -> Response:
    """스티커 파일 다운로드 (sticker_YYYYMMDD_HHMMSS.{png|webp})"""
    try:
        download = sticker_service.download_sticker(request, fmt)
    except StickerCreationError as e:
        raise _to_http_error(e) from None
    except sticker_service.FormatUnavailableError as e:
        raise HTTPException(
            status_code=422,
            detail={"code": e.code, "message": e.message},
        ) from None

    return Response(
        content=download.content,
        media_type=download.media_type,
        headers={"Content-Disposition": content_disposition(download.filename)},
    )
