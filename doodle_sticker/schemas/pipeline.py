"""스티커 파이프라인 데이터 모델

Detection → Background removal → Crop → Export 전체에서 사용하는 공통 스키마.
이미지(PixelBuffer)는 (height, width, 4) uint8 RGBA numpy 배열.
"""

from datetime import datetime
from enum import StrEnum
from typing import Self

import numpy as np
from pydantic import BaseModel, ConfigDict, Field, model_validator

from doodle_sticker.schemas.base import BaseSchema


class DetectionMethod(StrEnum):
    AI = "ai"
    FALLBACK = "fallback"


class ExportFormat(StrEnum):
    PNG = "png"
    WEBP = "webp"

    @property
    def media_type(self) -> str:
        return f"image/{self.value}"


class PipelineStage(StrEnum):
    IDLE = "idle"
    VALIDATING = "validating"
    DETECTING = "detecting"
    REMOVING_BACKGROUND = "removing_background"
    CROPPING = "cropping"
    EXPORTING = "exporting"
    COMPLETE = "complete"
    ERROR = "error"


class BoundingBox(BaseModel):
    """정수 픽셀 좌표 사각형 (x, y = 좌상단)

    유효성:
    - x, y >= 0
    - width, height > 0
    """

    model_config = ConfigDict(frozen=True)

    x: int = Field(ge=0)
    y: int = Field(ge=0)
    width: int = Field(gt=0)
    height: int = Field(gt=0)

    @property
    def right(self) -> int:
        """오른쪽 경계 (exclusive)"""
        return self.x + self.width

    @property
    def bottom(self) -> int:
        """아래쪽 경계 (exclusive)"""
        return self.y + self.height

    @property
    def area(self) -> int:
        return self.width * self.height

    def to_tuple(self) -> tuple[int, int, int, int]:
        """(x1, y1, x2, y2) 튜플로 변환 (PIL crop 등에 사용)"""
        return (self.x, self.y, self.right, self.bottom)


class SubjectMask(BaseModel):
    """피사체 마스크

    mask[y, x] == 1 이면 피사체 픽셀.
    bounding_box는 mask의 1 영역을 정확히 감싸는 최소 사각형.
    생성 후 mask는 읽기 전용으로 고정된다.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    mask: np.ndarray
    bounding_box: BoundingBox
    confidence: float = Field(ge=0.0, le=1.0)
    method: DetectionMethod

    @model_validator(mode="after")
    def validate_mask(self) -> Self:
        if self.mask.ndim != 2:
            raise ValueError(f"mask는 2차원이어야 합니다: {self.mask.shape}")
        self.mask.setflags(write=False)
        return self


class CroppedResult(BaseModel):
    """크롭 결과

    bounding_box는 원본(크롭 전) 좌표계 기준 크롭 영역 (패딩/최소 크기 보정 후, 스케일 전).
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    image: np.ndarray
    bounding_box: BoundingBox
    padding: int
    scale: float = 1.0


class Dimensions(BaseSchema):
    width: int
    height: int


class StickerMetadata(BaseSchema):
    created_at: datetime
    original_dimensions: Dimensions
    cropped_dimensions: Dimensions
    detection_method: DetectionMethod
    detection_confidence: float
    export_formats: list[ExportFormat]
    file_sizes: dict[str, int]


class StickerFormats(BaseModel):
    lossless: bytes
    lossy: bytes | None = None  # 용량 제한 미달 또는 WebP 미지원 시 None


class StickerResult(BaseModel):
    """스티커 생성 파이프라인 최종 결과"""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    preview: np.ndarray
    formats: StickerFormats
    metadata: StickerMetadata
