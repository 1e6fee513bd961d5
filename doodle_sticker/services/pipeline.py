"""스티커 생성 파이프라인

Idle → Validating → Detecting → RemovingBackground → Cropping → Exporting 순서로 실행.
에러 분류는 이 모듈에서만 한다. 하위 모듈은 좁은 예외(EmptyRegionError 등)만 던지고
단계에 따라 다른 에러 코드로 해석된다.
"""

import logging
from collections.abc import Callable
from datetime import UTC, datetime

import numpy as np

from doodle_sticker.config import get_settings
from doodle_sticker.constants import ErrorCode, Limits, LossyExport
from doodle_sticker.schemas.pipeline import (
    CroppedResult,
    Dimensions,
    ExportFormat,
    PipelineStage,
    StickerFormats,
    StickerMetadata,
    StickerResult,
    SubjectMask,
)
from doodle_sticker.services.background_remover import BackgroundRemover
from doodle_sticker.services.bounding_box import EmptyRegionError
from doodle_sticker.services.cropper import SmartCropper
from doodle_sticker.services.detection import (
    PixelSubjectDetector,
    SubjectDetector,
    get_ai_detection,
)
from doodle_sticker.services.exporter import FormatExporter
from doodle_sticker.services.pixel_buffer import has_content, is_rgba_buffer

logger = logging.getLogger(__name__)

StageCallback = Callable[[PipelineStage], None]


class StickerCreationError(Exception):
    """스티커 생성 실패

    code로 구체적인 원인 구분:
    - EMPTY_CANVAS: 빈 캔버스 / 완전 투명 (400)
    - CANVAS_CONTEXT_ERROR: 픽셀 데이터를 얻을 수 없음 (400)
    - DRAWING_TOO_SMALL: 크롭 결과가 최소 크기 미만 (422)
    - PROCESSING_ERROR: 예상치 못한 실패, 원인은 __cause__ (500)
    """

    STATUS_MAP: dict[str, int] = {
        ErrorCode.EMPTY_CANVAS: 400,
        ErrorCode.CANVAS_CONTEXT_ERROR: 400,
        ErrorCode.DRAWING_TOO_SMALL: 422,
        ErrorCode.PROCESSING_ERROR: 500,
    }

    def __init__(self, code: str, message: str):
        self.code = code
        self.message = message
        super().__init__(f"[{code}] {message}")

    @property
    def status_code(self) -> int:
        return self.STATUS_MAP.get(self.code, 500)


def _ignore_stage(stage: PipelineStage) -> None:
    pass


class StickerOrchestrator:
    """단계 연결 + AI→픽셀 fallback + 에러 분류

    요청별 상태를 인스턴스에 저장하지 않으므로 동시 요청에서 공유해도 안전하다.
    """

    def __init__(
        self,
        pixel_detector: SubjectDetector | None = None,
        ai_detector: SubjectDetector | None = None,
        background_remover: BackgroundRemover | None = None,
        cropper: SmartCropper | None = None,
        exporter: FormatExporter | None = None,
        use_ai: bool = True,
        lossy_max_bytes: int = LossyExport.MAX_BYTES,
    ) -> None:
        self._pixel_detector = pixel_detector or PixelSubjectDetector()
        self._ai_detector = ai_detector
        self._background_remover = background_remover or BackgroundRemover()
        self._cropper = cropper or SmartCropper()
        self._exporter = exporter or FormatExporter()
        self._use_ai = use_ai
        self._lossy_max_bytes = lossy_max_bytes

    def detection_chain(self, use_ai: bool | None = None) -> list[SubjectDetector]:
        """시도할 탐지기 순서 (AI 사용 가능하면 AI → 픽셀, 아니면 픽셀만)

        use_ai가 None이면 생성 시 설정을 따른다.
        """
        wants_ai = self._use_ai if use_ai is None else use_ai
        if wants_ai and self._ai_detector is not None:
            return [self._ai_detector, self._pixel_detector]
        return [self._pixel_detector]

    def create_sticker(
        self,
        buffer: np.ndarray,
        on_stage: StageCallback | None = None,
        use_ai: bool | None = None,
    ) -> StickerResult:
        """드로잉 → 스티커

        Args:
            buffer: RGBA 이미지 (height, width, 4) uint8
            on_stage: 단계 전환 알림 콜백 (진행 표시용)
            use_ai: 요청별 AI 탐지 사용 여부 (None이면 기본 설정)

        Raises:
            StickerCreationError: 모든 실패 (code로 구분)
        """
        notify = on_stage or _ignore_stage
        notify(PipelineStage.IDLE)

        try:
            return self._run(buffer, notify, self.detection_chain(use_ai))
        except StickerCreationError as e:
            logger.info(f"스티커 생성 중단: {e}")
            notify(PipelineStage.ERROR)
            raise
        except Exception as e:
            logger.error(f"스티커 생성 실패: {e}")
            notify(PipelineStage.ERROR)
            raise StickerCreationError(
                ErrorCode.PROCESSING_ERROR, "스티커를 만들지 못했습니다. 다시 시도해 주세요."
            ) from e

    def _run(
        self, buffer: np.ndarray, notify: StageCallback, detectors: list[SubjectDetector]
    ) -> StickerResult:
        # 1. Validating
        notify(PipelineStage.VALIDATING)
        self._validate(buffer)
        height, width = buffer.shape[:2]

        # 2. Detecting
        notify(PipelineStage.DETECTING)
        subject = self._detect(buffer, detectors)

        # 3. Background removal
        notify(PipelineStage.REMOVING_BACKGROUND)
        masked = self._background_remover.remove_background(buffer, subject)

        # 4. Cropping
        notify(PipelineStage.CROPPING)
        cropped = self._crop(masked)

        # 5. Exporting
        notify(PipelineStage.EXPORTING)
        formats = self._export(cropped)

        original = Dimensions(width=width, height=height)
        metadata = self._build_metadata(subject, cropped, formats, original)
        notify(PipelineStage.COMPLETE)
        logger.info(
            f"스티커 생성 완료: {width}x{height} → "
            f"{metadata.cropped_dimensions.width}x{metadata.cropped_dimensions.height} "
            f"({subject.method.value}, {[f.value for f in metadata.export_formats]})"
        )

        return StickerResult(preview=cropped.image, formats=formats, metadata=metadata)

    def _validate(self, buffer: np.ndarray) -> None:
        if not isinstance(buffer, np.ndarray) or not is_rgba_buffer(buffer):
            shape = getattr(buffer, "shape", None)
            raise StickerCreationError(
                ErrorCode.CANVAS_CONTEXT_ERROR, f"RGBA 픽셀 데이터가 아닙니다: {shape}"
            )

        if not has_content(buffer):
            raise StickerCreationError(
                ErrorCode.EMPTY_CANVAS,
                "빈 캔버스로는 스티커를 만들 수 없습니다. 먼저 그림을 그려 주세요.",
            )

    def _detect(self, buffer: np.ndarray, detectors: list[SubjectDetector]) -> SubjectMask:
        """앞쪽 탐지기부터 시도, 실패 시 다음으로 (마지막 탐지기 실패는 그대로 전파)"""
        *fallible, last = detectors
        for detector in fallible:
            try:
                return detector.detect_subject(buffer)
            except Exception as e:
                logger.warning(f"{type(detector).__name__} 탐지 실패, 다음 탐지기로 전환: {e}")

        try:
            return last.detect_subject(buffer)
        except EmptyRegionError as e:
            raise StickerCreationError(
                ErrorCode.EMPTY_CANVAS,
                "감지할 수 있는 그림이 없습니다. 조금 더 진하게 그려 주세요.",
            ) from e

    def _crop(self, masked: np.ndarray) -> CroppedResult:
        too_small = "스티커로 만들기에 그림이 너무 작습니다. 더 크게 그려 주세요."

        try:
            cropped = self._cropper.crop(masked)
        except EmptyRegionError as e:
            raise StickerCreationError(ErrorCode.DRAWING_TOO_SMALL, too_small) from e

        # 원본 영역과 축소 후 결과 모두 최소 크기 이상이어야 한다
        region = cropped.bounding_box
        out_h, out_w = cropped.image.shape[:2]
        if min(region.width, region.height, out_w, out_h) < Limits.MIN_DIMENSION:
            raise StickerCreationError(ErrorCode.DRAWING_TOO_SMALL, too_small)

        return cropped

    def _export(self, cropped: CroppedResult) -> StickerFormats:
        lossless = self._exporter.export_lossless(cropped.image)
        lossy = self._exporter.export_lossy(cropped.image, self._lossy_max_bytes)
        return StickerFormats(lossless=lossless, lossy=lossy)

    def _build_metadata(
        self,
        subject: SubjectMask,
        cropped: CroppedResult,
        formats: StickerFormats,
        original: Dimensions,
    ) -> StickerMetadata:
        export_formats = [ExportFormat.PNG]
        file_sizes = {ExportFormat.PNG.value: len(formats.lossless)}
        if formats.lossy is not None:
            export_formats.append(ExportFormat.WEBP)
            file_sizes[ExportFormat.WEBP.value] = len(formats.lossy)

        crop_h, crop_w = cropped.image.shape[:2]
        return StickerMetadata(
            created_at=datetime.now(UTC),
            original_dimensions=original,
            cropped_dimensions=Dimensions(width=crop_w, height=crop_h),
            detection_method=subject.method,
            detection_confidence=subject.confidence,
            export_formats=export_formats,
            file_sizes=file_sizes,
        )


_orchestrator: StickerOrchestrator | None = None


def get_orchestrator() -> StickerOrchestrator:
    """설정에 따라 orchestrator 반환"""
    global _orchestrator
    if _orchestrator is None:
        settings = get_settings()
        _orchestrator = StickerOrchestrator(
            pixel_detector=PixelSubjectDetector(),
            ai_detector=get_ai_detection(),
            cropper=SmartCropper(padding=settings.sticker_padding),
            use_ai=settings.ai_detection_enabled,
            lossy_max_bytes=settings.lossy_max_bytes,
        )
    return _orchestrator


def set_orchestrator(orchestrator: StickerOrchestrator | None) -> None:
    """orchestrator 설정 (테스트용)"""
    global _orchestrator
    _orchestrator = orchestrator
