"""Gemini Vision API 클라이언트

이미지 + 프롬프트를 보내고 자유 형식 텍스트 응답에서 바운딩 박스를 파싱한다.
"""

# pyright: reportMissingTypeStubs=false

import json
import logging
import re
import time
from typing import Any

import httpx
from google import genai
from google.genai import errors, types
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from doodle_sticker.constants import Confidence

logger = logging.getLogger(__name__)

BOX_FIELDS = ("x", "y", "width", "height")
OPTIONAL_FIELDS = ("confidence",)

_JSON_OBJECT = re.compile(r"\{[^{}]*\}")
_NUMBER = r"(-?\d+(?:\.\d+)?)"


class VisionServiceError(Exception):
    pass


class VisionParseError(VisionServiceError):
    """응답은 받았지만 바운딩 박스를 추출할 수 없음"""


class VisionAnalysis(BaseModel):
    """Vision API 분석 결과 (좌표는 클램핑 전 원본 값)"""

    model_config = ConfigDict(allow_inf_nan=False)

    x: float
    y: float
    width: float = Field(gt=0)
    height: float = Field(gt=0)
    confidence: float = Field(default=Confidence.AI, ge=0.0, le=1.0)


def parse_bounding_box(text: str) -> VisionAnalysis:
    """자유 형식 응답 텍스트 → VisionAnalysis

    1. {"x": .., "y": .., "width": .., "height": ..} JSON 객체 추출 (confidence가 있으면 함께 사용)
    2. 실패 시 필드별 라벨 패턴 매칭 (x: 10, width=20 등)

    Raises:
        VisionParseError: 두 방식 모두 실패
    """
    parsed = _parse_structured(text) or _parse_labeled(text)
    if parsed is None:
        raise VisionParseError(f"바운딩 박스 파싱 실패: {text[:200]!r}")
    return parsed


def _parse_structured(text: str) -> VisionAnalysis | None:
    for match in _JSON_OBJECT.finditer(text):
        candidate = match.group(0)
        if '"x"' not in candidate:
            continue

        try:
            data = json.loads(candidate)
        except json.JSONDecodeError:
            continue
        if not isinstance(data, dict):
            continue

        fields = {key: data[key] for key in (*BOX_FIELDS, *OPTIONAL_FIELDS) if key in data}
        try:
            # strict: "10" 같은 문자열 숫자는 거부
            return VisionAnalysis.model_validate(fields, strict=True)
        except ValidationError:
            continue

    return None


def _parse_labeled(text: str) -> VisionAnalysis | None:
    fields: dict[str, float] = {}
    for key in BOX_FIELDS:
        pattern = rf"(?<!\w)[\"']?{key}[\"']?(?:\s*[:=]\s*|\s+){_NUMBER}"
        match = re.search(pattern, text, re.IGNORECASE)
        if match is None:
            return None
        fields[key] = float(match.group(1))

    try:
        return VisionAnalysis.model_validate(fields)
    except ValidationError:
        return None


class GeminiVisionClient:
    """Google Gemini API를 사용한 이미지 분석

    시도마다 timeout 적용, 실패 시 2^attempt초 대기 후 재시도.
    """

    def __init__(
        self,
        api_key: str,
        model: str,
        timeout: float = 10.0,
        max_retries: int = 2,
    ) -> None:
        self._api_key = api_key
        self._model = model
        self._timeout = timeout
        self._max_retries = max_retries

    def analyze(self, image_png: bytes, prompt: str) -> VisionAnalysis:
        """이미지에서 주 피사체 바운딩 박스 추출

        Args:
            image_png: PNG 인코딩된 이미지
            prompt: 탐지 프롬프트

        Raises:
            VisionServiceError: API 키 누락, 반복 호출 실패
            VisionParseError: 응답 파싱 실패 (재시도 없이 즉시)
        """
        if not self._api_key:
            raise VisionServiceError("GEMINI_API_KEY가 설정되지 않았습니다")

        # HttpOptions.timeout 단위는 ms
        client = genai.Client(
            api_key=self._api_key,
            http_options=types.HttpOptions(timeout=int(self._timeout * 1000)),
        )
        contents = [prompt, types.Part.from_bytes(data=image_png, mime_type="image/png")]

        response = self._call_with_retry(client, contents)
        if not response.text:
            raise VisionParseError("Vision API 응답에 텍스트가 없습니다")

        return parse_bounding_box(response.text)

    def _call_with_retry(
        self, client: genai.Client, contents: list[Any]
    ) -> types.GenerateContentResponse:
        last_error: VisionServiceError | None = None
        attempts = 1 + self._max_retries

        for attempt in range(attempts):
            try:
                return self._generate(client, contents)
            except VisionServiceError as e:
                last_error = e
                logger.warning(f"Vision API 시도 {attempt + 1}/{attempts} 실패: {e}")
                if attempt < self._max_retries:
                    time.sleep(2**attempt)

        raise VisionServiceError(f"Vision API 호출 실패: {last_error}") from last_error

    def _generate(
        self, client: genai.Client, contents: list[Any]
    ) -> types.GenerateContentResponse:
        try:
            return client.models.generate_content(
                model=self._model,
                contents=contents,
                config=types.GenerateContentConfig(temperature=0.1, max_output_tokens=256),
            )
        except httpx.TimeoutException as e:
            raise VisionServiceError("Vision API 타임아웃") from e
        except errors.APIError as e:
            raise VisionServiceError(f"Vision API 오류: {e.code}") from e
        except httpx.HTTPError as e:
            raise VisionServiceError(f"Vision API 호출 실패: {e}") from e
