import base64
from collections.abc import Generator

import numpy as np
import pytest
from fastapi.testclient import TestClient

from doodle_sticker.main import app
from doodle_sticker.services.detection import set_ai_detection
from doodle_sticker.services.pipeline import StickerOrchestrator, set_orchestrator
from doodle_sticker.services.pixel_buffer import encode_png


def make_canvas(
    width: int = 400,
    height: int = 400,
    box: tuple[int, int, int, int] | None = None,
    color: tuple[int, int, int, int] = (0, 0, 0, 255),
) -> np.ndarray:
    """투명 캔버스 (box=(x, y, w, h) 영역만 color로 채움)"""
    canvas = np.zeros((height, width, 4), dtype=np.uint8)
    if box is not None:
        x, y, w, h = box
        canvas[y : y + h, x : x + w] = color
    return canvas


def make_canvas_b64(
    width: int = 400,
    height: int = 400,
    box: tuple[int, int, int, int] | None = None,
) -> str:
    """테스트용 캔버스 PNG (base64)"""
    return base64.b64encode(encode_png(make_canvas(width, height, box))).decode()


@pytest.fixture
def square_canvas() -> np.ndarray:
    """400x400 투명 캔버스 중앙의 200x200 검정 사각형"""
    return make_canvas(400, 400, box=(100, 100, 200, 200))


@pytest.fixture
def client() -> Generator[TestClient, None, None]:
    set_ai_detection(None)
    set_orchestrator(StickerOrchestrator(use_ai=False))
    yield TestClient(app)
    set_orchestrator(None)
