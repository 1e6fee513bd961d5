import base64
import re
from unittest.mock import MagicMock

from fastapi.testclient import TestClient

from doodle_sticker.services.exporter import FormatExporter
from doodle_sticker.services.pipeline import StickerOrchestrator, set_orchestrator
from tests.conftest import make_canvas_b64


class TestStickerPost:
    def test_success(self, client: TestClient) -> None:
        response = client.post(
            "/stickers", json={"image": make_canvas_b64(box=(100, 100, 200, 200))}
        )

        assert response.status_code == 200
        body = response.json()
        assert base64.b64decode(body["previewImage"]).startswith(b"\x89PNG")
        assert base64.b64decode(body["losslessImage"]).startswith(b"\x89PNG")
        assert "lossyImage" in body

        metadata = body["metadata"]
        assert metadata["detectionMethod"] == "fallback"
        assert metadata["detectionConfidence"] == 0.8
        assert metadata["originalDimensions"] == {"width": 400, "height": 400}
        assert metadata["croppedDimensions"] == {"width": 216, "height": 216}
        assert "png" in metadata["exportFormats"]
        assert "createdAt" in metadata

    def test_empty_canvas(self, client: TestClient) -> None:
        response = client.post("/stickers", json={"image": make_canvas_b64(100, 100)})

        assert response.status_code == 400
        assert response.json()["detail"]["code"] == "EMPTY_CANVAS"

    def test_invalid_image(self, client: TestClient) -> None:
        response = client.post("/stickers", json={"image": "not-base64!!"})

        assert response.status_code == 400
        assert response.json()["detail"]["code"] == "CANVAS_CONTEXT_ERROR"

    def test_drawing_too_small(self, client: TestClient) -> None:
        response = client.post(
            "/stickers", json={"image": make_canvas_b64(50, 50, box=(10, 10, 30, 30))}
        )

        assert response.status_code == 422
        assert response.json()["detail"]["code"] == "DRAWING_TOO_SMALL"

    def test_use_ai_false_skips_ai(self, client: TestClient) -> None:
        ai = MagicMock()
        set_orchestrator(StickerOrchestrator(ai_detector=ai))

        response = client.post(
            "/stickers",
            json={"image": make_canvas_b64(box=(100, 100, 200, 200)), "useAi": False},
        )

        assert response.status_code == 200
        assert response.json()["metadata"]["detectionMethod"] == "fallback"
        ai.detect_subject.assert_not_called()

    def test_missing_image_field(self, client: TestClient) -> None:
        response = client.post("/stickers", json={})
        assert response.status_code == 422


class TestStickerDownload:
    def test_png_default(self, client: TestClient) -> None:
        response = client.post(
            "/stickers/download", json={"image": make_canvas_b64(box=(100, 100, 200, 200))}
        )

        assert response.status_code == 200
        assert response.headers["content-type"] == "image/png"
        assert re.fullmatch(
            r'attachment; filename="sticker_\d{8}_\d{6}\.png"',
            response.headers["content-disposition"],
        )
        assert response.content.startswith(b"\x89PNG")

    def test_webp_unavailable(self, client: TestClient) -> None:
        exporter = MagicMock(spec=FormatExporter)
        exporter.export_lossless.return_value = b"png-bytes"
        exporter.export_lossy.return_value = None
        set_orchestrator(StickerOrchestrator(exporter=exporter, use_ai=False))

        response = client.post(
            "/stickers/download?format=webp",
            json={"image": make_canvas_b64(box=(100, 100, 200, 200))},
        )

        assert response.status_code == 422
        assert response.json()["detail"]["code"] == "FORMAT_UNAVAILABLE"

    def test_unknown_format(self, client: TestClient) -> None:
        response = client.post(
            "/stickers/download?format=gif",
            json={"image": make_canvas_b64(box=(100, 100, 200, 200))},
        )
        assert response.status_code == 422

    def test_empty_canvas(self, client: TestClient) -> None:
        response = client.post("/stickers/download", json={"image": make_canvas_b64(100, 100)})

        assert response.status_code == 400
        assert response.json()["detail"]["code"] == "EMPTY_CANVAS"


class TestMisc:
    def test_health(self, client: TestClient) -> None:
        response = client.get("/health")
        assert response.json() == {"status": "ok"}

    def test_cors_exposes_content_disposition(self, client: TestClient) -> None:
        response = client.post(
            "/stickers/download",
            headers={"Origin": "http://localhost:3000"},
            json={"image": make_canvas_b64(box=(100, 100, 200, 200))},
        )

        assert response.headers["access-control-allow-origin"] == "http://localhost:3000"
        assert "content-disposition" in response.headers["access-control-expose-headers"].lower()
