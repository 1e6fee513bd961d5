"""SmartCropper 테스트"""

import numpy as np
import pytest

from doodle_sticker.schemas.pipeline import BoundingBox
from doodle_sticker.services.bounding_box import EmptyRegionError
from doodle_sticker.services.cropper import SmartCropper, _grow_to_minimum
from tests.conftest import make_canvas


class TestPadding:
    @pytest.mark.parametrize(
        ("requested", "expected"), [(2, 5), (5, 5), (8, 8), (10, 10), (50, 10)]
    )
    def test_padding_clamped(self, requested: int, expected: int) -> None:
        assert SmartCropper(padding=requested).padding == expected


class TestGrowToMinimum:
    def test_window_centered_on_content(self) -> None:
        # 패딩 구간 [80, 115)이 콘텐츠 [100, 110)에 대해 비대칭이어도 콘텐츠 중심 기준
        assert _grow_to_minimum(80, 35, (100, 10), 400, 64) == (73, 64)

    def test_long_enough_unchanged(self) -> None:
        assert _grow_to_minimum(10, 80, (18, 64), 400, 64) == (10, 80)

    def test_shifted_inside_limit(self) -> None:
        assert _grow_to_minimum(380, 20, (388, 4), 400, 64) == (336, 64)


class TestSmartCropper:
    def setup_method(self) -> None:
        self.cropper = SmartCropper()

    def test_centered_square(self, square_canvas: np.ndarray) -> None:
        result = self.cropper.crop(square_canvas)

        assert result.bounding_box == BoundingBox(x=92, y=92, width=216, height=216)
        assert result.image.shape == (216, 216, 4)
        assert result.padding == 8
        assert result.scale == 1.0

    def test_pixels_preserved(self, square_canvas: np.ndarray) -> None:
        result = self.cropper.crop(square_canvas)
        np.testing.assert_array_equal(result.image, square_canvas[92:308, 92:308])

    def test_padding_clipped_at_border(self) -> None:
        result = self.cropper.crop(make_canvas(400, 400, box=(0, 0, 100, 100)))
        assert result.bounding_box == BoundingBox(x=0, y=0, width=108, height=108)

    def test_small_drawing_grown_to_minimum(self) -> None:
        result = self.cropper.crop(make_canvas(400, 400, box=(200, 200, 10, 10)))

        region = result.bounding_box
        assert (region.width, region.height) == (64, 64)
        # 콘텐츠는 확장된 영역 안에 있음
        assert region.x <= 200 and region.right >= 210
        assert region.y <= 200 and region.bottom >= 210

    def test_small_drawing_window_centered(self) -> None:
        result = self.cropper.crop(make_canvas(300, 200, box=(100, 50, 11, 20)))

        region = result.bounding_box
        assert region == BoundingBox(x=74, y=28, width=64, height=64)
        assert abs((region.x + region.right) / 2 - 105.5) <= 0.5

    def test_minimum_growth_stays_inside_image(self) -> None:
        result = self.cropper.crop(make_canvas(400, 400, box=(0, 395, 10, 5)))
        assert result.bounding_box == BoundingBox(x=0, y=336, width=64, height=64)

    def test_minimum_limited_by_source_size(self) -> None:
        result = self.cropper.crop(make_canvas(40, 30, box=(15, 10, 5, 5)))

        assert result.bounding_box == BoundingBox(x=0, y=0, width=40, height=30)
        assert result.image.shape == (30, 40, 4)

    def test_oversized_region_scaled_down(self) -> None:
        canvas = make_canvas(3000, 1000, box=(0, 0, 3000, 1000))

        result = self.cropper.crop(canvas)

        assert result.bounding_box == BoundingBox(x=0, y=0, width=3000, height=1000)
        assert result.scale == pytest.approx(2048 / 3000)
        assert result.image.shape == (683, 2048, 4)

    def test_result_is_copy(self, square_canvas: np.ndarray) -> None:
        result = self.cropper.crop(square_canvas)
        result.image[:] = 0
        assert square_canvas[200, 200, 3] == 255

    def test_transparent_raises(self) -> None:
        with pytest.raises(EmptyRegionError):
            self.cropper.crop(make_canvas(100, 100))
