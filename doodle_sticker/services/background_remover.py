"""마스크 기반 배경 제거 + 가장자리 alpha 스무딩"""

import cv2
import numpy as np

from doodle_sticker.schemas.pipeline import SubjectMask

# 3x3 가우시안 근사 커널 (중심 4, 상하좌우 2, 대각 1)
SMOOTHING_KERNEL = np.array([[1, 2, 1], [2, 4, 2], [1, 2, 1]], dtype=np.float32)
NEIGHBORHOOD = np.ones((3, 3), dtype=np.uint8)


def find_edge_pixels(mask: np.ndarray) -> np.ndarray:
    """8-이웃 중 배경 픽셀이 하나라도 있는 전경 픽셀

    이미지 경계 밖은 배경으로 보지 않는다.
    """
    interior = cv2.erode(mask, NEIGHBORHOOD, iterations=1)
    return (mask == 1) & (interior == 0)


def smooth_edges(buffer: np.ndarray, mask: np.ndarray) -> np.ndarray:
    """가장자리 전경 픽셀의 alpha를 전경 이웃 alpha의 가중 평균으로 교체

    배경 이웃은 가중치 계산에서 제외 (배경 alpha가 피사체로 번지지 않음).
    내부 픽셀은 그대로 둔다.
    """
    result = buffer.copy()
    edges = find_edge_pixels(mask)
    if not edges.any():
        return result

    foreground = mask.astype(np.float32)
    alpha = buffer[:, :, 3].astype(np.float32) * foreground

    border = cv2.BORDER_CONSTANT
    alpha_sum = cv2.filter2D(alpha, -1, SMOOTHING_KERNEL, borderType=border)
    weight_sum = cv2.filter2D(foreground, -1, SMOOTHING_KERNEL, borderType=border)

    # 가장자리 픽셀은 자기 자신이 전경이므로 weight_sum >= 4
    smoothed = np.floor(alpha_sum[edges] / weight_sum[edges] + 0.5)
    result[:, :, 3][edges] = np.clip(smoothed, 0, 255).astype(np.uint8)
    return result


class BackgroundRemover:
    def remove_background(self, buffer: np.ndarray, subject: SubjectMask) -> np.ndarray:
        """마스크 밖 픽셀을 완전 투명하게 만들고 가장자리를 부드럽게 처리

        Args:
            buffer: RGBA 이미지 (입력은 수정하지 않음)
            subject: 피사체 마스크

        Returns:
            배경이 제거된 새 RGBA 이미지

        Raises:
            ValueError: 이미지와 마스크 크기 불일치
        """
        mask = subject.mask
        if buffer.shape[:2] != mask.shape:
            raise ValueError(f"이미지/마스크 크기 불일치: {buffer.shape[:2]} vs {mask.shape}")

        binary = (mask != 0).astype(np.uint8)
        masked = buffer.copy()
        masked[:, :, 3][binary == 0] = 0

        return smooth_edges(masked, binary)
