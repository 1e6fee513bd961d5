class Limits:
    ALPHA_THRESHOLD = 10  # 이 값 이하 alpha는 거의 보이지 않는 획으로 간주
    MIN_DIMENSION = 64
    MAX_DIMENSION = 2048
    MAX_RESOLUTION = 2048  # PNG 내보내기 해상도 상한
    MIN_PADDING = 5
    MAX_PADDING = 10
    DEFAULT_PADDING = 8


class LossyExport:
    CANVAS_SIZE = 512  # WhatsApp 스티커 규격
    MAX_BYTES = 100 * 1024
    QUALITY_START = 95
    QUALITY_FLOOR = 50
    QUALITY_STEP = 5


class Confidence:
    AI = 0.85
    FALLBACK = 0.8  # 의미 이해 없는 픽셀 분석이므로 AI보다 낮음


class ErrorCode:
    EMPTY_CANVAS = "EMPTY_CANVAS"
    CANVAS_CONTEXT_ERROR = "CANVAS_CONTEXT_ERROR"
    DRAWING_TOO_SMALL = "DRAWING_TOO_SMALL"
    PROCESSING_ERROR = "PROCESSING_ERROR"
    FORMAT_UNAVAILABLE = "FORMAT_UNAVAILABLE"
