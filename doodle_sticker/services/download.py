"""스티커 다운로드 파일명 / 헤더"""

from datetime import datetime

from doodle_sticker.schemas.pipeline import ExportFormat


def generate_filename(fmt: ExportFormat, now: datetime | None = None) -> str:
    """sticker_YYYYMMDD_HHMMSS.{ext} 형식 파일명 (로컬 시간 기준)"""
    timestamp = (now or datetime.now()).strftime("%Y%m%d_%H%M%S")
    return f"sticker_{timestamp}.{fmt.value}"


def content_disposition(filename: str) -> str:
    return f'attachment; filename="{filename}"'
