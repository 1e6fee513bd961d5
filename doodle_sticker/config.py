from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    # CORS
    cors_origins: list[str] = ["http://localhost:3000"]

    # Gemini Vision API (비어 있으면 AI 탐지 비활성 → 픽셀 탐지만 사용)
    gemini_api_key: str = ""
    gemini_model: str = "gemini-1.5-flash"
    vision_timeout: float = 10.0
    vision_max_retries: int = 2

    # Sticker
    ai_detection_enabled: bool = True
    sticker_padding: int = 8
    lossy_max_bytes: int = 100 * 1024


@lru_cache
def get_settings() -> Settings:
    return Settings()
