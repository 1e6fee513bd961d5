from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from doodle_sticker.config import get_settings
from doodle_sticker.routes.sticker import router as sticker_router

app = FastAPI()

settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["GET", "POST"],
    allow_headers=["Content-Type"],
    expose_headers=["Content-Disposition"],
    max_age=600,
)

app.include_router(sticker_router)


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}
