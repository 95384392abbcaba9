from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

ROOT_DIR = Path(__file__).resolve().parents[1]  # .../bistro-pos
load_dotenv(dotenv_path=ROOT_DIR / ".env")


def _get_env(*keys: str, default: str | None = None) -> str | None:
    for k in keys:
        v = os.getenv(k)
        if v is not None and str(v).strip() != "":
            return v.strip()
    return default


def _get_int(*keys: str, default: int | None = None) -> int | None:
    v = _get_env(*keys, default=None)
    if v is None:
        return default
    return int(v)


def _get_float(*keys: str, default: float) -> float:
    v = _get_env(*keys, default=None)
    if v is None:
        return default
    return float(v)


def _get_path(*keys: str, default: str) -> str:
    v = _get_env(*keys, default=default)
    return str(v)


def _get_list(*keys: str, default: tuple[str, ...]) -> tuple[str, ...]:
    v = _get_env(*keys, default=None)
    if v is None:
        return default
    return tuple(p.strip() for p in v.split(",") if p.strip())


@dataclass(frozen=True)
class Settings:
    host: str
    port: int
    db_path: str
    uploads_dir: str
    export_dir: str
    server_url: str
    currency: str
    decimals: int
    cors_origins: tuple[str, ...]
    log_level: str
    image_max_width: int
    upload_max_bytes: int
    ai_api_key: str
    ai_base_url: str | None
    ai_chat_model: str
    ai_image_model: str
    ai_vision_model: str
    ai_timeout: float


DEFAULT_SEARCH_PROMPT = (
    "You are a product search assistant. You help find products that match "
    "search queries based on their name and description. Always return a JSON "
    'object with a "product_keys" array containing matching product_key strings.'
)


@dataclass(frozen=True)
class AIConfig:
    """Everything an LLM request needs, handed to each call explicitly."""

    api_key: str
    chat_model: str
    image_model: str
    vision_model: str
    base_url: str | None = None
    timeout: float = 60.0
    search_prompt: str = DEFAULT_SEARCH_PROMPT
    available_models: tuple[str, ...] = ("gpt-4o-mini", "gpt-4o")

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    @classmethod
    def from_settings(cls, s: Settings) -> "AIConfig":
        models = tuple(dict.fromkeys((s.ai_chat_model, "gpt-4o-mini", "gpt-4o")))
        return cls(
            api_key=s.ai_api_key,
            chat_model=s.ai_chat_model,
            image_model=s.ai_image_model,
            vision_model=s.ai_vision_model,
            base_url=s.ai_base_url,
            timeout=s.ai_timeout,
            available_models=models,
        )


settings = Settings(
    host=_get_env("HOST", default="0.0.0.0") or "0.0.0.0",
    port=_get_int("PORT", default=3000) or 3000,
    db_path=_get_path("DB_PATH", "DATABASE_PATH", default=str(ROOT_DIR / "data" / "products.sqlite")),
    uploads_dir=_get_path("UPLOADS_DIR", default=str(ROOT_DIR / "uploads")),
    export_dir=_get_path("EXPORT_DIR", default=str(ROOT_DIR / "exports")),
    server_url=(_get_env("SERVER_URL", default="http://localhost:3000") or "").rstrip("/"),
    currency=_get_env("CURRENCY", default="$") or "$",
    decimals=_get_int("DECIMALS", default=2) or 2,
    cors_origins=_get_list(
        "CORS_ORIGINS",
        default=(
            "http://localhost:3000",
            "http://localhost:5173",
            "http://127.0.0.1:5173",
        ),
    ),
    log_level=(_get_env("LOG_LEVEL", default="INFO") or "INFO").upper(),
    image_max_width=_get_int("IMAGE_MAX_WIDTH", default=1280) or 1280,
    upload_max_bytes=_get_int("UPLOAD_MAX_BYTES", default=5 * 1024 * 1024) or 5 * 1024 * 1024,
    ai_api_key=_get_env("AI_API_KEY", "OPENAI_API_KEY", default="") or "",
    ai_base_url=_get_env("AI_BASE_URL", "OPENAI_BASE_URL", default=None),
    ai_chat_model=_get_env("AI_CHAT_MODEL", default="gpt-4o-mini") or "gpt-4o-mini",
    ai_image_model=_get_env("AI_IMAGE_MODEL", default="dall-e-3") or "dall-e-3",
    ai_vision_model=_get_env("AI_VISION_MODEL", default="gpt-4o") or "gpt-4o",
    ai_timeout=_get_float("AI_TIMEOUT", default=60.0),
)
