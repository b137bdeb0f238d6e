from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings

# .env lives at the project root: app/core/config.py -> app/core -> app -> root
_ROOT = Path(__file__).resolve().parent.parent.parent
_ENV_FILE = _ROOT / ".env"

DEFAULT_VAPID_SUBJECT = "mailto:hello@viewza.app"


class Settings(BaseSettings):
    # HS256 secret shared with the auth provider; bearer tokens are only decoded here
    secret_key: str = "change-me-in-production"
    database_url: str = "sqlite:///./viewza.db"
    # CORS: comma separated origins; "*" allows any
    cors_origins: str = "*"
    # Max requests per minute per IP (rate limit)
    rate_limit_per_minute: int = 60
    environment: str = "development"
    # Web Push (VAPID). Keys themselves live in the push_config table.
    vapid_subject: str = DEFAULT_VAPID_SUBJECT
    push_ttl_seconds: int = 86400
    push_timeout_seconds: float = 10.0
    # Client side E2E key store (emulates browser localStorage)
    e2e_key_store_path: str = "./.viewza/local_storage.json"

    model_config = {
        "env_file": _ENV_FILE if _ENV_FILE.is_file() else ".env",
        "extra": "ignore",
    }

    @field_validator("vapid_subject", mode="before")
    @classmethod
    def normalize_vapid_subject(cls, v: str | None) -> str:
        """Bare e-mail addresses get a single mailto: prefix."""
        v = (v or "").strip()
        if not v:
            return DEFAULT_VAPID_SUBJECT
        if v.lower().startswith(("mailto:", "https:")):
            return v
        return f"mailto:{v}"


settings = Settings()
