import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

load_dotenv(override=True)


def _env_bool(name: str, default: bool = False) -> bool:
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    return raw_value.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_list(name: str, default: str = "") -> list[str]:
    return [
        item.strip()
        for item in os.getenv(name, default).split(",")
        if item.strip()
    ]


_APP_ENV = os.getenv("APP_ENV", "development").strip().lower()


@dataclass(frozen=True)
class Settings:
    app_env: str = _APP_ENV
    log_level: str = os.getenv("LOG_LEVEL", "INFO").upper()
    credential_secret: str = os.getenv(
        "CREDENTIAL_SECRET", os.getenv("JWT_SECRET", "")
    )
    credential_algorithm: str = os.getenv("ALGORITHM", "HS256")
    session_ttl_seconds: int = int(os.getenv("SESSION_TTL_SECONDS", "86400"))
    session_list_limit: int = int(os.getenv("SESSION_LIST_LIMIT", "50"))
    session_id_attempts: int = int(os.getenv("SESSION_ID_ATTEMPTS", "3"))
    session_cookie_name: str = os.getenv("SESSION_COOKIE_NAME", "session")
    session_cookie_path: str = os.getenv("SESSION_COOKIE_PATH", "/")
    session_cookie_samesite: str = os.getenv("SESSION_COOKIE_SAMESITE", "lax")
    session_cookie_secure: bool = _env_bool(
        "SESSION_COOKIE_SECURE", _APP_ENV == "production"
    )
    browser_label_length: int = int(os.getenv("BROWSER_LABEL_LENGTH", "64"))
    seed_email: str = os.getenv("SEED_EMAIL", "").strip().lower()
    cors_origins: list[str] = field(
        default_factory=lambda: _env_list(
            "CORS_ORIGINS", "http://localhost:5173,http://127.0.0.1:5173"
        )
    )


settings = Settings()
