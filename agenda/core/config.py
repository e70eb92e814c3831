import os

from dotenv import load_dotenv

load_dotenv()


def _get_bool(value: str | None, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _get_list(value: str | None, default: list[str]) -> list[str]:
    if not value:
        return default
    return [item.strip() for item in value.split(",") if item.strip()]

APP_ENV = os.getenv("APP_ENV", "development")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./agenda.db")
DATABASE_TIMEOUT_SECONDS = float(os.getenv("DATABASE_TIMEOUT_SECONDS", "5"))
DATABASE_ECHO = _get_bool(os.getenv("DATABASE_ECHO"), default=False)

DEFAULT_TIMEZONE = os.getenv("DEFAULT_TIMEZONE", "America/Argentina/Buenos_Aires")

# Reservation commit protocol
RESERVATION_LOCK_TIMEOUT_SECONDS = float(os.getenv("RESERVATION_LOCK_TIMEOUT_SECONDS", "5"))
RESERVATION_MAX_ATTEMPTS = int(os.getenv("RESERVATION_MAX_ATTEMPTS", "3"))

CORS_ALLOWED_ORIGINS = _get_list(
    os.getenv("CORS_ALLOWED_ORIGINS"),
    default=["http://localhost:4321"],
)

def validate_runtime_config() -> None:
    if APP_ENV.lower() == "production" and DATABASE_URL.startswith("sqlite"):
        raise RuntimeError("DATABASE_URL must point at a server database in production.")
    if RESERVATION_MAX_ATTEMPTS < 1:
        raise RuntimeError("RESERVATION_MAX_ATTEMPTS must be at least 1.")
    if RESERVATION_LOCK_TIMEOUT_SECONDS <= 0:
        raise RuntimeError("RESERVATION_LOCK_TIMEOUT_SECONDS must be positive.")
