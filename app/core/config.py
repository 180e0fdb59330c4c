import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int, min_value: int | None = None) -> int:
    raw = os.getenv(name)
    if raw is None:
        value = default
    else:
        try:
            value = int(raw)
        except ValueError:
            value = default
    if min_value is not None:
        return max(min_value, value)
    return value


@dataclass(frozen=True)
class Settings:
    app_name: str
    database_url: str
    cors_origins: tuple[str, ...]
    log_level: str
    log_file: str
    seed_demo_data: bool
    report_max_detail_rows: int


settings = Settings(
    app_name=os.getenv("APP_NAME", "Inventory Dashboard API"),
    database_url=os.getenv("DATABASE_URL", "sqlite:///./inventory.db"),
    cors_origins=tuple(
        origin.strip().rstrip("/")
        for origin in os.getenv("CORS_ORIGINS", os.getenv("FRONTEND_BASE_URL", "http://localhost:3000")).split(",")
        if origin.strip()
    ),
    log_level=os.getenv("LOG_LEVEL", "INFO").strip().upper() or "INFO",
    log_file=os.getenv("LOG_FILE", "").strip(),
    seed_demo_data=_env_bool("SEED_DEMO_DATA", False),
    report_max_detail_rows=_env_int("REPORT_MAX_DETAIL_ROWS", 500, min_value=1),
)
