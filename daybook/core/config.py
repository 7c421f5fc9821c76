import logging

from pydantic_settings import BaseSettings
from pydantic import ConfigDict
from typing import Optional


class Settings(BaseSettings):
    # Environment
    ENV: str = "development"
    CONFIG_STRICT: bool = False

    # Document store
    DOCUMENT_STORE: str = "memory"  # memory | sql
    DATABASE_URL: Optional[str] = None
    TEST_DATABASE_URL: Optional[str] = None

    # Debrief editor
    DEBRIEF_AUTOSAVE_SECONDS: float = 2.0  # trailing debounce window
    DEBRIEF_TITLE_WORDS: int = 5

    # Purchases
    PREMIUM_PRODUCT_ID: str = "premium_subscription"

    # HTTP
    CORS_ORIGINS: str = "http://localhost:3000"  # comma-separated

    model_config = ConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )
settings = Settings()


def validate_config(strict: Optional[bool] = None, settings_obj: Optional[Settings] = None, logger: Optional[logging.Logger] = None) -> bool:
    """Validate required configuration.

    In strict mode raise RuntimeError; otherwise emit warnings only.
    Secrets are not logged, only missing keys.
    """
    cfg = settings_obj or settings
    log = logger or logging.getLogger("daybook")
    strict_mode = strict if strict is not None else getattr(cfg, "CONFIG_STRICT", False)

    problems = []
    store = (cfg.DOCUMENT_STORE or "").lower()
    if store not in {"memory", "sql"}:
        problems.append(f"DOCUMENT_STORE must be 'memory' or 'sql' (got {cfg.DOCUMENT_STORE!r})")
    if store == "sql" and not (cfg.DATABASE_URL or cfg.TEST_DATABASE_URL):
        problems.append("Missing required configuration: DATABASE_URL")
    if cfg.DEBRIEF_AUTOSAVE_SECONDS <= 0:
        problems.append("DEBRIEF_AUTOSAVE_SECONDS must be positive")
    if cfg.DEBRIEF_TITLE_WORDS <= 0:
        problems.append("DEBRIEF_TITLE_WORDS must be positive")

    if problems:
        message = "; ".join(problems)
        if strict_mode:
            raise RuntimeError(message)
        log.warning(message)

    return True
