import os
from functools import lru_cache
from pathlib import Path


class Settings:
    def __init__(
        self,
        database_url: str,
        token_secret: str,
        token_max_age_hours: int,
        log_level: str,
    ) -> None:
        self.database_url = database_url
        self.token_secret = token_secret
        self.token_max_age_hours = token_max_age_hours
        self.log_level = log_level


def _ensure_data_dir() -> Path:
    root = Path(os.getenv("FINANCE_DATA_DIR", "./data")).resolve()
    root.mkdir(parents=True, exist_ok=True)
    return root


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    database_url = os.getenv("FINANCE_DATABASE_URL")
    if not database_url:
        default_db = _ensure_data_dir() / "finance.db"
        database_url = f"sqlite:///{default_db}"
    token_secret = os.getenv(
        "FINANCE_TOKEN_SECRET",
        "3f1c9a7d52be4e08a6d1f0c2b8e47a9d61c05f3e2a7b48d9c0e6f1a2b3c4d5e6",
    )
    token_max_age_hours = int(os.getenv("FINANCE_TOKEN_MAX_AGE_HOURS", "24"))
    log_level = os.getenv("FINANCE_LOG_LEVEL", "INFO").upper()
    return Settings(
        database_url=database_url,
        token_secret=token_secret,
        token_max_age_hours=token_max_age_hours,
        log_level=log_level,
    )
