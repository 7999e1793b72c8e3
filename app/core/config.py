from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment with defaults.

    Environment variable mapping follows pydantic's rules (e.g., APP_NAME, DEBUG, DATA_DIR, RATES_FILENAME, SESSION_SECRET).
    """

    model_config = SettingsConfigDict(
        env_file=".env", case_sensitive=False, extra="ignore"
    )

    # Basic app metadata
    app_name: str = "Currency Converter"
    debug: bool = False
    version: str = "0.1.0"

    # Data & persistence
    data_dir: Path = Path("data")
    rates_filename: str = "exchange-rates.json"
    users_filename: str = "users.json"
    rates_path: Optional[Path] = None  # derived if not provided
    users_path: Optional[Path] = None  # derived if not provided

    # Sessions / passwords
    session_secret: str = "currency-converter-secret"
    session_max_age_seconds: int = 24 * 60 * 60
    password_hash_rounds: int = Field(12, ge=4, le=31)

    def init_post_load(self) -> None:
        """Finalize derived fields and ensure directories exist."""
        if self.rates_path is None:
            self.rates_path = self.data_dir / self.rates_filename
        if self.users_path is None:
            self.users_path = self.data_dir / self.users_filename
        # Ensure persistence directory exists
        self.users_path.parent.mkdir(parents=True, exist_ok=True)


@lru_cache
def get_settings() -> Settings:
    settings = Settings()
    settings.init_post_load()
    return settings
