from decimal import Decimal
from pydantic_settings import BaseSettings
from pydantic import model_validator
from urllib.parse import quote_plus
import os

class Settings(BaseSettings):
    APP_ENV: str = "local"
    LOCAL_URL: str = "http://127.0.0.1:8000"

    # Database URL - can be provided directly or constructed from components
    DATABASE_URL: str | None = None

    # Individual database components (for constructing DATABASE_URL)
    DB_HOST: str = "localhost"
    DB_PORT: int = 5432
    DB_USER: str = "postgres"
    DB_PASSWORD: str = ""
    DB_NAME: str = ""

    # Profit-sharing partners (user ids as issued by the auth provider)
    PARTNER_A_ID: str = "partner_a"
    PARTNER_B_ID: str = "partner_b"
    BASIS_PERCENT: Decimal = Decimal("30.00")
    MAX_SHARE_PERCENT: Decimal = Decimal("30.00")

    # Money / reporting
    CURRENCY_MINOR_UNIT: Decimal = Decimal("0.01")
    MAX_REPORT_SPAN_DAYS: int = 366
    SETTLEMENT_TIMEZONE: str = "UTC"

    # Logging
    LOG_TO_FILE: bool = False
    LOG_FILE_PATH: str = "logs/app.log"

    class Config:
        env_file = ".env" if os.getenv("APP_ENV", "local") == "local" else ".env.prod"
        env_file_encoding = "utf-8"
        extra = "ignore"

    @model_validator(mode='after')
    def construct_database_url(self):
        """Construct DATABASE_URL from components if not provided directly."""
        if not self.DATABASE_URL:
            if not self.DB_NAME:
                # Local development falls back to a SQLite file
                self.DATABASE_URL = "sqlite:///./revshare.db"
            else:
                # URL encode password to handle special characters
                password_part = f":{quote_plus(self.DB_PASSWORD)}" if self.DB_PASSWORD else ""
                self.DATABASE_URL = f"postgresql://{self.DB_USER}{password_part}@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"

        if self.PARTNER_A_ID == self.PARTNER_B_ID:
            raise ValueError("PARTNER_A_ID and PARTNER_B_ID must be different")

        # Ensure DATABASE_URL is always a string after validation
        assert self.DATABASE_URL is not None, "DATABASE_URL must be set"
        return self

    @property
    def database_url(self) -> str:
        """Get DATABASE_URL as a guaranteed string."""
        assert self.DATABASE_URL is not None, "DATABASE_URL must be set"
        return self.DATABASE_URL

    @property
    def partner_ids(self) -> tuple[str, str]:
        """The two profit-sharing partners, in display order (A, B)."""
        return (self.PARTNER_A_ID, self.PARTNER_B_ID)

settings = Settings()
