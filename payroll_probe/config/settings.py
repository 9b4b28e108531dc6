from __future__ import annotations

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    PAYROLL_API_BASE_URL: str = "http://localhost:3000"
    PAYROLL_API_TOKEN: str = ""
    PAYROLL_API_EMAIL: str = ""
    PAYROLL_API_PASSWORD: str = ""

    REQUEST_TIMEOUT_SEC: float = 10.0
    TEST_DELAY_MS: int = 500
    REPORT_DIR: str = "."
    LOG_LEVEL: str = "WARNING"

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True, extra="ignore")

    @property
    def base_url(self) -> str:
        return str(self.PAYROLL_API_BASE_URL or "").strip().rstrip("/")

    @property
    def report_dir_path(self) -> Path:
        return Path(self.REPORT_DIR or ".").expanduser().resolve()

    @property
    def has_credentials(self) -> bool:
        return bool(self.PAYROLL_API_EMAIL and self.PAYROLL_API_PASSWORD)

    @property
    def delay_seconds(self) -> float:
        return max(0, int(self.TEST_DELAY_MS)) / 1000.0


settings = Settings()
