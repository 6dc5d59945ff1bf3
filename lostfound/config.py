"""
Application settings, read from the environment (prefix LOSTFOUND_) or a .env file.
"""

import os
from functools import lru_cache
from typing import FrozenSet

from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_REPORTS_FILE = os.path.join(os.path.dirname(__file__), "data", "reports", "reports.json")


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="LOSTFOUND_", env_file=".env", extra="ignore")

    reports_file: str = DEFAULT_REPORTS_FILE
    campus_email_domain: str = "wit.edu"
    admin_emails: str = ""  # comma-separated
    secret_key: str = "dev-secret-change-me"
    token_algorithm: str = "HS256"
    access_token_expire_minutes: int = 60
    report_expiry_days: int = 90
    log_level: str = "INFO"

    @property
    def admin_email_set(self) -> FrozenSet[str]:
        return frozenset(e.strip().lower() for e in self.admin_emails.split(",") if e.strip())


@lru_cache()
def get_settings() -> Settings:
    return Settings()
