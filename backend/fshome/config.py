from __future__ import annotations
import os
from typing import Literal
from pydantic import BaseModel, ConfigDict, field_validator

class Settings(BaseModel):
    # Env-derived defaults go through the same checks as explicit values
    model_config = ConfigDict(validate_default=True)

    environment: str = os.getenv("ENVIRONMENT", "dev")
    app_name: str = os.getenv("APP_NAME", "fshome-admin-api")
    app_display_name: str = os.getenv("APP_DISPLAY_NAME", "FSHOME Admin")
    app_version: str = os.getenv("APP_VERSION", "0.1.0")
    git_sha: str = os.getenv("GIT_SHA", "dev")
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    sql_echo: bool = os.getenv("SQL_ECHO", "0") == "1"
    api_host: str = os.getenv("API_HOST", "0.0.0.0")
    api_port: int = int(os.getenv("API_PORT", "8000"))
    cors_origins: list[str] = os.getenv("CORS_ORIGINS", "*").split(",")
    database_url: str = os.getenv("DATABASE_URL", "postgresql+asyncpg://postgres:postgres@db:5432/fshome_dev")

    # Pagination
    default_page_size: int = int(os.getenv("DEFAULT_PAGE_SIZE", "10"))
    max_page_size: int = int(os.getenv("MAX_PAGE_SIZE", "100"))

    # Honors
    honor_icon_base: str = os.getenv("HONOR_ICON_BASE", "https://r2.freestyler.site/honors/")
    milestone_policy: Literal["exact", "crossed"] = os.getenv("MILESTONE_POLICY", "crossed")  # type: ignore[assignment]

    # Ledger credit for a user whose challenge idea gets adopted
    suggestion_adopted_points: int = int(os.getenv("SUGGESTION_ADOPTED_POINTS", "20"))

    # Pending-review digest (cron)
    cron_secret: str = os.getenv("CRON_SECRET", "")
    operator_emails: list[str] = [e.strip() for e in os.getenv("OPERATOR_EMAILS", "").split(",") if e.strip()]
    admin_url: str = os.getenv("ADMIN_URL", "http://localhost:3000")

    @field_validator("milestone_policy", mode="before")
    @classmethod
    def _normalise_policy(cls, v):
        return v.strip().lower() if isinstance(v, str) else v

settings = Settings()
