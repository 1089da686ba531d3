"""Configuration objects for the ticket intake agent."""

from __future__ import annotations

import json
from typing import Any, Optional

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration sourced from environment variables."""

    sheets_credentials: SecretStr = Field(..., alias="GOOGLE_SHEETS_CREDENTIALS")
    sheets_id: str = Field(..., alias="GOOGLE_SHEETS_ID")
    sheets_range: str = Field("Sheet1!A:I", alias="GOOGLE_SHEETS_RANGE")
    tracker_sheet_id: Optional[str] = Field(None, alias="GOOGLE_SHEETS_TRACKER_ID")
    tracker_tab: str = Field("Local Price Tracker", alias="GOOGLE_SHEETS_TRACKER_TAB")
    tracker_enabled: bool = Field(True, alias="TRACKER_ENABLED")
    serper_api_key: SecretStr = Field(..., alias="SERPER_API_KEY")
    serper_url: str = Field("https://google.serper.dev/search", alias="SERPER_URL")
    openai_api_key: SecretStr = Field(..., alias="OPENAI_API_KEY")
    openai_api_base: str = Field("https://api.openai.com/v1", alias="OPENAI_API_BASE")
    openai_model: str = Field("gpt-4.1-mini", alias="OPENAI_MODEL")
    openai_temperature: float = Field(0.2, alias="OPENAI_TEMPERATURE")
    timezone: str = Field("America/Chicago", alias="TIMEZONE")
    timeout_seconds: float = Field(15.0, alias="HTTP_TIMEOUT_SECONDS")
    search_max_results: int = Field(5, alias="SEARCH_MAX_RESULTS")
    search_attempts: int = Field(2, alias="SEARCH_ATTEMPTS")
    price_floor: int = Field(30, alias="PRICE_FLOOR")
    default_city: str = Field("Chicago", alias="DEFAULT_CITY")

    model_config = SettingsConfigDict(
        env_file=(".env",),
        env_file_encoding="utf-8",
        case_sensitive=False,
        populate_by_name=True,
        extra="ignore",
    )

    @field_validator("openai_api_base")
    @classmethod
    def strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @property
    def tracker_spreadsheet_id(self) -> str:
        """Tracker tab lives in the capture spreadsheet unless configured otherwise."""
        return self.tracker_sheet_id or self.sheets_id

    def service_account_info(self) -> dict[str, Any]:
        """Decode the service-account JSON blob."""
        return json.loads(self.sheets_credentials.get_secret_value())
