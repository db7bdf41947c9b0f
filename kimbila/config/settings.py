"""
Configuration Management for Kimbila

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
The ledger itself needs nothing but defaults; only the advice agent
needs a secret (the Gemini API key), so missing keys never stop the
shop from recording sales.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class GeminiSettings(BaseSettings):
    """Gemini LLM configuration for the business advisor."""

    model_config = SettingsConfigDict(
        env_prefix="GEMINI_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    api_key: str = Field(
        ...,
        description="Gemini API key"
    )
    model_name: str = Field(
        default="gemini-1.5-flash",
        description="Gemini model to use"
    )
    max_tokens: int = Field(
        default=1024,
        ge=100,
        le=8192,
        description="Maximum tokens in response"
    )
    # Advice is free-form, so a warmer temperature than extraction work
    temperature: float = Field(
        default=0.7,
        ge=0.0,
        le=1.0,
        description="Model temperature"
    )
    top_p: float = Field(
        default=0.9,
        ge=0.0,
        le=1.0,
        description="Nucleus sampling cutoff"
    )
    timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        description="Give up on the advice call after this many seconds"
    )

    @field_validator("api_key")
    @classmethod
    def validate_api_key(cls, v: str) -> str:
        """An empty key in .env means the advisor is not configured."""
        if not v.strip():
            raise ValueError("GEMINI_API_KEY is empty")
        return v.strip()


class StorageSettings(BaseSettings):
    """Local persistence configuration."""

    model_config = SettingsConfigDict(
        env_prefix="KIMBILA_STORAGE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    data_dir: Path = Field(
        default=Path.home() / ".kimbila",
        description="Directory holding one JSON file per collection"
    )

    # Collection keys (same names the first version of the app used)
    products_key: str = Field(default="k_products")
    sales_key: str = Field(default="k_sales")
    debts_key: str = Field(default="k_debts")

    save_attempts: int = Field(
        default=3,
        ge=1,
        le=10,
        description="How many times a failed write is attempted"
    )

    @field_validator("data_dir")
    @classmethod
    def expand_data_dir(cls, v: Path) -> Path:
        return v.expanduser()

    @field_validator("products_key", "sales_key", "debts_key")
    @classmethod
    def validate_key(cls, v: str) -> str:
        """Keys become file names, so keep them to a safe alphabet."""
        v = v.strip()
        if not v or not all(c.isalnum() or c in "_-" for c in v):
            raise ValueError(f"Invalid storage key: {v!r}")
        return v


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_prefix="KIMBILA_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    debug_mode: bool = Field(
        default=False,
        description="Enable debug mode"
    )

    business_name: str = Field(
        default="My Shop",
        min_length=1,
        max_length=100,
        description="Shown on the dashboard and sent to the advisor"
    )
    currency_label: str = Field(
        default="Kz",
        description="Display-only currency prefix"
    )

    # Ledger rules
    default_category: str = Field(
        default="General",
        min_length=1,
        description="Category used when a product is added without one"
    )
    low_stock_threshold: int = Field(
        default=5,
        ge=0,
        description="Products with stock below this count as low"
    )
    debt_sale_description: str = Field(
        default="Sale of {quantity}x {product_name}",
        description="Template for debts created by on-credit sales"
    )

    # Advice
    recent_sales_limit: int = Field(
        default=10,
        ge=1,
        le=100,
        description="How many recent sales the advisor sees"
    )
    advice_language: str = Field(
        default="English",
        description="Language the advisor should answer in"
    )

    @field_validator("debt_sale_description")
    @classmethod
    def validate_description_template(cls, v: str) -> str:
        """Fail at startup rather than on the first debt sale."""
        try:
            v.format(quantity=1, product_name="x")
        except (KeyError, IndexError) as e:
            raise ValueError(f"Unknown placeholder in template: {e}")
        return v


class Settings(BaseSettings):
    """
    Root settings container.

    Aggregates all sub-settings for easy access.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Loaded lazily so a missing Gemini key only matters to the advisor

    @property
    def gemini(self) -> GeminiSettings:
        return GeminiSettings()

    @property
    def storage(self) -> StorageSettings:
        return StorageSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}, with a
    `<name>_error` entry for each failure.
    """
    results = {}
    settings = get_settings()

    for name in ("gemini", "storage", "app"):
        try:
            getattr(settings, name)
            results[name] = True
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
