"""Runtime settings, loaded from the environment and an optional ``.env``."""
from __future__ import annotations
from decimal import Decimal
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class TaxSlabSetting(BaseModel):
    min_gross: Decimal
    amount: Decimal


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    DATABASE_URL: str = "sqlite:///data/hrpay.db"
    LOG_LEVEL: str = "INFO"

    # Statutory deductions; per-employee salary config may override both.
    PF_RATE: Decimal = Decimal("0.12")
    PF_EMPLOYER_RATE: Decimal = Decimal("0.12")
    PROFESSIONAL_TAX_SLABS: list[TaxSlabSetting] = Field(
        default_factory=lambda: [TaxSlabSetting(min_gross=Decimal("0"), amount=Decimal("200"))]
    )

    # Attendance aggregation
    WORK_WEEK: list[int] = Field(default_factory=lambda: [0, 1, 2, 3, 4])
    HALF_DAY_WEIGHT: Decimal = Decimal("0.5")


settings = Settings()
