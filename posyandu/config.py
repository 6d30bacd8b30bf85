# posyandu/config.py
from __future__ import annotations

from functools import lru_cache
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class BmiBand(BaseModel):
    """One BMI bucket; `upper` is inclusive, None means open-ended."""

    label: str
    upper: Optional[float] = None


class AdlBand(BaseModel):
    """One independence level over an inclusive score range."""

    label: str
    lower: int
    upper: Optional[int] = None


DEFAULT_BMI_BANDS: List[BmiBand] = [
    BmiBand(label="sangat_kurus", upper=16.9),
    BmiBand(label="kurus", upper=18.4),
    BmiBand(label="normal", upper=25.0),
    BmiBand(label="gemuk", upper=27.0),
    BmiBand(label="obesitas", upper=None),
]

DEFAULT_ADL_BANDS: List[AdlBand] = [
    AdlBand(label="total", lower=0, upper=2),
    AdlBand(label="berat", lower=3, upper=5),
    AdlBand(label="sedang", lower=6, upper=9),
    AdlBand(label="ringan", lower=10, upper=15),
    AdlBand(label="mandiri", lower=16, upper=None),
]


class Settings(BaseSettings):
    database_url: str = Field("sqlite:///./posyandu.db", validation_alias="DATABASE_URL")

    log_level: str = Field("INFO", validation_alias="LOG_LEVEL")
    log_file: str | None = Field(None, validation_alias="LOG_FILE")

    bmi_bands: List[BmiBand] = Field(
        default_factory=lambda: list(DEFAULT_BMI_BANDS),
        validation_alias="BMI_BANDS",
    )
    adl_bands: List[AdlBand] = Field(
        default_factory=lambda: list(DEFAULT_ADL_BANDS),
        validation_alias="ADL_BANDS",
    )
    puma_referral_threshold: int = Field(2, validation_alias="PUMA_REFERRAL_THRESHOLD")
    require_referral_decision: bool = Field(True, validation_alias="REQUIRE_REFERRAL_DECISION")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @field_validator("bmi_bands")
    @classmethod
    def _check_bmi_bands(cls, bands: List[BmiBand]) -> List[BmiBand]:
        if not bands:
            raise ValueError("BMI_BANDS must contain at least one band")
        if bands[-1].upper is not None:
            raise ValueError("the last BMI band must be open-ended")
        uppers = [b.upper for b in bands[:-1]]
        if any(u is None for u in uppers):
            raise ValueError("only the last BMI band may be open-ended")
        if uppers != sorted(uppers) or len(set(uppers)) != len(uppers):
            raise ValueError("BMI band upper bounds must be strictly increasing")
        return bands

    @field_validator("adl_bands")
    @classmethod
    def _check_adl_bands(cls, bands: List[AdlBand]) -> List[AdlBand]:
        if not bands:
            raise ValueError("ADL_BANDS must contain at least one band")
        if bands[0].lower != 0:
            raise ValueError("the first ADL band must start at 0")
        for prev, cur in zip(bands, bands[1:]):
            if prev.upper is None:
                raise ValueError("only the last ADL band may be open-ended")
            if prev.upper < prev.lower:
                raise ValueError(f"ADL band {prev.label!r} has upper < lower")
            if cur.lower != prev.upper + 1:
                raise ValueError(
                    f"ADL bands {prev.label!r} and {cur.label!r} overlap or leave a gap"
                )
        if bands[-1].upper is not None:
            raise ValueError("the last ADL band must be open-ended")
        return bands


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
