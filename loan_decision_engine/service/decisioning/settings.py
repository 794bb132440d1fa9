"""
Decisioning Settings for the Loan Decision Engine.

This module contains the configurable parameters of automated assessment:
score bounds, risk-level bands, condition due dates and the fallback
scoring heuristic.

Environment variables use the DECISIONING_ prefix:
    DECISIONING_BASE_RISK_SCORE=700
    DECISIONING_LOW_RISK_THRESHOLD=720
    DECISIONING_CONDITION_DUE_DAYS=14

Usage:
    from loan_decision_engine.service.decisioning.settings import decisioning_settings

    # Use default settings (loaded from env)
    days = decisioning_settings.condition_due_days

    # Or create custom settings for testing
    custom = DecisioningSettings(low_risk_threshold=700)
"""

from functools import lru_cache

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class DecisioningSettings(BaseSettings):
    """
    Configurable parameters for automated loan assessment.

    All settings can be overridden via environment variables with DECISIONING_ prefix.
    Scores use the conventional 300-850 credit score scale.
    """

    model_config = SettingsConfigDict(
        env_prefix="DECISIONING_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # === Score Scale ===
    base_risk_score: int = Field(
        default=700,
        description="Starting score for ruleset evaluation and fallback scoring",
    )
    min_risk_score: int = Field(
        default=300,
        description="Lower clamp for any computed risk score",
    )
    max_risk_score: int = Field(
        default=850,
        description="Upper clamp for any computed risk score",
    )

    # === Risk Level Bands ===
    low_risk_threshold: int = Field(
        default=720,
        description="Scores at or above this are LOW risk",
    )
    high_risk_threshold: int = Field(
        default=620,
        description="Scores below this are HIGH risk",
    )

    # === Conditions ===
    condition_due_days: int = Field(
        default=14,
        ge=1,
        description="Days until a synthesized approval condition is due",
    )

    # === Field Evaluation ===
    credit_score_max_age_days: int = Field(
        default=90,
        ge=0,
        description="Stored credit scores older than this trigger a bureau refresh",
    )
    repayment_capacity_threshold: float = Field(
        default=0.5,
        gt=0.0,
        description="Maximum share of disposable income an installment may consume",
    )
    active_loans_threshold: int = Field(
        default=3,
        ge=1,
        description="Active bureau loans at or above this count against the client",
    )

    # === Fallback Scoring ===
    default_credit_threshold: int = Field(
        default=650,
        description="Credit score threshold used when the product sets none",
    )
    default_debt_threshold: float = Field(
        default=0.40,
        ge=0.0,
        description="Debt-to-income threshold used when the product sets none",
    )
    negative_factor_penalty: int = Field(
        default=25,
        ge=0,
        description="Points removed per negative factor",
    )
    membership_points_per_year: int = Field(
        default=10,
        ge=0,
        description="Points added per full year of membership",
    )
    membership_year_cap: int = Field(
        default=5,
        ge=0,
        description="Membership years beyond this earn no extra points",
    )
    decline_negative_count: int = Field(
        default=3,
        ge=1,
        description="Negative factor count at which the fallback scorer declines",
    )

    @model_validator(mode="after")
    def validate_bands(self) -> "DecisioningSettings":
        """Ensure score bounds and risk bands are ordered."""
        if self.min_risk_score >= self.max_risk_score:
            raise ValueError("min_risk_score must be below max_risk_score")
        if self.high_risk_threshold > self.low_risk_threshold:
            raise ValueError("high_risk_threshold must not exceed low_risk_threshold")
        return self


@lru_cache
def get_decisioning_settings() -> DecisioningSettings:
    """Get cached decisioning settings instance."""
    return DecisioningSettings()


decisioning_settings = get_decisioning_settings()
