"""
Installment Settings for the deferred-payment engine.

This module holds the tunable constants of the installment rules:
the eligibility score factors, the schedule cadence and the
reconciliation horizons.

Environment variables use the INSTALLMENT_ prefix:
    INSTALLMENT_NEUTRAL_SCORE=55
    INSTALLMENT_REMINDER_HORIZON_DAYS=3
    INSTALLMENT_SCHEDULE_STEP_DAYS=30

Usage:
    from installment_gateway.service.installments.settings import installment_settings

    horizon = installment_settings.reminder_horizon_days

    # Or create custom settings for testing
    custom = InstallmentSettings(reminder_horizon_days=5)
"""

from functools import lru_cache

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class InstallmentSettings(BaseSettings):
    """
    Configurable parameters for installment eligibility, scheduling
    and reconciliation.

    All monetary values are in cents.
    All scores are 0-100.
    """

    model_config = SettingsConfigDict(
        env_prefix="INSTALLMENT_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # === Eligibility Score ===
    neutral_score: int = Field(
        default=55,
        ge=0,
        le=100,
        description="Score of a customer with no order history",
    )
    completion_weight: int = Field(
        default=30,
        ge=0,
        description="Points granted for a 100% delivery completion rate",
    )
    completed_installment_points: int = Field(
        default=2,
        ge=0,
        description="Points per completed installment plan",
    )
    completed_installment_cap: int = Field(
        default=10,
        ge=0,
        description="Maximum bonus from completed installment plans",
    )
    cancellation_weight: int = Field(
        default=25,
        ge=0,
        description="Points removed for a 100% cancellation rate",
    )
    overdue_points: int = Field(
        default=4,
        ge=0,
        description="Points removed per order currently overdue",
    )
    overdue_cap: int = Field(
        default=20,
        ge=0,
        description="Maximum malus from overdue orders",
    )
    low_risk_threshold: int = Field(
        default=75,
        ge=0,
        le=100,
        description="Minimum score for the low risk level",
    )
    medium_risk_threshold: int = Field(
        default=50,
        ge=0,
        le=100,
        description="Minimum score for the medium risk level",
    )

    # === Schedule ===
    schedule_step_days: int = Field(
        default=30,
        gt=0,
        description="Approximate cadence between generated tranches",
    )
    default_duration_days: int = Field(
        default=30,
        gt=0,
        description="Plan duration used when a product does not define one",
    )

    # === Reconciliation ===
    reminder_horizon_days: int = Field(
        default=3,
        ge=0,
        description="Days ahead of a due date when the buyer is reminded",
    )
    default_max_missed_payments: int = Field(
        default=3,
        ge=1,
        le=12,
        description="Overdue tranches tolerated before a product is suspended",
    )

    # === Input validation ===
    transaction_code_length: int = Field(
        default=10,
        gt=0,
        description="Number of digits in a transfer reference",
    )

    @model_validator(mode="after")
    def validate_risk_thresholds(self) -> "InstallmentSettings":
        if self.medium_risk_threshold > self.low_risk_threshold:
            raise ValueError(
                "medium_risk_threshold must not exceed low_risk_threshold"
            )
        return self


@lru_cache
def get_installment_settings() -> InstallmentSettings:
    """Get cached installment settings instance."""
    return InstallmentSettings()


installment_settings = get_installment_settings()
