# This project was developed with assistance from AI tools.
"""Underwriting settings schemas.

``UnderwritingSettings`` is the engine-side record: every percentage is a
ratio in [0, 1]. ``SettingsPayload`` and ``SettingsUpdate`` are the HTTP
views, where the same percentages travel as 0-100 values under camelCase
names. ``to_payload`` and ``SettingsUpdate.to_patch`` are the only places
that convert between the two.
"""

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

# Settings presented as 0-100 at the boundary.
PERCENT_FIELDS: frozenset[str] = frozenset(
    {
        "max_ltv",
        "max_ltc",
        "decline_ltv",
        "assumed_annual_interest_rate",
        "prepaid_interest_annual_rate",
        "origination_fee_percent",
        "estimated_other_lender_monthly_payment_factor",
    }
)


class UnderwritingSettings(BaseModel):
    """Tunable underwriting knobs. Percentages are stored as ratios."""

    model_config = ConfigDict(frozen=True, allow_inf_nan=False, extra="forbid")

    # -- Leverage --
    max_ltv: float = Field(default=0.75, ge=0, le=1)
    max_ltc: float = Field(default=0.9, ge=0, le=1)
    decline_ltv: float = Field(default=0.82, ge=0, le=1)

    # -- Credit --
    min_credit_score: int = Field(default=680, ge=300, le=900)
    decline_credit_score: int = Field(default=620, ge=300, le=900)

    # -- Liquidity --
    min_liquidity_to_loan_ratio: float = Field(default=0.1, ge=0)
    acceptable_liquidity_ratio: float = Field(default=2, ge=0)
    excellent_liquidity_ratio: float = Field(default=4, ge=0)
    liquidity_months: int = Field(default=6, ge=1)
    max_other_mortgage_loans: int = Field(default=5, ge=0)
    estimated_other_lender_monthly_payment_factor: float = Field(default=0.75, ge=0, le=1)

    # -- Interest --
    assumed_annual_interest_rate: float = Field(default=0.12, ge=0, le=1)
    prepaid_interest_annual_rate: float = Field(default=0.13, ge=0, le=1)
    per_diem_day_count_basis: int = Field(default=360, ge=1)

    # -- Fees --
    origination_fee_percent: float = Field(default=0.05, ge=0, le=1)
    monthly_service_fee: float = Field(default=950, ge=0)
    document_preparation_fee: float = Field(default=250, ge=0)
    closing_cost_estimate: float = Field(default=6000, ge=0)

    # -- Timeline --
    short_closing_timeline_days: int = Field(default=14, ge=0)

    @model_validator(mode="after")
    def _check_liquidity_tiers(self) -> "UnderwritingSettings":
        if self.excellent_liquidity_ratio < self.acceptable_liquidity_ratio:
            raise ValueError("excellent_liquidity_ratio must be >= acceptable_liquidity_ratio")
        return self


class _CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, allow_inf_nan=False, extra="forbid"
    )


class SettingsPayload(_CamelModel):
    """Settings as shown to admins (percent fields are 0-100)."""

    max_ltv: float
    max_ltc: float
    decline_ltv: float
    min_credit_score: int
    decline_credit_score: int
    min_liquidity_to_loan_ratio: float
    acceptable_liquidity_ratio: float
    excellent_liquidity_ratio: float
    liquidity_months: int
    max_other_mortgage_loans: int
    estimated_other_lender_monthly_payment_factor: float
    assumed_annual_interest_rate: float
    prepaid_interest_annual_rate: float
    per_diem_day_count_basis: int
    origination_fee_percent: float
    monthly_service_fee: float
    document_preparation_fee: float
    closing_cost_estimate: float
    short_closing_timeline_days: int


class SettingsUpdate(_CamelModel):
    """Partial admin update; omitted fields keep their current value."""

    max_ltv: float | None = None
    max_ltc: float | None = None
    decline_ltv: float | None = None
    min_credit_score: int | None = None
    decline_credit_score: int | None = None
    min_liquidity_to_loan_ratio: float | None = None
    acceptable_liquidity_ratio: float | None = None
    excellent_liquidity_ratio: float | None = None
    liquidity_months: int | None = None
    max_other_mortgage_loans: int | None = None
    estimated_other_lender_monthly_payment_factor: float | None = None
    assumed_annual_interest_rate: float | None = None
    prepaid_interest_annual_rate: float | None = None
    per_diem_day_count_basis: int | None = None
    origination_fee_percent: float | None = None
    monthly_service_fee: float | None = None
    document_preparation_fee: float | None = None
    closing_cost_estimate: float | None = None
    short_closing_timeline_days: int | None = None

    def to_patch(self) -> dict[str, float | int]:
        """Return the supplied fields keyed by settings name, percentages as ratios."""
        patch = {}
        for name, value in self.model_dump(exclude_none=True).items():
            patch[name] = value / 100 if name in PERCENT_FIELDS else value
        return patch


def to_payload(settings: UnderwritingSettings) -> SettingsPayload:
    """Present stored ratios as 0-100 percentages."""
    values = {}
    for name, value in settings.model_dump().items():
        # round() hides float noise such as 0.07 * 100 == 7.000000000000001
        values[name] = round(value * 100, 10) if name in PERCENT_FIELDS else value
    return SettingsPayload(**values)
