# This project was developed with assistance from AI tools.
"""Formula engine result schemas."""

import enum

from pydantic import BaseModel, Field

from .error import EngineError


class LiquidityTier(str, enum.Enum):
    INSUFFICIENT = "insufficient"
    ACCEPTABLE = "acceptable"
    EXCELLENT = "excellent"


class FormulaResult(BaseModel):
    """Computed underwriting metrics for one loan.

    Any metric whose inputs are missing or whose denominator is unusable is
    ``None``; the reason is recorded in ``errors`` so the rest of the result
    stays usable.
    """

    loan_amount: float

    # -- Interest carry --
    monthly_interest: float
    interest_reserve: float
    per_diem: float | None = None
    prepaid_interest_days: int = 0
    prepaid_interest: float | None = None

    # -- Fees --
    origination_fee: float
    monthly_service_fee: float
    document_preparation_fee: float
    closing_cost_estimate: float

    # -- Other obligations --
    other_loan_monthly_payments: list[float] = Field(default_factory=list)
    other_loan_payments_reserve: float = 0
    other_mortgage_loan_count: int = 0
    other_mortgage_monthly_exposure: float = 0
    other_mortgage_exposure_source: str = "none"
    other_mortgage_reserve: float = 0

    # -- Liquidity --
    required_liquidity: float | None = None
    liquidity_on_hand: float | None = None
    liquidity_ratio: float | None = None
    liquidity_tier: LiquidityTier | None = None
    remaining_liquidity: float | None = None
    has_enough_liquidity: bool | None = None
    liquidity_to_loan_ratio: float | None = None

    # -- Leverage --
    property_value: float | None = None
    ltv: float | None = None
    ltv_over_threshold: bool | None = None
    ltc: float | None = None
    ltc_over_threshold: bool | None = None
    cash_to_close: float | None = None

    # -- Timeline --
    days_until_closing: int | None = None

    errors: list[EngineError] = Field(default_factory=list)
