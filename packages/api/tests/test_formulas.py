# This project was developed with assistance from AI tools.
"""Tests for the underwriting formula engine."""

import math
from datetime import UTC, date, datetime

import pytest

from underwriting.schemas.error import EngineError, ErrorKind
from underwriting.schemas.formulas import LiquidityTier
from underwriting.schemas.loan import ActiveLoan
from underwriting.schemas.settings import UnderwritingSettings
from underwriting.services.formulas import (
    classify_liquidity,
    compute_formulas,
    days_to_first_of_following_month,
    liquidity_ratio,
    ltc,
    ltv,
    monthly_interest,
    origination_fee,
    per_diem,
    prepaid_interest,
    required_liquidity,
)

from .factories import make_intake, make_loan, make_purchase

SETTINGS = UnderwritingSettings()
TODAY = date(2026, 1, 1)

# ---------------------------------------------------------------------------
# Primitives
# ---------------------------------------------------------------------------


def test_per_diem_matches_percent_form():
    """200k at 13% on a 360-day basis accrues about 72.22 a day."""
    assert per_diem(200_000, 0.13, 360) == pytest.approx(72.2222222)
    # Same value as ((amount / 100) * rate_percent) / basis
    assert per_diem(200_000, 0.13, 360) == pytest.approx((200_000 / 100) * 13 / 360)


def test_per_diem_zero_basis_is_arithmetic_error():
    result = per_diem(200_000, 0.13, 0)
    assert isinstance(result, EngineError)
    assert result.kind == ErrorKind.ARITHMETIC
    assert result.field == "per_diem_day_count_basis"


def test_per_diem_negative_amount_is_validation_error():
    result = per_diem(-1, 0.13, 360)
    assert isinstance(result, EngineError)
    assert result.kind == ErrorKind.VALIDATION
    assert result.field == "amount"


def test_per_diem_rejects_nan():
    result = per_diem(math.nan, 0.13, 360)
    assert isinstance(result, EngineError)
    assert result.kind == ErrorKind.VALIDATION


def test_prepaid_interest():
    assert prepaid_interest(72.5, 10) == pytest.approx(725)


def test_prepaid_interest_negative_days():
    result = prepaid_interest(72.5, -1)
    assert isinstance(result, EngineError)
    assert result.field == "prepaid_interest_days"


@pytest.mark.parametrize(
    "closing,expected",
    [
        (date(2026, 1, 22), 10),
        (date(2026, 1, 31), 1),
        (date(2026, 1, 1), 31),
        (date(2026, 2, 15), 14),
        (date(2024, 2, 15), 15),
        (date(2026, 12, 20), 12),
    ],
)
def test_days_to_first_of_following_month(closing, expected):
    """Closing day counts, the 1st of next month does not."""
    assert days_to_first_of_following_month(closing) == expected


def test_days_to_first_accepts_aware_datetime():
    """Aware datetimes are read in UTC before taking the date."""
    closing = datetime(2026, 1, 22, 3, 0, tzinfo=UTC)
    assert days_to_first_of_following_month(closing) == 10


def test_days_to_first_rejects_non_date():
    result = days_to_first_of_following_month("2026-01-22")
    assert isinstance(result, EngineError)
    assert result.kind == ErrorKind.VALIDATION


def test_origination_fee():
    assert origination_fee(200_000, 0.05) == pytest.approx(10_000)


def test_golden_origination_fee():
    """Reference scenario: 100k at a 5% origination fee."""
    assert origination_fee(100_000, 0.05) == pytest.approx(5_000)
    assert origination_fee(100_000, 0.05) == pytest.approx((100_000 / 100) * 5)


def test_golden_per_diem_and_prepaid_interest():
    """((amount / 100) * 13) / 360: 100k accrues 36.11 a day, 1M accrues 361.11."""
    daily = per_diem(100_000, 0.13, 360)
    assert daily == pytest.approx(36.11, abs=0.005)
    assert prepaid_interest(daily, 10) == pytest.approx(361.11, abs=0.005)

    daily = per_diem(1_000_000, 0.13, 360)
    assert daily == pytest.approx(361.11, abs=0.005)
    assert prepaid_interest(daily, 10) == pytest.approx(3_611.11, abs=0.005)


def test_golden_values_through_compute_formulas():
    """Closing Jan 22 gives the 10 prepaid days of the reference scenario."""
    loan = make_loan(amount=100_000, purchase_details=make_purchase(target_closing_date=date(2026, 1, 22)))
    result = compute_formulas(loan, SETTINGS, today=TODAY)

    assert result.origination_fee == pytest.approx(5_000)
    assert result.per_diem == pytest.approx(36.11, abs=0.005)
    assert result.prepaid_interest_days == 10
    assert result.prepaid_interest == pytest.approx(361.11, abs=0.005)


def test_monthly_interest():
    assert monthly_interest(200_000, 0.12) == pytest.approx(2_000)


def test_required_liquidity_sums_reserves_and_one_off_costs():
    result = required_liquidity(
        monthly_interest=2_000,
        months=6,
        monthly_service_fee=950,
        document_preparation_fee=250,
        closing_cost_estimate=6_000,
        other_loan_monthly_payments=[500, 250],
        other_mortgage_exposure=1_000,
        origination_fee=10_000,
        prepaid_interest=722.22,
    )
    expected = 2_000 * 6 + 950 + 250 + 6_000 + 750 * 6 + 1_000 * 6 + 10_000 + 722.22
    assert result == pytest.approx(expected)


def test_required_liquidity_rejects_negative_payment():
    result = required_liquidity(
        monthly_interest=2_000,
        months=6,
        monthly_service_fee=950,
        document_preparation_fee=250,
        closing_cost_estimate=6_000,
        other_loan_monthly_payments=[-5],
        other_mortgage_exposure=0,
        origination_fee=0,
        prepaid_interest=0,
    )
    assert isinstance(result, EngineError)
    assert result.field == "other_loan_monthly_payments"


LIQUIDITY_BASE = {
    "monthly_interest": 2_000,
    "months": 6,
    "monthly_service_fee": 950,
    "document_preparation_fee": 250,
    "closing_cost_estimate": 6_000,
    "other_loan_monthly_payments": [500],
    "other_mortgage_exposure": 1_000,
    "origination_fee": 10_000,
    "prepaid_interest": 722.22,
}


@pytest.mark.parametrize(
    "component,larger",
    [
        ("monthly_interest", 2_500),
        ("months", 12),
        ("monthly_service_fee", 1_200),
        ("document_preparation_fee", 400),
        ("closing_cost_estimate", 9_000),
        ("other_loan_monthly_payments", [500, 300]),
        ("other_loan_monthly_payments", [800]),
        ("other_mortgage_exposure", 1_800),
        ("origination_fee", 12_000),
        ("prepaid_interest", 1_000),
    ],
)
def test_required_liquidity_never_drops_when_a_component_grows(component, larger):
    base = required_liquidity(**LIQUIDITY_BASE)
    grown = required_liquidity(**{**LIQUIDITY_BASE, component: larger})
    assert grown >= base


def test_liquidity_ratio_zero_required():
    result = liquidity_ratio(100, 0)
    assert isinstance(result, EngineError)
    assert result.kind == ErrorKind.ARITHMETIC


@pytest.mark.parametrize(
    "ratio,tier",
    [
        (0.5, LiquidityTier.INSUFFICIENT),
        (2, LiquidityTier.ACCEPTABLE),
        (3.99, LiquidityTier.ACCEPTABLE),
        (4, LiquidityTier.EXCELLENT),
    ],
)
def test_classify_liquidity(ratio, tier):
    assert classify_liquidity(ratio, SETTINGS) == tier


def test_ltv_and_ltc():
    assert ltv(150_000, 200_000) == pytest.approx(0.75)
    assert ltc(180_000, 180_000, 20_000) == pytest.approx(0.9)


def test_ltv_zero_value_is_arithmetic_error():
    result = ltv(150_000, 0)
    assert isinstance(result, EngineError)
    assert result.kind == ErrorKind.ARITHMETIC
    assert result.field == "property_value"


def test_ltc_zero_total_cost_is_arithmetic_error():
    result = ltc(150_000, 0, 0)
    assert isinstance(result, EngineError)
    assert result.kind == ErrorKind.ARITHMETIC


# ---------------------------------------------------------------------------
# compute_formulas
# ---------------------------------------------------------------------------


def test_compute_formulas_reference_loan():
    """200k loan, 300k ARV, 180k + 40k cost, closing Jan 22, 100k liquidity."""
    result = compute_formulas(make_loan(), SETTINGS, today=TODAY)

    assert result.loan_amount == 200_000
    assert result.monthly_interest == pytest.approx(2_000)
    assert result.interest_reserve == pytest.approx(12_000)
    assert result.per_diem == pytest.approx(72.2222222)
    assert result.prepaid_interest_days == 10
    assert result.prepaid_interest == pytest.approx(722.222222)
    assert result.origination_fee == pytest.approx(10_000)
    assert result.required_liquidity == pytest.approx(29_922.222222)
    assert result.liquidity_on_hand == 100_000
    assert result.liquidity_ratio == pytest.approx(100_000 / 29_922.222222)
    assert result.liquidity_tier == LiquidityTier.ACCEPTABLE
    assert result.remaining_liquidity == pytest.approx(70_077.777778)
    assert result.has_enough_liquidity is True
    assert result.liquidity_to_loan_ratio == pytest.approx(0.5)
    assert result.property_value == 300_000
    assert result.ltv == pytest.approx(2 / 3)
    assert result.ltv_over_threshold is False
    assert result.ltc == pytest.approx(200_000 / 220_000)
    assert result.ltc_over_threshold is True
    assert result.cash_to_close == pytest.approx(20_000)
    assert result.days_until_closing == 21
    assert result.errors == []


def test_compute_formulas_prefers_appraisal_over_arv():
    loan = make_loan(purchase_details=make_purchase(appraisal_value=250_000))
    result = compute_formulas(loan, SETTINGS, today=TODAY)
    assert result.property_value == 250_000
    assert result.ltv == pytest.approx(0.8)
    assert result.ltv_over_threshold is True


def test_compute_formulas_without_property_value_keeps_other_metrics():
    loan = make_loan(purchase_details=make_purchase(arv=None))
    result = compute_formulas(loan, SETTINGS, today=TODAY)
    assert result.ltv is None
    assert result.ltv_over_threshold is None
    assert result.monthly_interest == pytest.approx(2_000)
    assert [e.field for e in result.errors] == ["arv"]


def test_compute_formulas_zero_arv_reports_arithmetic_error():
    loan = make_loan(purchase_details=make_purchase(arv=0))
    result = compute_formulas(loan, SETTINGS, today=TODAY)
    assert result.ltv is None
    assert result.errors[0].kind == ErrorKind.ARITHMETIC


def test_compute_formulas_without_closing_date_has_no_prepaid_days():
    loan = make_loan(purchase_details=make_purchase(target_closing_date=None))
    result = compute_formulas(loan, SETTINGS, today=TODAY)
    assert result.prepaid_interest_days == 0
    assert result.prepaid_interest == 0
    assert result.days_until_closing is None


def test_compute_formulas_without_purchase_price_skips_ltc():
    loan = make_loan(purchase_details=make_purchase(purchase_price=None))
    result = compute_formulas(loan, SETTINGS, today=TODAY)
    assert result.ltc is None
    assert result.cash_to_close is None


def test_compute_formulas_without_liquidity_amount():
    loan = make_loan(intake=make_intake(proof_of_liquidity_amount=None))
    result = compute_formulas(loan, SETTINGS, today=TODAY)
    assert result.required_liquidity is not None
    assert result.liquidity_ratio is None
    assert result.has_enough_liquidity is None


@pytest.mark.parametrize("amount", [None, 0, -5])
def test_compute_formulas_rejects_unusable_amount(amount):
    result = compute_formulas(make_loan(amount=amount), SETTINGS, today=TODAY)
    assert isinstance(result, EngineError)
    assert result.kind == ErrorKind.VALIDATION
    assert result.field == "amount"


def test_compute_formulas_other_loan_payments():
    """Listed payments are used as-is; loans without one are estimated from the amount."""
    intake = make_intake(
        active_loans=[
            ActiveLoan(lender="Bank A", monthly_payment=800),
            ActiveLoan(lender="Bank B", amount=120_000),
            ActiveLoan(lender="Bank C"),
        ]
    )
    result = compute_formulas(make_loan(intake=intake), SETTINGS, today=TODAY)
    assert result.other_loan_monthly_payments == pytest.approx([800, 1_200, 0])
    assert result.other_loan_payments_reserve == pytest.approx(2_000 * 6)


def test_compute_formulas_zero_payment_is_estimated_from_amount():
    intake = make_intake(active_loans=[ActiveLoan(lender="Bank A", amount=120_000, monthly_payment=0)])
    result = compute_formulas(make_loan(intake=intake), SETTINGS, today=TODAY)
    assert result.other_loan_monthly_payments == pytest.approx([1_200])


def test_compute_formulas_estimates_other_mortgage_exposure():
    intake = make_intake(other_mortgage_lenders=["Bank A", "Bank B"])
    result = compute_formulas(make_loan(intake=intake), SETTINGS, today=TODAY)
    assert result.other_mortgage_loan_count == 2
    assert result.other_mortgage_exposure_source == "estimated"
    # 2 loans * 200k * 12% / 12 * 0.75
    assert result.other_mortgage_monthly_exposure == pytest.approx(3_000)
    assert result.other_mortgage_reserve == pytest.approx(18_000)


def test_compute_formulas_provided_mortgage_figures_win():
    intake = make_intake(
        other_mortgage_loans_count=3,
        other_mortgage_total_monthly_interest=1_500,
        other_mortgage_total_amount=2_500,
    )
    result = compute_formulas(make_loan(intake=intake), SETTINGS, today=TODAY)
    assert result.other_mortgage_loan_count == 3
    assert result.other_mortgage_exposure_source == "provided_total"
    assert result.other_mortgage_monthly_exposure == 2_500

    intake = make_intake(other_mortgage_loans_count=3, other_mortgage_total_monthly_interest=1_500)
    result = compute_formulas(make_loan(intake=intake), SETTINGS, today=TODAY)
    assert result.other_mortgage_exposure_source == "provided_monthly"
    assert result.other_mortgage_monthly_exposure == 1_500


def test_compute_formulas_uses_settings_snapshot():
    """Changing the rate changes the result; nothing is read from globals."""
    settings = UnderwritingSettings(assumed_annual_interest_rate=0.06)
    result = compute_formulas(make_loan(), settings, today=TODAY)
    assert result.monthly_interest == pytest.approx(1_000)


def test_compute_formulas_is_deterministic():
    loan = make_loan()
    assert compute_formulas(loan, SETTINGS, today=TODAY) == compute_formulas(loan, SETTINGS, today=TODAY)
