# This project was developed with assistance from AI tools.
"""Underwriting formula engine.

Pure math, no I/O. Settings are always passed in explicitly and every
percentage arrives as a ratio. Primitives return an ``EngineError`` instead
of raising when an input is unusable, and ``compute_formulas`` degrades one
metric at a time so a single missing input never blanks the whole result.
"""

import logging
import math
from datetime import UTC, date, datetime

from ..schemas.error import EngineError, ErrorKind
from ..schemas.formulas import FormulaResult, LiquidityTier
from ..schemas.loan import ActiveLoan, IntakeSubmission, LoanRecord, PurchaseDetails
from ..schemas.settings import UnderwritingSettings

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Input guards
# ---------------------------------------------------------------------------


def _is_number(value) -> bool:
    return isinstance(value, int | float) and not isinstance(value, bool) and math.isfinite(value)


def _non_negative(value, name: str) -> EngineError | None:
    if not _is_number(value) or value < 0:
        return EngineError(
            kind=ErrorKind.VALIDATION,
            message=f"{name} must be a finite, non-negative number",
            field=name,
        )
    return None


def _denominator(value, name: str) -> EngineError | None:
    if not _is_number(value) or value == 0:
        return EngineError(
            kind=ErrorKind.ARITHMETIC,
            message=f"{name} must be finite and non-zero",
            field=name,
        )
    if value < 0:
        return EngineError(
            kind=ErrorKind.VALIDATION,
            message=f"{name} must be positive",
            field=name,
        )
    return None


def _first_error(*checks: EngineError | None) -> EngineError | None:
    for check in checks:
        if check is not None:
            return check
    return None


# ---------------------------------------------------------------------------
# Primitives
# ---------------------------------------------------------------------------


def per_diem(amount: float, annual_rate: float, day_count_basis: float) -> float | EngineError:
    """Daily interest accrual used for prepaid interest.

    Equivalent to ``((amount / 100) * rate_percent) / day_count_basis`` with
    ``annual_rate`` given as a ratio.
    """
    error = _first_error(
        _denominator(day_count_basis, "per_diem_day_count_basis"),
        _non_negative(amount, "amount"),
        _non_negative(annual_rate, "prepaid_interest_annual_rate"),
    )
    if error:
        return error
    return amount * annual_rate / day_count_basis


def prepaid_interest(daily_interest: float, days: int) -> float | EngineError:
    error = _first_error(
        _non_negative(daily_interest, "per_diem"),
        _non_negative(days, "prepaid_interest_days"),
    )
    if error:
        return error
    return daily_interest * days


def days_to_first_of_following_month(closing_date: date | datetime) -> int | EngineError:
    """Calendar days from the closing date to the 1st of the next month.

    The closing date itself is counted and the 1st is not, so a closing on
    the 22nd of January accrues 10 days and a closing on the 1st accrues the
    whole month. Aware datetimes are read in UTC.
    """
    if isinstance(closing_date, datetime):
        if closing_date.tzinfo is not None:
            closing_date = closing_date.astimezone(UTC)
        closing_date = closing_date.date()
    if not isinstance(closing_date, date):
        return EngineError(
            kind=ErrorKind.VALIDATION,
            message="target_closing_date must be a date",
            field="target_closing_date",
        )
    if closing_date.month == 12:
        first_of_next = date(closing_date.year + 1, 1, 1)
    else:
        first_of_next = date(closing_date.year, closing_date.month + 1, 1)
    return (first_of_next - closing_date).days


def origination_fee(amount: float, fee_ratio: float) -> float | EngineError:
    """``(amount / 100) * fee_percent`` with the percent given as a ratio."""
    error = _first_error(
        _non_negative(amount, "amount"),
        _non_negative(fee_ratio, "origination_fee_percent"),
    )
    if error:
        return error
    return amount * fee_ratio


def monthly_interest(amount: float, annual_rate: float) -> float | EngineError:
    error = _first_error(
        _non_negative(amount, "amount"),
        _non_negative(annual_rate, "assumed_annual_interest_rate"),
    )
    if error:
        return error
    return amount * annual_rate / 12


def required_liquidity(
    *,
    monthly_interest: float,
    months: int,
    monthly_service_fee: float,
    document_preparation_fee: float,
    closing_cost_estimate: float,
    other_loan_monthly_payments: list[float],
    other_mortgage_exposure: float,
    origination_fee: float,
    prepaid_interest: float,
) -> float | EngineError:
    """Cash the borrower must show before closing.

    Interest carry, other-loan payments and other-mortgage exposure are each
    reserved for ``months``; fees, closing costs and prepaid interest are
    one-off.
    """
    error = _first_error(
        _non_negative(monthly_interest, "monthly_interest"),
        _non_negative(months, "liquidity_months"),
        _non_negative(monthly_service_fee, "monthly_service_fee"),
        _non_negative(document_preparation_fee, "document_preparation_fee"),
        _non_negative(closing_cost_estimate, "closing_cost_estimate"),
        _non_negative(other_mortgage_exposure, "other_mortgage_exposure"),
        _non_negative(origination_fee, "origination_fee"),
        _non_negative(prepaid_interest, "prepaid_interest"),
        *(_non_negative(p, "other_loan_monthly_payments") for p in other_loan_monthly_payments),
    )
    if error:
        return error
    return (
        monthly_interest * months
        + monthly_service_fee
        + document_preparation_fee
        + closing_cost_estimate
        + sum(other_loan_monthly_payments) * months
        + other_mortgage_exposure * months
        + origination_fee
        + prepaid_interest
    )


def liquidity_ratio(liquidity_on_hand: float, required: float) -> float | EngineError:
    error = _first_error(
        _denominator(required, "required_liquidity"),
        _non_negative(liquidity_on_hand, "liquidity_on_hand"),
    )
    if error:
        return error
    return liquidity_on_hand / required


def classify_liquidity(ratio: float, settings: UnderwritingSettings) -> LiquidityTier:
    if ratio >= settings.excellent_liquidity_ratio:
        return LiquidityTier.EXCELLENT
    if ratio >= settings.acceptable_liquidity_ratio:
        return LiquidityTier.ACCEPTABLE
    return LiquidityTier.INSUFFICIENT


def ltv(amount: float, property_value: float) -> float | EngineError:
    """Loan-to-value against the appraisal or after-repair value."""
    error = _first_error(
        _denominator(property_value, "property_value"),
        _non_negative(amount, "amount"),
    )
    if error:
        return error
    return amount / property_value


def ltc(amount: float, purchase_price: float, rehab_budget: float = 0) -> float | EngineError:
    """Loan-to-cost against purchase price plus rehab budget."""
    error = _first_error(
        _non_negative(purchase_price, "purchase_price"),
        _non_negative(rehab_budget, "rehab_budget"),
        _non_negative(amount, "amount"),
    )
    if error:
        return error
    total_cost = purchase_price + rehab_budget
    error = _denominator(total_cost, "total_cost")
    if error:
        return error
    return amount / total_cost


# ---------------------------------------------------------------------------
# Loan-level projection
# ---------------------------------------------------------------------------


def _take(result, errors: list[EngineError]):
    """Unwrap a primitive result, parking any error in ``errors``."""
    if isinstance(result, EngineError):
        errors.append(result)
        return None
    return result


def _other_loan_payment(loan: ActiveLoan, settings: UnderwritingSettings) -> float:
    if loan.monthly_payment:
        return loan.monthly_payment
    if loan.amount:
        return loan.amount * settings.assumed_annual_interest_rate / 12
    return 0.0


def _other_mortgage_exposure(
    amount: float, intake: IntakeSubmission, settings: UnderwritingSettings
) -> tuple[int, float, str]:
    """Monthly exposure to other lenders as (loan count, amount, source).

    A borrower-provided total wins over a provided monthly interest figure,
    which wins over an estimate scaled from this loan's own interest.
    """
    listed = [lender for lender in intake.other_mortgage_lenders if lender.strip()]
    count = max(intake.other_mortgage_loans_count or 0, len(listed))

    if intake.other_mortgage_total_amount:
        return count, intake.other_mortgage_total_amount, "provided_total"
    if intake.other_mortgage_total_monthly_interest:
        return count, intake.other_mortgage_total_monthly_interest, "provided_monthly"
    if count:
        estimate = (
            count
            * amount
            * settings.assumed_annual_interest_rate
            / 12
            * settings.estimated_other_lender_monthly_payment_factor
        )
        return count, estimate, "estimated"
    return 0, 0.0, "none"


def compute_formulas(
    loan: LoanRecord,
    settings: UnderwritingSettings,
    *,
    today: date | None = None,
) -> FormulaResult | EngineError:
    """Compute every underwriting metric for a loan.

    Args:
        loan: The loan to evaluate.
        settings: Underwriting settings snapshot (ratios).
        today: Reference date for the closing countdown (defaults to UTC today).

    Returns:
        FormulaResult, or EngineError when the loan amount itself is unusable.
    """
    amount = loan.amount
    if not _is_number(amount) or amount <= 0:
        return EngineError(
            kind=ErrorKind.VALIDATION,
            message="Loan amount must be a positive number",
            field="amount",
        )

    today = today or datetime.now(UTC).date()
    purchase = loan.purchase_details or PurchaseDetails()
    intake = loan.intake or IntakeSubmission()
    errors: list[EngineError] = []
    months = settings.liquidity_months

    # -- Interest carry and fees --
    interest = monthly_interest(amount, settings.assumed_annual_interest_rate)
    fee = origination_fee(amount, settings.origination_fee_percent)
    daily = _take(
        per_diem(amount, settings.prepaid_interest_annual_rate, settings.per_diem_day_count_basis),
        errors,
    )

    closing = purchase.target_closing_date
    days = _take(days_to_first_of_following_month(closing), errors) if closing else None
    days = days or 0
    prepaid = _take(prepaid_interest(daily, days), errors) if daily is not None else None

    # -- Other obligations --
    payments = [_other_loan_payment(other, settings) for other in intake.active_loans]
    mortgage_count, exposure, exposure_source = _other_mortgage_exposure(amount, intake, settings)

    # -- Liquidity --
    required = None
    if prepaid is not None:
        required = _take(
            required_liquidity(
                monthly_interest=interest,
                months=months,
                monthly_service_fee=settings.monthly_service_fee,
                document_preparation_fee=settings.document_preparation_fee,
                closing_cost_estimate=settings.closing_cost_estimate,
                other_loan_monthly_payments=payments,
                other_mortgage_exposure=exposure,
                origination_fee=fee,
                prepaid_interest=prepaid,
            ),
            errors,
        )

    on_hand = intake.proof_of_liquidity_amount
    ratio = tier = remaining = enough = to_loan = None
    if on_hand is not None:
        to_loan = on_hand / amount
        if required is not None:
            ratio = _take(liquidity_ratio(on_hand, required), errors)
            if ratio is not None:
                tier = classify_liquidity(ratio, settings)
                remaining = on_hand - required
                enough = remaining >= 0

    # -- Leverage --
    property_value = purchase.appraisal_value if purchase.appraisal_value is not None else purchase.arv
    loan_to_value = ltv_over = None
    if property_value is None:
        errors.append(
            EngineError(
                kind=ErrorKind.VALIDATION,
                message="No appraisal or ARV value to compute LTV",
                field="arv",
            )
        )
    else:
        loan_to_value = _take(ltv(amount, property_value), errors)
        if loan_to_value is not None:
            ltv_over = loan_to_value > settings.max_ltv

    loan_to_cost = ltc_over = cash_to_close = None
    if purchase.purchase_price is not None:
        rehab = purchase.rehab_budget or 0
        loan_to_cost = _take(ltc(amount, purchase.purchase_price, rehab), errors)
        if loan_to_cost is not None:
            ltc_over = loan_to_cost > settings.max_ltc
        cash_to_close = max(purchase.purchase_price + rehab - amount, 0)

    days_until_closing = (closing - today).days if closing else None

    if errors:
        logger.debug(
            "Formulas for loan %s degraded: %s", loan.id, [e.field for e in errors]
        )

    return FormulaResult(
        loan_amount=amount,
        monthly_interest=interest,
        interest_reserve=interest * months,
        per_diem=daily,
        prepaid_interest_days=days,
        prepaid_interest=prepaid,
        origination_fee=fee,
        monthly_service_fee=settings.monthly_service_fee,
        document_preparation_fee=settings.document_preparation_fee,
        closing_cost_estimate=settings.closing_cost_estimate,
        other_loan_monthly_payments=payments,
        other_loan_payments_reserve=sum(payments) * months,
        other_mortgage_loan_count=mortgage_count,
        other_mortgage_monthly_exposure=exposure,
        other_mortgage_exposure_source=exposure_source,
        other_mortgage_reserve=exposure * months,
        required_liquidity=required,
        liquidity_on_hand=on_hand,
        liquidity_ratio=ratio,
        liquidity_tier=tier,
        remaining_liquidity=remaining,
        has_enough_liquidity=enough,
        liquidity_to_loan_ratio=to_loan,
        property_value=property_value,
        ltv=loan_to_value,
        ltv_over_threshold=ltv_over,
        ltc=loan_to_cost,
        ltc_over_threshold=ltc_over,
        cash_to_close=cash_to_close,
        days_until_closing=days_until_closing,
        errors=errors,
    )
