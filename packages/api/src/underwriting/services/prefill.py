# This project was developed with assistance from AI tools.
"""Intake prefill from a borrower's prior loans.

Pure read-and-project: given the borrower's other loans, pick the most
recent value of each reusable fact and decide whether it is fresh enough to
default into a new intake. Prior loan records are never modified.
"""

import logging
from collections.abc import Callable, Iterable
from datetime import UTC, datetime, timedelta

from ..schemas.loan import ActiveLoan, LoanRecord
from ..schemas.prefill import (
    LiquidityFact,
    LlcFact,
    MortgageLoansFact,
    UnderwritingPrefill,
)
from ..schemas.settings import UnderwritingSettings
from .stages import FINAL_APPROVAL_STAGE

logger = logging.getLogger(__name__)


def normalize_email(email: str | None) -> str:
    return (email or "").strip().lower()


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def fact_timestamp(loan: LoanRecord) -> datetime | None:
    """When a loan's borrower facts were last touched.

    Intake update time wins, then intake submission, then the loan's own
    update and creation times.
    """
    intake = loan.intake
    for candidate in (
        intake.updated_at if intake else None,
        intake.submitted_at if intake else None,
        loan.updated_at,
        loan.created_at,
    ):
        if candidate is not None:
            return _as_utc(candidate)
    return None


# ---------------------------------------------------------------------------
# Fact extractors: return the fact value, or None when the loan lacks it
# ---------------------------------------------------------------------------


def _credit_score(loan: LoanRecord):
    score = loan.intake.credit_score
    return score if score and score > 0 else None


def _liquidity(loan: LoanRecord):
    intake = loan.intake
    amount = intake.proof_of_liquidity_amount
    if not (amount and amount > 0) and not intake.proof_of_liquidity_docs:
        return None
    return LiquidityFact(amount=amount, proof_docs=list(intake.proof_of_liquidity_docs))


def _llc(loan: LoanRecord):
    intake = loan.intake
    name = (intake.llc_name or "").strip()
    if not name and not intake.llc_docs:
        return None
    return LlcFact(name=name or None, state=intake.llc_state, docs=list(intake.llc_docs))


def _referral(loan: LoanRecord):
    referral = loan.intake.referral
    return referral.model_copy() if referral and referral.has_contact() else None


def _past_projects(loan: LoanRecord):
    projects = loan.intake.past_projects
    return [p.model_copy() for p in projects] if projects else None


def _active_loans(loan: LoanRecord):
    loans = loan.intake.active_loans
    return [a.model_copy() for a in loans] if loans else None


def _mortgage_loans(loan: LoanRecord):
    intake = loan.intake
    lenders = [lender.strip() for lender in intake.other_mortgage_lenders if lender.strip()]
    interest = intake.other_mortgage_total_monthly_interest
    if not lenders or not (interest and interest > 0):
        return None
    return MortgageLoansFact(lenders=lenders, total_monthly_interest=interest)


_FACT_EXTRACTORS: dict[str, Callable[[LoanRecord], object]] = {
    "credit_score": _credit_score,
    "liquidity": _liquidity,
    "llc": _llc,
    "referral": _referral,
    "past_projects": _past_projects,
    "active_loans": _active_loans,
    "mortgage_loans": _mortgage_loans,
}


# ---------------------------------------------------------------------------
# Resolution
# ---------------------------------------------------------------------------


def _order_newest_first(loans: Iterable[LoanRecord]) -> list[tuple[LoanRecord, datetime | None]]:
    """Newest anchor first; ties broken by loan id, highest first.

    Loans without any timestamp sort last.
    """
    stamped = [(loan, fact_timestamp(loan)) for loan in loans]
    return sorted(
        stamped,
        key=lambda item: (
            item[1] is not None,
            item[1] or datetime.min.replace(tzinfo=UTC),
            item[0].id,
        ),
        reverse=True,
    )


def _build_fact(
    value,
    loan: LoanRecord,
    anchor: datetime | None,
    now: datetime,
    window: timedelta,
) -> dict:
    if anchor is None:
        return {"value": value, "source_loan_id": loan.id}
    age = now - anchor
    return {
        "value": value,
        "source_loan_id": loan.id,
        "on_file_date": anchor,
        "age_days": max(age.days, 0),
        "can_reuse": age <= window,
    }


def _date_liquidity_by_proof(fact: dict, now: datetime, window: timedelta) -> dict:
    """Re-date a liquidity fact by its proof documents.

    Liquidity is reusable only while at least one proof document is inside
    the window. A document without an upload time is dated by its loan's
    anchor. ``on_file_date`` becomes the latest upload.
    """
    anchor = fact.get("on_file_date")
    uploaded = [
        _as_utc(doc.uploaded_at) if doc.uploaded_at else anchor for doc in fact["value"].proof_docs
    ]
    uploaded = [ts for ts in uploaded if ts is not None]
    if not uploaded:
        return {**fact, "can_reuse": False}

    latest = max(uploaded)
    return {
        **fact,
        "on_file_date": latest,
        "age_days": max((now - latest).days, 0),
        "can_reuse": any(now - ts <= window for ts in uploaded),
    }


def _loan_with_us(loan: LoanRecord, settings: UnderwritingSettings) -> ActiveLoan:
    payment = None
    if loan.amount:
        payment = loan.amount * settings.assumed_annual_interest_rate / 12
    return ActiveLoan(loan_id=loan.id, lender=None, amount=loan.amount, monthly_payment=payment)


def resolve_prefill(
    borrower_loans: Iterable[LoanRecord],
    freshness_window_days: int,
    *,
    current_loan_id: str | None = None,
    borrower_email: str | None = None,
    settings: UnderwritingSettings,
    now: datetime | None = None,
) -> UnderwritingPrefill:
    """Resolve which prior-loan facts may prefill a new intake.

    Args:
        borrower_loans: The borrower's loans. The loan being filled in may be
            included; it is skipped via ``current_loan_id``.
        freshness_window_days: Facts anchored at most this many days ago
            (inclusive) are reusable.
        current_loan_id: Loan the intake belongs to.
        borrower_email: When given, loans for other borrowers are ignored.
        settings: Used to estimate monthly payments on funded loans.
        now: Reference time (defaults to UTC now).

    Returns:
        UnderwritingPrefill with one ReuseFact per reusable borrower fact.
    """
    now = _as_utc(now) if now else datetime.now(UTC)
    window = timedelta(days=freshness_window_days)
    email = normalize_email(borrower_email)

    prior = [
        loan
        for loan in borrower_loans
        if loan.id != current_loan_id
        and (not email or normalize_email(loan.borrower_email) == email)
    ]
    ordered = _order_newest_first(prior)

    facts: dict[str, dict] = {}
    for name, extract in _FACT_EXTRACTORS.items():
        for loan, anchor in ordered:
            if loan.intake is None:
                continue
            value = extract(loan)
            if value is not None:
                facts[name] = _build_fact(value, loan, anchor, now, window)
                break

    if "liquidity" in facts:
        facts["liquidity"] = _date_liquidity_by_proof(facts["liquidity"], now, window)

    loans_with_us = [
        _loan_with_us(loan, settings) for loan, _ in ordered if loan.stage_index >= FINAL_APPROVAL_STAGE
    ]

    logger.debug(
        "Prefill for %s: %d prior loans, reusable=%s",
        email or "<any>",
        len(prior),
        sorted(name for name, fact in facts.items() if fact.get("can_reuse")),
    )

    return UnderwritingPrefill(
        borrower_email=email or None,
        freshness_window_days=freshness_window_days,
        prior_loan_count=len(prior),
        is_new_borrower=not prior,
        loans_with_us=loans_with_us,
        **facts,
    )
