# This project was developed with assistance from AI tools.
"""Automated loan assessment.

Pure functions, no I/O. Produces the score-based AI assessment shown on new
loan requests, the risk flags raised from formula results, and the quick
Approve / Conditional / Decline call derived from both.
"""

import logging

from ..schemas.assessment import (
    AIAssessment,
    AssessmentRecommendation,
    QuickDecision,
    QuickDecisionOutcome,
    RiskFlag,
    RiskSeverity,
    RiskState,
)
from ..schemas.formulas import FormulaResult
from ..schemas.loan import LoanRecord
from ..schemas.settings import UnderwritingSettings

logger = logging.getLogger(__name__)

# ARV-based LTV ceiling for the automated first look (independent of settings).
ACCEPTABLE_ARV_LTV_MAX = 0.75

# Docs score used when the request has no purchase details at all.
_NO_DETAILS_DOCS_SCORE = 60


def _pct(ratio: float) -> str:
    return f"{ratio * 100:.1f}%"


def _currency(value: float) -> str:
    return f"${value:,.0f}"


# ---------------------------------------------------------------------------
# AI assessment
# ---------------------------------------------------------------------------


def build_ai_assessment(loan: LoanRecord) -> AIAssessment:
    """Score a loan request on ARV leverage and application completeness.

    Each half is worth 50 points. A perfect score recommends pre-approval,
    an unacceptable LTV recommends decline, and anything else goes to review.
    """
    details = loan.purchase_details
    amount = loan.amount or 0

    doc_groups = (
        [details.comps_files, details.property_photos, details.purchase_contract_files, details.scope_of_work_files]
        if details
        else []
    )
    docs_score = sum(25 for group in doc_groups if group) if details else _NO_DETAILS_DOCS_SCORE

    arv_ltv = amount / details.arv if details and details.arv else None
    ltv_acceptable = arv_ltv is not None and arv_ltv <= ACCEPTABLE_ARV_LTV_MAX

    complete_application = bool(
        details
        and details.purchase_price is not None
        and details.rehab_budget is not None
        and details.arv is not None
        and (details.exit_strategy or "").strip()
        and details.target_closing_date is not None
        and all(doc_groups)
    )

    confidence = (50 if ltv_acceptable else 0) + (50 if complete_application else 0)
    reasons = [
        "LTV: N/A" if arv_ltv is None else f"LTV: {_pct(arv_ltv)} ({'Pass' if ltv_acceptable else 'Fail'})",
        f"Application: {'Complete' if complete_application else 'Incomplete'}",
        f"Score: {confidence}/100",
    ]

    if confidence == 100:
        recommendation = AssessmentRecommendation.PRE_APPROVE
    elif not ltv_acceptable:
        recommendation = AssessmentRecommendation.DECLINE
    else:
        recommendation = AssessmentRecommendation.REVIEW

    return AIAssessment(
        recommendation=recommendation,
        confidence=confidence,
        docs_score=docs_score,
        arv_ltv=arv_ltv,
        ltv_acceptable=ltv_acceptable,
        complete_application=complete_application,
        reasons=reasons,
    )


# ---------------------------------------------------------------------------
# Risk flags
# ---------------------------------------------------------------------------


def build_risk_flags(
    loan: LoanRecord,
    formulas: FormulaResult | None,
    settings: UnderwritingSettings,
) -> list[RiskFlag]:
    """Raise a flag for every policy threshold the loan breaches."""
    flags: list[RiskFlag] = []

    def push(flag_id: str, label: str, detail: str, severity: RiskSeverity, state: RiskState) -> None:
        flags.append(RiskFlag(id=flag_id, label=label, detail=detail, severity=severity, state=state))

    credit_score = loan.intake.credit_score if loan.intake else None
    if credit_score is None:
        push(
            "missing-credit-score",
            "Credit score missing",
            "Borrower has not provided a credit score.",
            RiskSeverity.MEDIUM,
            RiskState.PENDING,
        )
    elif credit_score < settings.min_credit_score:
        push(
            "low-credit",
            "Low credit score",
            f"Credit score {credit_score} is below preferred threshold {settings.min_credit_score}.",
            RiskSeverity.HIGH,
            RiskState.ISSUE,
        )

    if loan.intake is not None and not loan.intake.proof_of_liquidity_docs:
        push(
            "missing-liquidity-documents",
            "Liquidity documents missing",
            "Borrower profile must include at least one proof of liquidity document.",
            RiskSeverity.MEDIUM,
            RiskState.PENDING,
        )

    if formulas is None:
        return flags

    if formulas.ltv_over_threshold:
        push(
            "high-ltv",
            "High leverage (LTV)",
            f"LTV {_pct(formulas.ltv)} exceeds policy threshold {_pct(settings.max_ltv)}.",
            RiskSeverity.HIGH,
            RiskState.ISSUE,
        )
    if formulas.ltc_over_threshold:
        push(
            "high-ltc",
            "High leverage (LTC)",
            f"LTC {_pct(formulas.ltc)} exceeds policy threshold {_pct(settings.max_ltc)}.",
            RiskSeverity.MEDIUM,
            RiskState.ISSUE,
        )
    if (
        formulas.liquidity_to_loan_ratio is not None
        and formulas.liquidity_to_loan_ratio < settings.min_liquidity_to_loan_ratio
    ):
        push(
            "low-reserves",
            "Low reserves",
            f"Liquidity is {_pct(formulas.liquidity_to_loan_ratio)} of requested loan amount.",
            RiskSeverity.MEDIUM,
            RiskState.ISSUE,
        )
    if formulas.other_mortgage_loan_count > settings.max_other_mortgage_loans:
        push(
            "high-other-loan-count",
            "High number of other mortgage loans",
            f"Other mortgage loans ({formulas.other_mortgage_loan_count}) exceed threshold "
            f"{settings.max_other_mortgage_loans}.",
            RiskSeverity.MEDIUM,
            RiskState.PENDING,
        )
    if formulas.has_enough_liquidity is False:
        push(
            "liquidity-coverage-shortfall",
            "Liquidity does not cover combined exposure",
            f"Available liquidity {_currency(formulas.liquidity_on_hand)} vs modeled requirement "
            f"{_currency(formulas.required_liquidity)} "
            f"(shortfall {_currency(abs(formulas.remaining_liquidity))}).",
            RiskSeverity.HIGH,
            RiskState.ISSUE,
        )

    days = formulas.days_until_closing
    if days is not None and days < 0:
        push(
            "closing-date-past",
            "Closing timeline expired",
            "Target closing date is in the past and must be updated.",
            RiskSeverity.HIGH,
            RiskState.ISSUE,
        )
    elif days is not None and days <= settings.short_closing_timeline_days:
        push(
            "short-closing",
            "Short closing timeline",
            f"Target closing is in {days} day{'' if days == 1 else 's'}.",
            RiskSeverity.MEDIUM,
            RiskState.PENDING,
        )

    return flags


# ---------------------------------------------------------------------------
# Quick decision
# ---------------------------------------------------------------------------


def build_quick_decision(
    credit_score: int | None,
    ltv: float | None,
    flags: list[RiskFlag],
    formulas: FormulaResult | None,
    settings: UnderwritingSettings,
) -> QuickDecision:
    """Collapse credit, leverage, and risk flags into one recommendation.

    Decline on a hard credit or LTV breach or two high-severity flags;
    otherwise any open issue or pending item makes the call conditional.
    """
    issue_count = sum(1 for f in flags if f.state == RiskState.ISSUE)
    pending_count = sum(1 for f in flags if f.state == RiskState.PENDING)
    high_risk_count = sum(1 for f in flags if f.severity == RiskSeverity.HIGH)

    if (
        (credit_score is not None and credit_score < settings.decline_credit_score)
        or (ltv is not None and ltv > settings.decline_ltv)
        or high_risk_count >= 2
    ):
        outcome = QuickDecisionOutcome.DECLINE
    elif issue_count or pending_count:
        outcome = QuickDecisionOutcome.CONDITIONAL
    else:
        outcome = QuickDecisionOutcome.APPROVE

    reasons = []
    if credit_score is None:
        reasons.append("Credit score is missing")
    elif credit_score >= settings.min_credit_score:
        reasons.append(f"Credit score {credit_score} meets minimum threshold")
    else:
        reasons.append(f"Credit score {credit_score} is below preferred threshold")

    if ltv is None:
        reasons.append("LTV cannot be computed from current inputs")
    elif ltv <= settings.max_ltv:
        reasons.append(f"LTV {_pct(ltv)} is within policy limit")
    else:
        reasons.append(f"LTV {_pct(ltv)} exceeds policy limit")

    if formulas is None or formulas.has_enough_liquidity is None:
        reasons.append("Liquidity coverage could not be modeled from current data")
    elif formulas.has_enough_liquidity:
        reasons.append(
            f"Liquidity covers modeled exposure ({_pct(formulas.liquidity_ratio)} coverage ratio)"
        )
    else:
        reasons.append(
            f"Liquidity shortfall of {_currency(abs(formulas.remaining_liquidity))} vs modeled exposure"
        )

    return QuickDecision(
        recommendation=outcome,
        reasons=reasons,
        issue_count=issue_count,
        pending_count=pending_count,
        high_risk_count=high_risk_count,
    )
