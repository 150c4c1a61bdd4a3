# This project was developed with assistance from AI tools.
"""Lender pipeline state machine.

Builds the read-side ``PipelineRecord`` for a loan and applies the two write
transitions lenders can make: a pre-approval decision and a forward stage
event. Every transition returns a new record or an ``EngineError``; the
input record is never modified, so a rejected transition leaves no trace.
"""

import logging
from collections.abc import Mapping
from datetime import UTC, date, datetime

from db.enums import FormType, IntakeStatus, PreApprovalDecision, StageEvent

from ..schemas.completeness import RoleFormSnapshot
from ..schemas.error import EngineError, ErrorKind
from ..schemas.loan import LoanRecord, StageHistoryEntry
from ..schemas.pipeline import FormStatus, PipelineRecord
from ..schemas.settings import UnderwritingSettings
from .assessment import build_ai_assessment, build_quick_decision, build_risk_flags
from .completeness import FORM_SCHEMAS, empty_snapshot, evaluate_completeness
from .formulas import compute_formulas
from .stages import (
    UNDERWRITING_REVIEW_STAGE,
    next_stage_event,
    stage_name,
    status_label,
)

logger = logging.getLogger(__name__)

# History marker written when a pre-approval pulls a loan into underwriting.
UNDERWRITING_STARTED = "UNDERWRITING_STARTED"


# ---------------------------------------------------------------------------
# Projection
# ---------------------------------------------------------------------------


def _derived_fields(loan: LoanRecord, forms: Mapping[FormType, FormStatus]) -> dict:
    """Fields of a PipelineRecord that follow directly from loan state."""
    return {
        "loan": loan,
        "stage_index": loan.stage_index,
        "stage_name": stage_name(loan.stage_index),
        "status_label": status_label(loan.stage_index, loan.intake_status),
        "next_event": next_stage_event(loan.stage_index),
        "pre_approval_decision": loan.pre_approval_decision,
        "decision_notes": loan.decision_notes,
        "is_complete": (
            all(status.is_complete for status in forms.values())
            and loan.pre_approval_decision != PreApprovalDecision.PENDING
        ),
    }


def build_pipeline_record(
    loan: LoanRecord,
    forms: Mapping[FormType, RoleFormSnapshot],
    settings: UnderwritingSettings,
    *,
    today: date | None = None,
) -> PipelineRecord:
    """Join a loan with its role forms, formulas, and assessment.

    Forms nobody has saved yet count as empty. A formula failure leaves
    ``formulas`` unset and is reported in ``formula_error``; the rest of the
    record is still built.
    """
    form_status: dict[FormType, FormStatus] = {}
    for form_type, schema in FORM_SCHEMAS.items():
        snapshot = forms.get(form_type) or empty_snapshot(form_type)
        result = evaluate_completeness(schema, snapshot.values)
        form_status[form_type] = FormStatus(
            snapshot=snapshot, missing=result.missing, is_complete=result.is_complete
        )

    computed = compute_formulas(loan, settings, today=today)
    formulas = None if isinstance(computed, EngineError) else computed
    formula_error = computed if isinstance(computed, EngineError) else None

    credit_score = loan.intake.credit_score if loan.intake else None
    flags = build_risk_flags(loan, formulas, settings)
    quick_decision = build_quick_decision(
        credit_score, formulas.ltv if formulas else None, flags, formulas, settings
    )

    return PipelineRecord(
        forms=form_status,
        formulas=formulas,
        formula_error=formula_error,
        ai_assessment=build_ai_assessment(loan),
        risk_flags=flags,
        quick_decision=quick_decision,
        **_derived_fields(loan, form_status),
    )


def _with_loan(record: PipelineRecord, loan: LoanRecord) -> PipelineRecord:
    return record.model_copy(update=_derived_fields(loan, record.forms))


# ---------------------------------------------------------------------------
# Transitions
# ---------------------------------------------------------------------------


def apply_decision(
    record: PipelineRecord | None,
    decision: PreApprovalDecision | str,
    notes: str | None = None,
    *,
    now: datetime | None = None,
) -> PipelineRecord | EngineError:
    """Apply a lender pre-approval decision.

    Args:
        record: Current pipeline record, or None when the loan was not found.
        decision: PRE_APPROVE, DECLINE, or REQUEST_INFO.
        notes: Lender notes; required for DECLINE. Kept verbatim (trimmed)
            for DECLINE and REQUEST_INFO, dropped for PRE_APPROVE.
        now: Timestamp for the history entry (defaults to UTC now).

    Returns:
        The updated PipelineRecord, or EngineError (NOT_FOUND / VALIDATION).
    """
    if record is None:
        return EngineError(kind=ErrorKind.NOT_FOUND, message="Loan not found", field="loan_id")

    try:
        decision = PreApprovalDecision(decision)
    except ValueError:
        decision = None
    if decision not in PreApprovalDecision.lender_decisions():
        return EngineError(
            kind=ErrorKind.VALIDATION,
            message="Decision must be one of PRE_APPROVE, DECLINE, REQUEST_INFO",
            field="decision",
        )

    notes = (notes or "").strip() or None
    if decision == PreApprovalDecision.DECLINE and not notes:
        return EngineError(
            kind=ErrorKind.VALIDATION,
            message="Notes are required when declining a loan",
            field="notes",
        )

    loan = record.loan
    update: dict = {
        "pre_approval_decision": decision,
        "decision_notes": notes if decision in PreApprovalDecision.notes_retained() else None,
    }
    if decision == PreApprovalDecision.PRE_APPROVE:
        new_stage = max(loan.stage_index, UNDERWRITING_REVIEW_STAGE)
        update["stage_index"] = new_stage
        if not any(entry.event == UNDERWRITING_STARTED for entry in loan.history):
            update["history"] = [
                *loan.history,
                StageHistoryEntry(event=UNDERWRITING_STARTED, stage_index=new_stage, at=now or datetime.now(UTC)),
            ]
        # Pre-approval requests the borrower's underwriting intake unless it is already underway.
        if loan.intake_status not in (IntakeStatus.PENDING, IntakeStatus.SUBMITTED):
            update["intake_status"] = IntakeStatus.PENDING

    logger.info(
        "Decision %s applied to loan %s (stage %d)",
        decision.value,
        loan.id,
        update.get("stage_index", loan.stage_index),
    )
    return _with_loan(record, loan.model_copy(update=update))


def advance_stage(
    record: PipelineRecord | None,
    event: StageEvent | str,
    *,
    now: datetime | None = None,
) -> PipelineRecord | EngineError:
    """Move a loan forward one step on its stage ladder.

    Only the event expected for the current stage is accepted, and only when
    it moves the loan forward. UNDERWRITING_APPROVED also pre-approves a
    loan that has not been pre-approved yet.
    """
    if record is None:
        return EngineError(kind=ErrorKind.NOT_FOUND, message="Loan not found", field="loan_id")

    try:
        event = StageEvent(event)
    except ValueError:
        return EngineError(kind=ErrorKind.VALIDATION, message=f"Unknown stage event: {event}", field="event")

    loan = record.loan
    target = StageEvent.target_stages()[event]
    expected = next_stage_event(loan.stage_index)
    if target <= loan.stage_index or event != expected:
        logger.warning(
            "Rejected stage event %s for loan %s at stage %d (expected %s)",
            event.value,
            loan.id,
            loan.stage_index,
            expected.value if expected else None,
        )
        return EngineError(
            kind=ErrorKind.CONFLICT,
            message=(
                f"Event {event.value} is not valid at stage '{stage_name(loan.stage_index)}'"
                + (f"; expected {expected.value}" if expected else "")
            ),
            field="event",
        )

    update: dict = {
        "stage_index": target,
        "history": [
            *loan.history,
            StageHistoryEntry(event=event, stage_index=target, at=now or datetime.now(UTC)),
        ],
    }
    if (
        event == StageEvent.UNDERWRITING_APPROVED
        and loan.pre_approval_decision != PreApprovalDecision.PRE_APPROVE
    ):
        update["pre_approval_decision"] = PreApprovalDecision.PRE_APPROVE
        update["decision_notes"] = None

    logger.info("Loan %s advanced to stage %d via %s", loan.id, target, event.value)
    return _with_loan(record, loan.model_copy(update=update))
