# This project was developed with assistance from AI tools.
"""Loan persistence service.

Loads loan rows and role forms, hands them to the pure engine as plain
records, and writes back the few fields the engine is allowed to change
(decision, notes, stage, history, and role form values).

Not-found lookups return None; engine rejections come back as EngineError.
"""

import logging
from datetime import UTC, datetime

from db import LoanApplication, RoleForm
from db.enums import FormType, IntakeStatus, PreApprovalDecision, StageEvent
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ..schemas.auth import UserContext
from ..schemas.completeness import FormResponse, RoleFormSnapshot
from ..schemas.error import EngineError
from ..schemas.loan import IntakeSubmission, LoanRecord, PurchaseDetails, StageHistoryEntry
from ..schemas.pipeline import PipelineRecord
from ..schemas.prefill import UnderwritingPrefill
from ..schemas.settings import UnderwritingSettings
from .completeness import FORM_SCHEMAS, evaluate_completeness, is_form_editable, save_role_form
from .pipeline import advance_stage, apply_decision, build_pipeline_record
from .prefill import normalize_email, resolve_prefill

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# ORM -> record conversion
# ---------------------------------------------------------------------------


def to_loan_record(row: LoanApplication) -> LoanRecord:
    return LoanRecord(
        id=row.id,
        borrower_email=row.borrower_email,
        borrower_name=row.borrower_name,
        loan_type=row.loan_type,
        amount=row.amount,
        purchase_details=PurchaseDetails.model_validate(row.purchase_details) if row.purchase_details else None,
        stage_index=row.stage_index or 0,
        pre_approval_decision=row.pre_approval_decision or PreApprovalDecision.PENDING,
        decision_notes=row.decision_notes,
        intake_status=row.intake_status or IntakeStatus.DRAFT,
        intake=IntakeSubmission.model_validate(row.intake) if row.intake else None,
        history=[StageHistoryEntry.model_validate(entry) for entry in row.history or []],
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def to_form_snapshot(row: RoleForm) -> RoleFormSnapshot:
    return RoleFormSnapshot(
        form_type=row.form_type,
        values=dict(row.values or {}),
        last_updated_at=row.last_updated_at,
        last_updated_by=row.last_updated_by,
        last_updated_role=row.last_updated_role,
    )


def _forms_by_type(row: LoanApplication) -> dict[FormType, RoleFormSnapshot]:
    return {form.form_type: to_form_snapshot(form) for form in row.forms or []}


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


async def get_loan(session: AsyncSession, loan_id: str) -> LoanApplication | None:
    stmt = (
        select(LoanApplication)
        .options(selectinload(LoanApplication.forms))
        .where(LoanApplication.id == loan_id)
    )
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def list_loans(
    session: AsyncSession,
    *,
    offset: int = 0,
    limit: int = 50,
) -> tuple[list[LoanApplication], int]:
    """Return a page of loans, most recently updated first, plus the total count."""
    total = (await session.execute(select(func.count(LoanApplication.id)))).scalar() or 0
    stmt = (
        select(LoanApplication)
        .options(selectinload(LoanApplication.forms))
        .order_by(LoanApplication.updated_at.desc(), LoanApplication.id.desc())
        .offset(offset)
        .limit(limit)
    )
    result = await session.execute(stmt)
    return list(result.scalars().all()), total


async def list_borrower_loans(session: AsyncSession, borrower_email: str) -> list[LoanRecord]:
    """All loans for a borrower, matched on normalized email."""
    stmt = select(LoanApplication).where(
        func.lower(func.trim(LoanApplication.borrower_email)) == normalize_email(borrower_email)
    )
    result = await session.execute(stmt)
    return [to_loan_record(row) for row in result.scalars().all()]


async def get_pipeline_record(
    session: AsyncSession,
    loan_id: str,
    settings: UnderwritingSettings,
) -> PipelineRecord | None:
    row = await get_loan(session, loan_id)
    if row is None:
        return None
    return build_pipeline_record(to_loan_record(row), _forms_by_type(row), settings)


async def list_pipeline_records(
    session: AsyncSession,
    settings: UnderwritingSettings,
    *,
    offset: int = 0,
    limit: int = 50,
) -> tuple[list[PipelineRecord], int]:
    rows, total = await list_loans(session, offset=offset, limit=limit)
    records = [build_pipeline_record(to_loan_record(row), _forms_by_type(row), settings) for row in rows]
    return records, total


# ---------------------------------------------------------------------------
# Role forms
# ---------------------------------------------------------------------------


def _form_response(loan: LoanRecord, form_type: FormType, snapshot: RoleFormSnapshot | None) -> FormResponse:
    schema = FORM_SCHEMAS[form_type]
    values = snapshot.values if snapshot else {key: "" for key in schema.keys}
    result = evaluate_completeness(schema, values)
    return FormResponse(
        loan_id=loan.id,
        form_type=form_type,
        values=values,
        missing=result.missing,
        is_complete=result.is_complete,
        editable=is_form_editable(schema, loan),
        last_updated_at=snapshot.last_updated_at if snapshot else None,
        last_updated_by=snapshot.last_updated_by if snapshot else None,
    )


async def get_form(session: AsyncSession, loan_id: str, form_type: FormType) -> FormResponse | None:
    row = await get_loan(session, loan_id)
    if row is None:
        return None
    return _form_response(to_loan_record(row), form_type, _forms_by_type(row).get(form_type))


async def save_form(
    session: AsyncSession,
    user: UserContext,
    loan_id: str,
    form_type: FormType,
    values: dict,
) -> FormResponse | EngineError | None:
    """Replace a role form's stored values with a full new save.

    Returns None if the loan is not found.
    """
    row = await get_loan(session, loan_id)
    if row is None:
        return None

    loan = to_loan_record(row)
    schema = FORM_SCHEMAS[form_type]
    snapshot = save_role_form(
        schema,
        values,
        user_id=user.user_id,
        role=user.role,
        editable=is_form_editable(schema, loan),
    )
    if isinstance(snapshot, EngineError):
        return snapshot

    existing = next((f for f in row.forms if f.form_type == form_type), None)
    if existing is None:
        existing = RoleForm(application_id=row.id, form_type=form_type)
        session.add(existing)
    existing.values = snapshot.values
    existing.last_updated_at = snapshot.last_updated_at
    existing.last_updated_by = snapshot.last_updated_by
    existing.last_updated_role = snapshot.last_updated_role
    await session.commit()

    logger.info("Saved %s form for loan %s by %s", form_type.value, loan_id, user.user_id)
    return _form_response(loan, form_type, snapshot)


# ---------------------------------------------------------------------------
# Pipeline transitions
# ---------------------------------------------------------------------------


def _write_back(row: LoanApplication, record: PipelineRecord) -> None:
    loan = record.loan
    row.stage_index = loan.stage_index
    row.pre_approval_decision = loan.pre_approval_decision
    row.decision_notes = loan.decision_notes
    row.intake_status = loan.intake_status
    row.history = [entry.model_dump(mode="json") for entry in loan.history]


async def decide(
    session: AsyncSession,
    loan_id: str,
    decision: str,
    notes: str | None,
    settings: UnderwritingSettings,
) -> PipelineRecord | EngineError:
    """Apply a lender decision and persist it in one commit."""
    row = await get_loan(session, loan_id)
    record = (
        build_pipeline_record(to_loan_record(row), _forms_by_type(row), settings) if row is not None else None
    )
    updated = apply_decision(record, decision, notes, now=datetime.now(UTC))
    if isinstance(updated, EngineError):
        return updated

    _write_back(row, updated)
    await session.commit()
    return updated


async def advance(
    session: AsyncSession,
    loan_id: str,
    event: StageEvent | str,
    settings: UnderwritingSettings,
) -> PipelineRecord | EngineError:
    """Apply a stage event and persist it in one commit."""
    row = await get_loan(session, loan_id)
    record = (
        build_pipeline_record(to_loan_record(row), _forms_by_type(row), settings) if row is not None else None
    )
    updated = advance_stage(record, event, now=datetime.now(UTC))
    if isinstance(updated, EngineError):
        return updated

    _write_back(row, updated)
    await session.commit()
    return updated


# ---------------------------------------------------------------------------
# Prefill
# ---------------------------------------------------------------------------


async def get_prefill(
    session: AsyncSession,
    loan_id: str,
    freshness_window_days: int,
    settings: UnderwritingSettings,
) -> UnderwritingPrefill | None:
    """Resolve reusable borrower facts for a loan's intake from the borrower's other loans."""
    row = await get_loan(session, loan_id)
    if row is None:
        return None
    borrower_loans = await list_borrower_loans(session, row.borrower_email)
    return resolve_prefill(
        borrower_loans,
        freshness_window_days,
        current_loan_id=row.id,
        borrower_email=row.borrower_email,
        settings=settings,
    )
