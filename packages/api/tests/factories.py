# This project was developed with assistance from AI tools.
"""Shared test factory functions for loan records and ORM rows.

Record builders return engine-side pydantic records; ``make_loan_row`` and
``make_form_row`` return real (unsaved) ORM instances for tests that go
through the persistence layer with a mocked session.
"""

from datetime import UTC, date, datetime

from db import LoanApplication, RoleForm
from db.enums import FormType, IntakeStatus, PreApprovalDecision, UserRole

from underwriting.schemas.loan import (
    DocumentRef,
    IntakeSubmission,
    LoanRecord,
    PurchaseDetails,
)

NOW = datetime(2026, 1, 1, 12, 0, tzinfo=UTC)


def make_purchase(**overrides) -> PurchaseDetails:
    """Purchase details for a 180k purchase with a 40k rehab and 300k ARV."""
    defaults = {
        "purchase_price": 180_000,
        "rehab_budget": 40_000,
        "arv": 300_000,
        "target_closing_date": date(2026, 1, 22),
        "exit_strategy": "Sell after rehab",
        "comps_files": [DocumentRef(name="comps.pdf")],
        "property_photos": [DocumentRef(name="front.jpg")],
        "purchase_contract_files": [DocumentRef(name="contract.pdf")],
        "scope_of_work_files": [DocumentRef(name="sow.pdf")],
    }
    defaults.update(overrides)
    return PurchaseDetails(**defaults)


def make_intake(**overrides) -> IntakeSubmission:
    defaults = {
        "credit_score": 720,
        "proof_of_liquidity_amount": 100_000,
        "proof_of_liquidity_docs": [DocumentRef(name="bank-statement.pdf")],
    }
    defaults.update(overrides)
    return IntakeSubmission(**defaults)


def make_loan(**overrides) -> LoanRecord:
    """A 200k fix-and-flip loan sitting in Processing."""
    defaults = {
        "id": "LN-100",
        "borrower_email": "sarah@example.com",
        "borrower_name": "Sarah Mitchell",
        "loan_type": "fix_and_flip",
        "amount": 200_000,
        "purchase_details": make_purchase(),
        "stage_index": 2,
        "intake_status": IntakeStatus.DRAFT,
        "intake": make_intake(),
        "created_at": NOW,
        "updated_at": NOW,
    }
    defaults.update(overrides)
    return LoanRecord(**defaults)


def make_loan_row(
    id="LN-100",
    borrower_email="sarah@example.com",
    amount=200_000.0,
    stage_index=2,
    pre_approval_decision=PreApprovalDecision.PENDING,
    decision_notes=None,
    intake_status=IntakeStatus.DRAFT,
    purchase_details=None,
    intake=None,
    history=None,
    forms=None,
):
    """Build an unsaved LoanApplication row with JSON columns filled in."""
    if purchase_details is None:
        purchase_details = make_purchase().model_dump(mode="json")
    if intake is None:
        intake = make_intake().model_dump(mode="json")
    row = LoanApplication(
        id=id,
        borrower_email=borrower_email,
        borrower_name="Sarah Mitchell",
        loan_type="fix_and_flip",
        amount=amount,
        purchase_details=purchase_details,
        stage_index=stage_index,
        pre_approval_decision=pre_approval_decision,
        decision_notes=decision_notes,
        intake_status=intake_status,
        intake=intake,
        history=history or [],
        created_at=NOW,
        updated_at=NOW,
    )
    row.forms = forms or []
    return row


def make_form_row(
    form_type=FormType.CONDITIONS,
    values=None,
    application_id="LN-100",
    last_updated_by="james-torres-lo",
    last_updated_role=UserRole.LOAN_OFFICER,
):
    return RoleForm(
        application_id=application_id,
        form_type=form_type,
        values=values or {},
        last_updated_at=NOW,
        last_updated_by=last_updated_by,
        last_updated_role=last_updated_role,
    )
