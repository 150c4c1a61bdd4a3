# This project was developed with assistance from AI tools.
"""Loan record schemas consumed by the underwriting engine.

These are plain records: the persistence layer builds them from ORM rows and
the engine never writes them back directly.
"""

from datetime import date, datetime

from db.enums import IntakeStatus, PreApprovalDecision, StageEvent
from pydantic import BaseModel, ConfigDict, Field


class DocumentRef(BaseModel):
    """Reference to an uploaded document (storage is handled elsewhere)."""

    name: str
    doc_type: str | None = None
    uploaded_at: datetime | None = None


class Referral(BaseModel):
    name: str = ""
    email: str = ""
    phone: str = ""

    def has_contact(self) -> bool:
        return bool(self.name.strip() or self.email.strip() or self.phone.strip())


class PastProject(BaseModel):
    property_address: str
    completed_year: int | None = None


class ActiveLoan(BaseModel):
    """An open loan the borrower carries, with us or with another lender."""

    loan_id: str | None = None
    lender: str | None = None
    amount: float | None = Field(default=None, ge=0)
    monthly_payment: float | None = Field(default=None, ge=0)


class PurchaseDetails(BaseModel):
    purchase_price: float | None = Field(default=None, ge=0)
    rehab_budget: float | None = Field(default=None, ge=0)
    arv: float | None = Field(default=None, ge=0)
    appraisal_value: float | None = Field(default=None, ge=0)
    target_closing_date: date | None = None
    exit_strategy: str | None = None
    comps_files: list[DocumentRef] = Field(default_factory=list)
    property_photos: list[DocumentRef] = Field(default_factory=list)
    purchase_contract_files: list[DocumentRef] = Field(default_factory=list)
    scope_of_work_files: list[DocumentRef] = Field(default_factory=list)


class IntakeSubmission(BaseModel):
    """Borrower continuation data submitted at intake."""

    credit_score: int | None = Field(default=None, ge=0)
    proof_of_liquidity_amount: float | None = Field(default=None, ge=0)
    proof_of_liquidity_docs: list[DocumentRef] = Field(default_factory=list)
    llc_name: str | None = None
    llc_state: str | None = None
    llc_docs: list[DocumentRef] = Field(default_factory=list)
    referral: Referral | None = None
    past_projects: list[PastProject] = Field(default_factory=list)
    active_loans: list[ActiveLoan] = Field(default_factory=list)
    other_mortgage_lenders: list[str] = Field(default_factory=list)
    other_mortgage_loans_count: int | None = Field(default=None, ge=0)
    other_mortgage_total_monthly_interest: float | None = Field(default=None, ge=0)
    other_mortgage_total_amount: float | None = Field(default=None, ge=0)
    submitted_at: datetime | None = None
    updated_at: datetime | None = None


class StageHistoryEntry(BaseModel):
    event: StageEvent | str
    stage_index: int
    at: datetime


class LoanRecord(BaseModel):
    """One loan application as the engine sees it."""

    model_config = ConfigDict(frozen=True)

    id: str
    borrower_email: str
    borrower_name: str | None = None
    loan_type: str | None = None
    amount: float | None = None
    purchase_details: PurchaseDetails | None = None
    stage_index: int = Field(default=0, ge=0)
    pre_approval_decision: PreApprovalDecision = PreApprovalDecision.PENDING
    decision_notes: str | None = None
    intake_status: IntakeStatus = IntakeStatus.DRAFT
    intake: IntakeSubmission | None = None
    history: list[StageHistoryEntry] = Field(default_factory=list)
    created_at: datetime | None = None
    updated_at: datetime | None = None
