# This project was developed with assistance from AI tools.
"""Intake prefill schemas."""

from datetime import datetime
from typing import Generic, TypeVar

from pydantic import BaseModel, Field

from .loan import ActiveLoan, DocumentRef, PastProject, Referral

T = TypeVar("T")


class ReuseFact(BaseModel, Generic[T]):
    """A borrower fact found on a prior loan, with its provenance.

    ``on_file_date`` is populated whenever the fact exists, even when it is
    too old to reuse, so intake can still show what is on file.
    """

    value: T | None = None
    source_loan_id: str | None = None
    on_file_date: datetime | None = None
    age_days: int | None = None
    can_reuse: bool = False


class LiquidityFact(BaseModel):
    amount: float | None = None
    proof_docs: list[DocumentRef] = Field(default_factory=list)


class LlcFact(BaseModel):
    name: str | None = None
    state: str | None = None
    docs: list[DocumentRef] = Field(default_factory=list)


class MortgageLoansFact(BaseModel):
    lenders: list[str] = Field(default_factory=list)
    total_monthly_interest: float


class UnderwritingPrefill(BaseModel):
    """Borrower facts that may be defaulted into a new intake form."""

    borrower_email: str | None = None
    freshness_window_days: int
    prior_loan_count: int = 0
    is_new_borrower: bool = True

    credit_score: ReuseFact[int] = Field(default_factory=ReuseFact[int])
    liquidity: ReuseFact[LiquidityFact] = Field(default_factory=ReuseFact[LiquidityFact])
    llc: ReuseFact[LlcFact] = Field(default_factory=ReuseFact[LlcFact])
    referral: ReuseFact[Referral] = Field(default_factory=ReuseFact[Referral])
    past_projects: ReuseFact[list[PastProject]] = Field(default_factory=ReuseFact[list[PastProject]])
    active_loans: ReuseFact[list[ActiveLoan]] = Field(default_factory=ReuseFact[list[ActiveLoan]])
    mortgage_loans: ReuseFact[MortgageLoansFact] = Field(default_factory=ReuseFact[MortgageLoansFact])

    loans_with_us: list[ActiveLoan] = Field(default_factory=list)
