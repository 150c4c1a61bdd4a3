# This project was developed with assistance from AI tools.
"""Lender pipeline schemas."""

from db.enums import FormType, PreApprovalDecision, StageEvent
from pydantic import BaseModel, ConfigDict, Field

from . import Pagination
from .assessment import AIAssessment, QuickDecision, RiskFlag
from .completeness import RoleFormSnapshot
from .error import EngineError
from .formulas import FormulaResult
from .loan import LoanRecord


class FormStatus(BaseModel):
    snapshot: RoleFormSnapshot
    missing: list[str] = Field(default_factory=list)
    is_complete: bool


class PipelineRecord(BaseModel):
    """Lender-facing projection of one loan, rebuilt on every read."""

    model_config = ConfigDict(frozen=True)

    loan: LoanRecord
    stage_index: int
    stage_name: str
    status_label: str
    next_event: StageEvent | None = None
    pre_approval_decision: PreApprovalDecision
    decision_notes: str | None = None
    forms: dict[FormType, FormStatus]
    formulas: FormulaResult | None = None
    formula_error: EngineError | None = None
    ai_assessment: AIAssessment
    risk_flags: list[RiskFlag] = Field(default_factory=list)
    quick_decision: QuickDecision
    is_complete: bool


class DecisionRequest(BaseModel):
    """Lender decision. ``decision`` is validated by the pipeline, not here."""

    decision: str
    notes: str | None = None


class StageEventRequest(BaseModel):
    event: str


class PipelineListResponse(BaseModel):
    data: list[PipelineRecord]
    pagination: Pagination
