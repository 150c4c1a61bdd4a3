# This project was developed with assistance from AI tools.
"""AI assessment, risk flag, and quick decision schemas."""

import enum

from pydantic import BaseModel, Field


class AssessmentRecommendation(str, enum.Enum):
    PRE_APPROVE = "PRE_APPROVE"
    DECLINE = "DECLINE"
    REVIEW = "REVIEW"


class RiskSeverity(str, enum.Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class RiskState(str, enum.Enum):
    ISSUE = "issue"
    PENDING = "pending"


class QuickDecisionOutcome(str, enum.Enum):
    APPROVE = "Approve"
    CONDITIONAL = "Conditional"
    DECLINE = "Decline"


class AIAssessment(BaseModel):
    """Score-based first look at a loan request."""

    recommendation: AssessmentRecommendation
    confidence: int = Field(ge=0, le=100)
    docs_score: int = Field(ge=0, le=100)
    arv_ltv: float | None = None
    ltv_acceptable: bool
    complete_application: bool
    reasons: list[str] = Field(default_factory=list)


class RiskFlag(BaseModel):
    id: str
    label: str
    detail: str
    severity: RiskSeverity
    state: RiskState


class QuickDecision(BaseModel):
    recommendation: QuickDecisionOutcome
    reasons: list[str] = Field(default_factory=list)
    issue_count: int = 0
    pending_count: int = 0
    high_risk_count: int = 0
