# This project was developed with assistance from AI tools.
"""
Domain enums for the underwriting lifecycle.

Shared domain types used by both SQLAlchemy models (db package)
and Pydantic schemas (api package).
"""

import enum


class PreApprovalDecision(str, enum.Enum):
    PENDING = "PENDING"
    PRE_APPROVE = "PRE_APPROVE"
    DECLINE = "DECLINE"
    REQUEST_INFO = "REQUEST_INFO"

    @classmethod
    def lender_decisions(cls) -> frozenset["PreApprovalDecision"]:
        """Decisions a lender may explicitly apply (everything except PENDING)."""
        return frozenset({cls.PRE_APPROVE, cls.DECLINE, cls.REQUEST_INFO})

    @classmethod
    def notes_retained(cls) -> frozenset["PreApprovalDecision"]:
        """Decisions whose notes are stored alongside the decision."""
        return frozenset({cls.DECLINE, cls.REQUEST_INFO})


class StageEvent(str, enum.Enum):
    DOCUMENTS_VERIFIED = "DOCUMENTS_VERIFIED"
    PROCESSING_COMPLETED = "PROCESSING_COMPLETED"
    UNDERWRITING_APPROVED = "UNDERWRITING_APPROVED"
    FUNDING_COMPLETED = "FUNDING_COMPLETED"

    @classmethod
    def target_stages(cls) -> dict["StageEvent", int]:
        """Stage index each event moves a loan to."""
        return {
            cls.DOCUMENTS_VERIFIED: 2,
            cls.PROCESSING_COMPLETED: 3,
            cls.UNDERWRITING_APPROVED: 4,
            cls.FUNDING_COMPLETED: 5,
        }


class FormType(str, enum.Enum):
    VALUATION = "valuation"
    EVALUATOR = "evaluator"
    CONDITIONS = "conditions"
    TITLE_AGENT = "title_agent"


class UserRole(str, enum.Enum):
    ADMIN = "admin"
    BORROWER = "borrower"
    LOAN_OFFICER = "loan_officer"
    EVALUATOR = "evaluator"
    TITLE_AGENT = "title_agent"


class IntakeStatus(str, enum.Enum):
    DRAFT = "DRAFT"
    PENDING = "PENDING"
    SUBMITTED = "SUBMITTED"
