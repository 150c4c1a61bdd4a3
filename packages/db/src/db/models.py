# This project was developed with assistance from AI tools.
"""
Underwriting domain models

Loan applications, role-scoped form value bags, and the underwriting
settings singleton.
"""

import uuid

from sqlalchemy import (
    JSON,
    Column,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import relationship

from .database import Base
from .enums import FormType, IntakeStatus, PreApprovalDecision, UserRole


def _new_loan_id() -> str:
    return f"LN-{uuid.uuid4().hex[:10].upper()}"


class LoanApplication(Base):
    """Loan application: the root that every role-submitted form attaches to."""

    __tablename__ = "loan_applications"

    id = Column(String(50), primary_key=True, default=_new_loan_id)
    borrower_email = Column(String(255), nullable=False, index=True)
    borrower_name = Column(String(255), nullable=True)
    loan_type = Column(String(50), nullable=True)
    amount = Column(Float, nullable=True)
    purchase_details = Column(JSON, nullable=True)
    stage_index = Column(Integer, nullable=False, default=0)
    pre_approval_decision = Column(
        Enum(PreApprovalDecision, name="pre_approval_decision", native_enum=False),
        nullable=False,
        default=PreApprovalDecision.PENDING,
    )
    decision_notes = Column(Text, nullable=True)
    intake_status = Column(
        Enum(IntakeStatus, name="intake_status", native_enum=False),
        nullable=False,
        default=IntakeStatus.DRAFT,
    )
    intake = Column(JSON, nullable=True)
    history = Column(JSON, nullable=False, default=list)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    forms = relationship("RoleForm", back_populates="application", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<LoanApplication(id={self.id}, stage_index={self.stage_index})>"


class RoleForm(Base):
    """Role-scoped value bag; each save replaces ``values`` wholesale."""

    __tablename__ = "role_forms"
    __table_args__ = (UniqueConstraint("application_id", "form_type", name="uq_role_forms_application_form"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    application_id = Column(String(50), ForeignKey("loan_applications.id"), nullable=False, index=True)
    form_type = Column(Enum(FormType, name="form_type", native_enum=False), nullable=False)
    values = Column(JSON, nullable=False, default=dict)
    last_updated_at = Column(DateTime(timezone=True), nullable=True)
    last_updated_by = Column(String(255), nullable=True)
    last_updated_role = Column(Enum(UserRole, name="user_role", native_enum=False), nullable=True)

    application = relationship("LoanApplication", back_populates="forms")

    def __repr__(self):
        return f"<RoleForm(application_id={self.application_id}, form_type={self.form_type})>"


class UnderwritingSettingsRecord(Base):
    """Singleton row holding the tunable underwriting knobs as ratios."""

    __tablename__ = "underwriting_settings"

    id = Column(Integer, primary_key=True, default=1)
    values = Column(JSON, nullable=False, default=dict)
    updated_by = Column(String(255), nullable=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    def __repr__(self):
        return f"<UnderwritingSettingsRecord(id={self.id})>"
