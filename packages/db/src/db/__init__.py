# This project was developed with assistance from AI tools.
__version__ = "0.1.0"

from .database import Base, DatabaseService, SessionLocal, get_db, get_db_service
from .enums import (
    FormType,
    IntakeStatus,
    PreApprovalDecision,
    StageEvent,
    UserRole,
)
from .models import (
    LoanApplication,
    RoleForm,
    UnderwritingSettingsRecord,
)

__all__ = [
    "Base",
    "DatabaseService",
    "SessionLocal",
    "get_db",
    "get_db_service",
    "__version__",
    # Enums
    "FormType",
    "IntakeStatus",
    "PreApprovalDecision",
    "StageEvent",
    "UserRole",
    # Models
    "LoanApplication",
    "RoleForm",
    "UnderwritingSettingsRecord",
]
