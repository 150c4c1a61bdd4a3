# This project was developed with assistance from AI tools.
"""Loan stage ladder and status labels."""

from db.enums import IntakeStatus, StageEvent

STAGES: tuple[str, ...] = (
    "Application Submitted",
    "Document Verification",
    "Processing",
    "Underwriting Review",
    "Final Approval",
    "Funding",
)

UNDERWRITING_REVIEW_STAGE = STAGES.index("Underwriting Review")
FINAL_APPROVAL_STAGE = STAGES.index("Final Approval")

# Status labels during which underwriting-only forms accept saves.
UNDERWRITING_EDITABLE_STATUSES: frozenset[str] = frozenset(
    {"In-underwriting", "UW for Review", "Under Review"}
)


def stage_name(stage_index: int) -> str:
    return STAGES[min(max(stage_index, 0), len(STAGES) - 1)]


def next_stage_event(stage_index: int) -> StageEvent | None:
    """Event expected to move a loan off its current stage, if any."""
    if stage_index <= 1:
        return StageEvent.DOCUMENTS_VERIFIED
    if stage_index == 2:
        return StageEvent.PROCESSING_COMPLETED
    if stage_index == 3:
        return StageEvent.UNDERWRITING_APPROVED
    if stage_index == 4:
        return StageEvent.FUNDING_COMPLETED
    return None


def status_label(stage_index: int, intake_status: IntakeStatus | None = None) -> str:
    """Workflow status shown on lender dashboards.

    Stage drives the label, except that a submitted or pending intake shows
    underwriting progress until the loan is fully approved. A loan still on
    its first stage is always a new request.
    """
    if stage_index == 0:
        return "New Loan Request"
    if stage_index >= len(STAGES) - 1:
        return "Approved"
    if intake_status == IntakeStatus.SUBMITTED:
        return "UW for Review"
    if intake_status == IntakeStatus.PENDING:
        return "In-underwriting"
    if stage_index == UNDERWRITING_REVIEW_STAGE:
        return "In-underwriting"
    if stage_index >= FINAL_APPROVAL_STAGE:
        return "Under Review"
    return "In Progress"
