# This project was developed with assistance from AI tools.
"""Role form completeness checking.

One schema-agnostic evaluator serves every role form. Each form's field list
is static configuration in ``FORM_SCHEMAS``; values from any source pass
through a single normalization step before they are stored or evaluated.
"""

import logging
import math
from collections.abc import Mapping
from datetime import UTC, datetime

from db.enums import FormType, UserRole

from ..schemas.completeness import CompletenessResult, FieldSpec, FormSchema, RoleFormSnapshot
from ..schemas.error import EngineError, ErrorKind
from ..schemas.loan import LoanRecord
from .stages import UNDERWRITING_EDITABLE_STATUSES, status_label

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Form schemas
# ---------------------------------------------------------------------------

VALUATION_SCHEMA = FormSchema(
    form_type=FormType.VALUATION,
    field_specs=(
        FieldSpec(key="assessor_value", label="Assessor Value"),
        FieldSpec(key="attom_avm_value", label="AVM (ATTOM)", optional=True),
        FieldSpec(key="zillow_value", label="Zillow Value"),
        FieldSpec(key="realtor_com_value", label="Realtor.com Value"),
        FieldSpec(key="narpr_value", label="NARRPR Value"),
        FieldSpec(key="propelio_median_value", label="Propelio Median Value"),
        FieldSpec(key="propelio_high_value", label="Propelio High Value"),
        FieldSpec(key="propelio_low_value", label="Propelio Low Value"),
        FieldSpec(key="economic_value", label="Economic Value"),
        FieldSpec(key="rentometer_estimate", label="Rentometer Estimate"),
        FieldSpec(key="zillow_rent_estimate", label="Zillow Rent Estimate"),
        FieldSpec(key="current_owner", label="Current Owner"),
        FieldSpec(key="last_sale_date", label="Last Sale Date"),
        FieldSpec(key="last_sale_price", label="Last Sale Price"),
        FieldSpec(key="bankruptcy_record", label="Bankruptcy Record"),
        FieldSpec(key="internal_watchlist", label="Internal Watchlist"),
        FieldSpec(key="forecasa_status", label="Forecasa Status"),
        FieldSpec(key="active_loans_count", label="Number of Active Loans"),
        FieldSpec(key="negative_deed_records", label="Register of Deeds - High-Risk Negative Records"),
    ),
    editor_roles=frozenset({UserRole.LOAN_OFFICER, UserRole.EVALUATOR}),
    underwriting_only=True,
)

EVALUATOR_SCHEMA = FormSchema(
    form_type=FormType.EVALUATOR,
    field_specs=(
        FieldSpec(key="cma_avg_sale_price", label="Avg Sale Price"),
        FieldSpec(key="cma_price_per_sq_ft", label="Price / Sq Ft"),
        FieldSpec(key="cma_days_on_market", label="Days on Market"),
        FieldSpec(key="cma_subject_sq_ft", label="Subject Sq Ft"),
        FieldSpec(key="key_finding_ltv", label="LTV"),
        FieldSpec(key="key_finding_application", label="Application"),
        FieldSpec(key="key_finding_score", label="Score"),
        FieldSpec(key="as_is_value", label="As-Is Value"),
        FieldSpec(key="arv", label="ARV"),
        FieldSpec(key="current_ltv", label="Current LTV"),
        FieldSpec(key="ltv_after_repairs", label="LTV After Repairs"),
        FieldSpec(key="recommendation", label="Recommendation"),
        FieldSpec(key="confidence", label="Confidence"),
        FieldSpec(key="risk_level", label="Risk Level"),
        FieldSpec(key="professional_assessment", label="Professional Assessment"),
    ),
    editor_roles=frozenset({UserRole.EVALUATOR}),
    underwriting_only=True,
)

CONDITIONS_SCHEMA = FormSchema(
    form_type=FormType.CONDITIONS,
    field_specs=(
        FieldSpec(key="credit_score", label="Credit Score"),
        FieldSpec(key="proof_of_liquidity_amount", label="Proof of Liquidity Amount"),
        FieldSpec(key="desktop_appraisal_value", label="Desktop Appraisal Value", optional=True),
        FieldSpec(key="referral_name", label="Referral Name"),
        FieldSpec(key="referral_email", label="Referral Email"),
        FieldSpec(key="referral_phone", label="Referral Phone", optional=True),
        FieldSpec(key="other_mortgage_loans_count", label="Other Mortgage Loans"),
        FieldSpec(key="other_mortgage_total_amount", label="Other Mortgage Total Amount", optional=True),
    ),
    editor_roles=frozenset({UserRole.BORROWER, UserRole.LOAN_OFFICER}),
)

TITLE_AGENT_SCHEMA = FormSchema(
    form_type=FormType.TITLE_AGENT,
    field_specs=(
        FieldSpec(key="seller_type", label="Seller Type"),
        FieldSpec(key="seller_name", label="Seller Name"),
        FieldSpec(key="seller_llc_name", label="Seller LLC Name", optional=True),
        FieldSpec(key="seller_members", label="Seller Members", optional=True, kind="list"),
        FieldSpec(key="has_assignor", label="Assignor Involved", kind="flag"),
        FieldSpec(key="assignor_type", label="Assignor Type", optional=True),
        FieldSpec(key="assignor_name", label="Assignor Name", optional=True),
        FieldSpec(key="assignor_llc_name", label="Assignor LLC Name", optional=True),
        FieldSpec(key="assignor_members", label="Assignor Members", optional=True, kind="list"),
        FieldSpec(key="assignment_fees", label="Assignment Fees", optional=True),
        FieldSpec(key="agreements", label="Agreements", optional=True, kind="list"),
    ),
    editor_roles=frozenset({UserRole.TITLE_AGENT, UserRole.LOAN_OFFICER}),
)

FORM_SCHEMAS: dict[FormType, FormSchema] = {
    FormType.VALUATION: VALUATION_SCHEMA,
    FormType.EVALUATOR: EVALUATOR_SCHEMA,
    FormType.CONDITIONS: CONDITIONS_SCHEMA,
    FormType.TITLE_AGENT: TITLE_AGENT_SCHEMA,
}


# ---------------------------------------------------------------------------
# Normalization and evaluation
# ---------------------------------------------------------------------------


def normalize_value(value: object) -> str:
    """Coerce a raw form value to its stored string form.

    Strings are stripped, finite numbers are stringified, and everything
    else (None, booleans, lists, dicts, NaN) becomes the empty string.
    """
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, bool):
        return ""
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float) and math.isfinite(value):
        return str(int(value)) if value.is_integer() else str(value)
    return ""


def normalize_field(spec: FieldSpec, value: object) -> str:
    """Normalize a value for one schema field.

    Flag fields keep a yes/no answer and list fields keep their entries as a
    comma-joined string. Uploaded documents in a list contribute their name.
    Every other value goes through ``normalize_value``.
    """
    if spec.kind == "flag" and isinstance(value, bool):
        return "yes" if value else "no"
    if spec.kind == "list" and isinstance(value, list | tuple):
        entries = [
            normalize_value(item.get("name") if isinstance(item, Mapping) else item) for item in value
        ]
        return ", ".join(entry for entry in entries if entry)
    return normalize_value(value)


def normalize_values(schema: FormSchema, raw: Mapping[str, object] | None) -> dict[str, str]:
    """Project a raw value bag onto the schema's key set.

    Unknown keys are dropped; absent keys are stored as empty strings.
    """
    raw = raw if isinstance(raw, Mapping) else {}
    dropped = sorted(k for k in raw if k not in schema.keys)
    if dropped:
        logger.debug("Dropping unknown %s form keys: %s", schema.form_type.value, dropped)
    return {spec.key: normalize_field(spec, raw.get(spec.key)) for spec in schema.field_specs}


def evaluate_completeness(schema: FormSchema, values: Mapping[str, object]) -> CompletenessResult:
    """Labels of required fields that are still empty, in schema order."""
    missing = [
        spec.label
        for spec in schema.field_specs
        if not spec.optional and not normalize_field(spec, values.get(spec.key))
    ]
    return CompletenessResult(missing=missing, is_complete=not missing)


# ---------------------------------------------------------------------------
# Saving
# ---------------------------------------------------------------------------


def empty_snapshot(form_type: FormType) -> RoleFormSnapshot:
    """Form state before anyone has saved it."""
    schema = FORM_SCHEMAS[form_type]
    return RoleFormSnapshot(form_type=form_type, values={key: "" for key in schema.keys})


def is_form_editable(schema: FormSchema, loan: LoanRecord) -> bool:
    """Underwriting-only forms accept saves only while the loan is in review."""
    if not schema.underwriting_only:
        return True
    return status_label(loan.stage_index, loan.intake_status) in UNDERWRITING_EDITABLE_STATUSES


def save_role_form(
    schema: FormSchema,
    raw_values: Mapping[str, object] | None,
    *,
    user_id: str,
    role: UserRole,
    editable: bool,
    now: datetime | None = None,
) -> RoleFormSnapshot | EngineError:
    """Build the snapshot that replaces the stored form.

    The result is a full overwrite: fields omitted from ``raw_values`` are
    stored empty rather than merged from the previous save.

    Args:
        schema: Schema of the form being saved.
        raw_values: Submitted value bag.
        user_id: Identity recorded as ``last_updated_by``.
        role: Role of the submitting user.
        editable: Whether the loan currently accepts saves for this form.
        now: Save timestamp (defaults to UTC now).

    Returns:
        The new RoleFormSnapshot, or EngineError when the role may not edit
        this form (VALIDATION) or the form is locked (CONFLICT).
    """
    if role not in schema.editor_roles:
        logger.warning(
            "Role %s attempted to save %s form", role.value, schema.form_type.value
        )
        return EngineError(
            kind=ErrorKind.VALIDATION,
            message=f"Role {role.value} cannot edit the {schema.form_type.value} form",
            field="role",
        )
    if not editable:
        return EngineError(
            kind=ErrorKind.CONFLICT,
            message=f"The {schema.form_type.value} form is only editable during underwriting",
        )

    return RoleFormSnapshot(
        form_type=schema.form_type,
        values=normalize_values(schema, raw_values),
        last_updated_at=now or datetime.now(UTC),
        last_updated_by=user_id,
        last_updated_role=role,
    )
