# This project was developed with assistance from AI tools.
"""Tests for role form normalization, completeness, and save rules."""

import math
from datetime import UTC, datetime

import pytest
from db.enums import FormType, IntakeStatus, UserRole

from underwriting.schemas.error import EngineError, ErrorKind
from underwriting.services.completeness import (
    CONDITIONS_SCHEMA,
    EVALUATOR_SCHEMA,
    FORM_SCHEMAS,
    TITLE_AGENT_SCHEMA,
    VALUATION_SCHEMA,
    empty_snapshot,
    evaluate_completeness,
    is_form_editable,
    normalize_field,
    normalize_value,
    normalize_values,
    save_role_form,
)

from .factories import make_loan

SAVED_AT = datetime(2026, 1, 5, 9, 30, tzinfo=UTC)


def _filled(schema, **overrides) -> dict:
    values = {key: "x" for key in schema.keys}
    values.update(overrides)
    return values


# ---------------------------------------------------------------------------
# Normalization
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("  720 ", "720"),
        ("", ""),
        (None, ""),
        (720, "720"),
        (0, "0"),
        (450000.0, "450000"),
        (12.5, "12.5"),
        (math.nan, ""),
        (math.inf, ""),
        (True, ""),
        (["a"], ""),
        ({"a": 1}, ""),
    ],
)
def test_normalize_value(raw, expected):
    assert normalize_value(raw) == expected


def test_normalize_values_drops_unknown_and_fills_missing():
    values = normalize_values(CONDITIONS_SCHEMA, {"credit_score": 700, "favorite_color": "blue"})
    assert set(values) == set(CONDITIONS_SCHEMA.keys)
    assert values["credit_score"] == "700"
    assert values["referral_name"] == ""
    assert "favorite_color" not in values


def test_normalize_values_tolerates_non_mapping():
    values = normalize_values(CONDITIONS_SCHEMA, None)
    assert all(v == "" for v in values.values())


def _title_spec(key: str):
    return next(spec for spec in TITLE_AGENT_SCHEMA.field_specs if spec.key == key)


@pytest.mark.parametrize(
    "key,raw,expected",
    [
        ("has_assignor", True, "yes"),
        ("has_assignor", False, "no"),
        ("has_assignor", " no ", "no"),
        ("has_assignor", None, ""),
        ("seller_members", [" Ann Lee ", "", "Bo Diaz"], "Ann Lee, Bo Diaz"),
        ("seller_members", [], ""),
        ("agreements", [{"name": "purchase.pdf", "data_url": None}, {"name": " "}], "purchase.pdf"),
        ("seller_name", True, ""),
    ],
)
def test_normalize_field_keeps_flags_and_lists(key, raw, expected):
    assert normalize_field(_title_spec(key), raw) == expected


def test_title_agent_form_saved_from_booleans_and_lists():
    payload = {
        "seller_type": "LLC",
        "seller_name": "Jane Seller",
        "seller_llc_name": "Seller Holdings LLC",
        "seller_members": ["Jane Seller", "Tom Seller"],
        "has_assignor": False,
        "assignor_members": [],
        "assignment_fees": "",
        "agreements": [{"name": "purchase-agreement.pdf"}],
    }
    snapshot = save_role_form(
        TITLE_AGENT_SCHEMA,
        payload,
        user_id="title-agent-01",
        role=UserRole.TITLE_AGENT,
        editable=True,
        now=SAVED_AT,
    )

    assert snapshot.values["has_assignor"] == "no"
    assert snapshot.values["seller_members"] == "Jane Seller, Tom Seller"
    assert snapshot.values["agreements"] == "purchase-agreement.pdf"
    assert evaluate_completeness(TITLE_AGENT_SCHEMA, snapshot.values).is_complete is True
    assert evaluate_completeness(TITLE_AGENT_SCHEMA, payload).is_complete is True


def test_title_agent_form_without_assignor_answer_is_incomplete():
    values = {"seller_type": "INDIVIDUAL", "seller_name": "Jane Seller"}
    assert evaluate_completeness(TITLE_AGENT_SCHEMA, values).missing == ["Assignor Involved"]


# ---------------------------------------------------------------------------
# Completeness
# ---------------------------------------------------------------------------


def test_every_form_type_has_a_schema():
    assert set(FORM_SCHEMAS) == set(FormType)


def test_empty_form_lists_required_labels_in_order():
    result = evaluate_completeness(CONDITIONS_SCHEMA, {})
    assert result.missing == [
        "Credit Score",
        "Proof of Liquidity Amount",
        "Referral Name",
        "Referral Email",
        "Other Mortgage Loans",
    ]
    assert result.is_complete is False


def test_optional_fields_never_block_completeness():
    values = _filled(TITLE_AGENT_SCHEMA, seller_llc_name="", seller_members="", agreements="")
    result = evaluate_completeness(TITLE_AGENT_SCHEMA, values)
    assert result.missing == []
    assert result.is_complete is True


def test_whitespace_only_value_is_missing():
    values = _filled(EVALUATOR_SCHEMA, confidence="   ")
    result = evaluate_completeness(EVALUATOR_SCHEMA, values)
    assert result.missing == ["Confidence"]


def test_zero_counts_as_filled():
    values = _filled(CONDITIONS_SCHEMA, other_mortgage_loans_count=0)
    assert evaluate_completeness(CONDITIONS_SCHEMA, values).is_complete is True


def test_valuation_avm_is_optional():
    values = _filled(VALUATION_SCHEMA, attom_avm_value="")
    assert evaluate_completeness(VALUATION_SCHEMA, values).is_complete is True


def test_unknown_keys_do_not_affect_completeness():
    values = {**_filled(CONDITIONS_SCHEMA), "extra": ""}
    assert evaluate_completeness(CONDITIONS_SCHEMA, values).is_complete is True


def test_empty_snapshot_has_every_key_blank():
    snapshot = empty_snapshot(FormType.VALUATION)
    assert snapshot.values == {key: "" for key in VALUATION_SCHEMA.keys}
    assert snapshot.last_updated_by is None


# ---------------------------------------------------------------------------
# Editability
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "stage_index,intake_status,editable",
    [
        (0, IntakeStatus.DRAFT, False),
        (2, IntakeStatus.DRAFT, False),
        (2, IntakeStatus.PENDING, True),
        (2, IntakeStatus.SUBMITTED, True),
        (3, IntakeStatus.DRAFT, True),
        (4, IntakeStatus.DRAFT, True),
        (5, IntakeStatus.SUBMITTED, False),
    ],
)
def test_underwriting_forms_editable_only_in_review(stage_index, intake_status, editable):
    loan = make_loan(stage_index=stage_index, intake_status=intake_status)
    assert is_form_editable(VALUATION_SCHEMA, loan) is editable


def test_conditions_form_always_editable():
    loan = make_loan(stage_index=0)
    assert is_form_editable(CONDITIONS_SCHEMA, loan) is True


# ---------------------------------------------------------------------------
# Saving
# ---------------------------------------------------------------------------


def test_save_replaces_values_wholesale():
    snapshot = save_role_form(
        CONDITIONS_SCHEMA,
        {"credit_score": " 745 ", "referral_name": "Ana"},
        user_id="james-torres-lo",
        role=UserRole.LOAN_OFFICER,
        editable=True,
        now=SAVED_AT,
    )
    assert snapshot.values["credit_score"] == "745"
    assert snapshot.values["referral_name"] == "Ana"
    assert snapshot.values["proof_of_liquidity_amount"] == ""
    assert snapshot.last_updated_at == SAVED_AT
    assert snapshot.last_updated_by == "james-torres-lo"
    assert snapshot.last_updated_role == UserRole.LOAN_OFFICER


def test_save_rejects_role_that_cannot_edit():
    result = save_role_form(
        EVALUATOR_SCHEMA,
        {},
        user_id="sarah-mitchell-001",
        role=UserRole.BORROWER,
        editable=True,
    )
    assert isinstance(result, EngineError)
    assert result.kind == ErrorKind.VALIDATION
    assert result.field == "role"


def test_save_rejects_locked_form():
    result = save_role_form(
        VALUATION_SCHEMA,
        {"assessor_value": 1},
        user_id="emily-park-eval",
        role=UserRole.EVALUATOR,
        editable=False,
    )
    assert isinstance(result, EngineError)
    assert result.kind == ErrorKind.CONFLICT
