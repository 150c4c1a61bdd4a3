# This project was developed with assistance from AI tools.
"""Error schemas: typed engine errors and RFC 7807 Problem Details."""

import enum

from pydantic import BaseModel, ConfigDict, Field


class ErrorKind(str, enum.Enum):
    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    ARITHMETIC = "arithmetic"
    CONFLICT = "conflict"


class EngineError(BaseModel):
    """Typed failure returned (never raised) by the underwriting engine.

    ``field`` names the offending input when one can be singled out, so a
    caller can attach the message to the right form control.
    """

    model_config = ConfigDict(frozen=True)

    kind: ErrorKind
    message: str
    field: str | None = None


class ErrorResponse(BaseModel):
    """RFC 7807 Problem Details for HTTP APIs.

    See https://datatracker.ietf.org/doc/html/rfc7807
    """

    type: str = Field(
        default="about:blank",
        description="URI reference identifying the problem type.",
    )
    title: str = Field(description="Short human-readable summary of the problem.")
    status: int = Field(description="HTTP status code.")
    detail: str = Field(
        default="",
        description="Human-readable explanation specific to this occurrence.",
    )
    request_id: str = Field(
        default="",
        description="Correlation ID for tracing this request in logs.",
    )
    instance: str = Field(
        default="",
        description="URI reference identifying the specific occurrence of the problem.",
    )
