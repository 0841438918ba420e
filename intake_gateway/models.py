"""
Data models for the submission intake gateway.

Key Models:
    - FieldRule: Length bound, optional pattern and label for one form field
    - ClientRecord: Fully validated submission handed to the store
    - RateLimitResult: Admission decision for one client identifier
    - SubmissionResponse / FieldErrorsResponse: JSON bodies returned by the API
"""

import re

from pydantic import BaseModel, ConfigDict, Field


SERVICE_OPTIONS_ORDER = ("AM", "PM", "1/2")


class FieldRule(BaseModel):
    """
    Validation rule for one mandatory text field.

    Attributes:
        name: Form field name (unique key in the rule set)
        label: Human-readable name used in error messages
        max_length: Sanitized values are truncated to this length
        pattern: Full-match pattern the sanitized value must satisfy
        hint: Description of the accepted format, for presentation layers
    """
    model_config = ConfigDict(frozen=True)

    name: str
    label: str
    max_length: int = Field(gt=0)
    pattern: re.Pattern | None = None
    hint: str | None = None

    def matches(self, value: str) -> bool:
        """True when the rule has no pattern or the value matches it in full."""
        if self.pattern is None:
            return True
        return self.pattern.fullmatch(value) is not None

    def describe(self) -> dict:
        """Public view of the rule, without the compiled pattern."""
        return {
            "name": self.name,
            "label": self.label,
            "max_length": self.max_length,
            "hint": self.hint,
        }


class ClientRecord(BaseModel):
    """
    A validated registration, created once per accepted request.

    Immutable after assembly. Every text field is sanitized and non-empty;
    service_options is a non-empty subset of {"AM", "PM", "1/2"}.
    """
    model_config = ConfigDict(frozen=True)

    student_name: str
    grade: str
    address: str
    municipio: str
    sector: str
    urbanizacion: str
    bloque: str
    father_name: str
    father_phone: str
    father_office_phone: str
    father_email: str
    mother_name: str
    mother_phone: str
    mother_office_phone: str
    mother_email: str
    other_guardian: str
    other_guardian_phone: str
    responsible_id: str
    observaciones: str
    service_options: frozenset[str] = Field(min_length=1)

    def to_row(self) -> dict:
        """Flat mapping of named values for the store's insert operation."""
        row = self.model_dump(exclude={"service_options"})
        row["service_options"] = [
            option for option in SERVICE_OPTIONS_ORDER if option in self.service_options
        ]
        return row


class RateLimitResult(BaseModel):
    """
    Result of a rate limit check.

    Attributes:
        allowed: Whether the request should proceed
        remaining: Requests remaining in current window
        limit: Total requests allowed per window
        retry_after: Seconds until window resets (if throttled)
    """
    allowed: bool
    remaining: int = Field(ge=0)
    limit: int = Field(gt=0)
    retry_after: int | None = Field(default=None, ge=0)

    def to_headers(self) -> dict[str, str]:
        """Convert to HTTP rate limit headers."""
        headers = {
            "X-Ratelimit-Remaining": str(self.remaining),
            "X-Ratelimit-Limit": str(self.limit),
        }
        if self.retry_after is not None:
            headers["X-Ratelimit-Retry-After"] = str(self.retry_after)
        return headers


class SubmissionResponse(BaseModel):
    """JSON body of the write endpoint."""
    success: bool
    message: str | None = None
    error: str | None = None


class FieldErrorsResponse(BaseModel):
    """JSON body of the validate endpoint: every failing field at once."""
    valid: bool
    errors: dict[str, str] = Field(default_factory=dict)
