"""
Validator - turn untrusted form values into clean field values.

Two consumers share the rule table in field_rules:
    - validate_submission: fail-fast, used by the write path; the first
      failing field aborts and later fields are never looked at
    - collect_field_errors: fail-all, returns a per-field error map for
      presentation layers

Form values arrive as a mapping of field name to the list of raw strings
submitted under that name (a field may be repeated, e.g. service_options).
"""

import logging
from typing import Iterable, Mapping, Sequence

from intake_gateway.errors import ClientError
from intake_gateway.models import ClientRecord, FieldRule
from intake_gateway.services.field_rules import (
    ALLOWED_SERVICE_OPTIONS,
    FIELD_RULES,
    SERVICE_OPTION_MAX_LENGTH,
    SERVICE_OPTIONS_FIELD,
)
from intake_gateway.services.sanitizer import sanitize

logger = logging.getLogger(__name__)

FormValues = Mapping[str, Sequence[str]]

SERVICE_OPTIONS_MESSAGE = "select at least one valid service option (AM, PM or 1/2)"


def required_message(rule: FieldRule) -> str:
    return f"{rule.label} is required"


def invalid_format_message(rule: FieldRule) -> str:
    return f"{rule.label} has an invalid format"


def validate_field(raw: str | None, rule: FieldRule) -> str:
    """
    Validate one raw value against its rule.

    Returns:
        The sanitized value

    Raises:
        ClientError: value missing, blank after sanitizing, or pattern mismatch

    Whitespace-only input is reported exactly like missing input.
    """
    if not raw:
        raise ClientError(required_message(rule), field=rule.name)

    value = sanitize(raw, rule.max_length)
    if not value:
        raise ClientError(required_message(rule), field=rule.name)

    if not rule.matches(value):
        raise ClientError(invalid_format_message(rule), field=rule.name)

    return value


def validate_service_options(raw_values: Iterable[str]) -> frozenset[str]:
    """
    Validate the repeated service_options input.

    Each value is sanitized, blanks are dropped and duplicates collapse.
    An empty selection and an unknown option fail the same way.
    """
    selected = {sanitize(raw, SERVICE_OPTION_MAX_LENGTH) for raw in raw_values}
    selected.discard("")

    if not selected or not selected <= ALLOWED_SERVICE_OPTIONS:
        raise ClientError(SERVICE_OPTIONS_MESSAGE, field=SERVICE_OPTIONS_FIELD)

    return frozenset(selected)


def first_value(form: FormValues, name: str) -> str | None:
    values = form.get(name)
    if not values:
        return None
    return values[0]


def validate_submission(form: FormValues) -> ClientRecord:
    """
    Validate every field in rule-table order, then the service options.

    Raises:
        ClientError: for the first failing field only
    """
    values: dict[str, str] = {}
    for rule in FIELD_RULES:
        try:
            values[rule.name] = validate_field(first_value(form, rule.name), rule)
        except ClientError:
            logger.info(f"[VALIDATOR] Rejected field {rule.name}")
            raise

    try:
        service_options = validate_service_options(form.get(SERVICE_OPTIONS_FIELD, ()))
    except ClientError:
        logger.info(f"[VALIDATOR] Rejected field {SERVICE_OPTIONS_FIELD}")
        raise

    return ClientRecord(**values, service_options=service_options)


def collect_field_errors(form: FormValues) -> dict[str, str]:
    """Validate every field and return all failures keyed by field name."""
    errors: dict[str, str] = {}
    for rule in FIELD_RULES:
        try:
            validate_field(first_value(form, rule.name), rule)
        except ClientError as e:
            errors[rule.name] = e.message

    try:
        validate_service_options(form.get(SERVICE_OPTIONS_FIELD, ()))
    except ClientError as e:
        errors[SERVICE_OPTIONS_FIELD] = e.message

    return errors
