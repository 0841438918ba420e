"""
Field Rule Set - the single table both validators are built on.

FIELD_RULES is ordered: the intake gateway validates fields in this order
and stops at the first failure. The presentation-facing validator walks
the same table and reports every failure.
"""

import re

from intake_gateway.models import FieldRule, SERVICE_OPTIONS_ORDER

EMAIL_PATTERN = re.compile(r"[^\s@]+@[^\s@]+\.[^\s@]+")
PHONE_PATTERN = re.compile(r"[0-9+()\-.\s]{7,20}")
# Degree sign and both ordinal indicators are accepted ("5º", "3ª", "1°").
GRADE_PATTERN = re.compile(r"[A-Za-z0-9°ºª\s-]{1,15}")
RESPONSIBLE_ID_PATTERN = re.compile(r"[A-Za-z0-9\-.]{5,30}")

ALLOWED_SERVICE_OPTIONS = frozenset(SERVICE_OPTIONS_ORDER)
SERVICE_OPTION_MAX_LENGTH = 10
SERVICE_OPTIONS_FIELD = "service_options"

_PHONE_HINT = "7-20 digits; + ( ) - . and spaces are allowed"
_EMAIL_HINT = "a valid email address"


def _phone(name: str, label: str) -> FieldRule:
    return FieldRule(
        name=name, label=label, max_length=20, pattern=PHONE_PATTERN, hint=_PHONE_HINT
    )


def _email(name: str, label: str) -> FieldRule:
    return FieldRule(
        name=name, label=label, max_length=120, pattern=EMAIL_PATTERN, hint=_EMAIL_HINT
    )


FIELD_RULES: tuple[FieldRule, ...] = (
    FieldRule(name="student_name", label="student name", max_length=120),
    FieldRule(
        name="grade",
        label="grade",
        max_length=15,
        pattern=GRADE_PATTERN,
        hint="letters, numbers, ordinal marks, spaces or hyphens",
    ),
    FieldRule(name="address", label="address", max_length=150),
    FieldRule(name="municipio", label="municipio", max_length=100),
    FieldRule(name="sector", label="sector", max_length=100),
    FieldRule(name="urbanizacion", label="urbanizacion", max_length=100),
    FieldRule(name="bloque", label="block or unit", max_length=50),
    FieldRule(name="father_name", label="father's name", max_length=120),
    _phone("father_phone", "father's mobile phone"),
    _phone("father_office_phone", "father's office phone"),
    _email("father_email", "father's email"),
    FieldRule(name="mother_name", label="mother's name", max_length=120),
    _phone("mother_phone", "mother's mobile phone"),
    _phone("mother_office_phone", "mother's office phone"),
    _email("mother_email", "mother's email"),
    FieldRule(name="other_guardian", label="other guardian", max_length=120),
    _phone("other_guardian_phone", "other guardian's mobile phone"),
    FieldRule(
        name="responsible_id",
        label="responsible party ID",
        max_length=30,
        pattern=RESPONSIBLE_ID_PATTERN,
        hint="5-30 letters, numbers, dots or hyphens",
    ),
    FieldRule(name="observaciones", label="observaciones", max_length=500),
)

RULES_BY_NAME: dict[str, FieldRule] = {rule.name: rule for rule in FIELD_RULES}


def get_rule(name: str) -> FieldRule:
    """Look up a rule by field name. Raises KeyError for unknown fields."""
    return RULES_BY_NAME[name]
