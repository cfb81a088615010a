"""
Per-type value validation.

`validate_value` checks one value against one field's declared constraints.
Whether a field is checked at all (and whether `required` applies) is
decided by the visibility pass in `formconfig.engine.evaluation`.
"""
import math
import re
from datetime import date, datetime
from typing import Any, List, Optional
from urllib.parse import urlparse

from pydantic import BaseModel

from formconfig.db.enums import CHOICE_TYPES, TEXT_LIKE_TYPES, FieldType
from formconfig.schema.models import FormField

EMAIL_PATTERN = re.compile(r"^[A-Z0-9._%+-]+@[A-Z0-9.-]+\.[A-Z]{2,}$", re.IGNORECASE)

URL_SCHEMES = ("http", "https")

TRUE_STRINGS = frozenset({"true", "1", "yes", "on"})
FALSE_STRINGS = frozenset({"false", "0", "no", "off"})


class FieldViolation(BaseModel):
    code: str
    message: str


def is_empty(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    if isinstance(value, (list, tuple, dict)):
        return len(value) == 0
    return False


def parse_number(value: Any) -> Optional[float]:
    """Numeric value of `value`, or None when it is not a finite number."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def parse_boolean(value: Any) -> Optional[bool]:
    """Boolean value of `value`, accepting the usual form-post spellings."""
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in TRUE_STRINGS:
            return True
        if lowered in FALSE_STRINGS:
            return False
    return None


def parse_iso_date(value: Any) -> Optional[date]:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return None
    text = value.strip()
    try:
        return date.fromisoformat(text)
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
    except ValueError:
        return None


def _text_violations(field: FormField, value: Any) -> List[FieldViolation]:
    if not isinstance(value, str):
        return [FieldViolation(code="type", message=f"{field.label} must be text")]

    violations = []
    rules = field.validation
    if rules is not None:
        if rules.pattern and re.search(rules.pattern, value) is None:
            violations.append(FieldViolation(
                code="pattern",
                message=f"Invalid {field.label.lower()} format",
            ))
        if rules.min_length is not None and len(value) < rules.min_length:
            violations.append(FieldViolation(
                code="min_length",
                message=f"{field.label} must be at least {rules.min_length} characters",
            ))
        if rules.max_length is not None and len(value) > rules.max_length:
            violations.append(FieldViolation(
                code="max_length",
                message=f"{field.label} must be at most {rules.max_length} characters",
            ))

    if field.type == FieldType.email and not EMAIL_PATTERN.match(value.strip()):
        violations.append(FieldViolation(code="email", message="Invalid email address"))

    if field.type == FieldType.url:
        parsed = urlparse(value.strip())
        if parsed.scheme not in URL_SCHEMES or not parsed.netloc:
            violations.append(FieldViolation(code="url", message="Invalid URL"))

    return violations


def _number_violations(field: FormField, value: Any) -> List[FieldViolation]:
    number = parse_number(value)
    if number is None:
        return [FieldViolation(code="type", message=f"{field.label} must be a number")]

    violations = []
    rules = field.validation
    if rules is not None:
        if rules.min is not None and number < rules.min:
            violations.append(FieldViolation(
                code="min",
                message=f"{field.label} must be at least {rules.min:g}",
            ))
        if rules.max is not None and number > rules.max:
            violations.append(FieldViolation(
                code="max",
                message=f"{field.label} must be at most {rules.max:g}",
            ))
    return violations


def _choice_violations(field: FormField, value: Any) -> List[FieldViolation]:
    if isinstance(value, bool) or str(value) not in field.option_values:
        return [FieldViolation(
            code="option",
            message=f"{field.label} must be one of: {', '.join(str(v) for v in field.option_values)}",
        )]
    return []


def validate_value(field: FormField, value: Any, enforce_required: bool = True) -> List[FieldViolation]:
    """
    Check `value` against the constraints `field` declares.

    An empty value only fails when the field is required (and
    `enforce_required` is set); the type checks run on non-empty values.
    """
    if field.type == FieldType.checkbox:
        if value is None:
            if enforce_required and field.required:
                return [FieldViolation(code="required", message=f"{field.label} is required")]
            return []
        if parse_boolean(value) is None:
            return [FieldViolation(code="type", message=f"{field.label} must be true or false")]
        return []

    if is_empty(value):
        if enforce_required and field.required:
            return [FieldViolation(code="required", message=f"{field.label} is required")]
        return []

    if field.type in TEXT_LIKE_TYPES:
        return _text_violations(field, value)
    if field.type == FieldType.number:
        return _number_violations(field, value)
    if field.type in CHOICE_TYPES:
        return _choice_violations(field, value)
    if field.type == FieldType.date:
        if parse_iso_date(value) is None:
            return [FieldViolation(code="date", message=f"{field.label} must be an ISO date (YYYY-MM-DD)")]
        return []
    return []
