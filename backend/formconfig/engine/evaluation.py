from typing import Any, Dict, List, Mapping, Optional

from pydantic import BaseModel

from formconfig.core.logging import engine_logger
from formconfig.engine.validation import FieldViolation, validate_value
from formconfig.engine.visibility import visible_entries
from formconfig.schema.models import FormConfiguration, FormField


class Evaluation(BaseModel):
    visible_fields: List[FormField] = []
    violations_by_field_key: Dict[str, List[FieldViolation]] = {}

    @property
    def is_valid(self) -> bool:
        return not self.violations_by_field_key


def evaluate(schema: Optional[FormConfiguration], current_values: Optional[Mapping[str, Any]] = None) -> Evaluation:
    """
    Visible fields and their violations for the given values.

    Hidden fields are neither returned nor checked, so a hidden required
    field never reports a missing value. A missing schema evaluates as an
    empty form.
    """
    if schema is None:
        engine_logger.warning("Evaluating without a schema; treating form as empty")
        return Evaluation()

    values = current_values or {}
    entries = visible_entries(schema, values)

    violations: Dict[str, List[FieldViolation]] = {}
    for _, field in entries:
        # Unsubmitted fields hold their default, as the live form pre-fills it
        value = values[field.field_key] if field.field_key in values else field.default_value
        found = validate_value(field, value)
        if found:
            violations.setdefault(field.field_key, []).extend(found)

    return Evaluation(
        visible_fields=[field for _, field in entries],
        violations_by_field_key=violations,
    )
