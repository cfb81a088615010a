"""
Visibility rules.

A field is visible when, in this order:
1. its section has `visible=True`;
2. the field has `visible=True`;
3. if it has `visible_when`, the watched field's current value equals
   `visible_when.value`, compared by the watched field's type.

Dependencies are looked up by key, so a field may watch one that renders
after it. Evaluation is a single pass over the flattened field list.
"""
from typing import Any, Dict, List, Mapping, Tuple

from formconfig.db.enums import FieldType
from formconfig.engine.validation import parse_boolean, parse_number
from formconfig.schema.dependencies import index_fields
from formconfig.schema.models import FormConfiguration, FormField, FormSection, VisibleWhen


def current_value(field_key: str, values: Mapping[str, Any], index: Dict[str, FormField]) -> Any:
    """Value the form currently holds for `field_key`; falls back to the field's default."""
    if field_key in values:
        return values[field_key]
    field = index.get(field_key)
    return field.default_value if field is not None else None


def values_equal(field_type: FieldType, current: Any, expected: Any) -> bool:
    """Compare a watched value with the expected one the way the watched field stores it."""
    if current is None or expected is None:
        return current is None and expected is None

    if field_type == FieldType.number:
        left, right = parse_number(current), parse_number(expected)
        if left is None or right is None:
            return current == expected
        return left == right

    if field_type == FieldType.checkbox:
        left, right = parse_boolean(current), parse_boolean(expected)
        if left is None or right is None:
            return current == expected
        return left == right

    return str(current) == str(expected)


def condition_met(condition: VisibleWhen, values: Mapping[str, Any], index: Dict[str, FormField]) -> bool:
    watched = index.get(condition.field_key)
    if watched is None:
        return False
    current = current_value(condition.field_key, values, index)
    # A rendered checkbox has no third state: untouched means unchecked
    if watched.type == FieldType.checkbox and current is None:
        current = False
    return values_equal(watched.type, current, condition.value)


def is_visible(
    section: FormSection,
    field: FormField,
    values: Mapping[str, Any],
    index: Dict[str, FormField],
) -> bool:
    if not section.visible:
        return False
    if not field.visible:
        return False
    if field.visible_when is not None:
        return condition_met(field.visible_when, values, index)
    return True


def visible_entries(schema: FormConfiguration, values: Mapping[str, Any]) -> List[Tuple[FormSection, FormField]]:
    """(section, field) pairs that are currently visible, in render order."""
    index = index_fields(schema.sections)
    return [
        (section, field)
        for section, field in schema.iter_fields()
        if is_visible(section, field, values, index)
    ]


def compute_visible_fields(schema: FormConfiguration, values: Mapping[str, Any]) -> List[FormField]:
    return [field for _, field in visible_entries(schema, values)]
