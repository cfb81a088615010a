"""
Structural validation of a form configuration.

`validate_configuration` returns every broken invariant as a `Violation`;
`check_configuration` raises `SchemaValidationError` when there is any.
"""
import re
from typing import List

from formconfig.core.exceptions import SchemaValidationError
from formconfig.db.enums import CHOICE_TYPES, TEXT_LIKE_TYPES, FieldType
from formconfig.engine.validation import validate_value
from formconfig.schema.dependencies import DependencyGraph
from formconfig.schema.models import FormConfiguration, FormField, FormSection, Violation

TEXT_CONSTRAINTS = frozenset({"pattern", "min_length", "max_length"})
NUMBER_CONSTRAINTS = frozenset({"min", "max", "step"})


def _section_loc(section: FormSection) -> str:
    return f"sections[{section.section_key}]"


def _field_loc(section: FormSection, field: FormField) -> str:
    return f"sections[{section.section_key}].fields[{field.field_key}]"


def _check_order(location: str, orders: List[int], what: str) -> List[Violation]:
    expected = list(range(1, len(orders) + 1))
    if orders != expected:
        return [Violation(
            location=location,
            code="order_not_contiguous",
            message=f"{what} order must be 1..{len(orders)} in list order, got {orders}",
        )]
    return []


def _validate_options(loc: str, field: FormField) -> List[Violation]:
    violations = []
    if field.type in CHOICE_TYPES and not field.options:
        violations.append(Violation(
            location=f"{loc}.options",
            code="missing_options",
            message=f"{field.type.value} field '{field.field_key}' needs at least one option",
        ))

    seen = set()
    for idx, option in enumerate(field.options):
        opt_loc = f"{loc}.options[{idx}]"
        if not option.value:
            violations.append(Violation(location=opt_loc, code="option_missing_value", message="option value is required"))
        if not option.label:
            violations.append(Violation(location=opt_loc, code="option_missing_label", message="option label is required"))
        if option.value:
            if option.value in seen:
                violations.append(Violation(
                    location=opt_loc,
                    code="duplicate_option_value",
                    message=f"duplicate option value '{option.value}'",
                ))
            seen.add(option.value)
    return violations


def _validate_constraints(loc: str, field: FormField) -> List[Violation]:
    if field.validation is None:
        return []

    violations = []
    rules = field.validation
    declared = set(rules.declared())
    if field.type in TEXT_LIKE_TYPES:
        applicable = TEXT_CONSTRAINTS
    elif field.type == FieldType.number:
        applicable = NUMBER_CONSTRAINTS
    else:
        applicable = frozenset()

    for name in sorted(declared - applicable):
        violations.append(Violation(
            location=f"{loc}.validation.{name}",
            code="inapplicable_constraint",
            message=f"'{name}' does not apply to {field.type.value} fields",
        ))

    if rules.pattern is not None:
        try:
            re.compile(rules.pattern)
        except re.error as e:
            violations.append(Violation(
                location=f"{loc}.validation.pattern",
                code="invalid_pattern",
                message=f"pattern does not compile: {e}",
            ))

    for name in ("min_length", "max_length"):
        value = getattr(rules, name)
        if value is not None and value < 0:
            violations.append(Violation(
                location=f"{loc}.validation.{name}",
                code="invalid_range",
                message=f"{name} must not be negative",
            ))
    if rules.min_length is not None and rules.max_length is not None and rules.min_length > rules.max_length:
        violations.append(Violation(
            location=f"{loc}.validation",
            code="invalid_range",
            message="min_length must not exceed max_length",
        ))
    if rules.min is not None and rules.max is not None and rules.min > rules.max:
        violations.append(Violation(
            location=f"{loc}.validation",
            code="invalid_range",
            message="min must not exceed max",
        ))
    if rules.step is not None and rules.step <= 0:
        violations.append(Violation(
            location=f"{loc}.validation.step",
            code="invalid_step",
            message="step must be greater than zero",
        ))
    return violations


def _validate_default(loc: str, field: FormField) -> List[Violation]:
    if field.default_value is None:
        return []
    # An unusable pattern is already reported by _validate_constraints
    if field.validation is not None and field.validation.pattern is not None:
        try:
            re.compile(field.validation.pattern)
        except re.error:
            return []
    return [
        Violation(
            location=f"{loc}.default_value",
            code="invalid_default",
            message=f"default value {field.default_value!r} is invalid: {v.message}",
        )
        for v in validate_value(field, field.default_value, enforce_required=False)
    ]


def _validate_field(section: FormSection, field: FormField) -> List[Violation]:
    loc = _field_loc(section, field)
    violations = []
    if not field.field_key or not field.field_key.strip():
        violations.append(Violation(location=loc, code="empty_key", message="field key is required"))
    if not field.label or not field.label.strip():
        violations.append(Violation(location=f"{loc}.label", code="missing_label", message="field label is required"))
    violations.extend(_validate_options(loc, field))
    violations.extend(_validate_constraints(loc, field))
    violations.extend(_validate_default(loc, field))
    return violations


def _validate_dependencies(config: FormConfiguration) -> List[Violation]:
    graph = DependencyGraph.from_sections(config.sections)
    violations = []

    for section in config.sections:
        for field in section.fields:
            if field.visible_when is None:
                continue
            loc = f"{_field_loc(section, field)}.visible_when"
            target = field.visible_when.field_key
            if target == field.field_key:
                violations.append(Violation(
                    location=loc,
                    code="self_dependency",
                    message=f"field '{field.field_key}' cannot depend on itself",
                ))
            elif not graph.has_key(target):
                violations.append(Violation(
                    location=loc,
                    code="unknown_dependency",
                    message=f"visible_when references unknown field '{target}'",
                ))
            elif len(graph.sections_declaring(target)) > 1:
                violations.append(Violation(
                    location=loc,
                    code="ambiguous_dependency",
                    message=(
                        f"visible_when references '{target}', which is declared in sections "
                        f"{', '.join(graph.sections_declaring(target))}"
                    ),
                ))

    cycle = graph.find_cycle()
    if cycle:
        violations.append(Violation(
            location="sections",
            code="dependency_cycle",
            message=f"visibility dependency cycle: {' -> '.join(cycle)}",
        ))
    return violations


def validate_configuration(config: FormConfiguration) -> List[Violation]:
    """Every invariant the configuration currently breaks, in document order."""
    violations: List[Violation] = []

    seen_sections = set()
    for section in config.sections:
        loc = _section_loc(section)
        if not section.section_key or not section.section_key.strip():
            violations.append(Violation(location=loc, code="empty_key", message="section key is required"))
        elif section.section_key in seen_sections:
            violations.append(Violation(
                location=loc,
                code="duplicate_section_key",
                message=f"duplicate section key '{section.section_key}'",
            ))
        seen_sections.add(section.section_key)

        if not section.name or not section.name.strip():
            violations.append(Violation(location=f"{loc}.name", code="missing_name", message="section name is required"))

        seen_fields = set()
        for field in section.fields:
            if field.field_key and field.field_key in seen_fields:
                violations.append(Violation(
                    location=_field_loc(section, field),
                    code="duplicate_field_key",
                    message=f"duplicate field key '{field.field_key}' in section '{section.section_key}'",
                ))
            seen_fields.add(field.field_key)
            violations.extend(_validate_field(section, field))

        violations.extend(_check_order(f"{loc}.fields", [f.order for f in section.fields], "Field"))

    violations.extend(_check_order("sections", [s.order for s in config.sections], "Section"))
    violations.extend(_validate_dependencies(config))
    return violations


def check_configuration(config: FormConfiguration, action: str = "configuration") -> None:
    violations = validate_configuration(config)
    if violations:
        raise SchemaValidationError(f"{action} rejected: {violations[0].message}", violations)
