"""
Render dispatch.

`describe_control` maps one field to the control that renders it. It is a
pure lookup on the field's declared type and constraints. `render_form`
combines it with `evaluate`, and `preview` is the same call in read-only
mode, so the editor preview and the production form can never disagree
about which fields show or which values are wrong.
"""
from typing import Any, Dict, List, Mapping, Optional, Tuple

from pydantic import BaseModel

from formconfig.db.enums import CHOICE_TYPES, TEXT_LIKE_TYPES, FieldType, GridColumn, WidgetKind
from formconfig.engine.evaluation import evaluate
from formconfig.engine.validation import EMAIL_PATTERN, FieldViolation
from formconfig.schema.models import FieldOption, FormConfiguration, FormField

# field type -> (widget, HTML input type)
WIDGETS: Dict[FieldType, Tuple[WidgetKind, str]] = {
    FieldType.text: (WidgetKind.text_input, "text"),
    FieldType.textarea: (WidgetKind.text_area, "textarea"),
    FieldType.number: (WidgetKind.number_input, "number"),
    FieldType.select: (WidgetKind.dropdown, "select"),
    FieldType.radio: (WidgetKind.radio_group, "radio"),
    FieldType.checkbox: (WidgetKind.checkbox, "checkbox"),
    FieldType.date: (WidgetKind.date_picker, "date"),
    FieldType.email: (WidgetKind.email_input, "email"),
    FieldType.url: (WidgetKind.url_input, "url"),
}


class ControlConstraints(BaseModel):
    required: bool = False
    pattern: Optional[str] = None
    min_length: Optional[int] = None
    max_length: Optional[int] = None
    min: Optional[float] = None
    max: Optional[float] = None
    step: Optional[float] = None
    options: List[FieldOption] = []


class ControlDescriptor(BaseModel):
    field_key: str
    widget_kind: WidgetKind
    input_type: str
    label: str
    placeholder: Optional[str] = None
    help_text: Optional[str] = None
    default_value: Optional[Any] = None
    grid_column: GridColumn = GridColumn.full
    read_only: bool = False
    constraints: ControlConstraints


class RenderedSection(BaseModel):
    section_key: str
    name: str
    description: Optional[str] = None
    collapsible: bool = True
    default_expanded: bool = False
    icon: Optional[str] = None
    controls: List[ControlDescriptor] = []


class RenderedForm(BaseModel):
    configuration_id: Optional[int] = None
    version: Optional[str] = None
    is_draft: bool = False
    read_only: bool = False
    sections: List[RenderedSection] = []
    violations_by_field_key: Dict[str, List[FieldViolation]] = {}


def describe_control(field: FormField, read_only: bool = False) -> ControlDescriptor:
    widget_kind, input_type = WIDGETS[field.type]
    rules = field.validation

    constraints = ControlConstraints(required=field.required)
    if field.type in TEXT_LIKE_TYPES and rules is not None:
        constraints.pattern = rules.pattern
        constraints.min_length = rules.min_length
        constraints.max_length = rules.max_length
    if field.type == FieldType.email and constraints.pattern is None:
        constraints.pattern = EMAIL_PATTERN.pattern
    if field.type == FieldType.number and rules is not None:
        constraints.min = rules.min
        constraints.max = rules.max
        constraints.step = rules.step
    if field.type in CHOICE_TYPES:
        constraints.options = [o.model_copy() for o in field.options]

    return ControlDescriptor(
        field_key=field.field_key,
        widget_kind=widget_kind,
        input_type=input_type,
        label=field.label,
        placeholder=field.placeholder,
        help_text=field.help_text,
        default_value=field.default_value,
        grid_column=field.grid_column,
        read_only=read_only or not field.editable,
        constraints=constraints,
    )


def render_form(
    schema: Optional[FormConfiguration],
    current_values: Optional[Mapping[str, Any]] = None,
    read_only: bool = False,
) -> RenderedForm:
    """Controls for every visible field, grouped by visible section, plus current violations."""
    if schema is None:
        return RenderedForm(read_only=read_only)

    evaluation = evaluate(schema, current_values)
    visible = {id(f) for f in evaluation.visible_fields}

    sections = []
    for section in sorted(schema.sections, key=lambda s: s.order):
        if not section.visible:
            continue
        controls = [
            describe_control(field, read_only=read_only)
            for field in sorted(section.fields, key=lambda f: f.order)
            if id(field) in visible
        ]
        sections.append(RenderedSection(
            section_key=section.section_key,
            name=section.name,
            description=section.description,
            collapsible=section.collapsible,
            default_expanded=section.default_expanded,
            icon=section.icon,
            controls=controls,
        ))

    return RenderedForm(
        configuration_id=schema.id,
        version=schema.version,
        is_draft=schema.is_draft,
        read_only=read_only,
        sections=sections,
        violations_by_field_key=evaluation.violations_by_field_key,
    )


def preview(schema: Optional[FormConfiguration], current_values: Optional[Mapping[str, Any]] = None) -> RenderedForm:
    return render_form(schema, current_values, read_only=True)
