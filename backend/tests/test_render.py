import pytest

from formconfig.db.enums import FieldType, WidgetKind
from formconfig.engine.evaluation import evaluate
from formconfig.engine.render import describe_control, preview, render_form
from formconfig.engine.validation import EMAIL_PATTERN
from formconfig.schema.models import FormField


@pytest.mark.parametrize("field_type, widget, input_type", [
    (FieldType.text, WidgetKind.text_input, "text"),
    (FieldType.textarea, WidgetKind.text_area, "textarea"),
    (FieldType.number, WidgetKind.number_input, "number"),
    (FieldType.checkbox, WidgetKind.checkbox, "checkbox"),
    (FieldType.date, WidgetKind.date_picker, "date"),
    (FieldType.email, WidgetKind.email_input, "email"),
    (FieldType.url, WidgetKind.url_input, "url"),
])
def test_widget_per_type(field_type, widget, input_type):
    control = describe_control(FormField(field_key="f", label="F", type=field_type))
    assert control.widget_kind == widget
    assert control.input_type == input_type


@pytest.mark.parametrize("field_type, widget", [
    (FieldType.select, WidgetKind.dropdown),
    (FieldType.radio, WidgetKind.radio_group),
])
def test_choice_controls_carry_options(field_type, widget):
    field = FormField(field_key="f", label="F", type=field_type, options=[{"value": "a", "label": "A"}])
    control = describe_control(field)
    assert control.widget_kind == widget
    assert [o.value for o in control.constraints.options] == ["a"]


def test_number_constraints_only():
    field = FormField(field_key="w", label="W", type="number", required=True,
                      validation={"min": 0, "max": 10, "step": 0.5})
    constraints = describe_control(field).constraints
    assert constraints.required
    assert (constraints.min, constraints.max, constraints.step) == (0, 10, 0.5)
    assert constraints.pattern is None
    assert constraints.max_length is None


def test_email_gets_default_pattern():
    control = describe_control(FormField(field_key="e", label="E", type="email"))
    assert control.constraints.pattern == EMAIL_PATTERN.pattern


def test_descriptor_does_not_share_options():
    field = FormField(field_key="f", label="F", type="select", options=[{"value": "a", "label": "A"}])
    control = describe_control(field)
    control.constraints.options[0].label = "changed"
    assert field.options[0].label == "A"


def test_non_editable_field_is_read_only():
    field = FormField(field_key="f", label="F", editable=False)
    assert describe_control(field).read_only
    assert not describe_control(FormField(field_key="g", label="G")).read_only


def test_render_groups_visible_fields_by_section(seeded_config):
    form = render_form(seeded_config, {"production_type": "Procured"})
    keys = {s.section_key: [c.field_key for c in s.controls] for s in form.sections}
    assert keys["vendor"] == ["vendor_name", "vendor_product_name", "vendor_sap_number", "vendor_product_number"]
    assert form.version == "1.0"
    assert not form.read_only


def test_render_matches_evaluation(seeded_config):
    values = {"production_type": "Produced", "cas_number": "bad"}
    form = render_form(seeded_config, values)
    evaluation = evaluate(seeded_config, values)
    rendered = [c.field_key for s in form.sections for c in s.controls]
    assert rendered == [f.field_key for f in evaluation.visible_fields]
    assert form.violations_by_field_key == evaluation.violations_by_field_key


def test_preview_equals_render_except_read_only(seeded_config):
    values = {"production_type": "Procured", "target_margin": 150}
    live = render_form(seeded_config, values)
    shown = preview(seeded_config, values)
    assert shown.read_only
    assert all(c.read_only for s in shown.sections for c in s.controls)

    strip = lambda form: [
        [c.model_dump(exclude={"read_only"}) for c in s.controls] for s in form.sections
    ]
    assert strip(shown) == strip(live)
    assert shown.violations_by_field_key == live.violations_by_field_key
    assert "target_margin" in shown.violations_by_field_key


def test_hidden_section_is_not_rendered(seeded_config):
    seeded_config.find_section("corpbase").visible = False
    form = render_form(seeded_config, {})
    assert "corpbase" not in [s.section_key for s in form.sections]


def test_render_without_schema_is_empty():
    form = render_form(None, {})
    assert form.sections == []
    assert form.violations_by_field_key == {}
