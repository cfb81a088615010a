import pytest

from formconfig.engine.validation import validate_value
from formconfig.schema.models import FormField


def _codes(field, value, **kwargs):
    return [v.code for v in validate_value(field, value, **kwargs)]


def test_required_text():
    field = FormField(field_key="name", label="Product Name", required=True)
    violations = validate_value(field, "  ")
    assert [v.code for v in violations] == ["required"]
    assert violations[0].message == "Product Name is required"


def test_required_not_enforced_when_disabled():
    field = FormField(field_key="name", label="Name", required=True)
    assert _codes(field, None, enforce_required=False) == []


def test_optional_empty_value_passes_type_checks():
    field = FormField(field_key="weight", label="Weight", type="number", validation={"min": 1})
    assert _codes(field, "") == []


def test_pattern():
    field = FormField(field_key="cas_number", label="CAS Number", validation={"pattern": r"^\d{1,7}-\d{2}-\d$"})
    assert _codes(field, "64-17-5") == []
    violations = validate_value(field, "64175")
    assert [v.code for v in violations] == ["pattern"]
    assert violations[0].message == "Invalid cas number format"


def test_lengths():
    field = FormField(field_key="code", label="Code", validation={"min_length": 2, "max_length": 4})
    assert _codes(field, "a") == ["min_length"]
    assert _codes(field, "abcde") == ["max_length"]
    assert _codes(field, "abc") == []


def test_text_rejects_non_strings():
    field = FormField(field_key="code", label="Code")
    assert _codes(field, 12) == ["type"]


@pytest.mark.parametrize("value, codes", [
    ("someone@example.com", []),
    ("someone@", ["email"]),
    ("not an email", ["email"]),
])
def test_email(value, codes):
    field = FormField(field_key="contact", label="Contact", type="email")
    assert _codes(field, value) == codes


@pytest.mark.parametrize("value, codes", [
    ("https://example.com/product", []),
    ("ftp://example.com", ["url"]),
    ("example.com", ["url"]),
])
def test_url(value, codes):
    field = FormField(field_key="product_url", label="Product URL", type="url")
    assert _codes(field, value) == codes


@pytest.mark.parametrize("value, codes", [
    (50, []),
    ("50", []),
    (-1, ["min"]),
    (101, ["max"]),
    ("abc", ["type"]),
    (True, ["type"]),
    ("nan", ["type"]),
])
def test_number(value, codes):
    field = FormField(field_key="margin", label="Target Margin", type="number", validation={"min": 0, "max": 100})
    assert _codes(field, value) == codes


def test_choice_must_be_an_option():
    field = FormField(field_key="priority", label="Priority", type="select", options=[
        {"value": "LOW", "label": "Low"}, {"value": "HIGH", "label": "High"},
    ])
    assert _codes(field, "LOW") == []
    assert _codes(field, "MEDIUM") == ["option"]


def test_numeric_option_accepts_number_value():
    field = FormField(field_key="sbu", label="SBU", type="radio", options=[{"value": 775, "label": "SBU 775"}])
    assert _codes(field, 775) == []


@pytest.mark.parametrize("value, codes", [
    (True, []),
    (False, []),
    ("true", []),
    ("off", []),
    ("maybe", ["type"]),
    (1, ["type"]),
])
def test_checkbox_is_boolean(value, codes):
    field = FormField(field_key="agree", label="Agree", type="checkbox")
    assert _codes(field, value) == codes


def test_required_checkbox_accepts_false():
    field = FormField(field_key="agree", label="Agree", type="checkbox", required=True)
    assert _codes(field, False) == []
    assert _codes(field, None) == ["required"]


@pytest.mark.parametrize("value, codes", [
    ("2024-02-29", []),
    ("2024-02-30", ["date"]),
    ("29/02/2024", ["date"]),
])
def test_date(value, codes):
    field = FormField(field_key="launch", label="Launch", type="date")
    assert _codes(field, value) == codes
