import enum


class FieldType(str, enum.Enum):
    text = "text"
    textarea = "textarea"
    number = "number"
    select = "select"
    radio = "radio"
    checkbox = "checkbox"
    date = "date"
    email = "email"
    url = "url"


class GridColumn(str, enum.Enum):
    full = "full"
    half = "half"
    third = "third"
    quarter = "quarter"


class ConfigurationState(str, enum.Enum):
    published = "published"
    draft = "draft"


class WidgetKind(str, enum.Enum):
    text_input = "text_input"
    text_area = "text_area"
    number_input = "number_input"
    dropdown = "dropdown"
    radio_group = "radio_group"
    checkbox = "checkbox"
    date_picker = "date_picker"
    email_input = "email_input"
    url_input = "url_input"


# Field types whose value is free text
TEXT_LIKE_TYPES = frozenset({FieldType.text, FieldType.textarea, FieldType.email, FieldType.url})

# Field types whose value must be one of the declared options
CHOICE_TYPES = frozenset({FieldType.select, FieldType.radio})
