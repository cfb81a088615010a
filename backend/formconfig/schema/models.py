"""
Pydantic document model for a form configuration.

A configuration is an ordered list of sections, each holding an ordered list
of fields. The model is plain data; invariants are checked by
`formconfig.schema.validation` and changes go through
`formconfig.schema.mutations`.
"""
from datetime import datetime
from typing import Any, Iterator, List, Optional, Tuple

from pydantic import BaseModel, Field, computed_field, field_validator, model_validator

from formconfig.core.config import settings
from formconfig.db.enums import ConfigurationState, FieldType, GridColumn


class FieldOption(BaseModel):
    """One choice of a select or radio field."""
    value: Optional[str] = None
    label: Optional[str] = None

    @field_validator("value", "label", mode="before")
    @classmethod
    def _stringify(cls, v):
        # Option values are compared as strings; accept numbers from JSON
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(v)
        return v


class FieldValidation(BaseModel):
    """Declared constraints; which ones apply depends on the field type."""
    pattern: Optional[str] = None
    min_length: Optional[int] = None
    max_length: Optional[int] = None
    min: Optional[float] = None
    max: Optional[float] = None
    step: Optional[float] = None

    def declared(self) -> dict[str, Any]:
        """Constraints that are actually set."""
        return {k: v for k, v in self.model_dump().items() if v is not None}


class VisibleWhen(BaseModel):
    """Render the owning field only while `field_key` currently equals `value`."""
    field_key: str
    value: Any = None


class FormField(BaseModel):
    field_key: str
    label: str = ""
    type: FieldType = FieldType.text
    required: bool = False
    visible: bool = True
    editable: bool = True
    default_value: Optional[Any] = None
    placeholder: Optional[str] = None
    help_text: Optional[str] = None
    options: List[FieldOption] = []
    validation: Optional[FieldValidation] = None
    grid_column: GridColumn = GridColumn.full
    order: int = 0
    is_custom: bool = False
    visible_when: Optional[VisibleWhen] = None

    @property
    def option_values(self) -> List[Optional[str]]:
        return [o.value for o in self.options]


class FormSection(BaseModel):
    section_key: str
    name: str = ""
    description: Optional[str] = None
    order: int = 0
    visible: bool = True
    collapsible: bool = True
    default_expanded: bool = False
    icon: Optional[str] = None
    is_custom: bool = False
    fields: List[FormField] = []

    def find_field(self, field_key: str) -> Optional[FormField]:
        for field in self.fields:
            if field.field_key == field_key:
                return field
        return None


class FormMetadata(BaseModel):
    total_fields: int = 0
    custom_fields_count: int = 0
    custom_sections_count: int = 0


def compute_metadata(sections: List[FormSection]) -> FormMetadata:
    """Derive the counts shown in listings. Never stored as authoritative."""
    total_fields = 0
    custom_fields_count = 0
    custom_sections_count = 0
    for section in sections:
        if section.is_custom:
            custom_sections_count += 1
        total_fields += len(section.fields)
        custom_fields_count += sum(1 for f in section.fields if f.is_custom)
    return FormMetadata(
        total_fields=total_fields,
        custom_fields_count=custom_fields_count,
        custom_sections_count=custom_sections_count,
    )


class FormConfiguration(BaseModel):
    """
    Root aggregate.

    `sections` is the working schema (the draft while `is_draft` is set),
    `published_sections` is the baseline currently served to end users and
    `last_published_sections` is the baseline it replaced, kept as the single
    rollback target.
    """
    id: Optional[int] = None
    name: str = "Product Ticket Form"
    template_name: str = "Default"
    description: Optional[str] = None
    version: str = settings.INITIAL_VERSION
    published_version: Optional[str] = None
    is_draft: bool = False
    is_active: bool = True
    last_published_at: Optional[datetime] = None
    sections: List[FormSection] = []
    published_sections: Optional[List[FormSection]] = None
    last_published_sections: List[FormSection] = []
    created_by: str = settings.SYSTEM_USER
    updated_by: str = settings.SYSTEM_USER
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("version", "published_version", mode="before")
    @classmethod
    def _normalize_version(cls, v):
        # Documents written with a three-part version keep major.minor only
        if isinstance(v, str) and v.count(".") == 2:
            major, minor, _ = v.split(".")
            return f"{major}.{minor}"
        return v

    @model_validator(mode="after")
    def _fill_baseline(self):
        if self.published_version is None:
            self.published_version = self.version
        if self.published_sections is None:
            self.published_sections = [s.model_copy(deep=True) for s in self.sections]
        return self

    @computed_field
    @property
    def metadata(self) -> FormMetadata:
        return compute_metadata(self.sections)

    @property
    def state(self) -> ConfigurationState:
        return ConfigurationState.draft if self.is_draft else ConfigurationState.published

    @property
    def rollback_available(self) -> bool:
        return bool(self.last_published_sections)

    def clone(self) -> "FormConfiguration":
        return self.model_copy(deep=True)

    def find_section(self, section_key: str) -> Optional[FormSection]:
        for section in self.sections:
            if section.section_key == section_key:
                return section
        return None

    def iter_fields(self) -> Iterator[Tuple[FormSection, FormField]]:
        """Yield (section, field) pairs in render order."""
        for section in sorted(self.sections, key=lambda s: s.order):
            for field in sorted(section.fields, key=lambda f: f.order):
                yield section, field

    def published_view(self) -> "FormConfiguration":
        """Copy of this configuration as end users see it: the published baseline."""
        view = self.clone()
        view.sections = [s.model_copy(deep=True) for s in (self.published_sections or [])]
        view.version = self.published_version or self.version
        view.is_draft = False
        return view


class Violation(BaseModel):
    """A broken schema invariant, located by a readable path."""
    location: str
    code: str
    message: str


class ConfigurationSummary(BaseModel):
    id: int
    name: str
    template_name: str
    version: str
    is_draft: bool
    is_active: bool
    metadata: FormMetadata = Field(default_factory=FormMetadata)
    updated_by: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
