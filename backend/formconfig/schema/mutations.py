"""
Schema mutation operations.

Each operation is a pydantic model tagged by `op` so the same payloads can
arrive over HTTP or be built in code. `apply_mutation` applies one to a deep
copy of the configuration, renumbers `order`, re-validates the whole schema
and returns the copy. The input configuration is never modified: a rejected
operation leaves nothing half-applied.
"""
from typing import Annotated, Any, List, Literal, Optional, Union

from pydantic import BaseModel, Field, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from formconfig.core.exceptions import NotFoundError, ProtectedItemError, SchemaValidationError
from formconfig.core.logging import schema_logger
from formconfig.schema.defaults import default_sections
from formconfig.schema.models import (
    FieldOption,
    FormConfiguration,
    FormField,
    FormSection,
    Violation,
)
from formconfig.schema.validation import validate_configuration

FIELD_MUTABLE_PROPERTIES = frozenset({
    "label", "type", "required", "visible", "editable", "default_value", "placeholder",
    "help_text", "options", "validation", "grid_column", "visible_when",
})

SECTION_MUTABLE_PROPERTIES = frozenset({
    "name", "description", "visible", "collapsible", "default_expanded", "icon",
})


def _get_section(config: FormConfiguration, section_key: str) -> FormSection:
    section = config.find_section(section_key)
    if section is None:
        raise NotFoundError(f"Section '{section_key}' not found")
    return section


def _get_field(config: FormConfiguration, section_key: str, field_key: str) -> FormField:
    field = _get_section(config, section_key).find_field(field_key)
    if field is None:
        raise NotFoundError(f"Field '{field_key}' not found in section '{section_key}'")
    return field


def _insert(items: list, item, position: Optional[int]) -> None:
    if position is None or position > len(items):
        items.append(item)
    else:
        items.insert(max(position - 1, 0), item)


def _reordered(items: list, keys: List[str], key_attr: str, what: str) -> list:
    current = [getattr(i, key_attr) for i in items]
    if sorted(keys) != sorted(current) or len(set(keys)) != len(keys):
        raise SchemaValidationError(
            f"Reorder must list every {what} key exactly once",
            [Violation(
                location=what,
                code="invalid_reorder",
                message=f"expected a permutation of {current}, got {keys}",
            )],
        )
    by_key = {getattr(i, key_attr): i for i in items}
    return [by_key[k] for k in keys]


class AddSection(BaseModel):
    op: Literal["add_section"] = "add_section"
    section: FormSection
    position: Optional[int] = Field(None, ge=1, description="1-based insertion point; appends when omitted")

    def apply(self, config: FormConfiguration) -> None:
        section = self.section.model_copy(deep=True)
        section.is_custom = True
        for field in section.fields:
            field.is_custom = True
        _insert(config.sections, section, self.position)


class DeleteSection(BaseModel):
    op: Literal["delete_section"] = "delete_section"
    section_key: str

    def apply(self, config: FormConfiguration) -> None:
        section = _get_section(config, self.section_key)
        if not section.is_custom:
            raise ProtectedItemError(f"Cannot delete built-in section '{self.section_key}'")
        config.sections.remove(section)


class AddField(BaseModel):
    op: Literal["add_field"] = "add_field"
    section_key: str
    field: FormField
    position: Optional[int] = Field(None, ge=1)

    def apply(self, config: FormConfiguration) -> None:
        section = _get_section(config, self.section_key)
        field = self.field.model_copy(deep=True)
        field.is_custom = True
        _insert(section.fields, field, self.position)


class DeleteField(BaseModel):
    op: Literal["delete_field"] = "delete_field"
    section_key: str
    field_key: str

    def apply(self, config: FormConfiguration) -> None:
        section = _get_section(config, self.section_key)
        field = _get_field(config, self.section_key, self.field_key)
        if not field.is_custom:
            raise ProtectedItemError(f"Cannot delete built-in field '{self.field_key}'")
        section.fields.remove(field)


class ReorderSections(BaseModel):
    op: Literal["reorder_sections"] = "reorder_sections"
    section_keys: List[str]

    def apply(self, config: FormConfiguration) -> None:
        config.sections = _reordered(config.sections, self.section_keys, "section_key", "section")


class ReorderFields(BaseModel):
    op: Literal["reorder_fields"] = "reorder_fields"
    section_key: str
    field_keys: List[str]

    def apply(self, config: FormConfiguration) -> None:
        section = _get_section(config, self.section_key)
        section.fields = _reordered(section.fields, self.field_keys, "field_key", "field")


class SetFieldProperty(BaseModel):
    op: Literal["set_field_property"] = "set_field_property"
    section_key: str
    field_key: str
    property: str
    value: Any = None

    def apply(self, config: FormConfiguration) -> None:
        if self.property not in FIELD_MUTABLE_PROPERTIES:
            raise SchemaValidationError(
                f"Field property '{self.property}' cannot be changed",
                [Violation(
                    location=f"sections[{self.section_key}].fields[{self.field_key}].{self.property}",
                    code="immutable_property",
                    message=f"'{self.property}' is not an editable field property",
                )],
            )
        section = _get_section(config, self.section_key)
        field = _get_field(config, self.section_key, self.field_key)
        data = field.model_dump()
        data[self.property] = self.value
        updated = FormField.model_validate(data)
        section.fields[section.fields.index(field)] = updated


class SetSectionProperty(BaseModel):
    op: Literal["set_section_property"] = "set_section_property"
    section_key: str
    property: str
    value: Any = None

    def apply(self, config: FormConfiguration) -> None:
        if self.property not in SECTION_MUTABLE_PROPERTIES:
            raise SchemaValidationError(
                f"Section property '{self.property}' cannot be changed",
                [Violation(
                    location=f"sections[{self.section_key}].{self.property}",
                    code="immutable_property",
                    message=f"'{self.property}' is not an editable section property",
                )],
            )
        section = _get_section(config, self.section_key)
        data = section.model_dump()
        data[self.property] = self.value
        updated = FormSection.model_validate(data)
        config.sections[config.sections.index(section)] = updated


class SetFieldOptions(BaseModel):
    op: Literal["set_field_options"] = "set_field_options"
    section_key: str
    field_key: str
    options: List[FieldOption]

    def apply(self, config: FormConfiguration) -> None:
        field = _get_field(config, self.section_key, self.field_key)
        field.options = [o.model_copy() for o in self.options]


class AddFieldOption(BaseModel):
    op: Literal["add_field_option"] = "add_field_option"
    section_key: str
    field_key: str
    option: FieldOption

    def apply(self, config: FormConfiguration) -> None:
        field = _get_field(config, self.section_key, self.field_key)
        field.options.append(self.option.model_copy())


class ReplaceSections(BaseModel):
    """Swap in a whole edited section list, as the form editor saves it."""
    op: Literal["replace_sections"] = "replace_sections"
    sections: List[FormSection]

    def apply(self, config: FormConfiguration) -> None:
        incoming = {s.section_key: s for s in self.sections}
        for section in config.sections:
            if section.is_custom:
                continue
            replacement = incoming.get(section.section_key)
            if replacement is None:
                raise ProtectedItemError(f"Cannot delete built-in section '{section.section_key}'")
            kept = {f.field_key for f in replacement.fields}
            for field in section.fields:
                if not field.is_custom and field.field_key not in kept:
                    raise ProtectedItemError(f"Cannot delete built-in field '{field.field_key}'")
        # Built-in status comes from the stored schema, never from the payload
        flags = {
            s.section_key: (s.is_custom, {f.field_key: f.is_custom for f in s.fields})
            for s in config.sections
        }
        ranked = sorted(enumerate(self.sections), key=lambda p: (p[1].order, p[0]))
        config.sections = [s.model_copy(deep=True) for _, s in ranked]
        for section in config.sections:
            section_custom, field_flags = flags.get(section.section_key, (True, {}))
            section.is_custom = section_custom
            section.fields = [f for _, f in sorted(enumerate(section.fields), key=lambda p: (p[1].order, p[0]))]
            for field in section.fields:
                field.is_custom = field_flags.get(field.field_key, True)


class ResetToDefaults(BaseModel):
    op: Literal["reset_to_defaults"] = "reset_to_defaults"

    def apply(self, config: FormConfiguration) -> None:
        config.sections = default_sections()


MutationOp = Annotated[
    Union[
        AddSection,
        DeleteSection,
        AddField,
        DeleteField,
        ReorderSections,
        ReorderFields,
        SetFieldProperty,
        SetSectionProperty,
        SetFieldOptions,
        AddFieldOption,
        ReplaceSections,
        ResetToDefaults,
    ],
    Field(discriminator="op"),
]

_mutation_adapter = TypeAdapter(MutationOp)


def parse_mutation(payload: dict) -> MutationOp:
    try:
        return _mutation_adapter.validate_python(payload)
    except PydanticValidationError as e:
        raise SchemaValidationError("Invalid mutation payload", _violations_from_pydantic(e)) from e


def renumber(config: FormConfiguration) -> None:
    """Make section and field `order` contiguous 1..N following list order."""
    for s_idx, section in enumerate(config.sections, start=1):
        section.order = s_idx
        for f_idx, field in enumerate(section.fields, start=1):
            field.order = f_idx


def _violations_from_pydantic(error: PydanticValidationError) -> List[Violation]:
    return [
        Violation(
            location=".".join(str(p) for p in err.get("loc", ())) or "payload",
            code=err.get("type", "value_error"),
            message=err.get("msg", "invalid value"),
        )
        for err in error.errors()
    ]


def apply_mutation(config: FormConfiguration, op: MutationOp) -> FormConfiguration:
    """
    Apply `op` to a copy of `config` and return the validated copy.

    Raises SchemaValidationError, ProtectedItemError or NotFoundError; in
    every case `config` is untouched.
    """
    working = config.clone()
    try:
        op.apply(working)
    except PydanticValidationError as e:
        violations = _violations_from_pydantic(e)
        schema_logger.warning(f"{op.op} rejected", violations=[v.message for v in violations])
        raise SchemaValidationError(f"{op.op} rejected: {violations[0].message}", violations) from e

    renumber(working)

    violations = validate_configuration(working)
    if violations:
        schema_logger.warning(f"{op.op} rejected", violations=[v.message for v in violations])
        raise SchemaValidationError(f"{op.op} rejected: {violations[0].message}", violations)

    schema_logger.debug(f"{op.op} applied", configuration_id=config.id)
    return working
