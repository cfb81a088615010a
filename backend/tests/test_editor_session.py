import pytest

from formconfig.core.exceptions import NotAvailableError, SchemaValidationError
from formconfig.schema.mutations import AddFieldOption, AddSection, SetFieldProperty
from formconfig.services.editor_session import EditorSession
from formconfig.services.form_config import FormConfigurationService

pytestmark = pytest.mark.anyio


def _relabel(label):
    return SetFieldProperty(section_key="basic", field_key="product_name", property="label", value=label)


def _label(config):
    return config.find_section("basic").find_field("product_name").label


@pytest.fixture
async def service(test_session):
    return FormConfigurationService(test_session)


@pytest.fixture
async def session(service):
    config = await service.create_configuration(editor="admin@example.com")
    return await EditorSession.open(service, config.id, editor="admin@example.com")


async def test_staged_edits_stay_local(service, session):
    session.stage(_relabel("Staged"))
    assert session.has_pending_changes
    assert _label(session.working) == "Staged"

    stored = await service.get_configuration(session.config_id)
    assert _label(stored) == "Product Name"
    assert not stored.is_draft


async def test_rejected_stage_leaves_working_copy(session):
    session.stage(_relabel("Kept"))
    op = AddFieldOption(section_key="basic", field_key="priority", option={"value": "LOW", "label": "Low again"})
    with pytest.raises(SchemaValidationError):
        session.stage(op)
    assert _label(session.working) == "Kept"


async def test_working_copy_is_not_shared(session):
    copy = session.working
    copy.sections.clear()
    assert session.working.sections


async def test_save_draft_persists_staged_edits_once(service, session):
    session.stage(_relabel("One"))
    session.stage(AddSection(section={"section_key": "extra", "name": "Extra"}))
    saved = await session.save_draft()
    assert saved.is_draft
    assert saved.version == "1.0"
    assert saved.updated_by == "admin@example.com"
    assert not session.has_pending_changes

    stored = await service.get_configuration(session.config_id)
    assert _label(stored) == "One"
    assert stored.find_section("extra").is_custom


async def test_publish_includes_staged_edits(service, session):
    session.stage(_relabel("Published label"))
    published = await session.publish()
    assert published.version == "1.1"
    assert not published.is_draft
    assert _label(published) == "Published label"
    assert _label(session.stored) == "Published label"


async def test_restore_default_drops_staged_edits(service, session):
    session.stage(_relabel("Throwaway"))
    restored = await session.restore_default()
    assert not session.has_pending_changes
    assert _label(restored) == "Product Name"
    stored = await service.get_configuration(session.config_id)
    assert stored.version == "1.0"
    assert not stored.is_draft


async def test_restore_default_keeps_persisted_draft(session):
    session.stage(_relabel("Saved draft"))
    await session.save_draft()
    session.stage(_relabel("Unsaved"))
    restored = await session.restore_default()
    assert restored.is_draft
    assert _label(restored) == "Saved draft"


async def test_three_undo_levels(service, session):
    session.stage(_relabel("v1.1"))
    await session.publish()

    session.stage(_relabel("draft"))
    await session.save_draft()
    discarded = await session.discard_draft()
    assert _label(discarded) == "v1.1"
    assert discarded.version == "1.1"

    rolled_back = await session.rollback()
    assert _label(rolled_back) == "Product Name"
    assert rolled_back.version == "1.0"

    with pytest.raises(NotAvailableError):
        await session.rollback()


async def test_preview_uses_working_copy(session):
    session.stage(SetFieldProperty(section_key="basic", field_key="product_name", property="required", value=True))
    evaluation = session.evaluate({})
    assert "product_name" in evaluation.violations_by_field_key
    form = session.preview({})
    assert form.read_only
    assert form.violations_by_field_key == evaluation.violations_by_field_key
