import pytest

from formconfig.core.exceptions import NotFoundError
from formconfig.schema.mutations import SetFieldProperty
from formconfig.services.form_config import FormConfigurationService
from formconfig.services.repository import ConfigurationRepository

pytestmark = pytest.mark.anyio


@pytest.fixture
async def service(test_session):
    return FormConfigurationService(test_session)


async def test_seed_default_is_idempotent(service):
    first = await service.seed_default()
    second = await service.seed_default()
    assert first.id == second.id
    assert len(await service.list_configurations()) == 1


async def test_default_template_is_the_fallback(service):
    seeded = await service.seed_default()
    await service.create_configuration(name="Other")
    schema = await service.get_active_schema(template_id=12345)
    assert schema.id == seeded.id


async def test_template_specific_schema(service, test_session):
    await service.seed_default()
    special = await service.create_configuration(name="Solvents")
    template = await ConfigurationRepository(test_session).create_template("Solvents", special.id)
    schema = await service.get_active_schema(template_id=template.id)
    assert schema.id == special.id


async def test_template_for_missing_configuration(test_session):
    with pytest.raises(NotFoundError):
        await ConfigurationRepository(test_session).create_template("Ghost", 404)


async def test_active_schema_hides_draft_from_end_users(service):
    config = await service.seed_default()
    await service.apply_mutation(config.id, SetFieldProperty(
        section_key="basic", field_key="sbu", property="required", value=False,
    ))
    live = await service.get_active_schema()
    draft = await service.get_active_schema(include_draft=True)
    assert live.find_section("basic").find_field("sbu").required is True
    assert draft.find_section("basic").find_field("sbu").required is False
    assert draft.is_draft and not live.is_draft


async def test_save_draft_without_sections_while_published_writes_nothing(service):
    config = await service.create_configuration()
    saved = await service.save_draft(config.id)
    assert not saved.is_draft
    assert saved.updated_at == config.updated_at


async def test_render_schema_is_none_when_nothing_stored(service):
    assert await service.get_render_schema() is None
    form = await service.render()
    assert form.sections == []
