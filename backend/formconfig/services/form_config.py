"""
Form Configuration Service - the operations the admin editor and the live
form call.

Each operation loads the stored document, runs it through the
VersionManager and saves the result. Nothing is written when the manager
raises, so a rejected call leaves the stored configuration unchanged.
"""
from typing import Any, List, Mapping, Optional

from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from formconfig.core.config import settings
from formconfig.core.exceptions import NotFoundError
from formconfig.core.logging import api_logger, log_operation, version_logger
from formconfig.engine.evaluation import Evaluation, evaluate
from formconfig.engine.render import RenderedForm, preview, render_form
from formconfig.schema.defaults import default_sections
from formconfig.schema.models import ConfigurationSummary, FormConfiguration, FormSection, Violation
from formconfig.schema.mutations import MutationOp, ReplaceSections
from formconfig.schema.validation import validate_configuration
from formconfig.schema.versioning import drop_minor
from formconfig.services.repository import ConfigurationRepository
from formconfig.services.version_manager import VersionManager


class ConfigurationDiagnostics(BaseModel):
    """State of the stored lifecycle data, for support and debugging."""
    configuration_id: int
    version: str
    published_version: Optional[str] = None
    is_draft: bool
    has_unpublished_changes: bool
    rollback_available: bool
    rollback_matches_published: bool
    rollback_target_version: Optional[str] = None
    violations: List[Violation] = []


def _dump_sections(sections: Optional[List[FormSection]]) -> list:
    return [s.model_dump() for s in (sections or [])]


class FormConfigurationService:

    def __init__(self, db: AsyncSession, manager: Optional[VersionManager] = None):
        self.repository = ConfigurationRepository(db)
        self.manager = manager or VersionManager()

    async def _store(self, config: FormConfiguration, editor: Optional[str]) -> FormConfiguration:
        config.updated_by = editor or settings.SYSTEM_USER
        return await self.repository.save(config)

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    @log_operation("create_configuration", api_logger)
    async def create_configuration(
        self,
        name: Optional[str] = None,
        template_name: Optional[str] = None,
        description: Optional[str] = None,
        editor: Optional[str] = None,
    ) -> FormConfiguration:
        """New configuration seeded with the built-in sections, published at the initial version."""
        config = FormConfiguration(
            name=name or settings.DEFAULT_CONFIGURATION_NAME,
            template_name=template_name or settings.DEFAULT_TEMPLATE_NAME,
            description=description,
            version=settings.INITIAL_VERSION,
            sections=default_sections(),
            # The first configuration becomes the active one
            is_active=await self.repository.find_active() is None,
            created_by=editor or settings.SYSTEM_USER,
        )
        return await self._store(config, editor)

    async def get_configuration(self, config_id: int) -> FormConfiguration:
        return await self.repository.load(config_id)

    async def list_configurations(self) -> List[ConfigurationSummary]:
        return await self.repository.list()

    async def get_active_schema(
        self,
        template_id: Optional[int] = None,
        include_draft: bool = False,
    ) -> FormConfiguration:
        """
        Schema for a template, falling back to the default template and then
        to the active configuration. End users get the published baseline;
        the editor asks for the draft with `include_draft`.
        """
        config = None
        if template_id is not None:
            config = await self.repository.find_for_template(template_id)
            if config is None:
                api_logger.debug("No schema for template, using default", template_id=template_id)
        if config is None:
            config = await self.repository.find_default_template_configuration()
        if config is None:
            config = await self.repository.find_active()
        if config is None:
            raise NotFoundError("No active form configuration")
        return config if include_draft else config.published_view()

    async def get_render_schema(self, template_id: Optional[int] = None) -> Optional[FormConfiguration]:
        """Like get_active_schema, but a missing schema renders as an empty form."""
        try:
            return await self.get_active_schema(template_id)
        except NotFoundError as e:
            api_logger.warning("Rendering empty form", reason=e.message, template_id=template_id)
            return None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @log_operation("apply_mutation", version_logger)
    async def apply_mutation(self, config_id: int, op: MutationOp, editor: Optional[str] = None) -> FormConfiguration:
        config = await self.repository.load(config_id)
        return await self._store(self.manager.mutate(config, op), editor)

    @log_operation("save_draft", version_logger)
    async def save_draft(
        self,
        config_id: int,
        sections: Optional[List[FormSection]] = None,
        editor: Optional[str] = None,
    ) -> FormConfiguration:
        """Persist a full edited section list as the draft, or re-save the current draft."""
        config = await self.repository.load(config_id)
        if sections is not None:
            return await self._store(self.manager.mutate(config, ReplaceSections(sections=sections)), editor)
        saved = self.manager.save_draft(config)
        if not config.is_draft:
            return saved
        return await self._store(saved, editor)

    @log_operation("publish", version_logger)
    async def publish(
        self,
        config_id: int,
        pending: Optional[MutationOp] = None,
        editor: Optional[str] = None,
    ) -> FormConfiguration:
        config = await self.repository.load(config_id)
        return await self._store(self.manager.publish(config, pending), editor)

    @log_operation("discard_draft", version_logger)
    async def discard_draft(self, config_id: int, editor: Optional[str] = None) -> FormConfiguration:
        config = await self.repository.load(config_id)
        return await self._store(self.manager.discard_draft(config), editor)

    @log_operation("rollback", version_logger)
    async def rollback(self, config_id: int, editor: Optional[str] = None) -> FormConfiguration:
        config = await self.repository.load(config_id)
        return await self._store(self.manager.rollback(config), editor)

    @log_operation("activate", api_logger)
    async def activate(self, config_id: int) -> FormConfiguration:
        return await self.repository.activate(config_id)

    # ------------------------------------------------------------------
    # Rendering and diagnostics
    # ------------------------------------------------------------------

    async def evaluate(self, config_id: int, values: Optional[Mapping[str, Any]] = None) -> Evaluation:
        """Evaluate the working schema, draft included, as the editor sees it."""
        return evaluate(await self.repository.load(config_id), values)

    async def preview(self, config_id: int, values: Optional[Mapping[str, Any]] = None) -> RenderedForm:
        return preview(await self.repository.load(config_id), values)

    async def render(self, template_id: Optional[int] = None, values: Optional[Mapping[str, Any]] = None) -> RenderedForm:
        return render_form(await self.get_render_schema(template_id), values)

    async def diagnose(self, config_id: int) -> ConfigurationDiagnostics:
        config = await self.repository.load(config_id)
        published = _dump_sections(config.published_sections)
        previous = _dump_sections(config.last_published_sections)
        return ConfigurationDiagnostics(
            configuration_id=config_id,
            version=config.version,
            published_version=config.published_version,
            is_draft=config.is_draft,
            has_unpublished_changes=_dump_sections(config.sections) != published,
            rollback_available=config.rollback_available,
            # A snapshot equal to the live baseline makes rollback a silent no-op
            rollback_matches_published=config.rollback_available and previous == published,
            rollback_target_version=(
                drop_minor(config.published_version or config.version) if config.rollback_available else None
            ),
            violations=validate_configuration(config),
        )

    @log_operation("seed_default", api_logger)
    async def seed_default(self) -> FormConfiguration:
        """Create the built-in configuration and its default template when none exists."""
        existing = await self.repository.find_active()
        if existing is not None:
            return existing
        config = await self.create_configuration()
        await self.repository.create_template(
            settings.DEFAULT_TEMPLATE_NAME,
            config.id,
            description="Default product ticket template",
            is_default=True,
        )
        return config
