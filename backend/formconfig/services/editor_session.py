"""
Editor Session - local, unsaved edits over a stored configuration.

Staged operations are validated immediately against a private working copy
but reach the store only on save_draft or publish, as one write.
`restore_default` is the session-level undo: it drops the staged edits and
reloads whatever is stored, without touching the lifecycle state.
Callers only ever receive copies of the session's documents.
"""
from typing import Any, List, Mapping, Optional

from formconfig.core.logging import get_logger
from formconfig.engine.evaluation import Evaluation, evaluate
from formconfig.engine.render import RenderedForm, preview
from formconfig.schema.models import FormConfiguration
from formconfig.schema.mutations import MutationOp, ReplaceSections, apply_mutation
from formconfig.services.form_config import FormConfigurationService

logger = get_logger("formconfig.editor")


class EditorSession:

    def __init__(self, service: FormConfigurationService, stored: FormConfiguration, editor: Optional[str] = None):
        self.service = service
        self.editor = editor
        self._stored = stored.clone()
        self._working = stored.clone()
        self._staged: List[MutationOp] = []

    @classmethod
    async def open(cls, service: FormConfigurationService, config_id: int, editor: Optional[str] = None) -> "EditorSession":
        stored = await service.get_configuration(config_id)
        return cls(service, stored, editor)

    @property
    def config_id(self) -> Optional[int]:
        return self._stored.id

    @property
    def stored(self) -> FormConfiguration:
        return self._stored.clone()

    @property
    def working(self) -> FormConfiguration:
        return self._working.clone()

    @property
    def has_pending_changes(self) -> bool:
        return bool(self._staged)

    def stage(self, op: MutationOp) -> FormConfiguration:
        """Apply `op` to the working copy. A rejected op leaves the working copy as it was."""
        self._working = apply_mutation(self._working, op)
        self._staged.append(op)
        logger.debug(f"Staged {op.op}", configuration_id=self.config_id, pending=len(self._staged))
        return self.working

    def _pending(self) -> Optional[MutationOp]:
        if not self._staged:
            return None
        return ReplaceSections(sections=[s.model_copy(deep=True) for s in self._working.sections])

    def _reset(self, stored: FormConfiguration) -> FormConfiguration:
        self._stored = stored.clone()
        self._working = stored.clone()
        self._staged = []
        return stored

    async def save_draft(self) -> FormConfiguration:
        pending = self._pending()
        sections = pending.sections if pending is not None else None
        return self._reset(await self.service.save_draft(self.config_id, sections, editor=self.editor))

    async def publish(self) -> FormConfiguration:
        """Persist staged edits as the draft, then publish it."""
        return self._reset(await self.service.publish(self.config_id, self._pending(), editor=self.editor))

    async def discard_draft(self) -> FormConfiguration:
        return self._reset(await self.service.discard_draft(self.config_id, editor=self.editor))

    async def rollback(self) -> FormConfiguration:
        return self._reset(await self.service.rollback(self.config_id, editor=self.editor))

    async def restore_default(self) -> FormConfiguration:
        if self._staged:
            logger.info("Dropping staged edits", configuration_id=self.config_id, dropped=len(self._staged))
        return self._reset(await self.service.get_configuration(self.config_id))

    def evaluate(self, values: Optional[Mapping[str, Any]] = None) -> Evaluation:
        return evaluate(self.working, values)

    def preview(self, values: Optional[Mapping[str, Any]] = None) -> RenderedForm:
        return preview(self.working, values)
