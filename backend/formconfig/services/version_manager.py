"""
Version Manager - draft/publish/rollback lifecycle of a form configuration.

States:
- published: `is_draft` unset, `sections` equal the published baseline
- draft: `is_draft` set, `sections` hold persisted edits not yet published

Three undo operations with different reach:
- restore_default (EditorSession): drops unsaved local edits, no effect here
- discard_draft: reverts persisted edits to the published baseline
- rollback: reverts the published baseline itself to the one it replaced

Every method takes a configuration and returns a new one. The input is
never modified, so a rejected call leaves the caller's copy intact.
"""
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Dict, Optional, Tuple

from formconfig.core.config import settings
from formconfig.core.exceptions import InvalidOperationError, NotAvailableError
from formconfig.core.logging import version_logger
from formconfig.db.enums import ConfigurationState
from formconfig.schema.models import FormConfiguration
from formconfig.schema.mutations import MutationOp, apply_mutation
from formconfig.schema.validation import check_configuration
from formconfig.schema.versioning import bump_minor, drop_minor


class Operation(str, Enum):
    mutate = "mutate"
    save_draft = "save_draft"
    publish = "publish"
    discard_draft = "discard_draft"
    rollback = "rollback"


PUBLISHED = ConfigurationState.published
DRAFT = ConfigurationState.draft

# (current state, operation) -> resulting state. A missing pair is not allowed.
TRANSITIONS: Dict[Tuple[ConfigurationState, Operation], ConfigurationState] = {
    (PUBLISHED, Operation.mutate): DRAFT,
    (DRAFT, Operation.mutate): DRAFT,
    (PUBLISHED, Operation.save_draft): PUBLISHED,
    (DRAFT, Operation.save_draft): DRAFT,
    (PUBLISHED, Operation.publish): PUBLISHED,
    (DRAFT, Operation.publish): PUBLISHED,
    (DRAFT, Operation.discard_draft): PUBLISHED,
    (PUBLISHED, Operation.rollback): PUBLISHED,
    (DRAFT, Operation.rollback): PUBLISHED,
}


def next_state(state: ConfigurationState, operation: Operation) -> ConfigurationState:
    try:
        return TRANSITIONS[(state, operation)]
    except KeyError:
        raise InvalidOperationError(
            f"Cannot {operation.value.replace('_', ' ')} a configuration in {state.value} state"
        ) from None


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class VersionManager:
    """
    Pure state machine over FormConfiguration documents.

    `clock` supplies the publish timestamp. `allow_empty_publish` controls
    whether publishing with no pending draft still advances the version.
    """

    def __init__(
        self,
        clock: Optional[Callable[[], datetime]] = None,
        allow_empty_publish: Optional[bool] = None,
    ):
        self.clock = clock or _utcnow
        self.allow_empty_publish = (
            settings.ALLOW_EMPTY_PUBLISH if allow_empty_publish is None else allow_empty_publish
        )

    def _log_transition(self, operation: Operation, before: FormConfiguration, after: FormConfiguration) -> None:
        version_logger.info(
            f"{operation.value}: {before.state.value} -> {after.state.value}",
            configuration_id=before.id,
            from_version=before.version,
            to_version=after.version,
        )

    def mutate(self, config: FormConfiguration, op: MutationOp) -> FormConfiguration:
        """Apply one schema mutation. The result is always a draft."""
        target = next_state(config.state, Operation.mutate)
        working = apply_mutation(config, op)
        working.is_draft = target == DRAFT
        self._log_transition(Operation.mutate, config, working)
        return working

    def save_draft(self, config: FormConfiguration) -> FormConfiguration:
        """Re-validate the draft for persistence. A no-op while published."""
        next_state(config.state, Operation.save_draft)
        working = config.clone()
        if not config.is_draft:
            version_logger.debug("save_draft ignored: configuration is published", configuration_id=config.id)
            return working
        check_configuration(working, "save_draft")
        self._log_transition(Operation.save_draft, config, working)
        return working

    def publish(self, config: FormConfiguration, pending: Optional[MutationOp] = None) -> FormConfiguration:
        """
        Promote the draft to the published baseline.

        `pending` edits are applied as a draft write first. The baseline being
        replaced becomes the rollback target, then the minor version advances.
        """
        working = self.mutate(config, pending) if pending is not None else config.clone()
        next_state(working.state, Operation.publish)

        if not working.is_draft:
            if not self.allow_empty_publish:
                raise InvalidOperationError("Nothing to publish: configuration has no draft changes")
            version_logger.warning(
                "publish without draft changes, version advances anyway",
                configuration_id=config.id,
                version=config.version,
            )

        check_configuration(working, "publish")

        working.last_published_sections = [s.model_copy(deep=True) for s in (working.published_sections or [])]
        working.published_sections = [s.model_copy(deep=True) for s in working.sections]
        working.version = bump_minor(working.version)
        working.published_version = working.version
        working.is_draft = False
        working.last_published_at = self.clock()

        self._log_transition(Operation.publish, config, working)
        return working

    def discard_draft(self, config: FormConfiguration) -> FormConfiguration:
        """Throw away persisted draft edits and return to the published baseline."""
        if not config.is_draft:
            raise InvalidOperationError("Cannot discard draft: configuration is not a draft")
        next_state(config.state, Operation.discard_draft)

        working = config.clone()
        working.sections = [s.model_copy(deep=True) for s in (config.published_sections or [])]
        working.version = config.published_version or config.version
        working.is_draft = False

        self._log_transition(Operation.discard_draft, config, working)
        return working

    def rollback(self, config: FormConfiguration) -> FormConfiguration:
        """
        Restore the baseline replaced by the last publish and step the minor
        version back. Only one level of history exists, so the snapshot is
        consumed. Any open draft is discarded along with it.
        """
        if not config.rollback_available:
            raise NotAvailableError("No previous published version to roll back to")
        next_state(config.state, Operation.rollback)

        if config.is_draft:
            version_logger.warning("rollback discards the open draft", configuration_id=config.id)

        working = config.clone()
        restored = config.last_published_sections
        working.sections = [s.model_copy(deep=True) for s in restored]
        working.published_sections = [s.model_copy(deep=True) for s in restored]
        working.last_published_sections = []
        working.version = drop_minor(config.published_version or config.version)
        working.published_version = working.version
        working.is_draft = False
        working.last_published_at = self.clock()

        self._log_transition(Operation.rollback, config, working)
        return working
