"""
Configuration Repository - load/save of configuration documents.

The schema document is opaque to the database: it is stored as JSON text in
`FormConfigurationRecord.document` and only the listing columns are copied
out of it. A save replaces the whole document in one statement.
"""
import json
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from formconfig.core.exceptions import NotFoundError
from formconfig.core.logging import db_logger
from formconfig.db.models import FormConfigurationRecord, FormTemplateRecord
from formconfig.schema.models import ConfigurationSummary, FormConfiguration, compute_metadata


def _to_document(config: FormConfiguration) -> str:
    data = config.model_dump(mode="json", exclude={"id", "metadata"})
    return json.dumps(data)


def _from_record(record: FormConfigurationRecord) -> FormConfiguration:
    data = json.loads(record.document)
    data["id"] = record.id
    data["is_active"] = record.is_active
    data["created_at"] = record.created_at
    data["updated_at"] = record.updated_at
    return FormConfiguration.model_validate(data)


class ConfigurationRepository:
    """Async persistence of FormConfiguration documents over one session."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _get_record(self, config_id: int) -> FormConfigurationRecord:
        result = await self.db.execute(
            select(FormConfigurationRecord).where(FormConfigurationRecord.id == config_id)
        )
        record = result.scalar_one_or_none()
        if record is None:
            raise NotFoundError(f"Form configuration {config_id} not found")
        return record

    async def load(self, config_id: int) -> FormConfiguration:
        return _from_record(await self._get_record(config_id))

    async def save(self, config: FormConfiguration) -> FormConfiguration:
        """Insert when `config.id` is None, otherwise replace the stored document."""
        now = datetime.now(timezone.utc)
        if config.id is None:
            record = FormConfigurationRecord(created_at=now)
            self.db.add(record)
        else:
            record = await self._get_record(config.id)

        record.name = config.name
        record.template_name = config.template_name
        record.version = config.version
        record.is_draft = config.is_draft
        record.is_active = config.is_active
        record.created_by = config.created_by
        record.updated_by = config.updated_by
        record.updated_at = now
        record.document = _to_document(config)
        await self.db.flush()
        await self.db.refresh(record)

        db_logger.debug(
            "Configuration saved",
            configuration_id=record.id,
            version=record.version,
            is_draft=record.is_draft,
        )
        return _from_record(record)

    async def list(self) -> List[ConfigurationSummary]:
        result = await self.db.execute(
            select(FormConfigurationRecord).order_by(FormConfigurationRecord.updated_at.desc())
        )
        summaries = []
        for record in result.scalars().all():
            config = _from_record(record)
            summaries.append(ConfigurationSummary(
                id=record.id,
                name=config.name,
                template_name=config.template_name,
                version=config.version,
                is_draft=config.is_draft,
                is_active=config.is_active,
                metadata=compute_metadata(config.sections),
                updated_by=config.updated_by,
                created_at=record.created_at,
                updated_at=record.updated_at,
            ))
        return summaries

    async def find_active(self) -> Optional[FormConfiguration]:
        result = await self.db.execute(
            select(FormConfigurationRecord)
            .where(FormConfigurationRecord.is_active == True)  # noqa: E712
            .order_by(FormConfigurationRecord.updated_at.desc())
            .limit(1)
        )
        record = result.scalar_one_or_none()
        return _from_record(record) if record else None

    async def find_for_template(self, template_id: int) -> Optional[FormConfiguration]:
        result = await self.db.execute(
            select(FormConfigurationRecord)
            .join(FormTemplateRecord, FormTemplateRecord.form_configuration_id == FormConfigurationRecord.id)
            .where(FormTemplateRecord.id == template_id, FormTemplateRecord.is_active == True)  # noqa: E712
        )
        record = result.scalar_one_or_none()
        return _from_record(record) if record else None

    async def find_default_template_configuration(self) -> Optional[FormConfiguration]:
        result = await self.db.execute(
            select(FormConfigurationRecord)
            .join(FormTemplateRecord, FormTemplateRecord.form_configuration_id == FormConfigurationRecord.id)
            .where(FormTemplateRecord.is_default == True, FormTemplateRecord.is_active == True)  # noqa: E712
            .limit(1)
        )
        record = result.scalar_one_or_none()
        return _from_record(record) if record else None

    async def activate(self, config_id: int) -> FormConfiguration:
        """Make `config_id` the only active configuration."""
        record = await self._get_record(config_id)
        await self.db.execute(
            update(FormConfigurationRecord)
            .where(FormConfigurationRecord.id != config_id)
            .values(is_active=False)
        )
        record.is_active = True
        await self.db.flush()
        await self.db.refresh(record)
        db_logger.info("Configuration activated", configuration_id=config_id)
        return _from_record(record)

    async def create_template(
        self,
        name: str,
        config_id: int,
        description: Optional[str] = None,
        is_default: bool = False,
    ) -> FormTemplateRecord:
        await self._get_record(config_id)
        template = FormTemplateRecord(
            name=name,
            description=description,
            form_configuration_id=config_id,
            is_default=is_default,
            is_active=True,
            created_at=datetime.now(timezone.utc),
        )
        self.db.add(template)
        await self.db.flush()
        db_logger.info("Template created", template_id=template.id, configuration_id=config_id)
        return template
