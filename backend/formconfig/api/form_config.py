"""
Form Configuration API

Provides:
- Active schema lookup and end-user form rendering
- Admin listing, creation and retrieval of configurations
- Schema mutations and full draft saves
- Version lifecycle: publish, discard draft, rollback
- Live preview, evaluation and lifecycle diagnostics

Callers identify themselves with the X-User-Email header; it is recorded as
the editor of every change. Authentication happens in front of this service.
"""
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Body, Depends, Header, Query
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from formconfig.db.database import get_db
from formconfig.engine.evaluation import Evaluation
from formconfig.engine.render import RenderedForm
from formconfig.schema.models import ConfigurationSummary, FormConfiguration, FormSection
from formconfig.schema.mutations import ReplaceSections, parse_mutation
from formconfig.services.form_config import ConfigurationDiagnostics, FormConfigurationService


router = APIRouter(prefix="/api/form-config", tags=["Form Configuration"])


# ============================================================================
# Pydantic Schemas
# ============================================================================

class ConfigurationCreate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    template_name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None


class DraftSave(BaseModel):
    sections: List[FormSection]


class PublishRequest(BaseModel):
    # Unsaved editor sections, written as the draft before publishing
    sections: Optional[List[FormSection]] = None


class ValuesPayload(BaseModel):
    values: Dict[str, Any] = {}


# ============================================================================
# Dependencies
# ============================================================================

def get_service(db: AsyncSession = Depends(get_db)) -> FormConfigurationService:
    return FormConfigurationService(db)


def get_editor(x_user_email: Optional[str] = Header(None)) -> Optional[str]:
    return x_user_email


# ============================================================================
# End-user Endpoints
# ============================================================================

@router.get("/active", response_model=FormConfiguration)
async def get_active_configuration(
    template_id: Optional[int] = Query(None),
    include_draft: bool = Query(False),
    service: FormConfigurationService = Depends(get_service),
):
    """Schema for a template; falls back to the default configuration."""
    return await service.get_active_schema(template_id, include_draft=include_draft)


@router.post("/render", response_model=RenderedForm)
async def render_active_form(
    payload: Optional[ValuesPayload] = None,
    template_id: Optional[int] = Query(None),
    service: FormConfigurationService = Depends(get_service),
):
    """Production form for the given values. Empty when no schema exists."""
    return await service.render(template_id, payload.values if payload else None)


# ============================================================================
# Admin Endpoints
# ============================================================================

@router.get("", response_model=List[ConfigurationSummary])
async def list_configurations(service: FormConfigurationService = Depends(get_service)):
    return await service.list_configurations()


@router.post("", response_model=FormConfiguration, status_code=201)
async def create_configuration(
    payload: Optional[ConfigurationCreate] = None,
    service: FormConfigurationService = Depends(get_service),
    editor: Optional[str] = Depends(get_editor),
):
    payload = payload or ConfigurationCreate()
    return await service.create_configuration(
        name=payload.name,
        template_name=payload.template_name,
        description=payload.description,
        editor=editor,
    )


@router.get("/{config_id}", response_model=FormConfiguration)
async def get_configuration(config_id: int, service: FormConfigurationService = Depends(get_service)):
    return await service.get_configuration(config_id)


@router.put("/{config_id}", response_model=FormConfiguration)
async def save_draft(
    config_id: int,
    payload: DraftSave,
    service: FormConfigurationService = Depends(get_service),
    editor: Optional[str] = Depends(get_editor),
):
    """Replace the working sections with the editor's list, as a draft."""
    return await service.save_draft(config_id, payload.sections, editor=editor)


@router.post("/{config_id}/mutations", response_model=FormConfiguration)
async def apply_mutation(
    config_id: int,
    payload: Dict[str, Any] = Body(...),
    service: FormConfigurationService = Depends(get_service),
    editor: Optional[str] = Depends(get_editor),
):
    """Apply one operation, tagged by its `op` field (add_section, delete_field, ...)."""
    return await service.apply_mutation(config_id, parse_mutation(payload), editor=editor)


# ============================================================================
# Version Lifecycle Endpoints
# ============================================================================

@router.post("/{config_id}/publish", response_model=FormConfiguration)
async def publish_configuration(
    config_id: int,
    payload: Optional[PublishRequest] = None,
    service: FormConfigurationService = Depends(get_service),
    editor: Optional[str] = Depends(get_editor),
):
    pending = None
    if payload is not None and payload.sections is not None:
        pending = ReplaceSections(sections=payload.sections)
    return await service.publish(config_id, pending, editor=editor)


@router.post("/{config_id}/discard-draft", response_model=FormConfiguration)
async def discard_draft(
    config_id: int,
    service: FormConfigurationService = Depends(get_service),
    editor: Optional[str] = Depends(get_editor),
):
    return await service.discard_draft(config_id, editor=editor)


@router.post("/{config_id}/rollback", response_model=FormConfiguration)
async def rollback_configuration(
    config_id: int,
    service: FormConfigurationService = Depends(get_service),
    editor: Optional[str] = Depends(get_editor),
):
    return await service.rollback(config_id, editor=editor)


@router.patch("/{config_id}/activate", response_model=FormConfiguration)
async def activate_configuration(config_id: int, service: FormConfigurationService = Depends(get_service)):
    return await service.activate(config_id)


@router.get("/{config_id}/diagnostics", response_model=ConfigurationDiagnostics)
async def diagnose_configuration(config_id: int, service: FormConfigurationService = Depends(get_service)):
    return await service.diagnose(config_id)


# ============================================================================
# Preview Endpoints
# ============================================================================

@router.post("/{config_id}/evaluate", response_model=Evaluation)
async def evaluate_configuration(
    config_id: int,
    payload: Optional[ValuesPayload] = None,
    service: FormConfigurationService = Depends(get_service),
):
    return await service.evaluate(config_id, payload.values if payload else None)


@router.post("/{config_id}/preview", response_model=RenderedForm)
async def preview_configuration(
    config_id: int,
    payload: Optional[ValuesPayload] = None,
    service: FormConfigurationService = Depends(get_service),
):
    return await service.preview(config_id, payload.values if payload else None)
