"""Settings API Routes - Platform configuration for managers and administrators"""
from typing import Any, Dict
from fastapi import APIRouter, Depends
from pydantic import BaseModel

from ..deps import get_correlation_id_dep, get_current_user_dep, get_settings_service_dep
from ...domain.models import ActorContext
from ...services.settings_service import SettingsService
from ...utils.logger import get_logger

logger = get_logger(__name__)
router = APIRouter()


class SettingsResponse(BaseModel):
    """Platform settings as string values"""
    settings: Dict[str, str]


class UpdateSettingsRequest(BaseModel):
    """Partial settings map; only the given keys change"""
    settings: Dict[str, Any]


@router.get("/settings", response_model=SettingsResponse)
def get_settings(
    actor: ActorContext = Depends(get_current_user_dep),
    correlation_id: str = Depends(get_correlation_id_dep),
    service: SettingsService = Depends(get_settings_service_dep)
):
    return SettingsResponse(settings=service.get_settings_for(actor))


@router.patch("/settings", response_model=SettingsResponse)
def update_settings(
    request: UpdateSettingsRequest,
    actor: ActorContext = Depends(get_current_user_dep),
    correlation_id: str = Depends(get_correlation_id_dep),
    service: SettingsService = Depends(get_settings_service_dep)
):
    """
    Update platform settings

    Only administrators may switch maintenance mode.
    """
    return SettingsResponse(settings=service.update_settings(request.settings, actor))
