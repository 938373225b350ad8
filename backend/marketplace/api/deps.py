"""API Dependencies - Common dependencies for routes"""
from typing import Optional
from fastapi import Depends, Header

from ..domain.models import ActorContext
from ..domain.errors import AuthenticationError, MaintenanceModeError
from ..engine.engine import WorkflowEngine
from ..repositories.record_store import RecordStore
from ..repositories.store_factory import get_record_store
from ..services.settings_service import SettingsService
from ..services.queue_service import ApprovalQueueService
from ..services.promotion_service import PromotionService
from ..services.supplier_service import SupplierService
from ..utils.jwt import get_current_user as _jwt_get_current_user  # Internal use only
from ..utils.logger import set_correlation_id
from ..utils.idgen import generate_correlation_id


async def get_correlation_id_dep(
    x_correlation_id: Optional[str] = Header(None, alias="X-Correlation-Id")
) -> str:
    """
    Get or generate correlation ID for request tracing

    If client provides X-Correlation-Id, use it.
    Otherwise generate a new one.
    """
    correlation_id = x_correlation_id or generate_correlation_id()
    set_correlation_id(correlation_id)
    return correlation_id


async def get_current_user_dep(
    authorization: Optional[str] = Header(None)
) -> ActorContext:
    """
    Dependency to get current user from Authorization header

    Raises:
        AuthenticationError: 401 if token is invalid or missing
    """
    if not authorization:
        raise AuthenticationError("Authorization header is missing")
    return _jwt_get_current_user(authorization)


# ============================================================================
# Store & Services
# ============================================================================

def get_record_store_dep() -> RecordStore:
    return get_record_store()


def get_settings_service_dep(store: RecordStore = Depends(get_record_store_dep)) -> SettingsService:
    return SettingsService(store)


def get_engine_dep(
    store: RecordStore = Depends(get_record_store_dep),
    settings_service: SettingsService = Depends(get_settings_service_dep)
) -> WorkflowEngine:
    return WorkflowEngine(store, settings_service=settings_service)


def get_queue_service_dep(store: RecordStore = Depends(get_record_store_dep)) -> ApprovalQueueService:
    return ApprovalQueueService(store)


def get_supplier_service_dep(engine: WorkflowEngine = Depends(get_engine_dep)) -> SupplierService:
    return SupplierService(engine)


def get_promotion_service_dep(engine: WorkflowEngine = Depends(get_engine_dep)) -> PromotionService:
    return PromotionService(engine)


# ============================================================================
# Maintenance Gate
# ============================================================================

def get_active_user_dep(
    actor: ActorContext = Depends(get_current_user_dep),
    settings_service: SettingsService = Depends(get_settings_service_dep)
) -> ActorContext:
    """
    Current user, refused while the platform is in maintenance mode

    Managers and administrators pass the gate so they can keep operating
    the platform.

    Raises:
        MaintenanceModeError: 503 for suppliers and dropshippers during maintenance
    """
    if not actor.is_staff and settings_service.is_maintenance_mode():
        raise MaintenanceModeError(
            "The marketplace is under maintenance. Please try again later.",
            details={"role": actor.role.value}
        )
    return actor
