"""Service modules - Business logic layer"""
from .settings_service import SettingsService
from .queue_service import ApprovalQueueService
from .promotion_service import PromotionService
from .supplier_service import SupplierService

__all__ = [
    "SettingsService",
    "ApprovalQueueService",
    "PromotionService",
    "SupplierService",
]
