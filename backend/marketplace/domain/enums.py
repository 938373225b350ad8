"""Domain Enumerations - All status and type definitions"""
from enum import Enum


class Role(str, Enum):
    """Actor roles carried in the access token"""
    SUPPLIER = "supplier"
    DROPSHIPPER = "dropshipper"
    MANAGER = "manager"
    ADMINISTRATOR = "administrator"


STAFF_ROLES = frozenset({Role.MANAGER, Role.ADMINISTRATOR})


class EntityKind(str, Enum):
    """Workflow-governed record kinds"""
    PRODUCT = "product"
    INVENTORY_ITEM = "inventory_item"
    WITHDRAWAL_REQUEST = "withdrawal_request"
    PRICE_APPEAL = "price_appeal"


class ProductStatus(str, Enum):
    """Marketplace product lifecycle"""
    DRAFT = "draft"
    PENDING = "pending"
    PUBLISHED = "published"
    REJECTED = "rejected"
    PRIVATE_INVENTORY = "private_inventory"  # Legacy state, no outgoing edges


class InventoryStatus(str, Enum):
    """Private supplier inventory lifecycle"""
    DRAFT = "draft"
    READY = "ready"
    PROMOTED = "promoted"


class WithdrawalStatus(str, Enum):
    """Supplier withdrawal request lifecycle"""
    PENDING = "wd-pending"
    PROCESSED = "wd-processed"
    REJECTED = "wd-rejected"


class PriceAppealStatus(str, Enum):
    """Price change appeal lifecycle"""
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class WorkflowAction(str, Enum):
    """Named actions that drive transitions"""
    APPROVE = "approve"
    REJECT = "reject"
    PROMOTE = "promote"
    SUBMIT = "submit"
    MARK_READY = "mark_ready"


# Actions that put a record in front of a reviewer's queue
REVIEW_ACTIONS = frozenset({WorkflowAction.APPROVE, WorkflowAction.REJECT, WorkflowAction.PROMOTE})


class AuditEventType(str, Enum):
    """Audit trail event types"""
    CREATE = "create"
    TRANSITION = "transition"
    UPDATE = "update"
    DELETE = "delete"


class SettingKey(str, Enum):
    """Platform-wide settings"""
    DEFAULT_COMMISSION_RATE = "default_commission_rate"
    MAINTENANCE_MODE = "maintenance_mode"
    SUPPLIER_REGISTRATION_KEY = "supplier_registration_key"
