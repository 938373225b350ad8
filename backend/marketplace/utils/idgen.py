"""ID Generation Utilities"""
import secrets
import uuid
from datetime import datetime, timezone
from typing import Optional

# Record ID prefixes, one per collection
PRODUCT_PREFIX = "PRD"
INVENTORY_ITEM_PREFIX = "INV"
WITHDRAWAL_REQUEST_PREFIX = "WDR"
PRICE_APPEAL_PREFIX = "APL"
AUDIT_EVENT_PREFIX = "AUD"


def generate_id(prefix: Optional[str] = None) -> str:
    """
    Short random ID, optionally prefixed

    Examples:
        >>> generate_id(PRODUCT_PREFIX)
        'PRD-3f9a0c1b7d2e'
    """
    unique_part = uuid.uuid4().hex[:12]
    return f"{prefix}-{unique_part}" if prefix else unique_part


def generate_product_id() -> str:
    return generate_id(PRODUCT_PREFIX)


def generate_inventory_item_id() -> str:
    return generate_id(INVENTORY_ITEM_PREFIX)


def generate_withdrawal_request_id() -> str:
    return generate_id(WITHDRAWAL_REQUEST_PREFIX)


def generate_price_appeal_id() -> str:
    return generate_id(PRICE_APPEAL_PREFIX)


def generate_audit_event_id() -> str:
    return generate_id(AUDIT_EVENT_PREFIX)


def generate_registration_key() -> str:
    """Key suppliers quote when registering; used when none is configured"""
    return f"REG-{secrets.token_urlsafe(12)}"


def generate_correlation_id() -> str:
    """COR-<utc timestamp>-<8 hex> for request tracing"""
    stamp = datetime.now(timezone.utc).strftime("%Y%m%d%H%M%S")
    return f"COR-{stamp}-{uuid.uuid4().hex[:8]}"
