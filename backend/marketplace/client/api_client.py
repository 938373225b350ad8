"""Marketplace API Client - httpx wrapper over the workflow endpoints"""
from typing import Any, Dict, List, Optional

import httpx

from ..config.settings import settings
from ..domain.models import RECORD_MODELS, WorkflowRecord
from ..domain.enums import EntityKind
from ..domain.errors import DomainError, OutcomeUnknownError, error_from_payload
from ..utils.logger import get_logger

logger = get_logger(__name__)


class MarketplaceClient:
    """
    Client for the marketplace HTTP API

    Error bodies are raised as the matching DomainError subclass, so callers
    branch on `retryable` exactly as they would in-process. A request that
    got no response raises OutcomeUnknownError: the server may or may not
    have applied it, and the record must be re-read before trying again.
    """

    def __init__(
        self,
        token: str,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        http_client: Optional[httpx.Client] = None
    ):
        self._owns_http = http_client is None
        self._http = http_client or httpx.Client(
            base_url=base_url or settings.api_base_url,
            timeout=timeout or settings.client_timeout_seconds
        )
        self._headers = {"Authorization": f"Bearer {token}"}

    def close(self) -> None:
        if self._owns_http:
            self._http.close()

    def __enter__(self) -> "MarketplaceClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _request(self, method: str, path: str, **kwargs) -> Any:
        try:
            response = self._http.request(method, path, headers=self._headers, **kwargs)
        except httpx.TransportError as e:
            logger.warning(f"{method} {path} got no response: {e}")
            raise OutcomeUnknownError(
                f"No response for {method} {path}; re-read before retrying",
                details={"method": method, "path": path, "reason": str(e)}
            )

        if response.status_code >= 400:
            try:
                payload = response.json()
            except ValueError:
                payload = {"error": {"message": response.text or response.reason_phrase}}
            error = error_from_payload(payload, response.status_code)
            error.http_status = response.status_code
            raise error

        if response.status_code == 204 or not response.content:
            return None
        return response.json()

    # =========================================================================
    # Workflow
    # =========================================================================

    def list_pending(self, entity_kind: EntityKind) -> List[WorkflowRecord]:
        """Records awaiting the caller's action, oldest first"""
        kind = EntityKind(entity_kind)
        data = self._request("GET", f"/queues/{kind.value}")
        return [RECORD_MODELS[kind].model_validate(item) for item in data["items"]]

    def get_record(self, entity_kind: EntityKind, record_id: str) -> WorkflowRecord:
        kind = EntityKind(entity_kind)
        data = self._request("GET", f"/records/{kind.value}/{record_id}")
        return RECORD_MODELS[kind].model_validate(data)

    def transition(
        self,
        entity_kind: EntityKind,
        record_id: str,
        action: str,
        reason: Optional[str] = None
    ) -> WorkflowRecord:
        kind = EntityKind(entity_kind)
        body: Dict[str, Any] = {"action": action}
        if reason is not None:
            body["reason"] = reason
        data = self._request("POST", f"/records/{kind.value}/{record_id}/transitions", json=body)
        return RECORD_MODELS[kind].model_validate(data)

    def promote(self, inventory_item_id: str) -> str:
        """Promote a ready inventory item; returns the new product ID"""
        data = self._request("POST", f"/supplier/inventory/{inventory_item_id}/promote")
        return data["product_id"]

    # =========================================================================
    # Settings
    # =========================================================================

    def get_settings(self) -> Dict[str, str]:
        return self._request("GET", "/manager/settings")["settings"]

    def update_settings(self, changes: Dict[str, Any]) -> Dict[str, str]:
        return self._request("PATCH", "/manager/settings", json={"settings": changes})["settings"]


def is_retryable(exc: BaseException) -> bool:
    """Conflict, store outages and unknown outcomes may be re-attempted after a re-read"""
    return isinstance(exc, DomainError) and exc.retryable
