"""
Client Sync Policies - Keeping a caller's queue view consistent with the server

Two strategies are provided:

- PessimisticSync: the local view changes only after the server answers.
- OptimisticSync: the local view shows the predicted result at once and is
  rolled back to its snapshot if the server refuses.

Both reload the full queue after every queue-mutating action, on success and
on failure, because one action can make other listed records stale.
"""
import copy
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Callable, List, Optional

from tenacity import retry, retry_if_exception, stop_after_attempt, wait_exponential

from .api_client import MarketplaceClient, is_retryable
from ..config.settings import settings
from ..domain.models import WorkflowRecord
from ..domain.enums import EntityKind, WorkflowAction
from ..domain.errors import DomainError
from ..engine.transition_table import TransitionTable, get_transition_table
from ..utils.time import utc_now
from ..utils.logger import get_logger

logger = get_logger(__name__)


class QueueView:
    """The caller's local copy of one approval queue"""

    def __init__(self, entity_kind: EntityKind):
        self.entity_kind = EntityKind(entity_kind)
        self.records: List[WorkflowRecord] = []
        self.refreshed_at: Optional[datetime] = None
        self.stale = True
        self.last_error: Optional[DomainError] = None

    def ids(self) -> List[str]:
        return [record.id for record in self.records]

    def get(self, record_id: str) -> Optional[WorkflowRecord]:
        for record in self.records:
            if record.id == record_id:
                return record
        return None

    def replace_all(self, records: List[WorkflowRecord]) -> None:
        self.records = list(records)
        self.refreshed_at = utc_now()
        self.stale = False

    def replace(self, record: WorkflowRecord) -> None:
        """Swap in a newer copy of a listed record"""
        self.records = [record if r.id == record.id else r for r in self.records]

    def remove(self, record_id: str) -> None:
        self.records = [r for r in self.records if r.id != record_id]

    def snapshot(self) -> List[WorkflowRecord]:
        return copy.deepcopy(self.records)

    def restore(self, snapshot: List[WorkflowRecord]) -> None:
        self.records = snapshot


class SyncPolicy(ABC):
    """Base class: one queue view driven through one client"""

    def __init__(self, client: MarketplaceClient, view: QueueView):
        self.client = client
        self.view = view

    def refresh(self) -> QueueView:
        """Reload the whole queue from the server"""
        self.view.replace_all(self.client.list_pending(self.view.entity_kind))
        return self.view

    def _refresh_after_mutation(self) -> None:
        # A failed reload must not hide the outcome of the action itself
        try:
            self.refresh()
        except DomainError as e:
            self.view.stale = True
            logger.warning(
                f"Queue reload after mutation failed: {e.error_code}",
                extra={"entity_kind": self.view.entity_kind.value, "error_code": e.error_code}
            )

    def act(self, record_id: str, action: str, reason: Optional[str] = None) -> WorkflowRecord:
        """Apply an action to a listed record and resynchronize the view"""
        return self._mutate(
            record_id, action, reason,
            lambda: self.client.transition(self.view.entity_kind, record_id, action, reason)
        )

    def promote(self, inventory_item_id: str) -> str:
        """
        Promote a listed inventory item; returns the new product ID

        The promotion is committed once the server returns the product ID.
        Re-reading the item afterwards is best effort, and the queue reload
        reconciles the view when that read fails.
        """
        result = {}

        def call() -> Optional[WorkflowRecord]:
            result["product_id"] = self.client.promote(inventory_item_id)
            try:
                return self.client.get_record(EntityKind.INVENTORY_ITEM, inventory_item_id)
            except DomainError as e:
                logger.warning(
                    f"Promoted {inventory_item_id} into {result['product_id']}, re-read failed: {e.error_code}",
                    extra={"record_id": inventory_item_id, "product_id": result["product_id"], "error_code": e.error_code}
                )
                return None

        self._mutate(inventory_item_id, WorkflowAction.PROMOTE.value, None, call)
        return result["product_id"]

    @abstractmethod
    def _mutate(
        self,
        record_id: str,
        action: str,
        reason: Optional[str],
        call: Callable[[], Optional[WorkflowRecord]]
    ) -> Optional[WorkflowRecord]:
        """
        Run `call` under this policy's local-state rules

        `call` returns None when the action committed but its record could
        not be re-read; the reload that follows still runs.
        """


class PessimisticSync(SyncPolicy):
    """Reflect nothing locally until the server has answered"""

    def _mutate(self, record_id, action, reason, call):
        try:
            record = call()
        except DomainError as e:
            self.view.last_error = e
            self._refresh_after_mutation()
            raise

        self.view.last_error = None
        if record is not None:
            self.view.replace(record)
        self._refresh_after_mutation()
        return record


class OptimisticSync(SyncPolicy):
    """
    Show the predicted end state immediately

    The prediction comes from the transition table. On failure the view is
    restored to its pre-action snapshot; on success the server record
    replaces the guess, and the reload that follows is authoritative.
    """

    def __init__(self, client: MarketplaceClient, view: QueueView, table: Optional[TransitionTable] = None):
        super().__init__(client, view)
        self.table = table or get_transition_table()

    def _predict(self, record_id: str, action: str, reason: Optional[str]) -> None:
        record = self.view.get(record_id)
        if record is None:
            return
        try:
            rule = self.table.find(self.view.entity_kind, record.status, WorkflowAction(action))
        except ValueError:
            return
        if rule is None:
            return
        if rule.to_state != record.status:
            # Review edges always lead out of the awaiting state
            self.view.remove(record_id)
        else:
            self.view.replace(record.model_copy(update={"status_reason": reason if rule.requires_reason else None}))

    def _mutate(self, record_id, action, reason, call):
        snapshot = self.view.snapshot()
        self._predict(record_id, action, reason)
        try:
            record = call()
        except DomainError as e:
            self.view.restore(snapshot)
            self.view.last_error = e
            self._refresh_after_mutation()
            raise

        self.view.last_error = None
        if record is not None:
            self.view.replace(record)
        self._refresh_after_mutation()
        return record


def retry_transition(
    client: MarketplaceClient,
    entity_kind: EntityKind,
    record_id: str,
    action: str,
    reason: Optional[str] = None,
    max_attempts: Optional[int] = None,
    wait=None,
    table: Optional[TransitionTable] = None
) -> WorkflowRecord:
    """
    Apply a transition, re-attempting only retry-eligible failures

    Before every re-attempt the record is read back from the server. If the
    action is no longer legal from its current state (our earlier attempt
    landed, or someone else acted first), the server record is returned and
    nothing is re-submitted. Callers tell the two apart by checking
    `record.status` against `table.target_states(kind, action)`; the
    superseded case is also logged at WARNING.

    Raises:
        DomainError: Terminal failures at once; retryable ones after the last attempt
    """
    kind = EntityKind(entity_kind)
    table = table or get_transition_table()
    workflow_action = WorkflowAction(action)
    attempts = {"count": 0}

    @retry(
        stop=stop_after_attempt(max_attempts or settings.client_max_attempts),
        wait=wait if wait is not None else wait_exponential(multiplier=0.25, max=4),
        retry=retry_if_exception(is_retryable),
        reraise=True
    )
    def attempt() -> WorkflowRecord:
        attempts["count"] += 1
        if attempts["count"] > 1:
            current = client.get_record(kind, record_id)
            if table.find(kind, current.status, workflow_action) is None:
                _log_settled(kind, current, action, table)
                return current
        return client.transition(kind, record_id, action, reason)

    return attempt()


def _log_settled(kind: EntityKind, current: WorkflowRecord, action: str, table: TransitionTable) -> None:
    extra = {"record_id": current.id, "entity_kind": kind.value, "action": action, "status": current.status}
    if current.status in table.target_states(kind, action):
        logger.info(f"{kind.value} {current.id}: earlier '{action}' attempt landed", extra=extra)
    else:
        logger.warning(
            f"{kind.value} {current.id}: '{action}' superseded, record is already '{current.status}'",
            extra=extra
        )
