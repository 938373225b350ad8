"""Approval Queue Service - Records awaiting an actor's review action"""
from typing import List

from ..domain.models import ActorContext, WorkflowRecord
from ..domain.enums import EntityKind
from ..domain.errors import ForbiddenError
from ..engine.transition_table import TransitionTable, get_transition_table
from ..repositories.record_repo import RecordRepository
from ..repositories.record_store import RecordStore
from ..utils.logger import get_logger

logger = get_logger(__name__)


class ApprovalQueueService:
    """
    Service for approval queues

    A queue is derived from the transition table: the states from which the
    actor's role has a review edge (approve, reject, promote). Listings are
    read from the store on every call and never cached.
    """

    def __init__(self, store: RecordStore, table: TransitionTable = None):
        self.record_repo = RecordRepository(store)
        self.table = table or get_transition_table()

    def list_awaiting(self, entity_kind: EntityKind, actor: ActorContext) -> List[WorkflowRecord]:
        """
        Records awaiting the actor's action, oldest first (ties broken by ID)

        Raises:
            ForbiddenError: The role has no review edge on this kind
        """
        kind = EntityKind(entity_kind)
        states = self.table.awaiting_states(kind, actor.role)
        if not states:
            raise ForbiddenError(
                f"Role '{actor.role.value}' has no {kind.value} queue",
                details={"entity_kind": kind.value, "role": actor.role.value}
            )

        owner_id = actor.user_id if self.table.owner_scoped_queue(kind, actor.role) else None
        records = self.record_repo.list_by_status(kind, states, owner_id=owner_id)

        logger.debug(
            f"Queue {kind.value} for {actor.role.value}: {len(records)} records",
            extra={"entity_kind": kind.value, "actor_id": actor.user_id}
        )
        return records
