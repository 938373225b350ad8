"""Promotion Service - Turn a ready inventory item into a marketplace product"""
from typing import Optional

from ..domain.models import ActorContext
from ..domain.enums import EntityKind, WorkflowAction
from ..engine.engine import WorkflowEngine
from ..utils.logger import get_logger

logger = get_logger(__name__)


class PromotionService:
    """
    Service for inventory promotion

    Promotion is the `promote` edge of the inventory lifecycle. The engine
    stages the item update, the new pending product and both audit events in
    one unit of work, so either the item is promoted and the product exists,
    or neither happened.
    """

    def __init__(self, engine: WorkflowEngine):
        self.engine = engine

    def promote(
        self,
        inventory_item_id: str,
        actor: ActorContext,
        correlation_id: Optional[str] = None
    ) -> str:
        """
        Promote the actor's ready item and return the new product ID

        Raises:
            RecordNotFoundError: Item does not exist
            IllegalTransitionError: Item is not ready
            ForbiddenError: Actor is not the owning supplier
            ConflictError: Item changed (e.g. promoted concurrently) since it was read
        """
        item = self.engine.apply_transition(
            EntityKind.INVENTORY_ITEM,
            inventory_item_id,
            WorkflowAction.PROMOTE.value,
            actor,
            correlation_id=correlation_id
        )
        logger.info(
            f"Promoted inventory item {inventory_item_id} to product {item.promoted_product_id}",
            extra={
                "record_id": inventory_item_id,
                "product_id": item.promoted_product_id,
                "actor_id": actor.user_id,
            }
        )
        return item.promoted_product_id
