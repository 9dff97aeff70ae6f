"""
Status diff engine.

Keeps the last known status of every order the session has observed and
turns a newly observed status into a transition when it differs.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, Optional, Tuple

from ..models.order import OrderStatus
from ..models.profile import Profile

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StatusTransition:
    """A detected status change the viewer is entitled to see."""
    order_id: str
    from_status: OrderStatus
    to_status: OrderStatus


class StatusDiffEngine:
    """Order id to last-known status, seeded by a snapshot then kept current by events."""

    def __init__(self):
        self._statuses: Dict[str, OrderStatus] = {}

    def seed(self, rows: Iterable[Tuple[str, OrderStatus]]) -> None:
        """Replace the map with a snapshot of (order id, status) pairs."""
        self._statuses = {order_id: OrderStatus(status) for order_id, status in rows}
        logger.debug(f"Seeded status map with {len(self._statuses)} orders")

    def reset(self) -> None:
        self._statuses = {}

    def known_status(self, order_id: str) -> Optional[OrderStatus]:
        return self._statuses.get(order_id)

    def __len__(self) -> int:
        return len(self._statuses)

    def observe(
        self,
        order_id: str,
        status: OrderStatus,
        client_id: Optional[str],
        viewer: Profile,
    ) -> Optional[StatusTransition]:
        """
        Compare a newly observed status against the recorded one.

        An order with no recorded status is newly discovered and never
        produces a transition. Client viewers only see transitions on their
        own orders. The map always ends up holding `status`, whether or not
        a transition is returned. Events are applied in arrival order.
        """
        status = OrderStatus(status)
        previous = self.known_status(order_id)
        transition = None

        if previous is not None and previous != status:
            if viewer.is_staff_tier or client_id == viewer.id:
                transition = StatusTransition(order_id=order_id, from_status=previous, to_status=status)
            else:
                logger.debug(f"Status change on {order_id} not visible to viewer {viewer.id}")

        self._statuses[order_id] = status
        return transition
