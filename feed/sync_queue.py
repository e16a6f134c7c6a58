"""Pending CRM sync targets.

Order changes in the shop queue their project for the next SyncFeed
request. The queue is owned by whoever handles the changes (a request, a
batch job) and is drained once when it is done.
"""

from typing import Iterable, List

from core.models.canonical import DEFAULT_GUEST_OFFSET, Order
from feed.identity import order_project_id

DRAFT_STATUSES = {"checkout-draft", "draft", "auto-draft"}


class SyncQueue:
    """Ordered set of project IDs waiting to be synced."""

    def __init__(self, guest_offset: int = DEFAULT_GUEST_OFFSET):
        self.guest_offset = guest_offset
        self._project_ids: List[int] = []

    def __len__(self) -> int:
        return len(self._project_ids)

    def queue_project(self, project_id: int) -> None:
        if project_id not in self._project_ids:
            self._project_ids.append(project_id)

    def queue_orders(self, orders: Iterable[Order]) -> None:
        """Queue the projects of changed orders; drafts are never synced."""
        for order in orders:
            if order.status.removeprefix("wc-") in DRAFT_STATUSES:
                continue
            self.queue_project(order_project_id(order.id, order.customer_id, self.guest_offset))

    def drain(self) -> str:
        """Comma-separated queued project IDs ("" if none); empties the queue."""
        project_ids = ",".join(str(id) for id in self._project_ids)
        self._project_ids = []
        return project_ids


def all_project_ids(orders: Iterable[Order], guest_offset: int = DEFAULT_GUEST_OFFSET) -> List[int]:
    """Distinct project IDs of all orders, in ascending order ID order."""
    project_ids: List[int] = []
    seen = set()
    for order in sorted(orders, key=lambda order: order.id):
        project_id = order_project_id(order.id, order.customer_id, guest_offset)
        if project_id not in seen:
            seen.add(project_id)
            project_ids.append(project_id)
    return project_ids
