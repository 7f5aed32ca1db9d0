"""Bill correction workflow: edit request, approver decision, amendment of a paid bill."""
from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Dict, List, Optional, Sequence, TYPE_CHECKING
from uuid import uuid4

from domain.action_log import ActionType, Actor
from domain.bill_request import BillEditDecision, BillEditRequest, BillEditStatus
from domain.errors import InvalidState, NotFound
from domain.line_item import DiscreteItem, LineItem, MeteredItem
from domain.order import Order, OrderStatus

if TYPE_CHECKING:
    from app.config import AppConfig, BillEditingRules
    from application.audit_service import AuditLog
    from application.billing_service import BillingService
    from application.clock import Clock, StoreLocks
    from infrastructure.repository import KaraokeRepository

logger = logging.getLogger(__name__)


def _hms(value: Optional[datetime]) -> str:
    return value.strftime("%H:%M:%S") if value else "..."


def describe_changes(
    order: Order,
    new_items: Sequence[LineItem],
    new_started_at: Optional[datetime] = None,
    new_ended_at: Optional[datetime] = None,
) -> List[str]:
    """Human-readable differences between an archived order and a proposed correction."""
    changes: List[str] = []
    if new_started_at and new_started_at != order.started_at:
        changes.append(f"Start: {_hms(order.started_at)} -> {_hms(new_started_at)}")
    if new_ended_at and order.ended_at and new_ended_at != order.ended_at:
        changes.append(f"End: {_hms(order.ended_at)} -> {_hms(new_ended_at)}")

    old_items: Dict[str, LineItem] = {item.item_id: item for item in order.items}
    new_ids = set()
    for item in new_items:
        new_ids.add(item.item_id)
        old = old_items.get(item.item_id)
        if old is None:
            if isinstance(item, DiscreteItem):
                changes.append(f"Added {item.name} (x{item.quantity})")
            else:
                changes.append(f"Added service {item.name} ({_hms(item.started_at)} - {_hms(item.ended_at)})")
            continue
        if type(old) is not type(item):
            changes.append(f"{item.name}: billed as {item.kind} instead of {old.kind}")
            continue
        if item.name != old.name:
            changes.append(f"{old.name} renamed to {item.name}")
        if item.product_id != old.product_id:
            changes.append(f"{item.name} product: {old.product_id} -> {item.product_id}")
        if item.sell_price != old.sell_price:
            changes.append(f"{item.name} price: {old.sell_price:g} -> {item.sell_price:g}")
        if item.cost_price != old.cost_price:
            changes.append(f"{item.name} cost: {old.cost_price:g} -> {item.cost_price:g}")
        if isinstance(item, DiscreteItem):
            if item.quantity != old.quantity:
                changes.append(f"{item.name}: {old.quantity} -> {item.quantity}")
        elif isinstance(item, MeteredItem):
            if item.started_at != old.started_at:
                changes.append(f"{item.name} (start): {_hms(old.started_at)} -> {_hms(item.started_at)}")
            if item.ended_at != old.ended_at:
                changes.append(f"{item.name} (end): {_hms(old.ended_at)} -> {_hms(item.ended_at)}")

    for item_id, old in old_items.items():
        if item_id not in new_ids:
            changes.append(f"Removed {old.name}")
    return changes


class BillEditPolicy:
    """Time windows around checkout, for callers that gate who may edit when."""

    def __init__(self, rules: "BillEditingRules", clock: "Clock"):
        self.rules = rules
        self.clock = clock

    def _since_checkout(self, order: Order) -> Optional[timedelta]:
        if order.ended_at is None:
            return None
        return self.clock.now() - order.ended_at

    def staff_window_open(self, order: Order) -> bool:
        elapsed = self._since_checkout(order)
        return elapsed is not None and elapsed <= timedelta(minutes=self.rules.staff_edit_window_minutes)

    def auto_approves(self, order: Order) -> bool:
        elapsed = self._since_checkout(order)
        minutes = self.rules.admin_auto_approve_minutes
        return minutes > 0 and elapsed is not None and elapsed <= timedelta(minutes=minutes)

    def is_locked(self, order: Order) -> bool:
        elapsed = self._since_checkout(order)
        minutes = self.rules.hard_bill_lock_minutes
        return minutes > 0 and elapsed is not None and elapsed > timedelta(minutes=minutes)


class BillEditService:
    def __init__(
        self,
        config: "AppConfig",
        repository: "KaraokeRepository",
        billing_service: "BillingService",
        audit: "AuditLog",
        clock: "Clock",
        locks: "StoreLocks",
    ):
        self.config = config
        self.repo = repository
        self.billing_service = billing_service
        self.audit = audit
        self.clock = clock
        self.locks = locks

    def update_config(self, config: "AppConfig") -> None:
        self.config = config

    def policy(self, store_id: str) -> BillEditPolicy:
        return BillEditPolicy(self.config.bill_editing_rules(store_id), self.clock)

    # Queries --------------------------------------------------------------
    def get_request(self, store_id: str, request_id: str) -> BillEditRequest:
        request = self.repo.get_bill_request(store_id, request_id)
        if not request:
            raise NotFound(f"Bill edit request {request_id} not found")
        return request

    def list_requests(self, store_id: str, status: Optional[BillEditStatus] = None) -> List[BillEditRequest]:
        return list(self.repo.list_bill_requests(store_id, status=status))

    def _paid_order(self, store_id: str, order_id: str) -> Order:
        order = self.repo.get_order(store_id, order_id)
        if not order:
            raise NotFound(f"Order {order_id} not found")
        if order.status != OrderStatus.PAID:
            raise InvalidState(f"Order {order_id} is {order.status.value}; only paid bills can be edited")
        return order

    # Workflow -------------------------------------------------------------
    def request_edit(self, store_id: str, order_id: str, requester: Actor, reason: str) -> BillEditRequest:
        with self.locks.hold(store_id):
            self._paid_order(store_id, order_id)
            request = BillEditRequest(
                request_id=str(uuid4()),
                store_id=store_id,
                order_id=order_id,
                requested_by_id=requester.user_id,
                requested_by_name=requester.name,
                reason=reason,
                created_at=self.clock.now(),
            )
            self.repo.save_bill_request(request)
            self.audit.record(store_id, requester, ActionType.REQUEST, f"Bill {order_id}", f"Requested bill edit: {reason}")
        return request

    def resolve_request(
        self,
        store_id: str,
        request_id: str,
        resolver: Actor,
        decision: BillEditDecision,
    ) -> BillEditRequest:
        """PENDING -> APPROVED | REJECTED. Approval does not edit the bill by itself."""
        with self.locks.hold(store_id):
            request = self.get_request(store_id, request_id)
            request.resolve(decision, resolver.name, self.clock.now())
            self.repo.save_bill_request(request)
            verb = "Approved" if request.status == BillEditStatus.APPROVED else "Rejected"
            self.audit.record(
                store_id,
                resolver,
                ActionType.UPDATE,
                f"Bill edit request {request_id}",
                f"{verb} edit of bill {request.order_id}",
            )
        return request

    def apply_amendment(
        self,
        store_id: str,
        order_id: str,
        actor: Actor,
        new_items: Sequence[LineItem],
        new_started_at: Optional[datetime] = None,
        new_ended_at: Optional[datetime] = None,
        request_id: Optional[str] = None,
    ) -> Order:
        """
        Correct a paid bill and re-price it.

        Without any detected difference the order is returned untouched: no
        edit count increment, no audit entry, and a supplied request stays
        APPROVED.
        """
        with self.locks.hold(store_id):
            order = self._paid_order(store_id, order_id)
            request = None
            if request_id:
                request = self.get_request(store_id, request_id)
                if request.order_id != order_id:
                    raise InvalidState(f"Request {request_id} is for bill {request.order_id}, not {order_id}")
                if request.status != BillEditStatus.APPROVED:
                    raise InvalidState(f"Request {request_id} is {request.status.value}, not APPROVED")

            changes = describe_changes(order, new_items, new_started_at, new_ended_at)
            if not changes:
                logger.debug("Amendment of bill %s has no changes; skipped", order_id)
                return order

            started_at = new_started_at or order.started_at
            ended_at = new_ended_at or order.ended_at or self.clock.now()
            if ended_at < started_at:
                raise InvalidState("Session end cannot precede its start")

            invoice = self.billing_service.price_order(
                order,
                order.hourly_rate,
                ended_at,
                items=new_items,
                started_at=started_at,
            )
            order.started_at = started_at
            order.ended_at = ended_at
            order.items = list(new_items)
            order.apply_invoice(invoice)
            order.edit_count += 1
            if request is not None:
                request.complete(self.clock.now())
            self.repo.save_amendment(order, request)
            self.audit.record(
                store_id,
                actor,
                ActionType.UPDATE,
                f"Bill {order_id}",
                "Edited bill: " + ", ".join(changes),
            )

        logger.info("Bill %s amended (edit #%s), new total %.2f", order_id, order.edit_count, order.total_amount)
        return order
