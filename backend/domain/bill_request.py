"""Post-payment bill edit request."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional

from .errors import InvalidState


class BillEditStatus(str, Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    COMPLETED = "COMPLETED"  # amendment applied


class BillEditDecision(str, Enum):
    APPROVE = "APPROVE"
    REJECT = "REJECT"


@dataclass
class BillEditRequest:
    """Approval authorizes an edit; the edit itself is a separate amendment call."""

    request_id: str
    store_id: str
    order_id: str
    requested_by_id: str
    requested_by_name: str
    reason: str
    created_at: datetime
    status: BillEditStatus = BillEditStatus.PENDING
    resolved_by: Optional[str] = None
    resolved_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    def resolve(self, decision: BillEditDecision, resolver: str, now: datetime) -> None:
        if self.status != BillEditStatus.PENDING:
            raise InvalidState(f"Request {self.request_id} is already {self.status.value}")
        if decision == BillEditDecision.APPROVE:
            self.status = BillEditStatus.APPROVED
        else:
            self.status = BillEditStatus.REJECTED
        self.resolved_by = resolver
        self.resolved_at = now

    def complete(self, now: datetime) -> None:
        if self.status != BillEditStatus.APPROVED:
            raise InvalidState(f"Request {self.request_id} is {self.status.value}, not APPROVED")
        self.status = BillEditStatus.COMPLETED
        self.completed_at = now
