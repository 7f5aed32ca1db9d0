"""Append-only audit log of every mutating engine action."""
from __future__ import annotations

import csv
import io
import logging
from datetime import datetime
from typing import List, Optional
from uuid import uuid4

from application.clock import Clock
from domain.action_log import ActionLogEntry, ActionType, Actor
from infrastructure.repository import KaraokeRepository

logger = logging.getLogger(__name__)

CSV_COLUMNS = ["time", "actor", "action", "target", "description"]


class AuditLog:
    def __init__(self, repository: KaraokeRepository, clock: Clock):
        self.repo = repository
        self.clock = clock

    def record(
        self,
        store_id: str,
        actor: Actor,
        action: ActionType,
        target: str,
        description: str,
    ) -> Optional[ActionLogEntry]:
        """Append one entry. Call only after the state it describes is committed.

        A failed append is logged and does not undo the committed operation.
        """
        entry = ActionLogEntry(
            entry_id=str(uuid4()),
            store_id=store_id,
            actor_id=actor.user_id,
            actor_name=actor.name,
            action=action,
            target=target,
            description=description,
            created_at=self.clock.now(),
        )
        try:
            self.repo.add_action_log(entry)
        except Exception:
            logger.exception("Failed to append audit entry %s %s for store %s", action.value, target, store_id)
            return None
        logger.debug("[audit] %s %s %s: %s", store_id, action.value, target, description)
        return entry

    def list_entries(
        self,
        store_id: str,
        action: Optional[ActionType] = None,
        since: Optional[datetime] = None,
        until: Optional[datetime] = None,
        limit: Optional[int] = None,
    ) -> List[ActionLogEntry]:
        entries = list(self.repo.list_action_logs(store_id, action=action, since=since, until=until))
        if limit is not None:
            entries = entries[:limit]
        return entries

    def export_csv(
        self,
        store_id: str,
        action: Optional[ActionType] = None,
        since: Optional[datetime] = None,
        until: Optional[datetime] = None,
    ) -> str:
        buffer = io.StringIO()
        writer = csv.writer(buffer)
        writer.writerow(CSV_COLUMNS)
        for entry in self.list_entries(store_id, action=action, since=since, until=until):
            writer.writerow(
                [entry.created_at.isoformat(), entry.actor_name, entry.action.value, entry.target, entry.description]
            )
        return buffer.getvalue()
