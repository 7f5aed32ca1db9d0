"""Append-only audit records and the actor they are attributed to."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class ActionType(str, Enum):
    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    IMPORT = "IMPORT"
    EXPORT = "EXPORT"
    SYSTEM = "SYSTEM"
    REQUEST = "REQUEST"
    PRINT = "PRINT"


@dataclass(frozen=True)
class Actor:
    user_id: str
    name: str


SYSTEM_ACTOR = Actor(user_id="system", name="System")


@dataclass(frozen=True)
class ActionLogEntry:
    entry_id: str
    store_id: str
    actor_id: str
    actor_name: str
    action: ActionType
    target: str
    description: str
    created_at: datetime
