"""Tenant and identity context taken from request headers, plus error translation."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import NoReturn, Optional

from fastapi import Header, HTTPException

from domain.action_log import Actor, SYSTEM_ACTOR
from domain.errors import BillingEngineError, NotFound


@dataclass(frozen=True)
class RequestContext:
    store_id: str
    actor: Actor


def request_context(
    x_store_id: str = Header(..., alias="X-Store-Id"),
    x_user_id: Optional[str] = Header(None, alias="X-User-Id"),
    x_user_name: Optional[str] = Header(None, alias="X-User-Name"),
) -> RequestContext:
    """The presentation layer has already authenticated the user; trust the headers."""
    if x_user_id:
        actor = Actor(user_id=x_user_id, name=x_user_name or x_user_id)
    else:
        actor = SYSTEM_ACTOR
    return RequestContext(store_id=x_store_id, actor=actor)


def raise_http(exc: Exception) -> NoReturn:
    """Translate engine errors to HTTP responses."""
    if isinstance(exc, NotFound):
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    if isinstance(exc, BillingEngineError):
        raise HTTPException(status_code=409, detail={"error": type(exc).__name__, "message": str(exc)}) from exc
    if isinstance(exc, ValueError):
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    raise exc


def parse_time(value: Optional[str], name: str) -> Optional[datetime]:
    """Parse an ISO-8601 query value into the naive UTC form the engine stores."""
    if value is None:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=f"Invalid {name}: {value}") from exc
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed
