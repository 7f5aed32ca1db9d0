"""Audit log browsing and CSV export."""
from __future__ import annotations

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import StreamingResponse

from domain.action_log import ActionType
from interfaces import deps
from interfaces.context import RequestContext, parse_time, request_context
from interfaces.serializers import serialize_log

router = APIRouter(prefix="/audit-logs", tags=["audit"])

audit_log = deps.audit_log


@router.get("")
def list_logs(
    action: Optional[ActionType] = Query(None),
    from_: Optional[str] = Query(None, alias="from"),
    to: Optional[str] = Query(None),
    limit: Optional[int] = Query(None, ge=1, le=1000),
    ctx: RequestContext = Depends(request_context),
) -> List[Dict[str, Any]]:
    entries = audit_log.list_entries(
        ctx.store_id,
        action=action,
        since=parse_time(from_, "from"),
        until=parse_time(to, "to"),
        limit=limit,
    )
    return [serialize_log(entry) for entry in entries]


@router.get("/export")
def export_logs(
    action: Optional[ActionType] = Query(None),
    from_: Optional[str] = Query(None, alias="from"),
    to: Optional[str] = Query(None),
    ctx: RequestContext = Depends(request_context),
) -> StreamingResponse:
    content = audit_log.export_csv(
        ctx.store_id,
        action=action,
        since=parse_time(from_, "from"),
        until=parse_time(to, "to"),
    )
    audit_log.record(ctx.store_id, ctx.actor, ActionType.EXPORT, "Audit log", "Exported audit log to CSV")
    return StreamingResponse(
        iter([content]),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="audit-{ctx.store_id}.csv"'},
    )
