"""Revenue report endpoint over archived bills."""
from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException, Query

from interfaces import deps
from interfaces.context import RequestContext, parse_time, request_context

router = APIRouter(prefix="/report", tags=["report"])

report_service = deps.report_service


@router.get("")
def get_report(
    from_: str = Query(..., alias="from"),
    to: str = Query(...),
    ctx: RequestContext = Depends(request_context),
) -> Dict[str, Any]:
    start = parse_time(from_, "from")
    end = parse_time(to, "to")
    if end < start:
        raise HTTPException(status_code=400, detail="Invalid time range")
    report = report_service.summary(ctx.store_id, start, end)
    report["range"] = {"from": start.isoformat(), "to": end.isoformat()}
    return report
