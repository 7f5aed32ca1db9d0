"""Effective billing configuration per store, and reload from app_config.yaml."""
from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from interfaces import deps
from interfaces.context import RequestContext, request_context

router = APIRouter(prefix="/settings", tags=["settings"])


class StoreSettingsResponse(BaseModel):
    configVersion: str
    timeRoundingMinutes: int
    staffServiceMinutes: int
    serviceBlockMinutes: int
    vatRate: float
    staffEditWindowMinutes: int
    adminAutoApproveMinutes: int
    hardBillLockMinutes: int
    lowStockThreshold: int
    forceEndTargets: List[str]


def _store_settings(store_id: str) -> StoreSettingsResponse:
    settings = deps.settings
    billing = settings.billing_rules(store_id)
    editing = settings.bill_editing_rules(store_id)
    return StoreSettingsResponse(
        configVersion=str(settings.version),
        timeRoundingMinutes=billing.time_rounding_minutes,
        staffServiceMinutes=billing.staff_service_minutes,
        serviceBlockMinutes=billing.service_block_minutes,
        vatRate=billing.vat_rate,
        staffEditWindowMinutes=editing.staff_edit_window_minutes,
        adminAutoApproveMinutes=editing.admin_auto_approve_minutes,
        hardBillLockMinutes=editing.hard_bill_lock_minutes,
        lowStockThreshold=settings.low_stock_threshold,
        forceEndTargets=[status.value for status in settings.force_end_targets],
    )


@router.get("", response_model=StoreSettingsResponse)
def get_store_settings(ctx: RequestContext = Depends(request_context)) -> StoreSettingsResponse:
    return _store_settings(ctx.store_id)


@router.post("/reload", response_model=StoreSettingsResponse)
def reload_settings(ctx: RequestContext = Depends(request_context)) -> StoreSettingsResponse:
    """Re-read app_config.yaml and refresh the services that hold settings."""
    deps.reload_settings_from_disk()
    return _store_settings(ctx.store_id)
