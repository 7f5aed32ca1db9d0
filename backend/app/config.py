"""Configuration loader that keeps all runtime constants centralized."""
from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Optional

try:
    import yaml
except ImportError as exc:  # pragma: no cover - library is optional until runtime
    raise RuntimeError("PyYAML is required to load the application configuration") from exc

from domain.room import RoomStatus
from domain.tariff import BillingRules


CONFIG_PATH = Path(__file__).resolve().parent / "app_config.yaml"


@dataclass(frozen=True)
class BillEditingRules:
    """Bill edit policy windows; consumed by callers, never enforced by the workflow."""

    staff_edit_window_minutes: int = 5
    admin_auto_approve_minutes: int = 0
    hard_bill_lock_minutes: int = 1440


@dataclass(frozen=True)
class AppConfig:
    """Strongly-typed wrapper over the raw YAML document."""

    raw: Dict[str, Any]

    @property
    def version(self) -> str:
        return str(self.raw.get("version", "v1"))

    @property
    def billing(self) -> Dict[str, Any]:
        return self.raw.get("billing", {})

    @property
    def bill_editing(self) -> Dict[str, Any]:
        return self.raw.get("bill_editing", {})

    @property
    def inventory(self) -> Dict[str, Any]:
        return self.raw.get("inventory", {})

    @property
    def sessions(self) -> Dict[str, Any]:
        return self.raw.get("sessions", {})

    @property
    def storage(self) -> Dict[str, Any]:
        return self.raw.get("storage", {})

    @property
    def logging(self) -> Dict[str, Any]:
        return self.raw.get("logging", {})

    @property
    def stores(self) -> Dict[str, Any]:
        return self.raw.get("stores") or {}

    @property
    def database_backend(self) -> str:
        return str(self.storage.get("database", "memory"))

    @property
    def sqlite_path(self) -> str:
        return str(self.storage.get("sqlite_path", "karaoke.db"))

    @property
    def log_level(self) -> str:
        return str(self.logging.get("level", "INFO")).upper()

    @property
    def low_stock_threshold(self) -> int:
        return int(self.inventory.get("low_stock_threshold", 5))

    @property
    def force_end_targets(self) -> List[RoomStatus]:
        names = self.sessions.get("force_end_targets") or ["AVAILABLE", "CLEANING", "OUT_OF_SERVICE"]
        return [RoomStatus(name) for name in names]

    def _store_section(self, store_id: Optional[str], section: str) -> Dict[str, Any]:
        merged = dict(self.raw.get(section, {}) or {})
        if store_id:
            override = (self.stores.get(store_id) or {}).get(section) or {}
            merged.update(override)
        return merged

    def billing_rules(self, store_id: Optional[str] = None) -> BillingRules:
        """Billing rules for one store: global ``billing`` overlaid with ``stores.<id>.billing``."""
        cfg = self._store_section(store_id, "billing")
        return BillingRules(
            time_rounding_minutes=int(cfg.get("time_rounding_minutes", 5)),
            staff_service_minutes=int(cfg.get("staff_service_minutes", 0)),
            service_block_minutes=int(cfg.get("service_block_minutes", 1)),
            vat_rate=float(cfg.get("vat_rate", 0.0)),
        )

    def bill_editing_rules(self, store_id: Optional[str] = None) -> BillEditingRules:
        cfg = self._store_section(store_id, "bill_editing")
        return BillEditingRules(
            staff_edit_window_minutes=int(cfg.get("staff_edit_window_minutes", 5)),
            admin_auto_approve_minutes=int(cfg.get("admin_auto_approve_minutes", 0)),
            hard_bill_lock_minutes=int(cfg.get("hard_bill_lock_minutes", 1440)),
        )


@lru_cache(maxsize=1)
def get_settings(path: Path | None = None) -> AppConfig:
    """Load configuration once per process."""

    config_path = path or CONFIG_PATH
    data = yaml.safe_load(config_path.read_text(encoding="utf-8"))
    if not isinstance(data, dict):  # pragma: no cover - invalid file guard
        raise ValueError("Configuration file must define a mapping at the top level.")
    return AppConfig(raw=data)
