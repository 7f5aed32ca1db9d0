"""Revenue report over archived orders."""
from __future__ import annotations

from collections import defaultdict
from datetime import datetime
from typing import Any, Dict, TYPE_CHECKING

from domain.order import OrderStatus

if TYPE_CHECKING:
    from infrastructure.repository import KaraokeRepository


class ReportService:
    def __init__(self, repository: "KaraokeRepository"):
        self.repo = repository

    def summary(self, store_id: str, start: datetime, end: datetime) -> Dict[str, Any]:
        """Totals of bills closed within ``[start, end]``; cancelled sessions count but earn nothing."""
        paid = cancelled = edited = 0
        revenue = sub_total = vat = profit = 0.0
        rooms: Dict[str, Dict[str, Any]] = defaultdict(lambda: {"orders": 0, "revenue": 0.0, "profit": 0.0})
        room_names = {room.room_id: room.name for room in self.repo.list_rooms(store_id)}

        for order in self.repo.list_orders(store_id, since=start, until=end):
            if order.status == OrderStatus.CANCELLED:
                cancelled += 1
                continue
            if order.status != OrderStatus.PAID:
                continue
            paid += 1
            if order.edit_count:
                edited += 1
            revenue += order.total_amount
            sub_total += order.sub_total
            vat += order.vat_amount
            profit += order.total_profit
            stats = rooms[order.room_id]
            stats["orders"] += 1
            stats["revenue"] += order.total_amount
            stats["profit"] += order.total_profit

        room_rows = [
            {
                "roomId": room_id,
                "roomName": room_names.get(room_id, room_id),
                "orders": stats["orders"],
                "revenue": round(stats["revenue"], 2),
                "profit": round(stats["profit"], 2),
            }
            for room_id, stats in rooms.items()
        ]
        room_rows.sort(key=lambda row: row["revenue"], reverse=True)

        return {
            "summary": {
                "paidOrders": paid,
                "cancelledOrders": cancelled,
                "editedOrders": edited,
                "totalRevenue": round(revenue, 2),
                "subTotal": round(sub_total, 2),
                "vatAmount": round(vat, 2),
                "totalProfit": round(profit, 2),
            },
            "rooms": room_rows,
        }
