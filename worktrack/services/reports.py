"""
CSV order sheets.

Exports the viewer's loaded orders created within the last week, month or
year. Clients get a sheet of their own orders, staff a sheet of all orders.
"""

import calendar
import csv
import io
import logging
from datetime import datetime, timedelta
from enum import Enum
from typing import Optional, Tuple

from ..models.order import Order
from ..models.profile import Profile, Role
from ..notifications.toasts import ToastFeed
from ..utils.datetime_utils import get_local_tz, to_aware_utc
from .order_store import OrderStore

logger = logging.getLogger(__name__)


class SheetRange(str, Enum):
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


def range_start(sheet_range: SheetRange, now: datetime) -> datetime:
    """Start of the reporting window ending at `now`."""
    sheet_range = SheetRange(sheet_range)
    if sheet_range == SheetRange.WEEKLY:
        return now - timedelta(days=7)

    if sheet_range == SheetRange.MONTHLY:
        year, month = (now.year, now.month - 1) if now.month > 1 else (now.year - 1, 12)
    else:
        year, month = now.year - 1, now.month
    # Clamp to the last day of the target month (Mar 31 -> Feb 28)
    day = min(now.day, calendar.monthrange(year, month)[1])
    return now.replace(year=year, month=month, day=day)


class ReportService:
    """Builds downloadable order sheets from the local collection."""

    def __init__(self, store: OrderStore, toasts: Optional[ToastFeed] = None):
        self.store = store
        self.toasts = toasts or store.toasts

    def export_csv(
        self,
        viewer: Profile,
        sheet_range: SheetRange,
        now: Optional[datetime] = None,
    ) -> Optional[Tuple[str, str]]:
        """
        Export orders created within the range.

        Returns:
            (file name, CSV text), or None when no order falls in the range
        """
        sheet_range = SheetRange(sheet_range)
        now = now or datetime.now(get_local_tz())
        start = to_aware_utc(range_start(sheet_range, now))

        orders = [o for o in self.store.orders if to_aware_utc(o.created_at) >= start]
        if not orders:
            self.toasts.info(f"No {sheet_range.value} data to download")
            return None

        buffer = io.StringIO()
        writer = csv.writer(buffer, lineterminator="\n")
        writer.writerow(Order.report_headers())
        for order in orders:
            writer.writerow(order.to_report_row(self.store.profiles))

        scope = "my-orders" if viewer.role == Role.CLIENT else "all-orders"
        filename = f"worktrack-{scope}-{sheet_range.value}-{now.strftime('%Y-%m-%d')}.csv"

        logger.info(f"Exported {len(orders)} orders to {filename}")
        self.toasts.success(f"{sheet_range.value.capitalize()} sheet downloaded")
        return filename, buffer.getvalue().rstrip("\n")
