"""
Title Hive alert delivery history.

Every notification attempt is stored with its outcome so that:
  - Experts can see which listings they were alerted about.
  - Admins can spot failing email delivery.
  - Erasing an expert wipes the history on both the searcher and the seller side.
"""
from core.db.alerts.deliveries_store import (
    record_alert_delivery,
    get_alert_deliveries_for_expert,
    get_recent_alert_deliveries,
)

__all__ = [
    "record_alert_delivery",
    "get_alert_deliveries_for_expert",
    "get_recent_alert_deliveries",
]
