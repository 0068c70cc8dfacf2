"""Aggregate application use cases."""

from .notifications import reconcile_notifications

__all__ = ["reconcile_notifications"]
