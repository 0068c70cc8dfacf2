"""Small helpers shared across layers."""

from .clock import app_now, app_timezone, storage_now, to_app_time, to_storage_time

__all__ = ["app_now", "app_timezone", "storage_now", "to_app_time", "to_storage_time"]
