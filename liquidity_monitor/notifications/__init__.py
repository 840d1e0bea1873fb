"""Notification modules."""
from .webhook import WebhookNotifier

__all__ = ["WebhookNotifier"]
