from __future__ import annotations

from typing import Optional


class OrderDashError(Exception):
    """Base exception for the dashboard builder."""

    def __init__(self, message: str, details: Optional[dict] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class UnknownWidgetKind(OrderDashError):
    """Raised when a widget kind outside the supported set reaches config resolution."""


class RemoteStoreError(OrderDashError):
    """Raised by remote stores when the dashboard backend cannot be reached or answers badly."""
