"""Pytest fixtures shared across the orderdash test suite."""

from __future__ import annotations

from datetime import datetime

import pytest


@pytest.fixture
def now() -> datetime:
    """Return a fixed naive wall-clock reference time."""

    return datetime(2024, 6, 15, 12, 0, 0)


@pytest.fixture
def orders() -> list[dict]:
    """Return a small, mixed-quality order export."""

    return [
        {
            "id": "o1",
            "customerId": "C-001",
            "firstName": "Ada",
            "lastName": "Lovelace",
            "product": "Fiber Internet 300 Mbps",
            "quantity": 2,
            "unitPrice": 12.5,
            "status": "Completed",
            "orderDate": "2024-06-15T09:00:00",
        },
        {
            "id": "o2",
            "customerId": "C-002",
            "customerName": "Grace Hopper",
            "product": "5G Unlimited Mobile Plan",
            "quantity": "3",
            "unitPrice": "20",
            "total": 60,
            "status": "Pending",
            "orderDate": "2024-06-10T09:00:00",
        },
        {
            "id": "o3",
            "customerId": "C-003",
            "product": "Fiber Internet 300 Mbps",
            "quantity": "abc",
            "unitPrice": 40,
            "total": "n/a",
            "status": "Completed",
            "orderDate": "2024-04-01T09:00:00",
        },
        {
            "id": "o4",
            "customerId": "C-004",
            "product": "Business Internet 500 Mbps",
            "quantity": 1,
            "unitPrice": 99.99,
            "status": None,
        },
    ]
