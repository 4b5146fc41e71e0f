"""
Shared Test Fixtures

Centralized factories used across all test layers.

Structure:
    - {service}_fixtures.py: Per-service factories
"""

# Availability service fixtures
from .availability_fixtures import (
    NOW,
    make_item,
    make_items,
    make_reservation,
    make_window,
    make_billing_period,
)

__all__ = [
    "NOW",
    "make_item",
    "make_items",
    "make_reservation",
    "make_window",
    "make_billing_period",
]
