# src/core/__init__.py
"""
Доменный слой (Core Domain).
Бизнес-логика заказов.
"""

from src.core.orders import Order, OrderService

__all__ = [
    "Order",
    "OrderService",
]
