# src/core/orders/__init__.py
"""
Домен заказов.
Модели, репозиторий и сервис для работы с заказами.
"""

from src.core.orders.models import (
    Order,
    OrderItem,
    OrderDTO,
    OrderItemDTO,
    OrderRequestDTO,
    OrderItemRequestDTO,
)
from src.core.orders.service import OrderService
from src.core.orders.repository import OrderRepository

__all__ = [
    "Order",
    "OrderItem",
    "OrderDTO",
    "OrderItemDTO",
    "OrderRequestDTO",
    "OrderItemRequestDTO",
    "OrderService",
    "OrderRepository",
]
