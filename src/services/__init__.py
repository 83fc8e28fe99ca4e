# src/services/__init__.py
"""
HTTP-приложения.

Сервисы:
- order_service: создание и получение заказов (FastAPI)
"""

__all__: list[str] = []
