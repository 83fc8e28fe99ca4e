# src/common/constants.py
"""
Общие константы и перечисления.
"""

from decimal import ROUND_HALF_UP, Decimal
from enum import Enum


class TypeMsg(str, Enum):
    """Типы сообщений для логирования."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class OrderStatus(str, Enum):
    """Статусы заказа. При создании записывается только PENDING."""
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    SHIPPED = "SHIPPED"
    DELIVERED = "DELIVERED"
    CANCELLED = "CANCELLED"

    def __str__(self) -> str:
        return self.value


# Денежная точность: 2 знака после запятой
MONEY_QUANTUM = Decimal("0.01")
MONEY_ROUNDING = ROUND_HALF_UP

# Заголовок корреляции запросов
REQUEST_ID_HEADER = "X-Request-ID"


def to_money(value: Decimal | int | str) -> Decimal:
    """Приводит значение к денежному Decimal с фиксированной точностью."""
    return Decimal(value).quantize(MONEY_QUANTUM, rounding=MONEY_ROUNDING)


# Пределы колонок PostgreSQL
INT_MAX = 2**31 - 1
BIGINT_MIN = -(2**63)
BIGINT_MAX = 2**63 - 1
# NUMERIC(19,2)
MONEY_MAX = Decimal("99999999999999999.99")
