# src/core/orders/exceptions.py
"""
Ошибки домена заказов.
Имя вида (kind) стабильно и попадает в тело HTTP-ответа.
"""


class OrderError(Exception):
    """Базовая ошибка сервиса заказов."""

    kind: str = "Unexpected"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InvalidOrderRequest(OrderError):
    """Некорректный запрос: пустой состав, неверные поля, неизвестный товар, неверный ID."""

    kind = "InvalidOrderRequest"


class OrderNotFound(OrderError):
    """Заказ с указанным ID отсутствует."""

    kind = "OrderNotFound"

    def __init__(self, order_id: str) -> None:
        super().__init__(f"order {order_id} not found")
        self.order_id = order_id


class DependencyFailure(OrderError):
    """Каталог товаров недоступен, не ответил вовремя или ответил некорректно."""

    kind = "DependencyFailure"


class OrderPersistenceFailed(OrderError):
    """Хранилище недоступно или отклонило запись."""

    kind = "OrderPersistenceFailed"
