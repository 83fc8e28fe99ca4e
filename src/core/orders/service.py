# src/core/orders/service.py
"""
Сервис для работы с заказами.
Единственное место, где соблюдаются инварианты агрегата.
"""

from __future__ import annotations

import asyncio
import re
from datetime import datetime

import asyncpg

from src.common.constants import BIGINT_MAX, BIGINT_MIN, INT_MAX, MONEY_MAX, OrderStatus, TypeMsg
from src.common.logger import log_info
from src.core.orders.exceptions import (
    DependencyFailure,
    InvalidOrderRequest,
    OrderNotFound,
    OrderPersistenceFailed,
)
from src.core.orders.models import Order, OrderDTO, OrderItem, OrderRequestDTO
from src.core.orders.repository import OrderRepository, RepositoryError
from src.infra.database import CONNECTION_ERRORS, DatabaseManager
from src.infra.product_client import (
    CatalogMalformed,
    CatalogUnavailable,
    ProductClient,
    ProductNotFound,
)

_INTEGER_ID = re.compile(r"[+-]?\d+")

STORAGE_ERRORS = (RepositoryError, asyncpg.PostgresError, asyncio.TimeoutError, *CONNECTION_ERRORS)


class OrderService:
    """
    Сервис заказов.
    Создаёт заказ по запросу, оценивая позиции через каталог,
    и отдаёт сохранённые заказы во внешнем представлении.
    """

    def __init__(
        self,
        db: DatabaseManager,
        repository: OrderRepository,
        product_client: ProductClient,
    ) -> None:
        """
        Инициализация сервиса.

        Args:
            db: Менеджер базы данных (границы транзакций)
            repository: Репозиторий заказов
            product_client: Клиент каталога товаров
        """
        self._db = db
        self._repo = repository
        self._products = product_client

    # =========================================================================
    # СОЗДАНИЕ
    # =========================================================================

    @staticmethod
    def validate_request(request: OrderRequestDTO) -> None:
        """
        Проверяет запрос до любых побочных эффектов.

        Raises:
            InvalidOrderRequest: С указанием поля-нарушителя
        """
        if not request.order_items:
            raise InvalidOrderRequest("orderItems must not be empty")

        for idx, item in enumerate(request.order_items):
            if item.product_id <= 0:
                raise InvalidOrderRequest(f"orderItems[{idx}].productId must be a positive integer")
            if item.product_id > BIGINT_MAX:
                raise InvalidOrderRequest(f"orderItems[{idx}].productId must not exceed {BIGINT_MAX}")
            if item.quantity <= 0:
                raise InvalidOrderRequest(f"orderItems[{idx}].quantity must be a positive integer")
            if item.quantity > INT_MAX:
                raise InvalidOrderRequest(f"orderItems[{idx}].quantity must not exceed {INT_MAX}")

    async def create_order(self, request: OrderRequestDTO) -> OrderDTO:
        """
        Создаёт новый заказ.

        Позиции оцениваются через каталог строго в порядке запроса;
        первая ошибка прерывает обработку. Запись заказа и позиций
        выполняется в одной транзакции.

        Args:
            request: Состав заказа

        Returns:
            Сохранённый заказ

        Raises:
            InvalidOrderRequest: Некорректный запрос или неизвестный товар
                (включая суммы сверх NUMERIC(19,2))
            DependencyFailure: Каталог недоступен
            OrderPersistenceFailed: Ошибка хранилища
        """
        self.validate_request(request)

        await log_info(
            f"Создание заказа: {len(request.order_items)} поз.",
            type_msg=TypeMsg.DEBUG,
        )

        order = Order(order_date=datetime.now(), status=OrderStatus.PENDING)

        for idx, item_request in enumerate(request.order_items):
            product_id = item_request.product_id
            try:
                product = await self._products.get_product_by_id(product_id)
            except ProductNotFound as e:
                raise InvalidOrderRequest(f"unknown productId={product_id}") from e
            except (CatalogUnavailable, CatalogMalformed) as e:
                raise DependencyFailure(str(e)) from e

            if product.price * item_request.quantity > MONEY_MAX:
                raise InvalidOrderRequest(f"orderItems[{idx}] subtotal exceeds {MONEY_MAX}")

            order.add_item(OrderItem.create(product_id, item_request.quantity, product.price))

        if order.recalculate_total() > MONEY_MAX:
            raise InvalidOrderRequest(f"order total exceeds {MONEY_MAX}")
        order.check_invariants()

        try:
            async with self._db.transaction() as conn:
                await self._repo.save(order, conn=conn)
        except asyncpg.DataError:
            # Значение вне диапазона колонки, а не сбой соединения
            raise
        except STORAGE_ERRORS as e:
            raise OrderPersistenceFailed("order could not be persisted") from e

        await log_info(
            f"Заказ {order.id} создан: сумма {order.total_amount}, позиций {len(order.items)}",
            type_msg=TypeMsg.INFO,
        )

        return OrderDTO.from_order(order)

    # =========================================================================
    # ПОЛУЧЕНИЕ
    # =========================================================================

    async def get_order_by_id(self, order_id: str | None) -> OrderDTO:
        """
        Получает заказ по ID из пути запроса.

        Args:
            order_id: Строковый ID заказа

        Returns:
            Заказ с позициями в порядке вставки

        Raises:
            InvalidOrderRequest: Пустой или нечисловой ID
            OrderNotFound: Заказа нет
            OrderPersistenceFailed: Ошибка хранилища
        """
        if order_id is None or not order_id.strip():
            raise InvalidOrderRequest("id required")

        raw_id = order_id.strip()
        if not _INTEGER_ID.fullmatch(raw_id):
            raise InvalidOrderRequest("id must be integer")

        numeric_id = int(raw_id)
        if not BIGINT_MIN <= numeric_id <= BIGINT_MAX:
            raise OrderNotFound(raw_id)

        try:
            order = await self._repo.find_by_id(numeric_id)
        except STORAGE_ERRORS as e:
            raise OrderPersistenceFailed("order storage unavailable") from e

        if order is None:
            raise OrderNotFound(raw_id)

        await log_info(f"Заказ {order.id} получен", type_msg=TypeMsg.INFO)

        return OrderDTO.from_order(order)
