# src/core/orders/repository.py
"""
Репозиторий для работы с заказами в БД.
Сохраняет и загружает агрегат целиком: заказ вместе с позициями.
"""

from __future__ import annotations

import asyncio
from typing import Optional

import asyncpg
from asyncpg import Connection

from src.common.constants import OrderStatus, TypeMsg
from src.common.logger import log_info
from src.core.orders.models import Order, OrderItem
from src.infra.database import CONNECTION_ERRORS, DatabaseManager


class RepositoryError(Exception):
    """Базовая ошибка хранилища."""


class StorageUnavailable(RepositoryError):
    """БД недоступна или запрос завершился ошибкой."""


class StorageConflict(RepositoryError):
    """Нарушение ограничений целостности (дубликат ключа и т.п.)."""


INSERT_ORDER_SQL = """
    INSERT INTO orders (order_date, status, total_amount)
    VALUES ($1, $2, $3)
    RETURNING id
"""

INSERT_ORDER_ITEM_SQL = """
    INSERT INTO order_items (order_id, product_id, quantity, price_per_unit, subtotal)
    VALUES ($1, $2, $3, $4, $5)
    RETURNING id
"""

SELECT_ORDER_SQL = """
    SELECT id, order_date, status, total_amount
    FROM orders
    WHERE id = $1
"""

SELECT_ORDER_ITEMS_SQL = """
    SELECT id, order_id, product_id, quantity, price_per_unit, subtotal
    FROM order_items
    WHERE order_id = $1
    ORDER BY id
"""


class OrderRepository:
    """Репозиторий заказов."""

    def __init__(self, db: DatabaseManager) -> None:
        """
        Инициализация репозитория.

        Args:
            db: Менеджер базы данных (Dependency Injection)
        """
        self._db = db

    async def save(self, order: Order, conn: Connection | None = None) -> Order:
        """
        Вставляет новый заказ со всеми позициями атомарно.

        Если передано соединение, запись участвует во внешней транзакции,
        иначе открывается собственная.

        Args:
            order: Агрегат без ID
            conn: Соединение внутри открытой транзакции

        Returns:
            Тот же агрегат с ID заказа и всех позиций

        Raises:
            StorageConflict: Нарушено ограничение целостности
            StorageUnavailable: БД недоступна или вернула ошибку
        """
        try:
            if conn is None:
                async with self._db.transaction() as tx_conn:
                    await self._insert(order, tx_conn)
            else:
                await self._insert(order, conn)
        except asyncpg.DataError:
            raise
        except asyncpg.IntegrityConstraintViolationError as e:
            await log_info(f"Конфликт при сохранении заказа: {e}", type_msg=TypeMsg.DEBUG)
            raise StorageConflict(str(e)) from e
        except (asyncpg.PostgresError, asyncio.TimeoutError, *CONNECTION_ERRORS) as e:
            await log_info(f"Ошибка сохранения заказа: {e!r}", type_msg=TypeMsg.DEBUG)
            raise StorageUnavailable(str(e)) from e

        await log_info(
            f"Заказ {order.id} сохранён ({len(order.items)} поз.)",
            type_msg=TypeMsg.DEBUG,
        )
        return order

    async def _insert(self, order: Order, conn: Connection) -> None:
        """Выполняет INSERT заказа и позиций в порядке добавления."""
        order_id = await conn.fetchval(
            INSERT_ORDER_SQL,
            order.order_date,
            order.status.value,
            order.total_amount,
        )
        order.assign_id(order_id)

        for item in order.items:
            item.id = await conn.fetchval(
                INSERT_ORDER_ITEM_SQL,
                order_id,
                item.product_id,
                item.quantity,
                item.price_per_unit,
                item.subtotal,
            )

    async def find_by_id(self, order_id: int) -> Optional[Order]:
        """
        Загружает заказ с позициями в порядке вставки.

        Args:
            order_id: ID заказа

        Returns:
            Заказ или None

        Raises:
            StorageUnavailable: БД недоступна или вернула ошибку
        """
        try:
            row = await self._db.fetchrow(SELECT_ORDER_SQL, order_id)
            if row is None:
                return None
            item_rows = await self._db.fetch(SELECT_ORDER_ITEMS_SQL, order_id)
        except (asyncpg.PostgresError, asyncio.TimeoutError, *CONNECTION_ERRORS) as e:
            await log_info(f"Ошибка получения заказа {order_id}: {e!r}", type_msg=TypeMsg.DEBUG)
            raise StorageUnavailable(str(e)) from e

        return self._row_to_order(row, item_rows)

    def _row_to_order(self, row, item_rows) -> Order:
        """Конвертирует строки БД в агрегат Order."""
        return Order(
            id=row["id"],
            order_date=row["order_date"],
            status=OrderStatus(row["status"]),
            total_amount=row["total_amount"],
            items=[
                OrderItem(
                    id=item["id"],
                    order_id=item["order_id"],
                    product_id=item["product_id"],
                    quantity=item["quantity"],
                    price_per_unit=item["price_per_unit"],
                    subtotal=item["subtotal"],
                )
                for item in item_rows
            ],
        )
