# tests/conftest.py
"""
Общие фикстуры и настройки для тестов.
"""

from __future__ import annotations

import asyncio
import itertools
import os
from contextlib import asynccontextmanager
from datetime import datetime
from decimal import Decimal
from pathlib import Path
from typing import Any, Callable
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

# Устанавливаем переменные окружения перед импортом модулей
os.environ.setdefault("DB_PASSWORD", "test_password")
os.environ.setdefault("PRODUCT_SERVICE_BASE_URL", "http://catalog.test")
os.environ.setdefault("LOG_FORMAT", "colored")

from src.core.orders.repository import (  # noqa: E402
    INSERT_ORDER_ITEM_SQL,
    INSERT_ORDER_SQL,
    SELECT_ORDER_ITEMS_SQL,
    SELECT_ORDER_SQL,
)
from src.infra.product_client import ProductClient  # noqa: E402

CATALOG_BASE_URL = "http://catalog.test"


# =============================================================================
# ФИКСТУРЫ КОНФИГУРАЦИИ
# =============================================================================

@pytest.fixture(scope="session")
def project_root() -> Path:
    """Корневая директория проекта."""
    return Path(__file__).parent.parent


@pytest.fixture(scope="session")
def config_path(project_root: Path) -> Path:
    """Путь к файлу конфигурации."""
    return project_root / "config" / "config.json"


@pytest.fixture
def mock_config() -> dict[str, Any]:
    """Мок конфигурации для тестов."""
    return {
        "PROJECT_NAME": "order_service_test",
        "VERSION": "1.0.0-test",
        "DEBUG": True,
        "ENVIRONMENT": "test",
        "LOG_LEVEL": "DEBUG",
        "LOG_TO_FILE": False,
        "LOG_FILE_PATH": "logs/test.log",
        "LOG_FORMAT": "json",
        "DB_URL": "jdbc:postgresql://db.test:5432/orders_test",
        "DB_USER": "orders",
        "DB_PASSWORD": "secret",
        "DB_MIN_POOL_SIZE": 1,
        "DB_MAX_POOL_SIZE": 4,
        "DB_COMMAND_TIMEOUT": 10,
        "PRODUCT_SERVICE_BASE_URL": "http://catalog.test/",
        "PRODUCT_SERVICE_TIMEOUT_MS": 1500,
        "HTTP_HOST": "127.0.0.1",
        "HTTP_PORT": 9090,
    }


# =============================================================================
# ФИКСТУРЫ ИНФРАСТРУКТУРЫ (МОКИ)
# =============================================================================

@pytest.fixture
def mock_db() -> MagicMock:
    """Мок менеджера базы данных с транзакцией на моке соединения."""
    conn = MagicMock()
    conn.fetchval = AsyncMock(return_value=None)
    conn.execute = AsyncMock(return_value="INSERT 0 1")

    @asynccontextmanager
    async def transaction():
        yield conn

    db = MagicMock()
    db.conn = conn
    db.transaction = MagicMock(side_effect=transaction)
    db.fetchrow = AsyncMock(return_value=None)
    db.fetch = AsyncMock(return_value=[])
    db.execute = AsyncMock(return_value="INSERT 0 1")
    db.fetchval = AsyncMock(return_value=None)
    return db


class _StagedConnection:
    """Соединение внутри транзакции InMemoryOrderStore: пишет в буфер."""

    def __init__(self, store: InMemoryOrderStore) -> None:
        self._store = store
        self.orders: dict[int, dict[str, Any]] = {}
        self.items: dict[int, dict[str, Any]] = {}

    async def fetchval(self, query: str, *args: Any) -> int:
        if self._store.fail_on_write is not None:
            raise self._store.fail_on_write

        if query == INSERT_ORDER_SQL:
            order_id = next(self._store.order_ids)
            order_date, status, total_amount = args
            self.orders[order_id] = {
                "id": order_id,
                "order_date": order_date,
                "status": status,
                "total_amount": total_amount,
            }
            if self._store.write_gate is not None:
                self._store.write_paused.set()
                await self._store.write_gate.wait()
            return order_id

        if query == INSERT_ORDER_ITEM_SQL:
            item_id = next(self._store.item_ids)
            order_id, product_id, quantity, price_per_unit, subtotal = args
            self.items[item_id] = {
                "id": item_id,
                "order_id": order_id,
                "product_id": product_id,
                "quantity": quantity,
                "price_per_unit": price_per_unit,
                "subtotal": subtotal,
            }
            return item_id

        raise AssertionError(f"Неожиданный запрос: {query}")


class InMemoryOrderStore:
    """
    Транзакционная in-memory замена DatabaseManager.
    Записи видны только после успешного выхода из transaction();
    идентификаторы, как и sequence в PostgreSQL, при откате не переиспользуются.
    """

    def __init__(self) -> None:
        self.orders: dict[int, dict[str, Any]] = {}
        self.items: dict[int, dict[str, Any]] = {}
        self.order_ids = itertools.count(1)
        self.item_ids = itertools.count(1)
        self.commits = 0
        self.rollbacks = 0
        self.fail_on_write: Exception | None = None
        self.fail_on_read: Exception | None = None
        # Если задан, запись заказа ждёт его внутри транзакции
        self.write_gate: asyncio.Event | None = None
        self.write_paused = asyncio.Event()

    @asynccontextmanager
    async def transaction(self):
        conn = _StagedConnection(self)
        try:
            yield conn
        except BaseException:
            self.rollbacks += 1
            raise
        self.orders.update(conn.orders)
        self.items.update(conn.items)
        self.commits += 1

    async def fetchrow(self, query: str, *args: Any) -> dict[str, Any] | None:
        if self.fail_on_read is not None:
            raise self.fail_on_read
        assert query == SELECT_ORDER_SQL
        return self.orders.get(args[0])

    async def fetch(self, query: str, *args: Any) -> list[dict[str, Any]]:
        if self.fail_on_read is not None:
            raise self.fail_on_read
        assert query == SELECT_ORDER_ITEMS_SQL
        rows = [item for item in self.items.values() if item["order_id"] == args[0]]
        return sorted(rows, key=lambda item: item["id"])

    async def health_check(self) -> bool:
        return True


@pytest.fixture
def order_store() -> InMemoryOrderStore:
    """Пустое in-memory хранилище заказов."""
    return InMemoryOrderStore()


# =============================================================================
# КАТАЛОГ ТОВАРОВ (httpx.MockTransport)
# =============================================================================

def make_catalog_transport(
    prices: dict[int, str],
    *,
    failures: dict[int, Any] | None = None,
    calls: list[int] | None = None,
) -> httpx.MockTransport:
    """
    Собирает транспорт, имитирующий каталог товаров.

    Args:
        prices: product_id -> цена (строкой, как в JSON каталога)
        failures: product_id -> HTTP-статус ошибки или "timeout"
        calls: Список, куда записываются запрошенные product_id
    """
    failures = failures or {}

    def handler(request: httpx.Request) -> httpx.Response:
        product_id = int(request.url.path.rsplit("/", 1)[-1])
        if calls is not None:
            calls.append(product_id)

        failure = failures.get(product_id)
        if failure == "timeout":
            raise httpx.ReadTimeout("catalog timed out", request=request)
        if isinstance(failure, int):
            return httpx.Response(failure, json={"error": "catalog failure"})

        if product_id not in prices:
            return httpx.Response(404, json={"error": "not found"})

        return httpx.Response(
            200,
            json={
                "id": product_id,
                "name": f"Товар {product_id}",
                "description": "Тестовый товар",
                "price": prices[product_id],
            },
        )

    return httpx.MockTransport(handler)


@pytest.fixture
def catalog_calls() -> list[int]:
    """Журнал обращений к каталогу."""
    return []


@pytest.fixture
def make_product_client(catalog_calls: list[int]) -> Callable[..., ProductClient]:
    """Фабрика ProductClient поверх имитации каталога."""

    def factory(prices: dict[int, str], failures: dict[int, Any] | None = None) -> ProductClient:
        transport = make_catalog_transport(prices, failures=failures, calls=catalog_calls)
        return ProductClient(base_url=CATALOG_BASE_URL, timeout_seconds=1.0, transport=transport)

    return factory


# =============================================================================
# ФИКСТУРЫ МОДЕЛЕЙ
# =============================================================================

@pytest.fixture
def sample_order_row() -> dict[str, Any]:
    """Строка таблицы orders."""
    return {
        "id": 7,
        "order_date": datetime(2024, 5, 1, 12, 30, 0),
        "status": "PENDING",
        "total_amount": Decimal("150.00"),
    }


@pytest.fixture
def sample_item_rows() -> list[dict[str, Any]]:
    """Строки таблицы order_items для заказа 7."""
    return [
        {
            "id": 21,
            "order_id": 7,
            "product_id": 10,
            "quantity": 2,
            "price_per_unit": Decimal("50.00"),
            "subtotal": Decimal("100.00"),
        },
        {
            "id": 22,
            "order_id": 7,
            "product_id": 11,
            "quantity": 4,
            "price_per_unit": Decimal("12.50"),
            "subtotal": Decimal("50.00"),
        },
    ]
