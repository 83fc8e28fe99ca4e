# src/infra/product_client.py
"""
HTTP-клиент внешнего каталога товаров.
Один запрос на вызов, без кэширования между запросами.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Optional

import httpx
from pydantic import BaseModel, Field, ValidationError, field_validator

from src.common.constants import MONEY_MAX, TypeMsg, to_money
from src.common.logger import log_info


class ProductSnapshot(BaseModel):
    """Состояние товара в каталоге на момент запроса."""

    id: int
    name: Optional[str] = None
    description: Optional[str] = None
    price: Decimal = Field(..., ge=0, le=MONEY_MAX, description="Актуальная цена за единицу")

    @field_validator("price", mode="before")
    @classmethod
    def float_to_str(cls, v):
        # float из JSON приводится к строке до Decimal
        if isinstance(v, float):
            return str(v)
        return v

    @field_validator("price")
    @classmethod
    def check_cents(cls, v: Decimal) -> Decimal:
        # Цена каталога не округляется: больше 2 знаков считается ошибкой ответа
        money = to_money(v)
        if money != v:
            raise ValueError(f"price has more than 2 decimal places: {v}")
        return money


# =============================================================================
# ОШИБКИ КЛИЕНТА
# =============================================================================

class ProductClientError(Exception):
    """Базовая ошибка обращения к каталогу."""


class ProductNotFound(ProductClientError):
    """Каталог ответил, что товара нет."""

    def __init__(self, product_id: int) -> None:
        super().__init__(f"product {product_id} not found")
        self.product_id = product_id


class CatalogUnavailable(ProductClientError):
    """Транспортная ошибка, таймаут или ошибка на стороне каталога."""


class CatalogMalformed(ProductClientError):
    """Ответ каталога не соответствует ожидаемой структуре."""


# =============================================================================
# КЛИЕНТ
# =============================================================================

class ProductClient:
    """Клиент каталога товаров поверх httpx.AsyncClient."""

    def __init__(
        self,
        base_url: str,
        timeout_seconds: float = 5.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout_seconds
        self.client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=httpx.Timeout(timeout_seconds),
            transport=transport,
        )

    async def close(self) -> None:
        await self.client.aclose()

    async def get_product_by_id(self, product_id: int) -> ProductSnapshot:
        """
        Запрашивает товар в каталоге.

        Args:
            product_id: ID товара (положительное целое)

        Returns:
            Снимок товара с актуальной ценой

        Raises:
            ProductNotFound: Каталог ответил 404
            CatalogUnavailable: Таймаут, сетевая ошибка или статус != 2xx
            CatalogMalformed: Ответ не удалось разобрать
        """
        try:
            response = await self.client.get(f"/products/{product_id}")
        except httpx.TimeoutException as e:
            await log_info(f"Таймаут каталога ({self.timeout}s) для товара {product_id}: {e!r}", type_msg=TypeMsg.DEBUG)
            raise CatalogUnavailable(f"catalog timeout for productId={product_id}") from e
        except httpx.TransportError as e:
            await log_info(f"Каталог недоступен для товара {product_id}: {e!r}", type_msg=TypeMsg.DEBUG)
            raise CatalogUnavailable(f"catalog unreachable for productId={product_id}") from e

        if response.status_code == 404:
            await log_info(f"Товар {product_id} не найден в каталоге", type_msg=TypeMsg.DEBUG)
            raise ProductNotFound(product_id)

        if not response.is_success:
            await log_info(f"Каталог вернул {response.status_code} для товара {product_id}", type_msg=TypeMsg.DEBUG)
            raise CatalogUnavailable(f"catalog responded {response.status_code} for productId={product_id}")

        try:
            snapshot = ProductSnapshot.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            await log_info(f"Некорректный ответ каталога для товара {product_id}: {e}", type_msg=TypeMsg.DEBUG)
            raise CatalogMalformed(f"malformed catalog response for productId={product_id}") from e

        if snapshot.id != product_id:
            raise CatalogMalformed(
                f"catalog returned productId={snapshot.id} for productId={product_id}"
            )

        return snapshot


# Глобальный экземпляр
_product_client: ProductClient | None = None


def init_product_client() -> ProductClient:
    """Создаёт глобальный клиент каталога по настройкам."""
    from src.config import settings

    global _product_client
    if _product_client is None:
        _product_client = ProductClient(
            base_url=settings.product_service.PRODUCT_SERVICE_BASE_URL,
            timeout_seconds=settings.product_service.timeout_seconds,
        )
    return _product_client


def get_product_client() -> ProductClient:
    """Возвращает глобальный клиент каталога."""
    if _product_client is None:
        raise RuntimeError("Клиент каталога не инициализирован. Вызовите init_product_client() сначала.")
    return _product_client


async def close_product_client() -> None:
    """Закрывает глобальный клиент каталога."""
    global _product_client
    if _product_client is not None:
        await _product_client.close()
        _product_client = None
