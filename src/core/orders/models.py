# src/core/orders/models.py
"""
Модели данных заказов.
Агрегат Order владеет позициями OrderItem; DTO описывают HTTP-контракт.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field, StrictInt, field_serializer
from pydantic.alias_generators import to_camel

from src.common.constants import OrderStatus, to_money


# =============================================================================
# АГРЕГАТ
# =============================================================================

class OrderItem(BaseModel):
    """Позиция заказа. Существует только в составе одного заказа."""

    id: Optional[int] = Field(None, description="ID позиции (назначается БД)")
    order_id: Optional[int] = Field(None, description="ID родительского заказа")
    product_id: int = Field(..., gt=0, description="ID товара во внешнем каталоге")
    quantity: int = Field(..., gt=0, description="Количество")
    price_per_unit: Decimal = Field(..., ge=0, description="Цена за единицу на момент заказа")
    subtotal: Decimal = Field(..., ge=0, description="quantity * price_per_unit")

    class Config:
        from_attributes = True

    @classmethod
    def create(cls, product_id: int, quantity: int, price_per_unit: Decimal) -> OrderItem:
        """Создаёт позицию со снимком цены и рассчитанной суммой."""
        price = to_money(price_per_unit)
        return cls(
            product_id=product_id,
            quantity=quantity,
            price_per_unit=price,
            subtotal=to_money(price * quantity),
        )


class Order(BaseModel):
    """Модель заказа (корень агрегата)."""

    id: Optional[int] = Field(None, description="ID заказа (назначается БД)")
    order_date: datetime = Field(default_factory=datetime.now, description="Время приёма заказа")
    status: OrderStatus = Field(OrderStatus.PENDING, description="Статус заказа")
    total_amount: Decimal = Field(Decimal("0.00"), ge=0, description="Сумма заказа")
    items: list[OrderItem] = Field(default_factory=list, description="Позиции заказа")

    class Config:
        from_attributes = True

    def add_item(self, item: OrderItem) -> None:
        """Добавляет позицию; позиция запоминает родительский заказ."""
        if item.order_id is not None and item.order_id != self.id:
            raise ValueError(f"Позиция уже принадлежит заказу {item.order_id}")
        item.order_id = self.id
        self.items.append(item)

    def assign_id(self, order_id: int) -> None:
        """Назначает ID заказу и проставляет его во все позиции."""
        self.id = order_id
        for item in self.items:
            item.order_id = order_id

    def recalculate_total(self) -> Decimal:
        """Пересчитывает сумму заказа по позициям."""
        self.total_amount = to_money(sum((item.subtotal for item in self.items), Decimal("0")))
        return self.total_amount

    def check_invariants(self) -> None:
        """
        Проверяет инварианты агрегата.

        Raises:
            ValueError: Если хотя бы один инвариант нарушен
        """
        if not self.items:
            raise ValueError("Заказ без позиций")
        for item in self.items:
            if item.subtotal != item.price_per_unit * item.quantity:
                raise ValueError(f"Неверная сумма позиции product_id={item.product_id}")
            if self.id is not None and item.order_id != self.id:
                raise ValueError(f"Позиция product_id={item.product_id} принадлежит другому заказу")
        if self.total_amount != sum((item.subtotal for item in self.items), Decimal("0")):
            raise ValueError("Сумма заказа не равна сумме позиций")
        if self.order_date > datetime.now():
            raise ValueError("Дата заказа в будущем")


# =============================================================================
# DTO (HTTP-контракт, camelCase)
# =============================================================================

class OrderItemRequestDTO(BaseModel):
    """Позиция в запросе на создание заказа."""

    product_id: StrictInt
    quantity: StrictInt

    class Config:
        alias_generator = to_camel
        populate_by_name = True


class OrderRequestDTO(BaseModel):
    """Запрос на создание заказа."""

    order_items: list[OrderItemRequestDTO] = Field(default_factory=list)

    class Config:
        alias_generator = to_camel
        populate_by_name = True


class OrderItemDTO(BaseModel):
    """Позиция заказа во внешнем представлении."""

    id: int
    product_id: int
    quantity: int
    price_per_unit: Decimal
    subtotal: Decimal

    class Config:
        alias_generator = to_camel
        populate_by_name = True

    @field_serializer("price_per_unit", "subtotal")
    def serialize_money(self, value: Decimal) -> str:
        return str(to_money(value))


class OrderDTO(BaseModel):
    """Заказ во внешнем представлении (ответ обоих эндпоинтов)."""

    id: int
    order_date: datetime
    status: OrderStatus
    total_amount: Decimal
    order_items: list[OrderItemDTO]

    class Config:
        alias_generator = to_camel
        populate_by_name = True

    @field_serializer("total_amount")
    def serialize_total(self, value: Decimal) -> str:
        return str(to_money(value))

    @field_serializer("status")
    def serialize_status(self, value: OrderStatus) -> str:
        return value.value

    @classmethod
    def from_order(cls, order: Order) -> OrderDTO:
        """Детерминированно конвертирует агрегат во внешнее представление."""
        if order.id is None:
            raise ValueError("Нельзя конвертировать несохранённый заказ")
        return cls(
            id=order.id,
            order_date=order.order_date,
            status=order.status,
            total_amount=order.total_amount,
            order_items=[
                OrderItemDTO(
                    id=item.id,
                    product_id=item.product_id,
                    quantity=item.quantity,
                    price_per_unit=item.price_per_unit,
                    subtotal=item.subtotal,
                )
                for item in order.items
            ],
        )
