# posapp/schemas/order.py

import math
from datetime import datetime
from enum import Enum
from typing import Optional, Union

from pydantic import AliasChoices, BaseModel, Field, field_validator, model_validator

from posapp.utils.clock import from_storage


class OrderStatus(str, Enum):
    COMPLETED = "completed"
    REFUNDED = "refunded"


# ────────────── Позиция чека ──────────────
class OrderItem(BaseModel):
    product_reference: Optional[Union[str, int]] = Field(
        None, validation_alias=AliasChoices("product_reference", "product_id")
    )
    name: str
    quantity: Union[int, float] = Field(..., gt=0, validation_alias=AliasChoices("quantity", "qty"))
    unit_price: Union[int, float] = Field(..., ge=0, validation_alias=AliasChoices("unit_price", "price"))
    variant: Optional[str] = None

    @field_validator("quantity", "unit_price")
    @classmethod
    def finite_number(cls, value):
        # JSON-литералы Infinity/NaN парсер пропускает
        if isinstance(value, float) and not math.isfinite(value):
            raise ValueError("Число должно быть конечным")
        return value


class Customer(BaseModel):
    name: str = "Guest"

    @field_validator("name", mode="before")
    @classmethod
    def default_guest(cls, value):
        if value is None or (isinstance(value, str) and not value.strip()):
            return "Guest"
        return value


# ────────────── Схема для CREATE ──────────────
class OrderCreate(BaseModel):
    """
    Продажа от кассы.

    Принимает и старый формат клиента: customerDetails, paymentMethod,
    bills.total вместо total_amount, qty/price/product_id в позициях.
    Статус и время продажи клиент не задаёт.
    """
    order_id: Optional[str] = None
    items: list[OrderItem] = Field(..., min_length=1)
    total_amount: float = Field(..., ge=0, allow_inf_nan=False)
    customer: Customer = Field(
        default_factory=Customer, validation_alias=AliasChoices("customer", "customerDetails")
    )
    table: str = "0"
    payment_method: str = Field(
        "Cash", validation_alias=AliasChoices("payment_method", "paymentMethod")
    )

    @model_validator(mode="before")
    @classmethod
    def lift_bill_total(cls, data):
        if isinstance(data, dict) and data.get("total_amount") is None:
            bills = data.get("bills")
            if isinstance(bills, dict) and bills.get("total") is not None:
                data = {**data, "total_amount": bills["total"]}
        return data

    @field_validator("order_id", mode="before")
    @classmethod
    def blank_order_id(cls, value):
        if value is None:
            return None
        value = str(value).strip()
        return value or None

    @field_validator("table", mode="before")
    @classmethod
    def table_as_str(cls, value):
        return "0" if value is None or value == "" else str(value)


# ────────────── Схема для UPDATE ──────────────
class OrderStatusUpdate(BaseModel):
    status: OrderStatus = Field(..., validation_alias=AliasChoices("status", "orderStatus"))


# ────────────── Схема для RESPONSE ──────────────
class Order(BaseModel):
    id: int
    order_id: str
    items: list[OrderItem]
    total_amount: float
    status: OrderStatus
    timestamp: datetime
    customer: Customer
    table: str
    payment_method: str
    created_at: datetime
    updated_at: datetime

    model_config = {
        "from_attributes": True
    }

    @model_validator(mode="before")
    @classmethod
    def customer_from_model(cls, data):
        # ORM-модель хранит только customer_name
        if hasattr(data, "customer_name"):
            return {
                "id": data.id,
                "order_id": data.order_id,
                "items": data.items or [],
                "total_amount": data.total_amount,
                "status": data.status,
                "timestamp": data.timestamp,
                "customer": {"name": data.customer_name},
                "table": data.table,
                "payment_method": data.payment_method,
                "created_at": data.created_at,
                "updated_at": data.updated_at,
            }
        return data

    @field_validator("timestamp", "created_at", "updated_at")
    @classmethod
    def as_utc(cls, value: datetime) -> datetime:
        return from_storage(value)


class OrderResponse(BaseModel):
    success: bool = True
    message: Optional[str] = None
    data: Order


class Pagination(BaseModel):
    total: int
    page: int
    limit: int
    total_pages: int = Field(..., alias="totalPages")

    model_config = {
        "populate_by_name": True
    }


class OrderListResponse(BaseModel):
    data: list[Order]
    pagination: Pagination


class OrderPurgeResponse(BaseModel):
    success: bool = True
    deleted: int
