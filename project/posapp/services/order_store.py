# posapp/services/order_store.py
# Хранилище заказов: единственная точка доступа к таблице orders

import datetime
from dataclasses import dataclass
from typing import Sequence

from sqlalchemy import and_, case, delete, func, insert, or_, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from posapp.models.order import Order as OrderModel
from posapp.utils.clock import from_storage, to_storage
from posapp.utils.periods import Bucket


@dataclass
class OrderFilter:
    """
    Условия выборки заказов.

    search — подстрока (без учёта регистра) в order_id ИЛИ имени покупателя;
    start/end — включительные границы по timestamp (aware);
    status — только заказы с этим статусом.
    """
    search: str | None = None
    start: datetime.datetime | None = None
    end: datetime.datetime | None = None
    status: str | None = None

    def clauses(self) -> list:
        conditions = []
        if self.search:
            conditions.append(
                or_(
                    OrderModel.order_id.icontains(self.search, autoescape=True),
                    OrderModel.customer_name.icontains(self.search, autoescape=True),
                )
            )
        if self.start is not None:
            conditions.append(OrderModel.timestamp >= to_storage(self.start))
        if self.end is not None:
            conditions.append(OrderModel.timestamp <= to_storage(self.end))
        if self.status:
            conditions.append(OrderModel.status == self.status)
        return conditions


@dataclass
class BucketSum:
    bucket: str
    sales: float
    orders: int


SORT_FIELDS = {
    "timestamp": OrderModel.timestamp,
    "total_amount": OrderModel.total_amount,
    "order_id": OrderModel.order_id,
}


def sort_clauses(sort: str) -> list:
    """Например "-timestamp" → [timestamp DESC, id DESC]; неизвестное поле → ValueError."""
    descending = sort.startswith("-")
    name = sort.lstrip("-")
    column = SORT_FIELDS.get(name)
    if column is None:
        raise ValueError(f"Сортировка по полю '{name}' не поддерживается")
    if descending:
        return [column.desc(), OrderModel.id.desc()]
    return [column.asc(), OrderModel.id.asc()]


_ON_CONFLICT_INSERTS = {
    "sqlite": sqlite_insert,
    "postgresql": pg_insert,
}


class OrderStore:
    def __init__(self, db: AsyncSession):
        self.db = db

    # ────────────── Запись ──────────────
    async def upsert_if_absent(self, order_id: str, values: dict) -> tuple[OrderModel, bool]:
        """
        Атомарная вставка заказа, если order_id ещё не занят.

        Одна условная запись (INSERT ... ON CONFLICT DO NOTHING либо
        INSERT с опорой на unique-индекс), без предварительного SELECT.
        Из гонки двух вызовов с одним order_id inserted=True получает ровно один.
        Возвращает (запись, inserted); при повторе запись не меняется.
        """
        row = {**values, "order_id": order_id}
        dialect = self.db.get_bind().dialect.name
        dialect_insert = _ON_CONFLICT_INSERTS.get(dialect)

        if dialect_insert is not None:
            stmt = dialect_insert(OrderModel).values(**row).on_conflict_do_nothing(
                index_elements=[OrderModel.order_id]
            )
            result = await self.db.execute(stmt)
            inserted = result.rowcount == 1
            await self.db.commit()
        else:
            try:
                await self.db.execute(insert(OrderModel).values(**row))
                await self.db.commit()
                inserted = True
            except IntegrityError:
                await self.db.rollback()
                existing = await self.get_by_order_id(order_id)
                if existing is None:
                    raise
                return existing, False

        record = await self.get_by_order_id(order_id)
        return record, inserted

    async def update_status(self, internal_id: int, status: str) -> OrderModel | None:
        db_order = await self.get_by_id(internal_id)
        if db_order is None:
            return None
        db_order.status = status
        await self.db.commit()
        await self.db.refresh(db_order)
        return db_order

    async def delete(self, internal_id: int) -> bool:
        result = await self.db.execute(delete(OrderModel).where(OrderModel.id == internal_id))
        await self.db.commit()
        return result.rowcount > 0

    async def delete_all(self) -> int:
        result = await self.db.execute(delete(OrderModel))
        await self.db.commit()
        return result.rowcount

    # ────────────── Чтение ──────────────
    async def get_by_id(self, internal_id: int) -> OrderModel | None:
        result = await self.db.execute(select(OrderModel).where(OrderModel.id == internal_id))
        return result.scalar_one_or_none()

    async def get_by_order_id(self, order_id: str) -> OrderModel | None:
        result = await self.db.execute(select(OrderModel).where(OrderModel.order_id == order_id))
        return result.scalar_one_or_none()

    async def list_orders(
        self,
        filters: OrderFilter,
        sort: str = "-timestamp",
        offset: int = 0,
        limit: int = 20,
    ) -> tuple[list[OrderModel], int]:
        """
        Страница заказов и общее число подходящих под фильтр.

        sort: поле из SORT_FIELDS, "-" в начале — по убыванию (по умолчанию новые сверху).
        """
        conditions = filters.clauses()
        order_by = sort_clauses(sort)

        total = await self.db.scalar(
            select(func.count()).select_from(OrderModel).where(*conditions)
        )
        result = await self.db.execute(
            select(OrderModel)
            .where(*conditions)
            .order_by(*order_by)
            .offset(offset)
            .limit(limit)
        )
        return list(result.scalars().all()), total or 0

    async def totals(self, filters: OrderFilter) -> tuple[float, int]:
        """Сумма total_amount и число заказов по фильтру."""
        result = await self.db.execute(
            select(
                func.coalesce(func.sum(OrderModel.total_amount), 0),
                func.count(OrderModel.id),
            ).where(*filters.clauses())
        )
        revenue, count = result.one()
        return float(revenue), int(count)

    async def time_span(self, filters: OrderFilter) -> tuple[datetime.datetime | None, datetime.datetime | None]:
        """Самый ранний и самый поздний timestamp по фильтру (aware UTC) или (None, None)."""
        result = await self.db.execute(
            select(func.min(OrderModel.timestamp), func.max(OrderModel.timestamp)).where(*filters.clauses())
        )
        first, last = result.one()
        return from_storage(first), from_storage(last)

    async def aggregate(self, filters: OrderFilter, buckets: Sequence[Bucket]) -> list[BucketSum]:
        """
        Сумма total_amount и число заказов по бакетам, группирует база.

        buckets — полуинтервалы [start, end) с меткой (Granularity.buckets);
        заказы вне всех бакетов не учитываются, пустые бакеты не возвращаются.
        Результат отсортирован по метке по возрастанию.
        """
        if not buckets:
            return []

        bucket_key = case(
            *[
                (
                    and_(
                        OrderModel.timestamp >= to_storage(b.start),
                        OrderModel.timestamp < to_storage(b.end),
                    ),
                    b.label,
                )
                for b in buckets
            ]
        ).label("bucket")
        rows = select(bucket_key, OrderModel.total_amount).where(*filters.clauses()).subquery()

        result = await self.db.execute(
            select(rows.c.bucket, func.sum(rows.c.total_amount), func.count())
            .where(rows.c.bucket.is_not(None))
            .group_by(rows.c.bucket)
            .order_by(rows.c.bucket)
        )
        return [
            BucketSum(bucket=label, sales=float(sales), orders=int(count))
            for label, sales, count in result.all()
        ]
