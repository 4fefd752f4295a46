# posapp/services/order.py

from fastapi import HTTPException, Request

from posapp.models.order import Order as OrderModel
from posapp.schemas.order import OrderCreate, OrderStatus, OrderStatusUpdate
from posapp.services.order_store import OrderFilter, OrderStore
from posapp.utils.clock import local_tz, system_clock, to_storage
from posapp.utils.order_id import TimestampOrderIdGenerator
from posapp.utils.periods import parse_date_bound


GENERATED_ID_ATTEMPTS = 5
MAX_INTERNAL_ID = 2**63 - 1  # BIGINT


def parse_internal_id(id: str) -> int | None:
    """ID из пути → int; всё, что не целое в 1..MAX_INTERNAL_ID, считается несуществующим."""
    try:
        value = int(id)
    except (TypeError, ValueError):
        return None
    return value if 0 < value <= MAX_INTERNAL_ID else None


async def create_order_service(order: OrderCreate, request: Request) -> tuple[OrderModel, bool]:
    """
    Идемпотентное создание заказа.

    order_id от клиента служит ключом идемпотентности: повтор с тем же
    order_id возвращает исходный заказ и ничего не пишет.
    Если order_id нет, ID генерируется (app.state.id_generator); занятый
    сгенерированный ID повтором не считается, берётся следующий
    (не больше GENERATED_ID_ATTEMPTS попыток, затем 500).
    Возвращает (заказ, inserted).
    """
    db = request.state.db
    log = request.app.state.log
    id_generator = getattr(request.app.state, "id_generator", None) or TimestampOrderIdGenerator()
    clock = getattr(request.app.state, "clock", None) or system_clock

    values = {
        "items": [item.model_dump() for item in order.items],
        "total_amount": order.total_amount,
        "status": OrderStatus.COMPLETED.value,
        "timestamp": to_storage(clock()),
        "customer_name": order.customer.name,
        "table": order.table,
        "payment_method": order.payment_method,
    }
    store = OrderStore(db)

    if order.order_id:
        db_order, inserted = await store.upsert_if_absent(order.order_id, values)
        if inserted:
            await log.log_info("order", "Заказ создан", {"id": db_order.id, "order_id": order.order_id, "total": order.total_amount})
        else:
            await log.log_warning("order", "Повтор заказа, запись не изменена", {"id": db_order.id, "order_id": order.order_id})
        return db_order, inserted

    for attempt in range(1, GENERATED_ID_ATTEMPTS + 1):
        order_id = id_generator()
        db_order, inserted = await store.upsert_if_absent(order_id, values)
        if inserted:
            await log.log_info("order", "Заказ создан", {"id": db_order.id, "order_id": order_id, "total": order.total_amount})
            return db_order, True
        await log.log_warning("order", "Сгенерированный order_id уже занят", {"order_id": order_id, "attempt": attempt})

    await log.log_error("order", "Не удалось сгенерировать свободный order_id", {"attempts": GENERATED_ID_ATTEMPTS})
    raise HTTPException(status_code=500, detail="Не удалось сгенерировать order_id")


async def read_orders_service(
    request: Request,
    page: int = 1,
    limit: int = 20,
    search: str | None = None,
    start_date: str | None = None,
    end_date: str | None = None,
    status: OrderStatus | None = None,
    sort: str = "-timestamp",
) -> tuple[list[OrderModel], int]:
    """
    Список заказов с поиском, фильтром по датам и пагинацией.

    - search: подстрока в order_id ИЛИ имени покупателя
    - start_date: включительно с начала дня (или с указанного момента)
    - end_date: включительно до конца указанного дня
    Некорректная дата → 400.
    """
    db = request.state.db
    log = request.app.state.log
    tz = local_tz()

    try:
        filters = OrderFilter(
            search=search.strip() if search and search.strip() else None,
            start=parse_date_bound(start_date, tz) if start_date else None,
            end=parse_date_bound(end_date, tz, end_of_day=True) if end_date else None,
            status=status.value if status else None,
        )
        orders, total = await OrderStore(db).list_orders(
            filters, sort=sort, offset=(page - 1) * limit, limit=limit
        )
    except ValueError as e:
        await log.log_warning("order", f"Некорректные параметры списка: {e}", {"startDate": start_date, "endDate": end_date, "sort": sort})
        raise HTTPException(status_code=400, detail=str(e))

    await log.log_info("order", f"{len(orders)} заказов загружено", {"total": total, "page": page})
    return orders, total


async def read_order_service(id: str, request: Request) -> OrderModel:
    """
    Чтение заказа по внутреннему ID.
    """
    db = request.state.db
    log = request.app.state.log

    internal_id = parse_internal_id(id)
    if internal_id is None:
        await log.log_error("order", "Некорректный ID заказа", {"id": id})
        raise HTTPException(status_code=404, detail="Некорректный ID заказа")

    db_order = await OrderStore(db).get_by_id(internal_id)
    if db_order is None:
        await log.log_error("order", "Заказ не найден", {"id": id})
        raise HTTPException(status_code=404, detail="Заказ не найден")

    await log.log_info("order", "Заказ загружен", {"id": id})
    return db_order


async def update_order_service(id: str, order_update: OrderStatusUpdate, request: Request) -> OrderModel:
    """
    Обновление заказа по ID. Меняется только статус.
    """
    db = request.state.db
    log = request.app.state.log

    internal_id = parse_internal_id(id)
    db_order = None
    if internal_id is not None:
        db_order = await OrderStore(db).update_status(internal_id, order_update.status.value)
    if db_order is None:
        await log.log_error("order", "Заказ не найден для обновления", {"id": id})
        raise HTTPException(status_code=404, detail="Заказ не найден")

    await log.log_info("order", "Статус заказа обновлён", {"id": id, "status": db_order.status})
    return db_order


async def delete_order_service(id: str, request: Request) -> None:
    """
    Удаление заказа по ID.
    """
    db = request.state.db
    log = request.app.state.log

    internal_id = parse_internal_id(id)
    deleted = internal_id is not None and await OrderStore(db).delete(internal_id)
    if not deleted:
        await log.log_error("order", "Заказ не найден для удаления", {"id": id})
        raise HTTPException(status_code=404, detail="Заказ не найден")

    await log.log_info("order", "Заказ удалён", {"id": id})


async def delete_orders_service(request: Request) -> int:
    """
    Удаление всех заказов (необратимо). Возвращает число удалённых.
    """
    db = request.state.db
    log = request.app.state.log

    count = await OrderStore(db).delete_all()
    await log.log_warning("order", "Все заказы удалены", {"count": count})
    return count
