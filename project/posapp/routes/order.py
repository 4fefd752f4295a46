# posapp/routes/order.py

import math

from fastapi import APIRouter, Query, Request, Response, status
from typing import Optional
from posapp.config import settings
from posapp.schemas.order import (
    Order,
    OrderCreate,
    OrderListResponse,
    OrderPurgeResponse,
    OrderResponse,
    OrderStatus,
    OrderStatusUpdate,
    Pagination,
)
from posapp.services.order import (
    create_order_service,
    read_orders_service,
    read_order_service,
    update_order_service,
    delete_order_service,
    delete_orders_service,
)

router = APIRouter()

# ────────────── CREATE ──────────────
@router.post(
    "",
    response_model=OrderResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Создать заказ (идемпотентно)",
    response_description="Возвращает созданный или ранее сохранённый заказ",
    responses={
        200: {"description": "Заказ с таким order_id уже существует, возвращён исходный"},
        201: {"description": "Заказ успешно создан"},
        422: {"description": "Неверные данные запроса"},
        500: {"description": "Внутренняя ошибка сервера"},
    },
)
async def create_order(
    request: Request,
    response: Response,
    order: OrderCreate,
):
    """
    Создание заказа.

    Клиент может передать собственный `order_id` (ключ идемпотентности).
    Повторная отправка с тем же `order_id` не создаёт второй записи:
    ответ `200` с исходным заказом вместо `201`.
    """
    try:
        db_order, inserted = await create_order_service(order, request)
        if inserted:
            return OrderResponse(message="Заказ создан", data=Order.model_validate(db_order))

        response.status_code = status.HTTP_200_OK
        return OrderResponse(message="Заказ уже существует", data=Order.model_validate(db_order))
    except Exception as e:
        await request.app.state.log.log_error("order", f"Ошибка при создании заказа: {str(e)}", {"order_id": order.order_id})
        raise


# ────────────── READ ALL ──────────────
@router.get(
    "",
    response_model=OrderListResponse,
    status_code=status.HTTP_200_OK,
    summary="Получить список заказов",
    response_description="Страница заказов и данные пагинации",
    responses={
        200: {"description": "Список заказов успешно получен"},
        400: {"description": "Некорректная дата или сортировка"},
        422: {"description": "Неверные параметры пагинации"},
        500: {"description": "Внутренняя ошибка сервера"},
    },
)
async def read_orders(
    request: Request,
    page: int = Query(1, ge=1, le=settings.MAX_PAGE),
    limit: int = Query(settings.DEFAULT_PAGE_LIMIT, gt=0, le=settings.MAX_PAGE_LIMIT),
    search: Optional[str] = None,
    start_date: Optional[str] = Query(None, alias="startDate"),
    end_date: Optional[str] = Query(None, alias="endDate"),
    order_status: Optional[OrderStatus] = Query(None, alias="status"),
    sort: str = "-timestamp",
):
    try:
        orders, total = await read_orders_service(
            request, page, limit, search, start_date, end_date, order_status, sort
        )
        return OrderListResponse(
            data=[Order.model_validate(o) for o in orders],
            pagination=Pagination(
                total=total,
                page=page,
                limit=limit,
                total_pages=math.ceil(total / limit),
            ),
        )
    except Exception as e:
        await request.app.state.log.log_error("order", f"Ошибка при получении списка заказов: {str(e)}")
        raise


# ────────────── DELETE ALL ──────────────
@router.delete(
    "",
    response_model=OrderPurgeResponse,
    status_code=status.HTTP_200_OK,
    summary="Удалить все заказы",
    response_description="Число удалённых заказов",
    responses={
        200: {"description": "Заказы удалены"},
        500: {"description": "Внутренняя ошибка сервера"},
    },
)
async def delete_orders(request: Request):
    try:
        count = await delete_orders_service(request)
        return OrderPurgeResponse(deleted=count)
    except Exception as e:
        await request.app.state.log.log_error("order", f"Ошибка при удалении заказов: {str(e)}")
        raise


# ────────────── READ ONE ──────────────
@router.get(
    "/{id}",
    response_model=OrderResponse,
    status_code=status.HTTP_200_OK,
    summary="Получить заказ по ID",
    response_description="Возвращает данные конкретного заказа",
    responses={
        200: {"description": "Заказ найден и возвращён"},
        404: {"description": "Заказ не найден или ID некорректен"},
        500: {"description": "Внутренняя ошибка сервера"},
    },
)
async def read_order(
    id: str,
    request: Request,
):
    try:
        order = await read_order_service(id, request)
        return OrderResponse(data=Order.model_validate(order))
    except Exception as e:
        await request.app.state.log.log_error("order", f"Ошибка при получении заказа: {str(e)}", {"id": id})
        raise


# ────────────── UPDATE ──────────────
@router.put(
    "/{id}",
    response_model=OrderResponse,
    status_code=status.HTTP_200_OK,
    summary="Обновить статус заказа",
    response_description="Заказ успешно обновлён",
    responses={
        200: {"description": "Заказ успешно обновлён"},
        404: {"description": "Заказ не найден"},
        422: {"description": "Неверные данные запроса"},
        500: {"description": "Внутренняя ошибка сервера"},
    },
)
async def update_order(
    id: str,
    order_update: OrderStatusUpdate,
    request: Request,
):
    try:
        updated_order = await update_order_service(id, order_update, request)
        return OrderResponse(message="Заказ обновлён", data=Order.model_validate(updated_order))
    except Exception as e:
        await request.app.state.log.log_error("order", f"Ошибка при обновлении заказа: {str(e)}", {"id": id})
        raise


# ────────────── DELETE ──────────────
@router.delete(
    "/{id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Удалить заказ",
    response_description="Заказ успешно удалён, тело ответа отсутствует",
    responses={
        204: {"description": "Заказ успешно удалён"},
        404: {"description": "Заказ не найден"},
        500: {"description": "Внутренняя ошибка сервера"},
    },
)
async def delete_order(
    id: str,
    request: Request,
):
    try:
        await delete_order_service(id, request)
    except Exception as e:
        await request.app.state.log.log_error("order", f"Ошибка при удалении заказа: {str(e)}", {"id": id})
        raise
