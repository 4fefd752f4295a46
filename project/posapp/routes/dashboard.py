# posapp/routes/dashboard.py

from fastapi import APIRouter, Query, Request, status
from typing import Optional
from posapp.schemas.dashboard import DashboardResponse
from posapp.services.dashboard import dashboard_stats_service

router = APIRouter()

# ────────────── STATS ──────────────
@router.get(
    "",
    response_model=DashboardResponse,
    status_code=status.HTTP_200_OK,
    summary="KPI и тренд продаж за период",
    response_description="Выручка, число заказов, средний чек, прибыль и продажи по дням/месяцам",
    responses={
        200: {"description": "Статистика рассчитана"},
        400: {"description": "Неизвестный период или некорректный диапазон дат"},
        500: {"description": "Внутренняя ошибка сервера"},
    },
)
async def get_dashboard_stats(
    request: Request,
    period: Optional[str] = Query(None, description="day | week | month | year | custom"),
    start_date: Optional[str] = Query(None, alias="startDate", description="Для custom: YYYY-MM-DD"),
    end_date: Optional[str] = Query(None, alias="endDate", description="Для custom: YYYY-MM-DD"),
):
    """
    Статистика для дашборда.

    - `day` — сегодня, по дням
    - `week` — последние 7 дней, по дням
    - `month` — последний месяц, по дням
    - `year` — последний год, по месяцам
    - `custom` — `startDate`..`endDate` включительно; диапазон длиннее 60 дней группируется по месяцам

    Возвраты (`refunded`) в выручку и тренд не входят.
    """
    try:
        return await dashboard_stats_service(request, period, start_date, end_date)
    except Exception as e:
        await request.app.state.log.log_error("dashboard", f"Ошибка при расчёте статистики: {str(e)}", {"period": period})
        raise
