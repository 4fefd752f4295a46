# posapp/services/dashboard.py

import math

from fastapi import HTTPException, Request

from posapp.config import settings
from posapp.schemas.dashboard import DashboardResponse, Kpi, PeriodInfo, TrendPoint
from posapp.schemas.order import OrderStatus
from posapp.services.order_store import OrderFilter, OrderStore
from posapp.utils.clock import system_clock
from posapp.utils.periods import ResolvedPeriod, parse_period, resolve_period


def round_half_up(value: float) -> int:
    # 2.5 → 3, как на кассе (round() в Python округляет к чётному)
    return int(math.floor(value + 0.5))


def build_kpi(revenue: float, orders: int, margin: float) -> Kpi:
    """
    revenue — сумма, orders — число заказов,
    aov — средний чек (0 без заказов), net_profit — revenue × margin.
    """
    return Kpi(
        revenue=revenue,
        orders=orders,
        aov=round_half_up(revenue / orders) if orders else 0,
        net_profit=round_half_up(revenue * margin),
    )


async def dashboard_stats_service(
    request: Request,
    period: str | None = None,
    start_date: str | None = None,
    end_date: str | None = None,
) -> DashboardResponse:
    """
    KPI и тренд продаж за период.

    Учитываются только заказы со статусом completed.
    Некорректный период или диапазон → 400.
    """
    db = request.state.db
    log = request.app.state.log
    clock = getattr(request.app.state, "clock", None) or system_clock

    try:
        resolved: ResolvedPeriod = resolve_period(
            parse_period(period),
            clock(),
            start_date,
            end_date,
            monthly_threshold_days=settings.CUSTOM_MONTHLY_THRESHOLD_DAYS,
        )
    except ValueError as e:
        await log.log_warning("dashboard", f"Некорректный период: {e}", {"period": period, "startDate": start_date, "endDate": end_date})
        raise HTTPException(status_code=400, detail=str(e))

    await log.log_info("dashboard", "Запрос статистики", {
        "period": resolved.period.value,
        "start": resolved.start.isoformat(),
        "end": resolved.end.isoformat(),
        "granularity": resolved.granularity.value,
    })

    store = OrderStore(db)
    filters = OrderFilter(start=resolved.start, end=resolved.end, status=OrderStatus.COMPLETED.value)
    tz = resolved.start.tzinfo

    revenue, orders = await store.totals(filters)
    first, last = await store.time_span(filters)
    # бакеты только на отрезке, где есть заказы
    buckets = resolved.granularity.buckets(first, last, tz) if first is not None else []
    sums = await store.aggregate(filters, buckets)

    return DashboardResponse(
        kpi=build_kpi(revenue, orders, settings.NET_PROFIT_MARGIN),
        trend=[TrendPoint(bucket=b.bucket, sales=b.sales, orders=b.orders) for b in sums],
        period=PeriodInfo(
            name=resolved.period,
            start=resolved.start,
            end=resolved.end,
            granularity=resolved.granularity,
        ),
    )
