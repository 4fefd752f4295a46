# posapp/schemas/dashboard.py

from datetime import datetime

from pydantic import BaseModel, Field

from posapp.utils.periods import Granularity, Period


class Kpi(BaseModel):
    revenue: float = 0
    orders: int = 0
    aov: int = 0
    net_profit: int = Field(0, alias="netProfit")

    model_config = {
        "populate_by_name": True
    }


class TrendPoint(BaseModel):
    bucket: str     # 2025-10-04 или 2025-10
    sales: float
    orders: int


class PeriodInfo(BaseModel):
    name: Period
    start: datetime
    end: datetime
    granularity: Granularity


class DashboardResponse(BaseModel):
    kpi: Kpi
    trend: list[TrendPoint]
    period: PeriodInfo
